from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from registrar.models.academic_period import Quarter


class SubjectCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        return value.strip().upper()


class SubjectOut(SubjectCreate):
    id: str

    model_config = {"from_attributes": True}


class RoomCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    building: str | None = Field(default=None, max_length=200)
    capacity: int = Field(default=40, ge=1, le=1000)


class RoomOut(RoomCreate):
    id: str

    model_config = {"from_attributes": True}


class AcademicPeriodCreate(BaseModel):
    school_year: str = Field(pattern=r"^\d{4}-\d{4}$")
    quarter: Quarter
    is_active: bool = False

    @field_validator("quarter", mode="before")
    @classmethod
    def parse_quarter(cls, value):
        return Quarter.parse(value)


class AcademicPeriodOut(AcademicPeriodCreate):
    id: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
