from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class SectionBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    grade_level: str = Field(min_length=1, max_length=50)
    adviser_id: str | None = Field(default=None, max_length=36)
    capacity: int | None = Field(default=None, ge=1, le=200)

    @field_validator("name", "grade_level")
    @classmethod
    def strip_text(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Value cannot be blank")
        return trimmed


class SectionCreate(SectionBase):
    pass


class SectionUpdate(BaseModel):
    version: int = Field(ge=1)
    name: str | None = Field(default=None, min_length=1, max_length=100)
    grade_level: str | None = Field(default=None, min_length=1, max_length=50)
    adviser_id: str | None = Field(default=None, max_length=36)
    capacity: int | None = Field(default=None, ge=1, le=200)


class SectionOut(SectionBase):
    id: str
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
