from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from registrar.models.academic_period import Quarter
from registrar.models.quarter_package import PackageStatus
from registrar.models.record_approval import ApprovalAction


class QuarterPackageCreate(BaseModel):
    section_id: str = Field(min_length=1, max_length=36)
    quarter: Quarter

    @field_validator("quarter", mode="before")
    @classmethod
    def parse_quarter(cls, value):
        return Quarter.parse(value)


class PackageTransitionRequest(BaseModel):
    remarks: str | None = Field(default=None, max_length=1000)
    expected_section_version: int | None = Field(default=None, ge=1)


class PackageReturnRequest(PackageTransitionRequest):
    remarks: str = Field(min_length=1, max_length=1000)


class QuarterPackageOut(BaseModel):
    id: str
    section_id: str
    quarter: Quarter
    status: PackageStatus
    effective_status: PackageStatus
    submitted_at: datetime | None = None
    adviser_id: str | None = None
    remarks: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class RecordApprovalOut(BaseModel):
    id: str
    package_id: str
    approver_id: str
    action: ApprovalAction
    remarks: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
