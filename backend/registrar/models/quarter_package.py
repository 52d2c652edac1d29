import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from registrar.db.base import Base
from registrar.models.academic_period import Quarter


class PackageStatus(str, Enum):
    PENDING = "PENDING"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    RETURNED = "RETURNED"
    FORWARDED_TO_ADMIN = "FORWARDED_TO_ADMIN"
    PUBLISHED = "PUBLISHED"


class QuarterPackage(Base):
    __tablename__ = "quarter_packages"
    __table_args__ = (UniqueConstraint("section_id", "quarter", name="uq_quarter_packages_section_quarter"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    section_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    quarter: Mapped[Quarter] = mapped_column(SAEnum(Quarter, name="quarter"), nullable=False)
    status: Mapped[PackageStatus] = mapped_column(
        SAEnum(PackageStatus, name="package_status"),
        nullable=False,
        default=PackageStatus.PENDING,
    )
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    adviser_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    @property
    def effective_status(self) -> PackageStatus:
        """Status as teachers see it: a returned package is back in their hands."""
        if self.status == PackageStatus.RETURNED:
            return PackageStatus.PENDING
        return self.status
