import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from registrar.db.base import Base


class Quarter(str, Enum):
    Q1 = "Q1"
    Q2 = "Q2"
    Q3 = "Q3"
    Q4 = "Q4"

    @classmethod
    def parse(cls, value: "str | Quarter") -> "Quarter":
        """Accept ``Q1``, ``1``, ``1st`` (any case) and friends."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().upper()
        aliases = {
            "Q1": cls.Q1, "1": cls.Q1, "1ST": cls.Q1, "FIRST": cls.Q1,
            "Q2": cls.Q2, "2": cls.Q2, "2ND": cls.Q2, "SECOND": cls.Q2,
            "Q3": cls.Q3, "3": cls.Q3, "3RD": cls.Q3, "THIRD": cls.Q3,
            "Q4": cls.Q4, "4": cls.Q4, "4TH": cls.Q4, "FOURTH": cls.Q4,
        }
        try:
            return aliases[normalized]
        except KeyError:
            raise ValueError(f"Invalid quarter value: {value}") from None


class AcademicPeriod(Base):
    """A school-year quarter that schedules are booked against."""

    __tablename__ = "academic_periods"
    __table_args__ = (UniqueConstraint("school_year", "quarter", name="uq_academic_periods_year_quarter"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    school_year: Mapped[str] = mapped_column(String(20), nullable=False)
    quarter: Mapped[Quarter] = mapped_column(SAEnum(Quarter, name="quarter"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
