import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from registrar.db.base import Base


class Schedule(Base):
    __tablename__ = "schedules"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_schedules_interval"),
        Index("ix_schedules_teacher_window", "teacher_id", "start_time", "end_time"),
        Index("ix_schedules_section_window", "section_id", "start_time", "end_time"),
        Index("ix_schedules_room_window", "room_id", "start_time", "end_time"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    teacher_id: Mapped[str] = mapped_column(String(36), nullable=False)
    subject_id: Mapped[str] = mapped_column(String(36), nullable=False)
    section_id: Mapped[str] = mapped_column(String(36), nullable=False)
    period_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    room_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    days: Mapped[str] = mapped_column(String(50), nullable=False)
    # Naive timestamps in school-local time; the interval is [start_time, end_time).
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
