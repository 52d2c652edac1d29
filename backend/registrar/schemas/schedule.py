from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from registrar.repositories.base import ConflictDimension
from registrar.services.schedule_conflicts import ScheduleCandidate

DAY_SHORT_MAP = {
    "MON": "Mon",
    "MONDAY": "Mon",
    "TUE": "Tue",
    "TUESDAY": "Tue",
    "WED": "Wed",
    "WEDNESDAY": "Wed",
    "THU": "Thu",
    "THURSDAY": "Thu",
    "FRI": "Fri",
    "FRIDAY": "Fri",
    "SAT": "Sat",
    "SATURDAY": "Sat",
    "SUN": "Sun",
    "SUNDAY": "Sun",
}


def normalize_days(value: str) -> str:
    """Tidy a day-set label such as ``"monday, wed"`` into ``"Mon,Wed"``.

    Unrecognized tokens (``"MWF"``, ``"Daily"``) are kept as written.
    """
    tokens = [token.strip() for token in value.replace("/", ",").split(",") if token.strip()]
    if not tokens:
        raise ValueError("days cannot be empty")
    return ",".join(DAY_SHORT_MAP.get(token.upper(), token) for token in tokens)


class ScheduleWindow(BaseModel):
    teacher_id: str = Field(min_length=1, max_length=36)
    section_id: str = Field(min_length=1, max_length=36)
    room_id: str | None = Field(default=None, max_length=36)
    days: str = Field(min_length=1, max_length=50)
    start_time: datetime
    end_time: datetime

    @field_validator("days")
    @classmethod
    def validate_days(cls, value: str) -> str:
        return normalize_days(value)


class ScheduleCreate(ScheduleWindow):
    subject_id: str = Field(min_length=1, max_length=36)
    period_id: str = Field(min_length=1, max_length=36)
    expected_section_version: int | None = Field(default=None, ge=1)

    def to_candidate(self) -> ScheduleCandidate:
        return ScheduleCandidate(
            teacher_id=self.teacher_id,
            section_id=self.section_id,
            room_id=self.room_id,
            days=self.days,
            start_time=self.start_time,
            end_time=self.end_time,
            subject_id=self.subject_id,
            period_id=self.period_id,
        )


class ScheduleUpdate(ScheduleCreate):
    pass


class ScheduleConflictCheck(ScheduleWindow):
    exclude_schedule_id: str | None = Field(default=None, max_length=36)

    def to_candidate(self) -> ScheduleCandidate:
        return ScheduleCandidate(
            teacher_id=self.teacher_id,
            section_id=self.section_id,
            room_id=self.room_id,
            days=self.days,
            start_time=self.start_time,
            end_time=self.end_time,
        )


class ScheduleOut(BaseModel):
    id: str
    teacher_id: str
    subject_id: str
    section_id: str
    period_id: str
    room_id: str | None = None
    days: str
    start_time: datetime
    end_time: datetime
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ScheduleConflictOut(BaseModel):
    schedule_id: str
    dimension: ConflictDimension
    overlap_start: datetime
    overlap_end: datetime
    teacher_id: str
    section_id: str
    room_id: str | None = None
    days: str
    start_time: datetime
    end_time: datetime

    model_config = {"from_attributes": True}


class ScheduleConflictReport(BaseModel):
    has_conflicts: bool
    conflicts: list[ScheduleConflictOut]


class ConflictPairOut(BaseModel):
    first_id: str
    second_id: str
    dimension: ConflictDimension
    overlap_start: datetime
    overlap_end: datetime

    model_config = {"from_attributes": True}
