from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from registrar.models.schedule import Schedule
from registrar.repositories.base import ConflictDimension, ScheduleRepository

_DIMENSION_COLUMNS = {
    ConflictDimension.teacher: Schedule.teacher_id,
    ConflictDimension.section: Schedule.section_id,
    ConflictDimension.room: Schedule.room_id,
}


class SqlAlchemyScheduleRepository(ScheduleRepository):
    def __init__(self, db: Session):
        self._db = db

    def get_schedule(self, schedule_id: str) -> Schedule | None:
        return self._db.get(Schedule, schedule_id)

    def list_schedules(
        self,
        *,
        teacher_id: str | None = None,
        section_id: str | None = None,
        period_id: str | None = None,
    ) -> Sequence[Schedule]:
        statement = select(Schedule)
        if teacher_id is not None:
            statement = statement.where(Schedule.teacher_id == teacher_id)
        if section_id is not None:
            statement = statement.where(Schedule.section_id == section_id)
        if period_id is not None:
            statement = statement.where(Schedule.period_id == period_id)
        return list(self._db.execute(statement.order_by(Schedule.start_time)).scalars())

    def find_schedules_overlapping(
        self,
        dimension: ConflictDimension,
        key: str,
        start: datetime,
        end: datetime,
        exclude_id: str | None = None,
    ) -> Sequence[Schedule]:
        column = _DIMENSION_COLUMNS[ConflictDimension(dimension)]
        statement = select(Schedule).where(
            column == key,
            Schedule.start_time < end,
            Schedule.end_time > start,
        )
        if exclude_id is not None:
            statement = statement.where(Schedule.id != exclude_id)
        return list(self._db.execute(statement.order_by(Schedule.start_time)).scalars())

    def save_schedule(self, schedule: Schedule) -> Schedule:
        self._db.add(schedule)
        self._db.flush()
        return schedule

    def delete_schedule(self, schedule: Schedule) -> None:
        self._db.delete(schedule)
        self._db.flush()

    def count_for_teacher(self, teacher_id: str, *, exclude_id: str | None = None) -> int:
        statement = select(func.count()).select_from(Schedule).where(Schedule.teacher_id == teacher_id)
        if exclude_id is not None:
            statement = statement.where(Schedule.id != exclude_id)
        return int(self._db.execute(statement).scalar_one())

    def count_for_teacher_on_date(self, teacher_id: str, day: date, *, exclude_id: str | None = None) -> int:
        day_start = datetime.combine(day, time.min)
        statement = select(func.count()).select_from(Schedule).where(
            Schedule.teacher_id == teacher_id,
            Schedule.start_time >= day_start,
            Schedule.start_time < day_start + timedelta(days=1),
        )
        if exclude_id is not None:
            statement = statement.where(Schedule.id != exclude_id)
        return int(self._db.execute(statement).scalar_one())

    def teaches_section(self, teacher_id: str, section_id: str) -> bool:
        statement = (
            select(Schedule.id)
            .where(Schedule.teacher_id == teacher_id, Schedule.section_id == section_id)
            .limit(1)
        )
        return self._db.execute(statement).first() is not None

    def count_for_section(self, section_id: str) -> int:
        statement = select(func.count()).select_from(Schedule).where(Schedule.section_id == section_id)
        return int(self._db.execute(statement).scalar_one())
