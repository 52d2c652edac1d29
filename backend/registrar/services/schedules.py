from __future__ import annotations

import logging
from typing import Sequence
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.orm import Session

from registrar.core.config import Settings, get_settings
from registrar.core.exceptions import ResourceNotFoundError, TeacherLoadLimitError, ValidationError
from registrar.models.academic_period import AcademicPeriod
from registrar.models.room import Room
from registrar.models.schedule import Schedule
from registrar.models.section import Section
from registrar.models.subject import Subject
from registrar.models.user import TEACHING_ROLES, User
from registrar.repositories.base import ScheduleRepository, SectionRepository
from registrar.repositories.schedules import SqlAlchemyScheduleRepository
from registrar.repositories.sections import SqlAlchemySectionRepository
from registrar.services.audit import log_activity
from registrar.services.schedule_conflicts import (
    ConflictPair,
    ScheduleCandidate,
    ScheduleConflict,
    active_dimensions,
    conflict_error_for,
    detect_conflicts,
    detect_pairwise_conflicts,
    localize_candidate,
    validate_interval,
)

logger = logging.getLogger(__name__)


class ScheduleService:
    def __init__(
        self,
        db: Session,
        *,
        settings: Settings | None = None,
        schedules: ScheduleRepository | None = None,
        sections: SectionRepository | None = None,
    ):
        self._db = db
        self._settings = settings or get_settings()
        self._schedules = schedules or SqlAlchemyScheduleRepository(db)
        self._sections = sections or SqlAlchemySectionRepository(db)
        self._zone = ZoneInfo(self._settings.school_timezone)

    def get_schedule(self, schedule_id: str) -> Schedule:
        schedule = self._schedules.get_schedule(schedule_id)
        if schedule is None:
            raise ResourceNotFoundError("Schedule", schedule_id)
        return schedule

    def list_schedules(
        self,
        *,
        teacher_id: str | None = None,
        section_id: str | None = None,
        period_id: str | None = None,
    ) -> Sequence[Schedule]:
        return self._schedules.list_schedules(teacher_id=teacher_id, section_id=section_id, period_id=period_id)

    def check_schedule_conflicts(
        self,
        candidate: ScheduleCandidate,
        exclude_id: str | None = None,
    ) -> list[ScheduleConflict]:
        candidate = localize_candidate(candidate, self._zone)
        validate_interval(candidate.start_time, candidate.end_time)
        check_rooms = self._settings.room_conflicts_enabled

        existing: dict[str, Schedule] = {}
        for dimension in active_dimensions(check_rooms):
            key = getattr(candidate, f"{dimension.value}_id")
            if key is None:
                continue
            for item in self._schedules.find_schedules_overlapping(
                dimension,
                key,
                candidate.start_time,
                candidate.end_time,
                exclude_id,
            ):
                existing[item.id] = item

        return detect_conflicts(
            candidate,
            existing.values(),
            exclude_schedule_id=exclude_id,
            check_rooms=check_rooms,
        )

    def find_existing_conflicts(self, *, period_id: str | None = None) -> list[ConflictPair]:
        schedules = self._schedules.list_schedules(period_id=period_id)
        return detect_pairwise_conflicts(schedules, check_rooms=self._settings.room_conflicts_enabled)

    def create_schedule(
        self,
        candidate: ScheduleCandidate,
        *,
        actor_id: str | None = None,
        expected_section_version: int | None = None,
    ) -> Schedule:
        try:
            schedule = self._write(
                Schedule(),
                candidate,
                actor_id=actor_id,
                expected_section_version=expected_section_version,
            )
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        self._db.refresh(schedule)
        logger.info(
            "Created schedule %s for teacher %s section %s (%s - %s)",
            schedule.id,
            schedule.teacher_id,
            schedule.section_id,
            schedule.start_time.isoformat(),
            schedule.end_time.isoformat(),
        )
        return schedule

    def update_schedule(
        self,
        schedule_id: str,
        candidate: ScheduleCandidate,
        *,
        actor_id: str | None = None,
        expected_section_version: int | None = None,
    ) -> Schedule:
        try:
            schedule = self.get_schedule(schedule_id)
            previous_section_id = schedule.section_id
            self._write(
                schedule,
                candidate,
                actor_id=actor_id,
                expected_section_version=expected_section_version,
            )
            if previous_section_id != candidate.section_id:
                previous_section = self._sections.get_section(previous_section_id, for_update=True)
                if previous_section is not None:
                    self._sections.touch_section(previous_section)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        self._db.refresh(schedule)
        logger.info("Updated schedule %s", schedule.id)
        return schedule

    def delete_schedule(self, schedule_id: str, *, actor_id: str | None = None) -> None:
        try:
            schedule = self.get_schedule(schedule_id)
            section = self._sections.get_section(schedule.section_id, for_update=True)
            if section is not None:
                self._sections.touch_section(section)
            self._schedules.delete_schedule(schedule)
            log_activity(
                self._db,
                user_id=actor_id,
                action="schedule.delete",
                entity_type="schedule",
                entity_id=schedule_id,
                details={"teacher_id": schedule.teacher_id, "section_id": schedule.section_id},
            )
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        logger.info("Deleted schedule %s", schedule_id)

    def _write(
        self,
        schedule: Schedule,
        candidate: ScheduleCandidate,
        *,
        actor_id: str | None,
        expected_section_version: int | None,
    ) -> Schedule:
        candidate = localize_candidate(candidate, self._zone)
        validate_interval(candidate.start_time, candidate.end_time)
        section = self._lock_references(candidate)
        exclude_id = schedule.id
        self._enforce_teacher_load(candidate, exclude_id)

        conflicts = self.check_schedule_conflicts(candidate, exclude_id=exclude_id)
        if conflicts:
            logger.info(
                "Rejected schedule for teacher %s section %s: %d conflict(s)",
                candidate.teacher_id,
                candidate.section_id,
                len(conflicts),
            )
            raise conflict_error_for(conflicts)

        self._sections.touch_section(section, expected_version=expected_section_version)

        creating = schedule.id is None
        schedule.teacher_id = candidate.teacher_id
        schedule.subject_id = candidate.subject_id
        schedule.section_id = candidate.section_id
        schedule.period_id = candidate.period_id
        schedule.room_id = candidate.room_id
        schedule.days = candidate.days
        schedule.start_time = candidate.start_time
        schedule.end_time = candidate.end_time
        self._schedules.save_schedule(schedule)

        log_activity(
            self._db,
            user_id=actor_id,
            action="schedule.create" if creating else "schedule.update",
            entity_type="schedule",
            entity_id=schedule.id,
            details={
                "teacher_id": schedule.teacher_id,
                "section_id": schedule.section_id,
                "room_id": schedule.room_id,
                "start_time": schedule.start_time.isoformat(),
                "end_time": schedule.end_time.isoformat(),
            },
        )
        return schedule

    def _lock_references(self, candidate: ScheduleCandidate) -> Section:
        # Row locks on the teacher and section serialize concurrent writers on
        # the same conflict dimensions (no-op on SQLite, which serializes writes).
        teacher = self._db.execute(
            select(User).where(User.id == candidate.teacher_id).with_for_update()
        ).scalar_one_or_none()
        if teacher is None:
            raise ResourceNotFoundError("Teacher", candidate.teacher_id)
        if teacher.role not in TEACHING_ROLES or not teacher.is_active:
            raise ValidationError(
                f"User {teacher.id} cannot be assigned classes",
                details={"teacher_id": teacher.id, "role": teacher.role.value},
            )

        section = self._sections.get_section(candidate.section_id, for_update=True)
        if section is None:
            raise ResourceNotFoundError("Section", candidate.section_id)
        if candidate.subject_id is None or self._db.get(Subject, candidate.subject_id) is None:
            raise ResourceNotFoundError("Subject", str(candidate.subject_id))
        if candidate.period_id is None or self._db.get(AcademicPeriod, candidate.period_id) is None:
            raise ResourceNotFoundError("AcademicPeriod", str(candidate.period_id))
        if candidate.room_id is not None and self._db.get(Room, candidate.room_id) is None:
            raise ResourceNotFoundError("Room", candidate.room_id)
        return section

    def _enforce_teacher_load(self, candidate: ScheduleCandidate, exclude_id: str | None) -> None:
        total_limit = self._settings.max_schedules_per_teacher
        if self._schedules.count_for_teacher(candidate.teacher_id, exclude_id=exclude_id) >= total_limit:
            raise TeacherLoadLimitError(candidate.teacher_id, total_limit, "in total")

        day = candidate.start_time.date()
        day_limit = self._settings.max_schedules_per_teacher_per_day
        if self._schedules.count_for_teacher_on_date(candidate.teacher_id, day, exclude_id=exclude_id) >= day_limit:
            raise TeacherLoadLimitError(candidate.teacher_id, day_limit, f"on {day.isoformat()}")
