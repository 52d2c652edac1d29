"""Persistence contracts the workflow and conflict services depend on.

Implementations must not commit; the calling service owns the transaction.
"""
from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Protocol, Sequence

from registrar.models.academic_period import Quarter
from registrar.models.quarter_package import PackageStatus, QuarterPackage
from registrar.models.record_approval import RecordApproval
from registrar.models.schedule import Schedule
from registrar.models.section import Section


class ConflictDimension(str, Enum):
    teacher = "teacher"
    section = "section"
    room = "room"


class PackageRepository(Protocol):
    def find_package(self, section_id: str, quarter: Quarter) -> QuarterPackage | None:
        raise NotImplementedError

    def get_package(self, package_id: str) -> QuarterPackage | None:
        raise NotImplementedError

    def list_packages(
        self,
        *,
        section_id: str | None = None,
        quarter: Quarter | None = None,
        status: PackageStatus | None = None,
        adviser_id: str | None = None,
    ) -> Sequence[QuarterPackage]:
        raise NotImplementedError

    def save_package(self, package: QuarterPackage) -> QuarterPackage:
        raise NotImplementedError

    def delete_package(self, package: QuarterPackage) -> None:
        raise NotImplementedError

    def append_approval(self, approval: RecordApproval) -> RecordApproval:
        """Insert a ledger row. Ledger rows are never updated or deleted."""

        raise NotImplementedError

    def list_approvals(self, package_id: str) -> Sequence[RecordApproval]:
        raise NotImplementedError

    def count_approvals(self, package_id: str) -> int:
        raise NotImplementedError


class ScheduleRepository(Protocol):
    def get_schedule(self, schedule_id: str) -> Schedule | None:
        raise NotImplementedError

    def list_schedules(
        self,
        *,
        teacher_id: str | None = None,
        section_id: str | None = None,
        period_id: str | None = None,
    ) -> Sequence[Schedule]:
        raise NotImplementedError

    def find_schedules_overlapping(
        self,
        dimension: ConflictDimension,
        key: str,
        start: datetime,
        end: datetime,
        exclude_id: str | None = None,
    ) -> Sequence[Schedule]:
        """Schedules on ``dimension == key`` whose interval intersects ``[start, end)``."""

        raise NotImplementedError

    def save_schedule(self, schedule: Schedule) -> Schedule:
        raise NotImplementedError

    def delete_schedule(self, schedule: Schedule) -> None:
        raise NotImplementedError

    def count_for_teacher(self, teacher_id: str, *, exclude_id: str | None = None) -> int:
        raise NotImplementedError

    def count_for_teacher_on_date(self, teacher_id: str, day: date, *, exclude_id: str | None = None) -> int:
        raise NotImplementedError

    def teaches_section(self, teacher_id: str, section_id: str) -> bool:
        raise NotImplementedError

    def count_for_section(self, section_id: str) -> int:
        raise NotImplementedError


class SectionRepository(Protocol):
    def get_section(self, section_id: str, *, for_update: bool = False) -> Section | None:
        raise NotImplementedError

    def touch_section(self, section: Section, *, expected_version: int | None = None) -> Section:
        """Bump the optimistic version so concurrent writers on the section collide."""

        raise NotImplementedError
