"""Interval conflict detection for class schedules.

All intervals are half-open ``[start, end)``: a class ending at 10:00 and one
starting at 10:00 do not collide. Day labels are carried along for display
only; the timestamps alone decide whether two bookings overlap.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, replace
from datetime import datetime, tzinfo
from typing import Iterable, Protocol, Sequence

from registrar.core.exceptions import (
    InvalidIntervalError,
    RoomScheduleConflictError,
    ScheduleConflictError,
    SectionScheduleConflictError,
    TeacherScheduleConflictError,
)
from registrar.repositories.base import ConflictDimension


class Booking(Protocol):
    id: str | None
    teacher_id: str
    section_id: str
    room_id: str | None
    days: str
    start_time: datetime
    end_time: datetime


@dataclass(frozen=True)
class ScheduleCandidate:
    teacher_id: str
    section_id: str
    start_time: datetime
    end_time: datetime
    days: str = ""
    room_id: str | None = None
    subject_id: str | None = None
    period_id: str | None = None


def to_wall_time(value: datetime, zone: tzinfo) -> datetime:
    """Convert an aware timestamp to naive wall-clock time in ``zone``.

    Naive values are taken to already be school-local and pass through.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        return value
    return value.astimezone(zone).replace(tzinfo=None)


def localize_candidate(candidate: ScheduleCandidate, zone: tzinfo) -> ScheduleCandidate:
    return replace(
        candidate,
        start_time=to_wall_time(candidate.start_time, zone),
        end_time=to_wall_time(candidate.end_time, zone),
    )


@dataclass(frozen=True)
class ScheduleConflict:
    schedule_id: str
    dimension: ConflictDimension
    overlap_start: datetime
    overlap_end: datetime
    teacher_id: str
    section_id: str
    room_id: str | None
    days: str
    start_time: datetime
    end_time: datetime

    def as_dict(self) -> dict:
        return {
            "schedule_id": self.schedule_id,
            "dimension": self.dimension.value,
            "overlap_start": self.overlap_start.isoformat(),
            "overlap_end": self.overlap_end.isoformat(),
            "teacher_id": self.teacher_id,
            "section_id": self.section_id,
            "room_id": self.room_id,
            "days": self.days,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
        }


@dataclass(frozen=True)
class ConflictPair:
    first_id: str
    second_id: str
    dimension: ConflictDimension
    overlap_start: datetime
    overlap_end: datetime


_DIMENSION_ORDER = {
    ConflictDimension.teacher: 0,
    ConflictDimension.section: 1,
    ConflictDimension.room: 2,
}

_DIMENSION_ERRORS: dict[ConflictDimension, type[ScheduleConflictError]] = {
    ConflictDimension.teacher: TeacherScheduleConflictError,
    ConflictDimension.section: SectionScheduleConflictError,
    ConflictDimension.room: RoomScheduleConflictError,
}


def validate_interval(start: datetime, end: datetime) -> None:
    if end <= start:
        raise InvalidIntervalError(start, end)


def intervals_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    return start_a < end_b and start_b < end_a


def _dimension_key(item: Booking | ScheduleCandidate, dimension: ConflictDimension) -> str | None:
    if dimension == ConflictDimension.teacher:
        return item.teacher_id
    if dimension == ConflictDimension.section:
        return item.section_id
    return item.room_id


def active_dimensions(check_rooms: bool) -> tuple[ConflictDimension, ...]:
    if check_rooms:
        return (ConflictDimension.teacher, ConflictDimension.section, ConflictDimension.room)
    return (ConflictDimension.teacher, ConflictDimension.section)


def detect_conflicts(
    candidate: ScheduleCandidate,
    existing: Iterable[Booking],
    *,
    exclude_schedule_id: str | None = None,
    check_rooms: bool = True,
) -> list[ScheduleConflict]:
    """Every (existing schedule, dimension) pair the candidate collides with.

    One existing row can appear once per dimension it shares with the
    candidate, e.g. same teacher *and* same section.
    """
    validate_interval(candidate.start_time, candidate.end_time)
    dimensions = active_dimensions(check_rooms)

    conflicts: list[ScheduleConflict] = []
    seen: set[tuple[str, ConflictDimension]] = set()
    for item in existing:
        if item.id is None or item.id == exclude_schedule_id:
            continue
        if not intervals_overlap(candidate.start_time, candidate.end_time, item.start_time, item.end_time):
            continue
        for dimension in dimensions:
            key = _dimension_key(candidate, dimension)
            if key is None or key != _dimension_key(item, dimension):
                continue
            if (item.id, dimension) in seen:
                continue
            seen.add((item.id, dimension))
            conflicts.append(
                ScheduleConflict(
                    schedule_id=item.id,
                    dimension=dimension,
                    overlap_start=max(candidate.start_time, item.start_time),
                    overlap_end=min(candidate.end_time, item.end_time),
                    teacher_id=item.teacher_id,
                    section_id=item.section_id,
                    room_id=item.room_id,
                    days=item.days,
                    start_time=item.start_time,
                    end_time=item.end_time,
                )
            )

    conflicts.sort(key=lambda c: (_DIMENSION_ORDER[c.dimension], c.overlap_start, c.schedule_id))
    return conflicts


def detect_pairwise_conflicts(schedules: Sequence[Booking], *, check_rooms: bool = True) -> list[ConflictPair]:
    """Audit a set of already-stored schedules for collisions among themselves."""
    pairs: list[ConflictPair] = []
    for dimension in active_dimensions(check_rooms):
        buckets: dict[str, list[Booking]] = defaultdict(list)
        for item in schedules:
            key = _dimension_key(item, dimension)
            if key is not None and item.id is not None:
                buckets[key].append(item)

        for bucket in buckets.values():
            bucket.sort(key=lambda b: (b.start_time, b.end_time, b.id))
            # Sweep: `open_items` holds bookings that may still overlap later starts.
            open_items: list[Booking] = []
            for item in bucket:
                open_items = [other for other in open_items if other.end_time > item.start_time]
                for other in open_items:
                    pairs.append(
                        ConflictPair(
                            first_id=other.id,
                            second_id=item.id,
                            dimension=dimension,
                            overlap_start=max(other.start_time, item.start_time),
                            overlap_end=min(other.end_time, item.end_time),
                        )
                    )
                open_items.append(item)
    return pairs


def conflict_error_for(conflicts: Sequence[ScheduleConflict]) -> ScheduleConflictError:
    """Pick the most specific error type that still describes every conflict."""
    dimensions = {conflict.dimension for conflict in conflicts}
    if len(dimensions) == 1:
        return _DIMENSION_ERRORS[dimensions.pop()](conflicts)
    return ScheduleConflictError(conflicts)
