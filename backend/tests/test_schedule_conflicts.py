from datetime import datetime
from types import SimpleNamespace

import pytest

from registrar.core.exceptions import (
    InvalidIntervalError,
    RoomScheduleConflictError,
    ScheduleConflictError,
    SectionScheduleConflictError,
    TeacherScheduleConflictError,
)
from registrar.repositories.base import ConflictDimension
from registrar.services.schedule_conflicts import (
    ScheduleCandidate,
    conflict_error_for,
    detect_conflicts,
    detect_pairwise_conflicts,
    intervals_overlap,
    validate_interval,
)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 9, 7, hour, minute)


def booking(schedule_id, teacher_id, section_id, start, end, room_id=None):
    return SimpleNamespace(
        id=schedule_id,
        teacher_id=teacher_id,
        section_id=section_id,
        room_id=room_id,
        days="Mon",
        start_time=start,
        end_time=end,
    )


@pytest.mark.parametrize(
    "a,b,expected",
    [
        ((9, 10), (9, 10), True),
        ((9, 10), (9.5, 10.5), True),
        ((9, 12), (10, 11), True),
        ((9, 10), (10, 11), False),
        ((10, 11), (9, 10), False),
        ((9, 10), (11, 12), False),
    ],
)
def test_overlap_iff_each_starts_before_the_other_ends(a, b, expected):
    def ts(value):
        return at(int(value), int((value % 1) * 60))

    assert intervals_overlap(ts(a[0]), ts(a[1]), ts(b[0]), ts(b[1])) is expected
    assert intervals_overlap(ts(b[0]), ts(b[1]), ts(a[0]), ts(a[1])) is expected


def test_validate_interval_rejects_empty_and_inverted():
    with pytest.raises(InvalidIntervalError):
        validate_interval(at(10), at(10))
    with pytest.raises(InvalidIntervalError):
        validate_interval(at(11), at(10))
    validate_interval(at(10), at(10, 1))


def test_teacher_overlap_reported_on_teacher_dimension():
    existing = [booking("A", "T1", "S1", at(9), at(10))]
    candidate = ScheduleCandidate(teacher_id="T1", section_id="S9", start_time=at(9, 30), end_time=at(10, 30))

    conflicts = detect_conflicts(candidate, existing)

    assert [(c.schedule_id, c.dimension) for c in conflicts] == [("A", ConflictDimension.teacher)]
    assert conflicts[0].overlap_start == at(9, 30)
    assert conflicts[0].overlap_end == at(10)


def test_section_overlap_reported_even_with_different_teachers():
    existing = [booking("X", "T3", "S2", at(9), at(10))]
    candidate = ScheduleCandidate(teacher_id="T2", section_id="S2", start_time=at(9), end_time=at(10))

    conflicts = detect_conflicts(candidate, existing)

    assert [(c.schedule_id, c.dimension) for c in conflicts] == [("X", ConflictDimension.section)]


def test_one_row_can_conflict_on_several_dimensions():
    existing = [booking("A", "T1", "S1", at(9), at(10), room_id="R1")]
    candidate = ScheduleCandidate(teacher_id="T1", section_id="S1", room_id="R1", start_time=at(9), end_time=at(10))

    conflicts = detect_conflicts(candidate, existing)

    assert [c.dimension for c in conflicts] == [
        ConflictDimension.teacher,
        ConflictDimension.section,
        ConflictDimension.room,
    ]


def test_room_dimension_can_be_disabled():
    existing = [booking("A", "T1", "S1", at(9), at(10), room_id="R1")]
    candidate = ScheduleCandidate(teacher_id="T2", section_id="S2", room_id="R1", start_time=at(9), end_time=at(10))

    assert [c.dimension for c in detect_conflicts(candidate, existing)] == [ConflictDimension.room]
    assert detect_conflicts(candidate, existing, check_rooms=False) == []


def test_rows_without_a_room_never_collide_on_room():
    existing = [booking("A", "T1", "S1", at(9), at(10))]
    candidate = ScheduleCandidate(teacher_id="T2", section_id="S2", start_time=at(9), end_time=at(10))
    assert detect_conflicts(candidate, existing) == []


def test_touching_intervals_never_conflict():
    existing = [booking("A", "T1", "S1", at(9), at(10)), booking("B", "T1", "S1", at(11), at(12))]
    candidate = ScheduleCandidate(teacher_id="T1", section_id="S1", start_time=at(10), end_time=at(11))
    assert detect_conflicts(candidate, existing) == []


def test_self_exclusion_is_idempotent():
    existing = [booking("A", "T1", "S1", at(9), at(10))]
    candidate = ScheduleCandidate(teacher_id="T1", section_id="S1", start_time=at(9), end_time=at(10))
    assert detect_conflicts(candidate, existing, exclude_schedule_id="A") == []


def test_moving_schedule_reports_only_other_rows():
    existing = [
        booking("A", "T1", "S1", at(9), at(10)),
        booking("D", "T1", "S5", at(10, 30), at(11, 30)),
    ]
    candidate = ScheduleCandidate(teacher_id="T1", section_id="S1", start_time=at(10), end_time=at(11))

    conflicts = detect_conflicts(candidate, existing, exclude_schedule_id="A")

    assert [(c.schedule_id, c.dimension) for c in conflicts] == [("D", ConflictDimension.teacher)]


def test_day_labels_do_not_hide_overlaps():
    other = booking("A", "T1", "S1", at(9), at(10))
    other.days = "Monday"
    candidate = ScheduleCandidate(teacher_id="T1", section_id="S2", days="MWF", start_time=at(9), end_time=at(10))
    assert len(detect_conflicts(candidate, [other])) == 1


def test_pairwise_audit_finds_each_pair_once_per_dimension():
    schedules = [
        booking("A", "T1", "S1", at(9), at(10)),
        booking("B", "T1", "S2", at(9, 30), at(10, 30)),
        booking("C", "T1", "S3", at(10), at(11)),
        booking("D", "T2", "S1", at(9, 45), at(10, 15)),
    ]

    pairs = detect_pairwise_conflicts(schedules)

    found = {(p.first_id, p.second_id, p.dimension) for p in pairs}
    assert found == {
        ("A", "B", ConflictDimension.teacher),
        ("B", "C", ConflictDimension.teacher),
        ("A", "D", ConflictDimension.section),
    }
    assert len(pairs) == len(found)


def test_conflict_error_for_picks_specific_type():
    existing = [booking("A", "T1", "S1", at(9), at(10)), booking("B", "T9", "S2", at(9), at(10), room_id="R1")]

    teacher_only = detect_conflicts(
        ScheduleCandidate(teacher_id="T1", section_id="S7", start_time=at(9), end_time=at(10)), existing
    )
    assert type(conflict_error_for(teacher_only)) is TeacherScheduleConflictError

    section_only = detect_conflicts(
        ScheduleCandidate(teacher_id="T5", section_id="S1", start_time=at(9), end_time=at(10)), existing
    )
    assert type(conflict_error_for(section_only)) is SectionScheduleConflictError

    room_only = detect_conflicts(
        ScheduleCandidate(teacher_id="T5", section_id="S7", room_id="R1", start_time=at(9), end_time=at(10)), existing
    )
    assert type(conflict_error_for(room_only)) is RoomScheduleConflictError

    mixed = detect_conflicts(
        ScheduleCandidate(teacher_id="T1", section_id="S2", start_time=at(9), end_time=at(10)), existing
    )
    error = conflict_error_for(mixed)
    assert type(error) is ScheduleConflictError
    assert {item["schedule_id"] for item in error.details["conflicts"]} == {"A", "B"}
