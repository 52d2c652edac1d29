from datetime import timedelta, timezone

import pytest
from pydantic import ValidationError as SettingsValidationError

from factories import at, book, make_catalog, make_section, make_user
from registrar.core.config import Settings
from registrar.core.exceptions import (
    ConcurrentModificationError,
    InvalidIntervalError,
    ResourceNotFoundError,
    RoomScheduleConflictError,
    ScheduleConflictError,
    SectionScheduleConflictError,
    TeacherLoadLimitError,
    TeacherScheduleConflictError,
    ValidationError,
)
from registrar.models.schedule import Schedule
from registrar.models.user import UserRole
from registrar.repositories.base import ConflictDimension
from registrar.services.schedule_conflicts import ScheduleCandidate
from registrar.services.schedules import ScheduleService


@pytest.fixture()
def school(db_session):
    catalog = make_catalog(db_session)
    return {
        "catalog": catalog,
        "t1": make_user(db_session, UserRole.teacher, "T1"),
        "t2": make_user(db_session, UserRole.teacher, "T2"),
        "t3": make_user(db_session, UserRole.teacher, "T3"),
        "student": make_user(db_session, UserRole.student, "Student"),
        "s1": make_section(db_session, "S1"),
        "s2": make_section(db_session, "S2"),
        "s3": make_section(db_session, "S3"),
    }


def candidate(school, teacher, section, start, end, **extra):
    return ScheduleCandidate(
        teacher_id=school[teacher].id,
        section_id=school[section].id,
        start_time=start,
        end_time=end,
        days=extra.pop("days", "Mon"),
        subject_id=school["catalog"]["subject"].id,
        period_id=school["catalog"]["period"].id,
        **extra,
    )


def test_overlapping_teacher_booking_is_a_teacher_conflict(db_session, school):
    service = ScheduleService(db_session)
    schedule_a = service.create_schedule(candidate(school, "t1", "s1", at(9), at(10)))

    with pytest.raises(TeacherScheduleConflictError) as exc_info:
        service.create_schedule(candidate(school, "t1", "s2", at(9, 30), at(10, 30)))

    conflicts = exc_info.value.conflicts
    assert [(c.schedule_id, c.dimension) for c in conflicts] == [(schedule_a.id, ConflictDimension.teacher)]
    assert exc_info.value.details["conflicts"][0]["schedule_id"] == schedule_a.id
    assert len(service.list_schedules()) == 1


def test_section_conflict_despite_different_teachers(db_session, school):
    service = ScheduleService(db_session)
    existing = service.create_schedule(candidate(school, "t3", "s2", at(9), at(10)))

    report = service.check_schedule_conflicts(candidate(school, "t2", "s2", at(9), at(10)))
    assert [(c.schedule_id, c.dimension) for c in report] == [(existing.id, ConflictDimension.section)]

    with pytest.raises(SectionScheduleConflictError):
        service.create_schedule(candidate(school, "t2", "s2", at(9), at(10)))


def test_update_excludes_itself_and_reports_only_others(db_session, school):
    service = ScheduleService(db_session)
    schedule_a = service.create_schedule(candidate(school, "t1", "s1", at(9), at(10)))

    moved = service.update_schedule(schedule_a.id, candidate(school, "t1", "s1", at(10), at(11)))
    assert moved.start_time == at(10)

    schedule_d = book(db_session, school["catalog"], school["t1"], school["s3"], at(10, 30), at(11, 30))
    conflicts = service.check_schedule_conflicts(
        candidate(school, "t1", "s1", at(10), at(11)),
        exclude_id=schedule_a.id,
    )
    assert [c.schedule_id for c in conflicts] == [schedule_d.id]


def test_unchanged_update_is_idempotent(db_session, school):
    service = ScheduleService(db_session)
    schedule = service.create_schedule(candidate(school, "t1", "s1", at(9), at(10)))

    assert service.check_schedule_conflicts(candidate(school, "t1", "s1", at(9), at(10)), exclude_id=schedule.id) == []
    updated = service.update_schedule(schedule.id, candidate(school, "t1", "s1", at(9), at(10), days="Monday"))
    assert updated.days == "Monday"


def test_back_to_back_bookings_are_allowed(db_session, school):
    service = ScheduleService(db_session)
    service.create_schedule(candidate(school, "t1", "s1", at(9), at(10)))
    service.create_schedule(candidate(school, "t1", "s1", at(10), at(11)))
    assert len(service.list_schedules(teacher_id=school["t1"].id)) == 2


def test_room_conflict_respects_policy(db_session, school):
    room_id = school["catalog"]["room"].id
    service = ScheduleService(db_session)
    service.create_schedule(candidate(school, "t1", "s1", at(9), at(10), room_id=room_id))

    with pytest.raises(RoomScheduleConflictError):
        service.create_schedule(candidate(school, "t2", "s2", at(9), at(10), room_id=room_id))

    relaxed = ScheduleService(db_session, settings=Settings(room_conflicts_enabled=False))
    relaxed.create_schedule(candidate(school, "t2", "s2", at(9), at(10), room_id=room_id))


def test_multi_dimension_conflict_uses_general_error(db_session, school):
    service = ScheduleService(db_session)
    service.create_schedule(candidate(school, "t1", "s1", at(9), at(10)))
    service.create_schedule(candidate(school, "t2", "s2", at(9), at(10)))

    with pytest.raises(ScheduleConflictError) as exc_info:
        service.create_schedule(candidate(school, "t1", "s2", at(9), at(10)))
    assert type(exc_info.value) is ScheduleConflictError
    assert {c.dimension for c in exc_info.value.conflicts} == {ConflictDimension.teacher, ConflictDimension.section}


def test_invalid_interval(db_session, school):
    service = ScheduleService(db_session)
    with pytest.raises(InvalidIntervalError):
        service.create_schedule(candidate(school, "t1", "s1", at(10), at(10)))
    with pytest.raises(InvalidIntervalError):
        service.check_schedule_conflicts(candidate(school, "t1", "s1", at(11), at(10)))


def test_references_must_exist(db_session, school):
    service = ScheduleService(db_session)
    with pytest.raises(ResourceNotFoundError):
        service.create_schedule(
            ScheduleCandidate(
                teacher_id="missing",
                section_id=school["s1"].id,
                start_time=at(9),
                end_time=at(10),
                subject_id=school["catalog"]["subject"].id,
                period_id=school["catalog"]["period"].id,
            )
        )
    with pytest.raises(ResourceNotFoundError):
        service.create_schedule(candidate(school, "t1", "s1", at(9), at(10), room_id="missing-room"))
    with pytest.raises(ValidationError):
        service.create_schedule(candidate(school, "student", "s1", at(9), at(10)))
    assert service.list_schedules() == []


def test_teacher_load_limits(db_session, school):
    service = ScheduleService(
        db_session,
        settings=Settings(max_schedules_per_teacher=3, max_schedules_per_teacher_per_day=2),
    )
    service.create_schedule(candidate(school, "t1", "s1", at(8), at(9)))
    service.create_schedule(candidate(school, "t1", "s1", at(9), at(10)))

    with pytest.raises(TeacherLoadLimitError) as exc_info:
        service.create_schedule(candidate(school, "t1", "s1", at(10), at(11)))
    assert exc_info.value.details["limit"] == 2

    service.create_schedule(candidate(school, "t1", "s1", at(8, day=8), at(9, day=8)))
    with pytest.raises(TeacherLoadLimitError) as exc_info:
        service.create_schedule(candidate(school, "t1", "s1", at(8, day=9), at(9, day=9)))
    assert exc_info.value.details["scope"] == "in total"


def test_writes_bump_section_version(db_session, school):
    service = ScheduleService(db_session)
    section = school["s1"]
    start_version = section.version

    schedule = service.create_schedule(
        candidate(school, "t1", "s1", at(9), at(10)),
        expected_section_version=start_version,
    )
    db_session.refresh(section)
    assert section.version == start_version + 1

    with pytest.raises(ConcurrentModificationError):
        service.update_schedule(
            schedule.id,
            candidate(school, "t1", "s1", at(10), at(11)),
            expected_section_version=start_version,
        )
    assert service.get_schedule(schedule.id).start_time == at(9)


def test_moving_to_another_section_touches_both(db_session, school):
    service = ScheduleService(db_session)
    schedule = service.create_schedule(candidate(school, "t1", "s1", at(9), at(10)))
    db_session.refresh(school["s1"])
    s1_version = school["s1"].version
    s2_version = school["s2"].version

    service.update_schedule(schedule.id, candidate(school, "t1", "s2", at(9), at(10)))

    db_session.refresh(school["s1"])
    db_session.refresh(school["s2"])
    assert school["s1"].version == s1_version + 1
    assert school["s2"].version == s2_version + 1


def test_delete_schedule(db_session, school):
    service = ScheduleService(db_session)
    schedule = service.create_schedule(candidate(school, "t1", "s1", at(9), at(10)))

    service.delete_schedule(schedule.id)

    assert db_session.get(Schedule, schedule.id) is None
    with pytest.raises(ResourceNotFoundError):
        service.delete_schedule(schedule.id)


def test_existing_conflict_audit(db_session, school):
    catalog = school["catalog"]
    first = book(db_session, catalog, school["t1"], school["s1"], at(9), at(10))
    second = book(db_session, catalog, school["t1"], school["s2"], at(9, 30), at(10, 30))
    book(db_session, catalog, school["t2"], school["s3"], at(9), at(10))

    pairs = ScheduleService(db_session).find_existing_conflicts(period_id=catalog["period"].id)

    assert [(p.first_id, p.second_id, p.dimension) for p in pairs] == [
        (first.id, second.id, ConflictDimension.teacher)
    ]


def test_aware_times_are_compared_in_school_local_time(db_session, school):
    service = ScheduleService(db_session, settings=Settings(school_timezone="Asia/Manila"))
    existing = book(db_session, school["catalog"], school["t1"], school["s1"], at(9), at(10))

    as_utc = candidate(
        school,
        "t1",
        "s2",
        at(1).replace(tzinfo=timezone.utc),
        at(2).replace(tzinfo=timezone.utc),
    )
    as_local_offset = candidate(
        school,
        "t1",
        "s2",
        at(9).replace(tzinfo=timezone(timedelta(hours=8))),
        at(10).replace(tzinfo=timezone(timedelta(hours=8))),
    )

    for window in (as_utc, as_local_offset):
        report = service.check_schedule_conflicts(window)
        assert [(c.schedule_id, c.dimension) for c in report] == [(existing.id, ConflictDimension.teacher)]

    with pytest.raises(TeacherScheduleConflictError):
        service.create_schedule(as_utc)
    assert len(service.list_schedules()) == 1


def test_aware_input_is_stored_as_school_wall_time(db_session, school):
    service = ScheduleService(db_session, settings=Settings(school_timezone="Asia/Manila"))

    created = service.create_schedule(
        candidate(
            school,
            "t1",
            "s1",
            at(1).replace(tzinfo=timezone.utc),
            at(2).replace(tzinfo=timezone.utc),
        )
    )

    db_session.refresh(created)
    assert created.start_time.replace(tzinfo=None) == at(9)
    assert created.end_time.replace(tzinfo=None) == at(10)


def test_school_timezone_setting_drives_conversion(db_session, school):
    service = ScheduleService(db_session, settings=Settings(school_timezone="UTC"))
    book(db_session, school["catalog"], school["t1"], school["s1"], at(9), at(10))

    report = service.check_schedule_conflicts(
        candidate(
            school,
            "t1",
            "s2",
            at(1).replace(tzinfo=timezone.utc),
            at(2).replace(tzinfo=timezone.utc),
        )
    )

    assert report == []


def test_unknown_school_timezone_is_rejected():
    with pytest.raises(SettingsValidationError):
        Settings(school_timezone="Mars/Olympus_Mons")
