"""Two sessions racing on the same section row.

Session A reads the section, session B bumps its version and commits, then
A writes. A must see a ConcurrentModificationError and leave nothing behind.
"""
import pytest
from sqlalchemy import func, select

from factories import at, book, make_catalog, make_section, make_user
from registrar.core.config import Settings
from registrar.core.exceptions import ConcurrentModificationError
from registrar.models.activity_log import ActivityLog
from registrar.models.quarter_package import QuarterPackage
from registrar.models.schedule import Schedule
from registrar.models.section import Section
from registrar.models.user import User, UserRole
from registrar.repositories.sections import SqlAlchemySectionRepository
from registrar.services.quarter_packages import QuarterPackageService
from registrar.services.schedule_conflicts import ScheduleCandidate
from registrar.services.schedules import ScheduleService
from registrar.services.sections import update_section


@pytest.fixture()
def seeded(session_factory):
    db = session_factory()
    try:
        admin = make_user(db, UserRole.admin, "Principal")
        adviser = make_user(db, UserRole.adviser, "Adviser")
        teacher = make_user(db, UserRole.teacher, "Teacher")
        section = make_section(db, "Rizal", adviser=adviser)
        catalog = make_catalog(db)
        book(db, catalog, teacher, section, at(9), at(10))
        return {
            "admin_id": admin.id,
            "teacher_id": teacher.id,
            "section_id": section.id,
            "subject_id": catalog["subject"].id,
            "period_id": catalog["period"].id,
        }
    finally:
        db.close()


@pytest.fixture()
def sessions(session_factory):
    db_a = session_factory()
    db_b = session_factory()
    try:
        yield db_a, db_b
    finally:
        db_a.close()
        db_b.close()


def bump_from_other_session(db_b, section_id):
    section = db_b.get(Section, section_id)
    SqlAlchemySectionRepository(db_b).touch_section(section)
    db_b.commit()
    return section.version


def committed_state(session_factory, section_id):
    db = session_factory()
    try:
        section = db.get(Section, section_id)
        return {
            "name": section.name,
            "version": section.version,
            "packages": db.scalar(select(func.count()).select_from(QuarterPackage)),
            "schedules": db.scalar(select(func.count()).select_from(Schedule)),
            "activity": db.scalar(select(func.count()).select_from(ActivityLog)),
        }
    finally:
        db.close()


def test_touch_after_concurrent_commit_raises_conflict(session_factory, seeded, sessions):
    db_a, db_b = sessions
    section_id = seeded["section_id"]
    stale = SqlAlchemySectionRepository(db_a).get_section(section_id, for_update=True)
    assert stale.version == 1

    assert bump_from_other_session(db_b, section_id) == 2

    with pytest.raises(ConcurrentModificationError) as exc_info:
        SqlAlchemySectionRepository(db_a).touch_section(stale)
    assert exc_info.value.details["section_id"] == section_id
    assert exc_info.value.details["expected_version"] == 1
    db_a.rollback()

    assert committed_state(session_factory, section_id)["version"] == 2


def test_submit_racing_a_section_write_creates_no_package(session_factory, seeded, sessions):
    db_a, db_b = sessions
    section_id = seeded["section_id"]
    teacher = db_a.get(User, seeded["teacher_id"])
    stale = db_a.get(Section, section_id)  # noqa: F841 - keep the loaded row in the identity map
    before = committed_state(session_factory, section_id)

    bump_from_other_session(db_b, section_id)

    service = QuarterPackageService(db_a, settings=Settings(auto_create_package_on_submit=True))
    with pytest.raises(ConcurrentModificationError) as exc_info:
        service.submit_package(teacher, section_id, "Q1")
    assert exc_info.value.details["section_id"] == section_id

    after = committed_state(session_factory, section_id)
    assert after["packages"] == 0
    assert after["activity"] == before["activity"]
    assert after["version"] == 2


def test_schedule_create_racing_a_section_write_writes_nothing(session_factory, seeded, sessions):
    db_a, db_b = sessions
    section_id = seeded["section_id"]
    stale = db_a.get(Section, section_id)  # noqa: F841 - keep the loaded row in the identity map

    bump_from_other_session(db_b, section_id)

    service = ScheduleService(db_a, settings=Settings())
    window = ScheduleCandidate(
        teacher_id=seeded["teacher_id"],
        section_id=section_id,
        start_time=at(13),
        end_time=at(14),
        days="Mon",
        subject_id=seeded["subject_id"],
        period_id=seeded["period_id"],
    )
    with pytest.raises(ConcurrentModificationError):
        service.create_schedule(window, actor_id=seeded["admin_id"])

    after = committed_state(session_factory, section_id)
    assert after["schedules"] == 1
    assert after["version"] == 2


def test_section_update_racing_another_write_keeps_the_winner(session_factory, seeded, sessions):
    db_a, db_b = sessions
    section_id = seeded["section_id"]
    db_a.get(Section, section_id)

    bump_from_other_session(db_b, section_id)

    with pytest.raises(ConcurrentModificationError) as exc_info:
        update_section(
            db_a,
            section_id,
            actor_id=seeded["admin_id"],
            expected_version=1,
            changes={"name": "Mabini"},
        )
    assert exc_info.value.details["expected_version"] == 1

    after = committed_state(session_factory, section_id)
    assert after["name"] == "Rizal"
    assert after["version"] == 2
