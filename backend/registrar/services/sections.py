from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from registrar.core.exceptions import (
    ConcurrentModificationError,
    ResourceNotFoundError,
    SectionHasDependenciesError,
    ValidationError,
)
from registrar.models.quarter_package import QuarterPackage
from registrar.models.section import Section
from registrar.models.user import TEACHING_ROLES, User
from registrar.repositories.schedules import SqlAlchemyScheduleRepository
from registrar.services.audit import log_activity

logger = logging.getLogger(__name__)


def _validate_adviser(db: Session, adviser_id: str | None) -> None:
    if adviser_id is None:
        return
    adviser = db.get(User, adviser_id)
    if adviser is None:
        raise ResourceNotFoundError("Adviser", adviser_id)
    if adviser.role not in TEACHING_ROLES:
        raise ValidationError(
            "Section advisers must be teachers or advisers",
            details={"adviser_id": adviser_id, "role": adviser.role.value},
        )


def create_section(db: Session, *, actor_id: str, data: dict) -> Section:
    if db.execute(select(Section).where(Section.name == data["name"])).scalar_one_or_none() is not None:
        raise ValidationError("Section name already exists", details={"name": data["name"]})
    _validate_adviser(db, data.get("adviser_id"))
    section = Section(**data)
    try:
        db.add(section)
        db.flush()
        log_activity(db, user_id=actor_id, action="section.create", entity_type="section", entity_id=section.id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(section)
    return section


def update_section(db: Session, section_id: str, *, actor_id: str, expected_version: int, changes: dict) -> Section:
    """Apply ``changes`` only if the caller saw the current ``version``."""
    section = db.get(Section, section_id)
    if section is None:
        raise ResourceNotFoundError("Section", section_id)
    if section.version != expected_version:
        raise ConcurrentModificationError(section_id, expected_version, section.version)

    try:
        if "name" in changes:
            duplicate = db.execute(
                select(Section).where(Section.name == changes["name"], Section.id != section_id)
            ).scalar_one_or_none()
            if duplicate is not None:
                raise ValidationError("Section name already exists", details={"name": changes["name"]})
        if "adviser_id" in changes:
            _validate_adviser(db, changes["adviser_id"])
        for key, value in changes.items():
            setattr(section, key, value)
        log_activity(
            db,
            user_id=actor_id,
            action="section.update",
            entity_type="section",
            entity_id=section_id,
            details={"fields": sorted(changes)},
        )
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        raise ConcurrentModificationError(section_id, expected_version) from exc
    except Exception:
        db.rollback()
        raise
    db.refresh(section)
    logger.info("Section %s updated to version %d", section_id, section.version)
    return section


def delete_section(db: Session, section_id: str, *, actor_id: str) -> None:
    section = db.get(Section, section_id)
    if section is None:
        raise ResourceNotFoundError("Section", section_id)

    schedule_count = SqlAlchemyScheduleRepository(db).count_for_section(section_id)
    package_count = int(
        db.execute(
            select(func.count()).select_from(QuarterPackage).where(QuarterPackage.section_id == section_id)
        ).scalar_one()
    )
    if schedule_count or package_count:
        raise SectionHasDependenciesError(section_id, schedule_count=schedule_count, package_count=package_count)

    try:
        db.delete(section)
        log_activity(db, user_id=actor_id, action="section.delete", entity_type="section", entity_id=section_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
