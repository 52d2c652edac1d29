from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from registrar.core.exceptions import ConcurrentModificationError
from registrar.models.section import Section
from registrar.repositories.base import SectionRepository


class SqlAlchemySectionRepository(SectionRepository):
    def __init__(self, db: Session):
        self._db = db

    def get_section(self, section_id: str, *, for_update: bool = False) -> Section | None:
        if not for_update:
            return self._db.get(Section, section_id)
        statement = select(Section).where(Section.id == section_id).with_for_update()
        return self._db.execute(statement).scalar_one_or_none()

    def touch_section(self, section: Section, *, expected_version: int | None = None) -> Section:
        if expected_version is not None and section.version != expected_version:
            raise ConcurrentModificationError(section.id, expected_version, section.version)
        # A failed flush expires `section`; read what the error needs first.
        section_id = section.id
        loaded_version = section.version
        section.updated_at = datetime.now(timezone.utc)
        try:
            self._db.flush()
        except StaleDataError as exc:
            raise ConcurrentModificationError(section_id, loaded_version) from exc
        return section
