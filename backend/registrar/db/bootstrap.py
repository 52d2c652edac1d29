from __future__ import annotations

import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

from registrar.db.session import engine as default_engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "email", "role", "is_active"},
    "sections": {"id", "name", "adviser_id", "version"},
    "schedules": {"id", "teacher_id", "section_id", "room_id", "start_time", "end_time"},
    "quarter_packages": {"id", "section_id", "quarter", "status", "submitted_at", "remarks"},
    "record_approvals": {"id", "package_id", "approver_id", "action"},
}


def _ensure_sections_version_column(engine: Engine) -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "sections" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("sections")}
        if "version" in column_names:
            return
        logger.warning("Adding missing sections.version column")
        connection.execute(text("ALTER TABLE sections ADD COLUMN version INTEGER NOT NULL DEFAULT 1"))


def _ensure_schedules_room_column(engine: Engine) -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "schedules" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("schedules")}
        if "room_id" in column_names:
            return
        logger.warning("Adding missing schedules.room_id column")
        connection.execute(text("ALTER TABLE schedules ADD COLUMN room_id VARCHAR(36)"))


def missing_schema_parts(engine: Engine) -> list[str]:
    with engine.connect() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing: list[str] = []
        for table_name, columns in REQUIRED_COLUMNS.items():
            if table_name not in table_names:
                missing.append(table_name)
                continue
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            missing.extend(f"{table_name}.{column}" for column in sorted(columns - existing))
        return missing


def ensure_runtime_schema_compatibility(engine: Engine | None = None) -> None:
    """Patch additive schema drift on long-lived databases; migrations stay the source of truth."""
    engine = engine or default_engine
    _ensure_sections_version_column(engine)
    _ensure_schedules_room_column(engine)
    missing = missing_schema_parts(engine)
    if missing:
        logger.warning("Database schema is missing %s; run `alembic upgrade head`", ", ".join(missing))
