from __future__ import annotations

import logging

from sqlalchemy import inspect

from collegedesk.db.base import Base
from collegedesk.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "email", "role", "hashed_password"},
    "departments": {"id", "name", "code"},
    "subjects": {"id", "code", "category", "semester", "department_id"},
    "teachers": {"id", "user_id", "faculty_id", "department_id", "designations"},
    "time_slot_configs": {"id", "slot_id", "start_time", "end_time", "is_break", "order", "is_active"},
    "schedules": {
        "id",
        "academic_year",
        "semester",
        "department_id",
        "class_section",
        "day",
        "start_time",
        "end_time",
        "room_id",
        "status",
        "timetable_type",
    },
}


def missing_schema_items(bind=None) -> dict[str, list[str]]:
    """Map of table -> missing columns; a missing table lists all of its required columns."""
    inspector = inspect(bind or engine)
    table_names = set(inspector.get_table_names())
    missing: dict[str, list[str]] = {}
    for table_name, columns in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            missing[table_name] = sorted(columns)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        gaps = sorted(columns - existing)
        if gaps:
            missing[table_name] = gaps
    return missing


def ensure_runtime_schema() -> None:
    """Create missing tables for developer databases; migrations own column changes."""
    import collegedesk.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    missing = missing_schema_items()
    if missing:
        logger.error("Database schema is outdated: %s. Run `alembic upgrade head`.", missing)
    else:
        logger.debug("Database schema verified for %d tables", len(REQUIRED_COLUMNS))
