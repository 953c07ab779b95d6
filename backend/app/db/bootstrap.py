from __future__ import annotations

import logging

from sqlalchemy import inspect

from app.db.base import Base
from app.db.session import engine
import app.models  # noqa: F401

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "sections": {"id", "name", "room_number", "periods_per_day", "is_active"},
    "teachers": {"id", "full_name", "email", "is_active"},
    "subjects": {"id", "name", "code"},
    "section_subjects": {"id", "section_id", "subject_id", "teacher_id", "weekly_periods"},
    "timetable_entries": {
        "id",
        "section_id",
        "subject_id",
        "teacher_id",
        "day_of_week",
        "period_number",
        "start_time",
        "end_time",
        "room_number",
        "is_deleted",
    },
}


def missing_schema_items(connection) -> tuple[list[str], dict[str, list[str]]]:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables = sorted(name for name in REQUIRED_COLUMNS if name not in table_names)
    missing_columns: dict[str, list[str]] = {}
    for table_name, required in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(required - existing)
        if missing:
            missing_columns[table_name] = missing
    return missing_tables, missing_columns


def ensure_runtime_schema() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        with engine.connect() as connection:
            missing_tables, missing_columns = missing_schema_items(connection)
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(missing_tables)}")
        if missing_columns:
            flat = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
            raise RuntimeError(f"Missing required columns: {', '.join(flat)}")
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema bootstrap failed")
        raise RuntimeError("Runtime schema bootstrap failed") from exc
