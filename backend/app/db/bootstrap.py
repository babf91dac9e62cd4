from __future__ import annotations

import logging

from sqlalchemy import inspect

from app.core.config import get_settings
from app.db.base import Base
from app.db.session import engine
import app.models  # noqa: F401

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "role", "email", "usn", "hashed_password"},
    "timetable_slots": {"section", "sort_key", "day", "slot", "subject", "faculty", "room", "type"},
}


def missing_schema_items(connection) -> tuple[list[str], dict[str, list[str]]]:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    for table_name, columns in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            missing_tables.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(columns - existing)
        if missing:
            missing_columns[table_name] = missing
    return missing_tables, missing_columns


def ensure_schema() -> None:
    settings = get_settings()
    if settings.auto_create_schema:
        Base.metadata.create_all(bind=engine)

    with engine.connect() as connection:
        missing_tables, missing_columns = missing_schema_items(connection)
    if missing_tables or missing_columns:
        logger.warning(
            "Database schema is incomplete (missing tables: %s, missing columns: %s). "
            "Run `alembic upgrade head`.",
            missing_tables,
            missing_columns,
        )
