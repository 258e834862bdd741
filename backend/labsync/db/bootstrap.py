from __future__ import annotations

import logging

from sqlalchemy import inspect

import labsync.models  # noqa: F401
from labsync.db.base import Base
from labsync.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "email", "role", "is_active"},
    "timetable_versions": {"id", "version_number", "effective_from", "effective_until", "is_active"},
    "periods": {"id", "timetable_version_id", "period_number", "start_time", "end_time", "display_order"},
    "timetable_schedules": {"id", "timetable_version_id", "period_id", "schedule_date", "status", "notes"},
    "timetable_conflicts": {"id", "schedule_id_1", "schedule_id_2", "conflict_type"},
    "timetable_config": {"id", "lecture_duration_minutes", "start_time", "end_time", "working_days"},
}


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def ensure_runtime_schema_compatibility() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
