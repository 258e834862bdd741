from __future__ import annotations

import logging
from datetime import time

from sqlalchemy import select
from sqlalchemy.orm import Session

from labsync.core.exceptions import NoValidFieldsError, ValidationFailedError
from labsync.models.timetable_config import TimetableConfig
from labsync.models.user import User
from labsync.schemas.timetable import TimetableConfigUpdate
from labsync.services.audit import log_activity

logger = logging.getLogger(__name__)

CONFIG_ROW_ID = 1
DEFAULT_WORKING_DAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]


def build_default_config() -> TimetableConfig:
    return TimetableConfig(
        id=CONFIG_ROW_ID,
        max_lectures_per_day=8,
        lecture_duration_minutes=45,
        break_duration_minutes=15,
        start_time=time(8, 0),
        end_time=time(17, 0),
        working_days=list(DEFAULT_WORKING_DAYS),
    )


def get_config_record(db: Session) -> TimetableConfig | None:
    return db.execute(select(TimetableConfig).where(TimetableConfig.id == CONFIG_ROW_ID)).scalar_one_or_none()


def get_config(db: Session) -> TimetableConfig:
    """Stored config row, or an unsaved row carrying the defaults."""
    return get_config_record(db) or build_default_config()


def update_config(db: Session, payload: TimetableConfigUpdate, *, actor: User | None = None) -> TimetableConfig:
    changes = {name: value for name, value in payload.model_dump(exclude_unset=True).items() if value is not None}
    if not changes:
        raise NoValidFieldsError()

    record = get_config_record(db)
    created = record is None
    if record is None:
        record = build_default_config()

    start_time = changes.get("start_time", record.start_time)
    end_time = changes.get("end_time", record.end_time)
    if end_time <= start_time:
        raise ValidationFailedError("End time must be after start time", field="endTime")

    try:
        for name, value in changes.items():
            setattr(record, name, value)
        if created:
            db.add(record)
        log_activity(
            db,
            user=actor,
            action="timetable.config.update",
            entity_type="timetable_config",
            entity_id=str(CONFIG_ROW_ID),
            details={"fields": sorted(changes)},
        )
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to update timetable config")
        raise

    db.refresh(record)
    return record
