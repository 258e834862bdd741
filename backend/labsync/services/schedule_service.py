from __future__ import annotations

import logging
from collections import Counter
from datetime import date

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session

from labsync.core.config import Settings, get_settings
from labsync.core.exceptions import (
    AppError,
    NoValidFieldsError,
    ResourceNotFoundError,
    ScheduleConflictError,
    ValidationFailedError,
)
from labsync.models.conflict import TimetableConflict
from labsync.models.period import Period
from labsync.models.schedule import ScheduleStatus, TimetableSchedule
from labsync.models.timetable_version import TimetableVersion
from labsync.models.user import User
from labsync.schemas.schedule import ScheduleCreate, ScheduleDetailOut, ScheduleOut, ScheduleUpdate
from labsync.services.audit import log_activity
from labsync.services.conflict_detector import detect_conflicts
from labsync.services.version_manager import get_version, resolve_active_version

logger = logging.getLogger(__name__)

NON_NULLABLE_FIELDS = {
    "session_title": "sessionTitle",
    "session_type": "sessionType",
    "schedule_date": "scheduleDate",
    "student_count": "studentCount",
    "status": "status",
    "color_code": "colorCode",
}


def get_schedule(db: Session, schedule_id: str) -> TimetableSchedule:
    schedule = db.get(TimetableSchedule, schedule_id)
    if schedule is None:
        raise ResourceNotFoundError("Schedule", schedule_id)
    return schedule


def _detect_advisory(db: Session, schedule_id: str, settings: Settings) -> list[TimetableConflict]:
    if not settings.conflict_detection_enabled:
        return []
    try:
        with db.begin_nested():
            return detect_conflicts(db, schedule_id)
    except Exception:
        logger.exception("Conflict detection failed for schedule %s; treating as conflict-free", schedule_id)
        return []


def _enforce(conflicts: list[TimetableConflict], settings: Settings) -> None:
    if settings.enforce_conflicts and conflicts:
        raise ScheduleConflictError(
            [
                {
                    "scheduleId2": item.schedule_id_2,
                    "conflictType": item.conflict_type.value,
                    "conflictDescription": item.conflict_description,
                }
                for item in conflicts
            ]
        )


def _resolve_version(db: Session, payload: ScheduleCreate) -> TimetableVersion:
    if payload.version_id:
        return get_version(db, payload.version_id)
    version = resolve_active_version(db, payload.schedule_date)
    if version is None:
        raise ValidationFailedError(
            "No active timetable version found for the specified date",
            field="scheduleDate",
        )
    return version


def create_schedule(
    db: Session,
    payload: ScheduleCreate,
    *,
    actor: User | None = None,
    settings: Settings | None = None,
) -> tuple[TimetableSchedule, list[TimetableConflict]]:
    settings = settings or get_settings()
    version = _resolve_version(db, payload)
    period = db.get(Period, payload.period_id)
    if period is None:
        raise ResourceNotFoundError("Period", payload.period_id)
    if period.timetable_version_id != version.id:
        raise ValidationFailedError("Period does not belong to the timetable version", field="periodId")

    try:
        schedule = TimetableSchedule(
            timetable_version_id=version.id,
            period_id=period.id,
            status=ScheduleStatus.scheduled,
            created_by_id=actor.id if actor is not None else None,
            **payload.model_dump(exclude={"version_id", "period_id"}),
        )
        db.add(schedule)
        db.flush()

        conflicts = _detect_advisory(db, schedule.id, settings)
        _enforce(conflicts, settings)

        log_activity(
            db,
            user=actor,
            action="timetable.schedule.create",
            entity_type="timetable_schedule",
            entity_id=schedule.id,
            details={"version_id": version.id, "conflicts": len(conflicts)},
        )
        db.commit()
    except Exception as exc:
        db.rollback()
        if not isinstance(exc, AppError):
            logger.exception("Failed to create schedule %r", payload.session_title)
        raise

    db.refresh(schedule)
    return schedule, conflicts


def update_schedule(
    db: Session,
    schedule_id: str,
    payload: ScheduleUpdate,
    *,
    actor: User | None = None,
    settings: Settings | None = None,
) -> tuple[TimetableSchedule, list[TimetableConflict]]:
    settings = settings or get_settings()
    schedule = get_schedule(db, schedule_id)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise NoValidFieldsError()

    for name, alias in NON_NULLABLE_FIELDS.items():
        if name in changes and changes[name] is None:
            raise ValidationFailedError(f"{alias} cannot be null", field=alias)

    student_count = changes.get("student_count", schedule.student_count)
    max_capacity = changes.get("max_capacity", schedule.max_capacity)
    if max_capacity is not None and student_count > max_capacity:
        raise ValidationFailedError("studentCount cannot exceed maxCapacity", field="studentCount")

    try:
        for name, value in changes.items():
            setattr(schedule, name, value)
        db.flush()

        conflicts = _detect_advisory(db, schedule.id, settings)
        _enforce(conflicts, settings)

        log_activity(
            db,
            user=actor,
            action="timetable.schedule.update",
            entity_type="timetable_schedule",
            entity_id=schedule.id,
            details={"fields": sorted(changes)},
        )
        db.commit()
    except Exception as exc:
        db.rollback()
        if not isinstance(exc, AppError):
            logger.exception("Failed to update schedule %s", schedule_id)
        raise

    db.refresh(schedule)
    return schedule, conflicts


def delete_schedule(db: Session, schedule_id: str, *, actor: User | None = None) -> ScheduleOut:
    schedule = get_schedule(db, schedule_id)
    snapshot = ScheduleOut.model_validate(schedule)
    try:
        db.execute(
            delete(TimetableConflict).where(
                or_(TimetableConflict.schedule_id_1 == schedule_id, TimetableConflict.schedule_id_2 == schedule_id)
            )
        )
        db.delete(schedule)
        log_activity(
            db,
            user=actor,
            action="timetable.schedule.delete",
            entity_type="timetable_schedule",
            entity_id=schedule_id,
            details={"session_title": snapshot.session_title},
        )
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to delete schedule %s", schedule_id)
        raise
    return snapshot


def list_version_schedules(
    db: Session,
    version_id: str,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[TimetableSchedule]:
    get_version(db, version_id)
    query = select(TimetableSchedule).where(TimetableSchedule.timetable_version_id == version_id)
    if start_date is not None:
        query = query.where(TimetableSchedule.schedule_date >= start_date)
    if end_date is not None:
        query = query.where(TimetableSchedule.schedule_date <= end_date)
    return list(db.execute(query.order_by(TimetableSchedule.schedule_date, TimetableSchedule.created_at)).scalars())


def list_schedules(
    db: Session,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
    lab_id: str | None = None,
    instructor_id: str | None = None,
    class_id: str | None = None,
    group_id: str | None = None,
    status: ScheduleStatus | None = None,
) -> list[ScheduleDetailOut]:
    """Bookings that fall inside their own version's effective window, in timetable order."""
    query = (
        select(TimetableSchedule, TimetableVersion, Period)
        .join(TimetableVersion, TimetableVersion.id == TimetableSchedule.timetable_version_id)
        .join(Period, Period.id == TimetableSchedule.period_id)
        .where(
            TimetableVersion.effective_from <= TimetableSchedule.schedule_date,
            or_(
                TimetableVersion.effective_until.is_(None),
                TimetableVersion.effective_until >= TimetableSchedule.schedule_date,
            ),
        )
    )
    if start_date is not None:
        query = query.where(TimetableSchedule.schedule_date >= start_date)
    if end_date is not None:
        query = query.where(TimetableSchedule.schedule_date <= end_date)
    if lab_id:
        query = query.where(TimetableSchedule.lab_id == lab_id)
    if instructor_id:
        query = query.where(TimetableSchedule.instructor_id == instructor_id)
    if class_id:
        query = query.where(TimetableSchedule.class_id == class_id)
    if group_id:
        query = query.where(TimetableSchedule.group_id == group_id)
    if status is not None:
        query = query.where(TimetableSchedule.status == status)

    rows = db.execute(query.order_by(TimetableSchedule.schedule_date, Period.display_order)).all()
    return [
        ScheduleDetailOut(
            **ScheduleOut.model_validate(schedule).model_dump(),
            version_number=version.version_number,
            version_name=version.version_name,
            period_number=period.period_number,
            period_name=period.period_name,
            start_time=period.start_time,
            end_time=period.end_time,
        )
        for schedule, version, period in rows
    ]


def schedule_stats(db: Session, *, start_date: date | None = None, end_date: date | None = None) -> dict:
    query = select(TimetableSchedule)
    if start_date is not None:
        query = query.where(TimetableSchedule.schedule_date >= start_date)
    if end_date is not None:
        query = query.where(TimetableSchedule.schedule_date <= end_date)
    schedules = db.execute(query).scalars().all()

    by_status = Counter(item.status for item in schedules)
    return {
        "total_schedules": len(schedules),
        "scheduled_sessions": by_status[ScheduleStatus.scheduled],
        "completed_sessions": by_status[ScheduleStatus.completed],
        "cancelled_sessions": by_status[ScheduleStatus.cancelled],
        "migrated_sessions": by_status[ScheduleStatus.migrated],
        "unique_instructors": len({item.instructor_id for item in schedules if item.instructor_id}),
        "unique_labs": len({item.lab_id for item in schedules if item.lab_id}),
        "unique_classes": len({item.class_id for item in schedules if item.class_id}),
        "session_types": dict(Counter(item.session_type for item in schedules)),
    }
