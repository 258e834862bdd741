from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session

from labsync.core.exceptions import ResourceNotFoundError
from labsync.models.conflict import ConflictType, TimetableConflict
from labsync.models.period import Period
from labsync.models.schedule import ScheduleStatus, TimetableSchedule

logger = logging.getLogger(__name__)

# Bookings in these states no longer occupy their slot.
INACTIVE_STATUSES = (ScheduleStatus.cancelled, ScheduleStatus.migrated)

DIMENSIONS: tuple[tuple[str, ConflictType, str], ...] = (
    ("lab_id", ConflictType.lab_double_booked, "Lab"),
    ("instructor_id", ConflictType.instructor_double_booked, "Instructor"),
    ("class_id", ConflictType.class_double_booked, "Class"),
    ("group_id", ConflictType.group_double_booked, "Group"),
)


@dataclass(frozen=True)
class DetectedConflict:
    schedule_id_1: str
    schedule_id_2: str
    conflict_type: ConflictType
    conflict_description: str


def _label(schedule: TimetableSchedule, attribute: str, noun: str) -> str:
    if attribute == "lab_id" and schedule.room_name:
        return f"{noun} {schedule.room_name}"
    if attribute == "instructor_id" and schedule.instructor_name:
        return f"{noun} {schedule.instructor_name}"
    return f"{noun} {getattr(schedule, attribute)}"


def find_conflicts(db: Session, schedule_id: str) -> list[DetectedConflict]:
    """Return every (other booking, dimension) pair that overlaps ``schedule_id`` in time.

    Read-only. Two bookings overlap when they share a date and their periods'
    ``[start, end)`` windows intersect, regardless of which version the
    periods belong to.
    """
    schedule = db.get(TimetableSchedule, schedule_id)
    if schedule is None:
        raise ResourceNotFoundError("Schedule", schedule_id)
    if schedule.status in INACTIVE_STATUSES:
        return []

    period = db.get(Period, schedule.period_id)
    if period is None:
        logger.warning("Schedule %s references missing period %s; skipping detection", schedule.id, schedule.period_id)
        return []

    shared = [
        getattr(TimetableSchedule, attribute) == getattr(schedule, attribute)
        for attribute, _, _ in DIMENSIONS
        if getattr(schedule, attribute) is not None
    ]
    if not shared:
        return []

    rows = db.execute(
        select(TimetableSchedule, Period)
        .join(Period, Period.id == TimetableSchedule.period_id)
        .where(
            TimetableSchedule.id != schedule.id,
            TimetableSchedule.schedule_date == schedule.schedule_date,
            TimetableSchedule.status.not_in(INACTIVE_STATUSES),
            Period.start_time < period.end_time,
            Period.end_time > period.start_time,
            or_(*shared),
        )
        .order_by(TimetableSchedule.created_at, TimetableSchedule.id)
    ).all()

    conflicts: list[DetectedConflict] = []
    for other, other_period in rows:
        window = f"{other_period.start_time.strftime('%H:%M')}-{other_period.end_time.strftime('%H:%M')}"
        for attribute, conflict_type, noun in DIMENSIONS:
            value = getattr(schedule, attribute)
            if value is None or value != getattr(other, attribute):
                continue
            conflicts.append(
                DetectedConflict(
                    schedule_id_1=schedule.id,
                    schedule_id_2=other.id,
                    conflict_type=conflict_type,
                    conflict_description=(
                        f"{_label(schedule, attribute, noun)} is already booked for "
                        f"'{other.session_title}' on {schedule.schedule_date.isoformat()} ({window})"
                    ),
                )
            )
    return conflicts


def detect_conflicts(db: Session, schedule_id: str) -> list[TimetableConflict]:
    """Detect and persist conflicts for one booking, replacing earlier records that involve it."""
    found = find_conflicts(db, schedule_id)
    db.execute(
        delete(TimetableConflict).where(
            or_(TimetableConflict.schedule_id_1 == schedule_id, TimetableConflict.schedule_id_2 == schedule_id)
        )
    )
    records = [
        TimetableConflict(
            schedule_id_1=item.schedule_id_1,
            schedule_id_2=item.schedule_id_2,
            conflict_type=item.conflict_type,
            conflict_description=item.conflict_description,
        )
        for item in found
    ]
    db.add_all(records)
    db.flush()
    if records:
        logger.info("Recorded %d conflict(s) for schedule %s", len(records), schedule_id)
    return records
