from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from labsync.models.period import Period
from labsync.models.schedule import ScheduleStatus, TimetableSchedule

logger = logging.getLogger(__name__)

# Copied verbatim onto the migrated row; period and version are rewritten.
COPIED_SCHEDULE_FIELDS = (
    "session_title",
    "session_type",
    "session_description",
    "schedule_date",
    "lab_id",
    "room_name",
    "instructor_id",
    "instructor_name",
    "class_id",
    "group_id",
    "student_count",
    "max_capacity",
    "color_code",
    "notes",
    "created_by_id",
)


@dataclass(frozen=True)
class UnmappedSchedule:
    schedule_id: str
    period_number: int | None


@dataclass
class MigrationSummary:
    periods_created: int = 0
    schedules_migrated: int = 0
    migration_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    unmapped_schedules: list[UnmappedSchedule] = field(default_factory=list)


def migration_note(to_version_number: int | None) -> str:
    if to_version_number is None:
        return "[Migrated to new timetable version]"
    return f"[Migrated to timetable version {to_version_number}]"


def append_note(existing: str | None, note: str) -> str:
    if not existing:
        return note
    return f"{existing} {note}"


def build_period_mapping(db: Session, from_version_id: str, to_version_id: str) -> tuple[dict[int, str], list[int]]:
    """Map source period numbers to target period ids; also return the numbers with no counterpart."""
    from_periods = db.execute(
        select(Period).where(Period.timetable_version_id == from_version_id).order_by(Period.period_number)
    ).scalars()
    to_periods = db.execute(
        select(Period).where(Period.timetable_version_id == to_version_id).order_by(Period.period_number)
    ).scalars()

    target_by_number: dict[int, str] = {}
    for period in to_periods:
        target_by_number.setdefault(period.period_number, period.id)

    mapping: dict[int, str] = {}
    unmapped: list[int] = []
    for period in from_periods:
        target_id = target_by_number.get(period.period_number)
        if target_id is None:
            unmapped.append(period.period_number)
        else:
            mapping[period.period_number] = target_id
    return mapping, unmapped


def migrate_future_schedules(
    db: Session,
    from_version_id: str,
    to_version_id: str,
    effective_from: date,
    *,
    to_version_number: int | None = None,
) -> MigrationSummary:
    """Carry scheduled bookings dated on/after ``effective_from`` into the target version.

    Runs inside the caller's transaction and never commits. Originals are kept
    for audit with status ``migrated`` and a note appended; bookings whose
    period number has no counterpart in the target stay where they are and
    are reported in ``unmapped_schedules``.
    """
    summary = MigrationSummary()
    mapping, unmapped_numbers = build_period_mapping(db, from_version_id, to_version_id)
    if unmapped_numbers:
        logger.warning(
            "Period number(s) %s of version %s have no counterpart in version %s",
            unmapped_numbers,
            from_version_id,
            to_version_id,
        )

    source_numbers = dict(
        db.execute(
            select(Period.id, Period.period_number).where(Period.timetable_version_id == from_version_id)
        ).all()
    )
    eligible = db.execute(
        select(TimetableSchedule)
        .where(
            TimetableSchedule.timetable_version_id == from_version_id,
            TimetableSchedule.schedule_date >= effective_from,
            TimetableSchedule.status == ScheduleStatus.scheduled,
        )
        .order_by(TimetableSchedule.schedule_date, TimetableSchedule.created_at)
    ).scalars().all()

    note = migration_note(to_version_number)
    for schedule in eligible:
        period_number = source_numbers.get(schedule.period_id)
        target_period_id = mapping.get(period_number) if period_number is not None else None
        if target_period_id is None:
            summary.unmapped_schedules.append(UnmappedSchedule(schedule_id=schedule.id, period_number=period_number))
            continue

        copy = TimetableSchedule(
            timetable_version_id=to_version_id,
            period_id=target_period_id,
            status=ScheduleStatus.scheduled,
            **{name: getattr(schedule, name) for name in COPIED_SCHEDULE_FIELDS},
        )
        db.add(copy)
        schedule.status = ScheduleStatus.migrated
        schedule.notes = append_note(schedule.notes, note)
        summary.schedules_migrated += 1

    db.flush()
    logger.info(
        "Migrated %d schedule(s) from version %s to %s (%d left behind)",
        summary.schedules_migrated,
        from_version_id,
        to_version_id,
        len(summary.unmapped_schedules),
    )
    return summary
