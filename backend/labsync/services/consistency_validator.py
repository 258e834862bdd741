from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from labsync.models.period import Period
from labsync.models.schedule import TimetableSchedule
from labsync.services.version_manager import get_version


def _skips_lecture_slot(previous: int, current: int) -> bool:
    # Even numbers are break slots and may legitimately be absent.
    return any(number % 2 == 1 for number in range(previous + 1, current))


def find_orphaned_schedules(db: Session, version_id: str) -> list[str]:
    period_ids = set(db.execute(select(Period.id).where(Period.timetable_version_id == version_id)).scalars())
    schedules = db.execute(
        select(TimetableSchedule.id, TimetableSchedule.period_id)
        .where(TimetableSchedule.timetable_version_id == version_id)
        .order_by(TimetableSchedule.schedule_date, TimetableSchedule.id)
    ).all()
    return [schedule_id for schedule_id, period_id in schedules if period_id not in period_ids]


def find_period_gaps(periods: list[Period]) -> list[str]:
    numbers = sorted({period.period_number for period in periods})
    return [
        f"Gap between period {previous} and {current}"
        for previous, current in zip(numbers, numbers[1:])
        if _skips_lecture_slot(previous, current)
    ]


def find_overlapping_periods(periods: list[Period]) -> list[str]:
    ordered = sorted(periods, key=lambda item: (item.start_time, item.end_time, item.period_number))
    overlaps: list[str] = []
    for index, first in enumerate(ordered):
        for second in ordered[index + 1 :]:
            if second.start_time >= first.end_time:
                break
            if first.start_time < second.end_time and second.start_time < first.end_time:
                overlaps.append(f"{first.period_name} overlaps {second.period_name}")
    return overlaps


def validate_version(db: Session, version_id: str) -> dict:
    """Run the structural checks for one version and report every issue found.

    Nothing is repaired. ``is_valid`` is true only when all three checks come
    back clean.
    """
    get_version(db, version_id)
    periods = list(db.execute(select(Period).where(Period.timetable_version_id == version_id)).scalars())

    issues: list[dict] = []
    orphaned = find_orphaned_schedules(db, version_id)
    if orphaned:
        issues.append(
            {
                "type": "orphaned_schedules",
                "description": "Schedules reference periods that do not belong to this version",
                "count": len(orphaned),
                "details": orphaned,
            }
        )

    gaps = find_period_gaps(periods)
    if gaps:
        issues.append(
            {
                "type": "period_gaps",
                "description": "Period numbering skips lecture slots",
                "count": len(gaps),
                "details": gaps,
            }
        )

    overlaps = find_overlapping_periods(periods)
    if overlaps:
        issues.append(
            {
                "type": "overlapping_periods",
                "description": "Period time ranges overlap",
                "count": len(overlaps),
                "details": overlaps,
            }
        )

    return {
        "version_id": version_id,
        "is_valid": not issues,
        "issues": issues,
        "validated_at": datetime.now(timezone.utc),
    }
