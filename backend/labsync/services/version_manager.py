from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from labsync.core.exceptions import ResourceNotFoundError, VersionCreationError
from labsync.models.period import Period
from labsync.models.schedule import ScheduleStatus, TimetableSchedule
from labsync.models.timetable_version import TimetableVersion
from labsync.models.user import User
from labsync.schemas.timetable import PeriodIn
from labsync.services.audit import log_activity
from labsync.services.schedule_migrator import MigrationSummary, migrate_future_schedules

logger = logging.getLogger(__name__)

CLONED_PERIOD_FIELDS = (
    "period_number",
    "period_name",
    "start_time",
    "end_time",
    "duration_minutes",
    "is_break",
    "break_duration_minutes",
    "display_order",
    "is_active",
)


def _minutes_between(start, end) -> int:
    return (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)


def list_versions(db: Session) -> list[TimetableVersion]:
    return list(
        db.execute(
            select(TimetableVersion).order_by(
                TimetableVersion.effective_from.desc(),
                TimetableVersion.created_at.desc(),
                TimetableVersion.version_number.desc(),
            )
        ).scalars()
    )


def get_version(db: Session, version_id: str) -> TimetableVersion:
    version = db.get(TimetableVersion, version_id)
    if version is None:
        raise ResourceNotFoundError("TimetableVersion", version_id)
    return version


def list_periods(db: Session, version_id: str) -> list[Period]:
    get_version(db, version_id)
    return list(
        db.execute(
            select(Period)
            .where(Period.timetable_version_id == version_id)
            .order_by(Period.display_order, Period.period_number)
        ).scalars()
    )


def next_version_number(db: Session) -> int:
    current = db.execute(select(func.max(TimetableVersion.version_number))).scalar_one_or_none()
    return (current or 0) + 1


def clone_periods(db: Session, source_version_id: str, target_version_id: str) -> int:
    source_periods = db.execute(
        select(Period).where(Period.timetable_version_id == source_version_id).order_by(Period.display_order)
    ).scalars().all()
    for period in source_periods:
        db.add(
            Period(
                timetable_version_id=target_version_id,
                **{name: getattr(period, name) for name in CLONED_PERIOD_FIELDS},
            )
        )
    db.flush()
    return len(source_periods)


def resolve_active_version(db: Session, target_date: date) -> TimetableVersion | None:
    """Return the version authoritative on ``target_date``.

    The latest ``effective_from`` not after the date wins; equal dates go to
    the most recently created version.
    """
    return db.execute(
        select(TimetableVersion)
        .where(TimetableVersion.effective_from <= target_date)
        .order_by(
            TimetableVersion.effective_from.desc(),
            TimetableVersion.created_at.desc(),
            TimetableVersion.version_number.desc(),
        )
        .limit(1)
    ).scalar_one_or_none()


def create_version(
    db: Session,
    *,
    version_name: str,
    effective_from: date,
    description: str | None = None,
    copy_from_version_id: str | None = None,
    copy_schedules: bool = False,
    actor: User | None = None,
    today: date | None = None,
) -> tuple[TimetableVersion, MigrationSummary]:
    today = today or date.today()
    source = get_version(db, copy_from_version_id) if copy_from_version_id else None

    try:
        version = TimetableVersion(
            version_number=next_version_number(db),
            version_name=version_name,
            description=description,
            effective_from=effective_from,
            effective_until=None,
            is_active=False,
            created_by_id=actor.id if actor is not None else None,
        )
        db.add(version)
        db.flush()

        summary = MigrationSummary()
        if source is not None:
            summary.periods_created = clone_periods(db, source.id, version.id)
            if copy_schedules and effective_from > today:
                migrated = migrate_future_schedules(
                    db,
                    source.id,
                    version.id,
                    effective_from,
                    to_version_number=version.version_number,
                )
                summary.schedules_migrated = migrated.schedules_migrated
                summary.unmapped_schedules = migrated.unmapped_schedules

        log_activity(
            db,
            user=actor,
            action="timetable.version.create",
            entity_type="timetable_version",
            entity_id=version.id,
            details={
                "version_number": version.version_number,
                "copy_from_version_id": copy_from_version_id,
                "periods_created": summary.periods_created,
                "schedules_migrated": summary.schedules_migrated,
                "unmapped_schedules": len(summary.unmapped_schedules),
            },
        )
        db.commit()
    except Exception as exc:
        db.rollback()
        logger.exception("Failed to create timetable version %r", version_name)
        raise VersionCreationError() from exc

    db.refresh(version)
    logger.info(
        "Created timetable version %s (#%d) effective %s",
        version.id,
        version.version_number,
        version.effective_from,
    )
    return version, summary


def _lock_versions(db: Session) -> None:
    # Every version row is locked in id order so concurrent activations queue up
    # before either reads the active set.
    db.execute(select(TimetableVersion.id).order_by(TimetableVersion.id).with_for_update()).all()


def activate_version(
    db: Session,
    version_id: str,
    effective_date: date,
    *,
    actor: User | None = None,
) -> tuple[TimetableVersion, list[str]]:
    """Close the currently active version the day before ``effective_date`` and open the target."""
    _lock_versions(db)
    target = db.get(TimetableVersion, version_id, populate_existing=True)
    if target is None:
        db.rollback()
        raise ResourceNotFoundError("TimetableVersion", version_id)

    deactivated: list[str] = []
    try:
        currently_active = db.execute(
            select(TimetableVersion)
            .where(TimetableVersion.is_active.is_(True))
            .execution_options(populate_existing=True)
        ).scalars().all()
        for version in currently_active:
            if version.id == target.id:
                continue
            version.is_active = False
            version.effective_until = effective_date - timedelta(days=1)
            deactivated.append(version.id)

        target.effective_from = effective_date
        target.effective_until = None
        target.is_active = True

        log_activity(
            db,
            user=actor,
            action="timetable.version.activate",
            entity_type="timetable_version",
            entity_id=target.id,
            details={"effective_date": effective_date.isoformat(), "deactivated": deactivated},
        )
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to activate timetable version %s", version_id)
        raise

    db.refresh(target)
    logger.info("Activated timetable version %s from %s", target.id, effective_date)
    return target, deactivated


def archive_older_than(db: Session, cutoff_date: date, *, actor: User | None = None) -> list[TimetableVersion]:
    """Deactivate versions that stopped being effective before ``cutoff_date``. Rows are kept."""
    try:
        versions = db.execute(
            select(TimetableVersion)
            .where(
                TimetableVersion.effective_until.is_not(None),
                TimetableVersion.effective_until < cutoff_date,
                TimetableVersion.is_active.is_(True),
            )
            .with_for_update()
        ).scalars().all()
        for version in versions:
            version.is_active = False
        if versions:
            log_activity(
                db,
                user=actor,
                action="timetable.version.archive",
                entity_type="timetable_version",
                details={"cutoff_date": cutoff_date.isoformat(), "version_ids": [item.id for item in versions]},
            )
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to archive timetable versions before %s", cutoff_date)
        raise

    logger.info("Archived %d timetable version(s) before %s", len(versions), cutoff_date)
    return list(versions)


def replace_periods(
    db: Session,
    version_id: str,
    periods: Sequence[PeriodIn],
    *,
    actor: User | None = None,
) -> list[Period]:
    version = get_version(db, version_id)
    try:
        db.execute(delete(Period).where(Period.timetable_version_id == version.id))
        ordered = sorted(periods, key=lambda item: (item.start_time, item.end_time))
        for index, item in enumerate(ordered, start=1):
            duration = _minutes_between(item.start_time, item.end_time)
            db.add(
                Period(
                    timetable_version_id=version.id,
                    period_number=item.period_number,
                    period_name=item.period_name,
                    start_time=item.start_time,
                    end_time=item.end_time,
                    duration_minutes=duration,
                    is_break=item.is_break,
                    break_duration_minutes=item.break_duration_minutes or (duration if item.is_break else 0),
                    display_order=item.display_order if item.display_order is not None else index,
                    is_active=item.is_active,
                )
            )
        log_activity(
            db,
            user=actor,
            action="timetable.periods.replace",
            entity_type="timetable_version",
            entity_id=version.id,
            details={"period_count": len(periods)},
        )
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to replace periods for version %s", version_id)
        raise

    return list_periods(db, version_id)


def version_history(db: Session, version_id: str) -> dict:
    version = get_version(db, version_id)
    period_count = db.execute(
        select(func.count(Period.id)).where(Period.timetable_version_id == version_id)
    ).scalar_one()
    schedule_count = db.execute(
        select(func.count(TimetableSchedule.id)).where(TimetableSchedule.timetable_version_id == version_id)
    ).scalar_one()
    active_schedule_count = db.execute(
        select(func.count(TimetableSchedule.id)).where(
            TimetableSchedule.timetable_version_id == version_id,
            TimetableSchedule.status == ScheduleStatus.scheduled,
        )
    ).scalar_one()
    return {
        "version": version,
        "period_count": period_count,
        "schedule_count": schedule_count,
        "active_schedule_count": active_schedule_count,
    }


def compare_versions(db: Session, from_version_id: str, to_version_id: str) -> dict:
    get_version(db, from_version_id)
    get_version(db, to_version_id)

    def periods_by_number(version_id: str) -> dict[int, Period]:
        result: dict[int, Period] = {}
        for period in db.execute(
            select(Period).where(Period.timetable_version_id == version_id).order_by(Period.display_order)
        ).scalars():
            result.setdefault(period.period_number, period)
        return result

    def schedule_count(version_id: str) -> int:
        return db.execute(
            select(func.count(TimetableSchedule.id)).where(TimetableSchedule.timetable_version_id == version_id)
        ).scalar_one()

    before = periods_by_number(from_version_id)
    after = periods_by_number(to_version_id)
    rows: list[dict] = []
    for number in sorted(set(before) | set(after)):
        old = before.get(number)
        new = after.get(number)
        if old is None:
            change = "added"
        elif new is None:
            change = "removed"
        elif (old.start_time, old.end_time, old.period_name) != (new.start_time, new.end_time, new.period_name):
            change = "modified"
        else:
            change = "unchanged"
        rows.append(
            {
                "period_number": number,
                "change_type": change,
                "from_name": old.period_name if old else None,
                "to_name": new.period_name if new else None,
                "from_start": old.start_time if old else None,
                "to_start": new.start_time if new else None,
                "from_end": old.end_time if old else None,
                "to_end": new.end_time if new else None,
            }
        )

    return {
        "from_version_id": from_version_id,
        "to_version_id": to_version_id,
        "periods": rows,
        "from_schedule_count": schedule_count(from_version_id),
        "to_schedule_count": schedule_count(to_version_id),
        "periods_changed": sum(1 for row in rows if row["change_type"] != "unchanged"),
        "total_periods": len(rows),
    }
