from datetime import date, time

import pytest

from labsync.core.exceptions import ResourceNotFoundError
from labsync.models.period import Period
from labsync.models.schedule import TimetableSchedule
from labsync.schemas.timetable import PeriodIn
from labsync.services import version_manager
from labsync.services.consistency_validator import find_period_gaps, validate_version
from labsync.services.period_generator import BreakConfiguration, generate_periods


@pytest.fixture()
def version(db_session):
    created, _ = version_manager.create_version(db_session, version_name="Autumn", effective_from=date(2026, 1, 1))
    return created


def store_generated(db, version_id, result):
    return version_manager.replace_periods(
        db,
        version_id,
        [
            PeriodIn(
                period_number=item.period_number,
                period_name=item.period_name,
                start_time=item.start_time,
                end_time=item.end_time,
                is_break=item.is_break,
                break_duration_minutes=item.break_duration_minutes,
                display_order=item.display_order,
            )
            for item in result.periods
        ],
    )


@pytest.mark.parametrize(
    "breaks",
    [
        [],
        [BreakConfiguration(after_lecture=0, duration_minutes=15), BreakConfiguration(after_lecture=2, duration_minutes=20)],
        [BreakConfiguration(after_lecture=3, duration_minutes=30)],
    ],
)
def test_generated_periods_validate_cleanly(db_session, version, breaks):
    store_generated(db_session, version.id, generate_periods(time(8, 0), time(15, 0), 45, breaks))

    report = validate_version(db_session, version.id)

    assert report["is_valid"] is True
    assert report["issues"] == []
    assert report["version_id"] == version.id


def test_orphaned_schedules_are_reported(db_session, version):
    periods = store_generated(db_session, version.id, generate_periods(time(9, 0), time(11, 0), 60))
    booking = TimetableSchedule(
        timetable_version_id=version.id,
        period_id=periods[0].id,
        session_title="Compilers Lab",
        schedule_date=date(2026, 2, 2),
    )
    db_session.add(booking)
    db_session.commit()

    # Replacing the periods gives them new ids and strands the booking.
    store_generated(db_session, version.id, generate_periods(time(9, 0), time(11, 0), 60))
    report = validate_version(db_session, version.id)

    assert report["is_valid"] is False
    assert report["issues"] == [
        {
            "type": "orphaned_schedules",
            "description": "Schedules reference periods that do not belong to this version",
            "count": 1,
            "details": [booking.id],
        }
    ]


def test_skipped_lecture_numbers_are_gaps():
    def numbered(*numbers):
        return [Period(period_number=number) for number in numbers]

    assert find_period_gaps(numbered(0, 1, 2, 3, 5)) == []
    assert find_period_gaps(numbered(1, 3, 7)) == ["Gap between period 3 and 7"]
    assert find_period_gaps(numbered(1, 2, 5)) == ["Gap between period 2 and 5"]


def test_overlapping_periods_are_reported(db_session, version):
    for number, start, end in ((1, time(9, 0), time(10, 0)), (3, time(9, 30), time(10, 30)), (5, time(10, 30), time(11, 0))):
        db_session.add(
            Period(
                timetable_version_id=version.id,
                period_number=number,
                period_name=f"Lecture {number}",
                start_time=start,
                end_time=end,
                duration_minutes=60,
                display_order=number,
            )
        )
    db_session.commit()

    report = validate_version(db_session, version.id)

    assert report["is_valid"] is False
    [issue] = report["issues"]
    assert issue["type"] == "overlapping_periods"
    assert issue["details"] == ["Lecture 1 overlaps Lecture 3"]


def test_validate_unknown_version(db_session):
    with pytest.raises(ResourceNotFoundError):
        validate_version(db_session, "missing")
