from datetime import time

import pytest

from labsync.core.exceptions import ValidationFailedError
from labsync.services.period_generator import BreakConfiguration, generate_periods


def _summary(result):
    return [
        (item.period_number, item.period_name, item.start_time, item.end_time, item.is_break)
        for item in result.periods
    ]


def test_generate_without_breaks_fills_the_day():
    result = generate_periods(time(9, 0), time(12, 0), 90, [], include_breaks=False)

    assert _summary(result) == [
        (1, "Lecture 1", time(9, 0), time(10, 30), False),
        (3, "Lecture 2", time(10, 30), time(12, 0), False),
    ]
    assert result.stats.total_periods == 2
    assert result.stats.total_breaks == 0
    assert result.stats.utilization_percentage == 100


def test_generate_with_break_uses_even_period_number():
    result = generate_periods(
        time(9, 0),
        time(12, 15),
        90,
        [BreakConfiguration(after_lecture=1, duration_minutes=15)],
        include_breaks=True,
    )

    assert _summary(result) == [
        (1, "Lecture 1", time(9, 0), time(10, 30), False),
        (2, "Break after Lecture 1", time(10, 30), time(10, 45), True),
        (3, "Lecture 2", time(10, 45), time(12, 15), False),
    ]
    assert [item.display_order for item in result.periods] == [1, 2, 3]
    assert result.stats.total_lecture_minutes == 180
    assert result.stats.total_break_minutes == 15
    assert result.stats.school_day_minutes == 195
    assert result.stats.utilization_percentage == 92


def test_tail_break_without_room_is_dropped():
    result = generate_periods(
        time(9, 0),
        time(12, 10),
        90,
        [BreakConfiguration(after_lecture=2, duration_minutes=15)],
    )

    assert [item.period_name for item in result.periods] == ["Lecture 1", "Lecture 2"]
    assert result.stats.total_breaks == 0


def test_dropped_tail_break_ends_the_sweep():
    result = generate_periods(
        time(9, 0),
        time(13, 0),
        60,
        [BreakConfiguration(after_lecture=3, duration_minutes=40)],
    )

    assert [item.period_name for item in result.periods] == ["Lecture 1", "Lecture 2", "Lecture 3"]
    assert result.stats.utilization_percentage == 75


def test_tail_break_kept_when_enough_slack_remains():
    result = generate_periods(
        time(9, 0),
        time(12, 50),
        90,
        [BreakConfiguration(after_lecture=2, duration_minutes=10, name="Tea")],
    )

    assert _summary(result)[-1] == (4, "Tea", time(12, 0), time(12, 10), True)
    assert result.stats.total_periods == 2
    assert result.stats.total_breaks == 1


def test_morning_assembly_takes_period_zero():
    result = generate_periods(
        time(8, 0),
        time(10, 0),
        45,
        [BreakConfiguration(after_lecture=0, duration_minutes=15)],
    )

    assert _summary(result) == [
        (0, "Morning Assembly", time(8, 0), time(8, 15), True),
        (1, "Lecture 1", time(8, 15), time(9, 0), False),
        (3, "Lecture 2", time(9, 0), time(9, 45), False),
    ]


def test_break_for_missing_lecture_is_ignored():
    with_stray_break = generate_periods(
        time(9, 0),
        time(12, 0),
        90,
        [BreakConfiguration(after_lecture=5, duration_minutes=15)],
    )
    plain = generate_periods(time(9, 0), time(12, 0), 90)

    assert _summary(with_stray_break) == _summary(plain)


def test_breaks_disabled_ignores_configuration():
    result = generate_periods(
        time(9, 0),
        time(12, 15),
        90,
        [BreakConfiguration(after_lecture=1, duration_minutes=15)],
        include_breaks=False,
    )

    assert all(not item.is_break for item in result.periods)
    assert [item.period_number for item in result.periods] == [1, 3]


def test_exact_multiple_ends_at_school_end():
    result = generate_periods(time(8, 0), time(12, 0), 60)

    assert len(result.periods) == 4
    assert result.periods[-1].end_time == time(12, 0)
    assert [item.period_number for item in result.periods] == [1, 3, 5, 7]


def test_partial_leftover_is_not_scheduled():
    result = generate_periods(time(8, 0), time(9, 40), 45)

    assert [item.end_time for item in result.periods] == [time(8, 45), time(9, 30)]
    assert result.stats.utilization_percentage == 90


@pytest.mark.parametrize("start,end", [(time(12, 0), time(9, 0)), (time(9, 0), time(9, 0))])
def test_invalid_range_is_rejected(start, end):
    with pytest.raises(ValidationFailedError) as exc_info:
        generate_periods(start, end, 45)

    assert exc_info.value.status_code == 400
    assert exc_info.value.details == {"field": "schoolEndTime"}
