"""Split a school day into lecture and break periods.

The sweep is deterministic: lectures take odd period numbers (1, 3, 5, ...),
a break placed after lecture N takes the even number right after it, and an
optional morning assembly (a break configured after lecture 0) takes
period number 0.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import time
from typing import Sequence

from labsync.core.exceptions import ValidationFailedError

logger = logging.getLogger(__name__)

MORNING_ASSEMBLY_NAME = "Morning Assembly"
# A break that cannot be followed by another lecture is still kept when more
# than this much of the day remains after it.
TAIL_BREAK_SLACK_MINUTES = 30


@dataclass(frozen=True)
class BreakConfiguration:
    after_lecture: int
    duration_minutes: int
    name: str | None = None


@dataclass(frozen=True)
class GeneratedPeriod:
    period_number: int
    period_name: str
    start_time: time
    end_time: time
    duration_minutes: int
    is_break: bool
    break_duration_minutes: int
    display_order: int


@dataclass(frozen=True)
class GenerationStats:
    total_periods: int
    total_breaks: int
    total_lecture_minutes: int
    total_break_minutes: int
    school_day_minutes: int
    utilization_percentage: int


@dataclass
class PeriodGenerationResult:
    periods: list[GeneratedPeriod] = field(default_factory=list)
    stats: GenerationStats | None = None


def time_to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def minutes_to_time(value: int) -> time:
    hours, minutes = divmod(value, 60)
    return time(hours, minutes)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _find_break(breaks: Sequence[BreakConfiguration], after_lecture: int) -> BreakConfiguration | None:
    for item in breaks:
        if item.after_lecture == after_lecture:
            return item
    return None


def generate_periods(
    school_start: time,
    school_end: time,
    lecture_duration_minutes: int,
    break_configurations: Sequence[BreakConfiguration] = (),
    include_breaks: bool = True,
) -> PeriodGenerationResult:
    start = time_to_minutes(school_start)
    end = time_to_minutes(school_end)
    if start >= end:
        raise ValidationFailedError("School end time must be after start time", field="schoolEndTime")
    if lecture_duration_minutes <= 0:
        raise ValidationFailedError("Lecture duration must be positive", field="lectureDurationMinutes")

    total_minutes = end - start
    breaks = sorted(break_configurations, key=lambda item: item.after_lecture) if include_breaks else []

    periods: list[GeneratedPeriod] = []
    clock = start
    display_order = 1

    assembly = _find_break(breaks, 0)
    if assembly is not None:
        assembly_end = min(clock + assembly.duration_minutes, end)
        periods.append(
            GeneratedPeriod(
                period_number=0,
                period_name=assembly.name or MORNING_ASSEMBLY_NAME,
                start_time=minutes_to_time(clock),
                end_time=minutes_to_time(assembly_end),
                duration_minutes=assembly_end - clock,
                is_break=True,
                break_duration_minutes=assembly_end - clock,
                display_order=display_order,
            )
        )
        display_order += 1
        clock = assembly_end

    lecture_count = 1
    period_number = 1
    while end - clock >= lecture_duration_minutes:
        lecture_end = clock + lecture_duration_minutes
        periods.append(
            GeneratedPeriod(
                period_number=period_number,
                period_name=f"Lecture {lecture_count}",
                start_time=minutes_to_time(clock),
                end_time=minutes_to_time(lecture_end),
                duration_minutes=lecture_duration_minutes,
                is_break=False,
                break_duration_minutes=0,
                display_order=display_order,
            )
        )
        display_order += 1
        clock = lecture_end

        pending = _find_break(breaks, lecture_count)
        if pending is not None:
            break_end = clock + pending.duration_minutes
            remaining_after_break = end - break_end
            fits_lecture = remaining_after_break >= lecture_duration_minutes
            if not fits_lecture and remaining_after_break <= TAIL_BREAK_SLACK_MINUTES:
                logger.debug(
                    "Dropping tail break after lecture %d (%d minute(s) left after it)",
                    lecture_count,
                    remaining_after_break,
                )
                break
            periods.append(
                GeneratedPeriod(
                    period_number=period_number + 1,
                    period_name=pending.name or f"Break after Lecture {lecture_count}",
                    start_time=minutes_to_time(clock),
                    end_time=minutes_to_time(break_end),
                    duration_minutes=pending.duration_minutes,
                    is_break=True,
                    break_duration_minutes=pending.duration_minutes,
                    display_order=display_order,
                )
            )
            display_order += 1
            clock = break_end

        lecture_count += 1
        period_number += 2

    lectures = [item for item in periods if not item.is_break]
    break_periods = [item for item in periods if item.is_break]
    total_lecture_minutes = len(lectures) * lecture_duration_minutes
    stats = GenerationStats(
        total_periods=len(lectures),
        total_breaks=len(break_periods),
        total_lecture_minutes=total_lecture_minutes,
        total_break_minutes=sum(item.break_duration_minutes for item in break_periods),
        school_day_minutes=total_minutes,
        utilization_percentage=_round_half_up(total_lecture_minutes / total_minutes * 100),
    )
    return PeriodGenerationResult(periods=periods, stats=stats)
