from __future__ import annotations

import re
from datetime import date, datetime, time
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")
WEEKDAY_VALUES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def parse_time_of_day(value: object) -> object:
    if isinstance(value, str):
        cleaned = value.strip()
        if not TIME_PATTERN.match(cleaned):
            raise ValueError("Time must be in HH:MM or HH:MM:SS 24-hour format")
        parts = [int(part) for part in cleaned.split(":")]
        return time(*parts)
    return value


def minutes_of(value: time) -> int:
    return value.hour * 60 + value.minute


class TimetableVersionCreate(BaseModel):
    version_name: str = Field(alias="versionName", min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    effective_from: date = Field(alias="effectiveFrom")
    copy_from_version_id: str | None = Field(default=None, alias="copyFromVersion", max_length=36)
    copy_schedules: bool = Field(default=False, alias="copySchedules")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("version_name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("versionName cannot be empty")
        return trimmed


class TimetableVersionOut(BaseModel):
    id: str
    version_number: int = Field(alias="versionNumber")
    version_name: str = Field(alias="versionName")
    description: str | None = None
    effective_from: date = Field(alias="effectiveFrom")
    effective_until: date | None = Field(default=None, alias="effectiveUntil")
    is_active: bool = Field(alias="isActive")
    created_by_id: str | None = Field(default=None, alias="createdBy")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class TimetableVersionHistoryOut(TimetableVersionOut):
    period_count: int = Field(default=0, alias="periodCount")
    schedule_count: int = Field(default=0, alias="scheduleCount")
    active_schedule_count: int = Field(default=0, alias="activeScheduleCount")


class UnmappedScheduleOut(BaseModel):
    schedule_id: str = Field(alias="scheduleId")
    period_number: int | None = Field(default=None, alias="periodNumber")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class MigrationSummaryOut(BaseModel):
    periods_created: int = Field(alias="periodsCreated")
    schedules_migrated: int = Field(alias="schedulesMigrated")
    migration_date: datetime = Field(alias="migrationDate")
    unmapped_schedules: list[UnmappedScheduleOut] = Field(default_factory=list, alias="unmappedSchedules")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class TimetableVersionCreateOut(BaseModel):
    version: TimetableVersionOut
    migration: MigrationSummaryOut


class VersionActivateRequest(BaseModel):
    effective_date: date | None = Field(default=None, alias="effectiveDate")

    model_config = ConfigDict(populate_by_name=True)


class VersionActivateOut(BaseModel):
    activated_version: TimetableVersionOut = Field(alias="activatedVersion")
    deactivated_version_ids: list[str] = Field(default_factory=list, alias="deactivatedVersionIds")
    effective_date: date = Field(alias="effectiveDate")

    model_config = ConfigDict(populate_by_name=True)


class VersionArchiveRequest(BaseModel):
    cutoff_date: date | None = Field(default=None, alias="cutoffDate")

    model_config = ConfigDict(populate_by_name=True)


class VersionArchiveOut(BaseModel):
    archived_versions: list[TimetableVersionOut] = Field(default_factory=list, alias="archivedVersions")
    archived_count: int = Field(alias="archivedCount")
    archived_at: datetime = Field(alias="archivedAt")

    model_config = ConfigDict(populate_by_name=True)


class PeriodComparisonRow(BaseModel):
    period_number: int = Field(alias="periodNumber")
    change_type: Literal["added", "removed", "modified", "unchanged"] = Field(alias="changeType")
    from_name: str | None = Field(default=None, alias="fromName")
    to_name: str | None = Field(default=None, alias="toName")
    from_start: time | None = Field(default=None, alias="fromStart")
    to_start: time | None = Field(default=None, alias="toStart")
    from_end: time | None = Field(default=None, alias="fromEnd")
    to_end: time | None = Field(default=None, alias="toEnd")

    model_config = ConfigDict(populate_by_name=True)


class VersionCompareOut(BaseModel):
    from_version_id: str = Field(alias="fromVersionId")
    to_version_id: str = Field(alias="toVersionId")
    periods: list[PeriodComparisonRow] = Field(default_factory=list)
    from_schedule_count: int = Field(alias="fromScheduleCount")
    to_schedule_count: int = Field(alias="toScheduleCount")
    periods_changed: int = Field(alias="periodsChanged")
    total_periods: int = Field(alias="totalPeriods")

    model_config = ConfigDict(populate_by_name=True)


class PeriodIn(BaseModel):
    period_number: int = Field(alias="periodNumber", ge=0, le=99)
    period_name: str = Field(alias="periodName", min_length=1, max_length=100)
    start_time: time = Field(alias="startTime")
    end_time: time = Field(alias="endTime")
    is_break: bool = Field(default=False, alias="isBreak")
    break_duration_minutes: int = Field(default=0, alias="breakDurationMinutes", ge=0, le=240)
    display_order: int | None = Field(default=None, alias="displayOrder", ge=0)
    is_active: bool = Field(default=True, alias="isActive")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_time(cls, value: object) -> object:
        return parse_time_of_day(value)

    @model_validator(mode="after")
    def validate_time_order(self) -> "PeriodIn":
        if minutes_of(self.end_time) <= minutes_of(self.start_time):
            raise ValueError("End time must be after start time")
        return self


class PeriodsReplace(BaseModel):
    periods: list[PeriodIn] = Field(default_factory=list, max_length=40)

    @model_validator(mode="after")
    def validate_no_overlap(self) -> "PeriodsReplace":
        windows = sorted(
            (minutes_of(item.start_time), minutes_of(item.end_time), item.period_name) for item in self.periods
        )
        for index in range(1, len(windows)):
            prev_start, prev_end, prev_name = windows[index - 1]
            start, end, name = windows[index]
            if start < prev_end and end > prev_start:
                raise ValueError(f"Periods '{prev_name}' and '{name}' overlap")
        return self

    @model_validator(mode="after")
    def validate_display_order(self) -> "PeriodsReplace":
        explicit = [item for item in self.periods if item.display_order is not None]
        if not explicit:
            return self
        if len(explicit) != len(self.periods):
            raise ValueError("displayOrder must be given for every period or for none")
        ordered = sorted(explicit, key=lambda item: (item.start_time, item.end_time))
        for previous, current in zip(ordered, ordered[1:]):
            if current.display_order <= previous.display_order:
                raise ValueError(
                    f"displayOrder of '{current.period_name}' must be greater than that of '{previous.period_name}'"
                )
        return self


class PeriodOut(BaseModel):
    id: str
    timetable_version_id: str = Field(alias="versionId")
    period_number: int = Field(alias="periodNumber")
    period_name: str = Field(alias="periodName")
    start_time: time = Field(alias="startTime")
    end_time: time = Field(alias="endTime")
    duration_minutes: int = Field(alias="durationMinutes")
    is_break: bool = Field(alias="isBreak")
    break_duration_minutes: int = Field(alias="breakDurationMinutes")
    display_order: int = Field(alias="displayOrder")
    is_active: bool = Field(alias="isActive")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class BreakConfigurationIn(BaseModel):
    after_lecture: int = Field(alias="afterLecture", ge=0, le=20)
    duration_minutes: int = Field(alias="durationMinutes", ge=5, le=120)
    name: str | None = Field(default=None, max_length=100)

    model_config = ConfigDict(populate_by_name=True)


class PeriodGenerationRequest(BaseModel):
    school_start_time: time = Field(alias="schoolStartTime")
    school_end_time: time = Field(alias="schoolEndTime")
    lecture_duration_minutes: int = Field(alias="lectureDurationMinutes", ge=15, le=180)
    break_configurations: list[BreakConfigurationIn] = Field(
        default_factory=list, alias="breakConfigurations", max_length=10
    )
    include_breaks: bool = Field(default=True, alias="includeBreaks")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("school_start_time", "school_end_time", mode="before")
    @classmethod
    def validate_time(cls, value: object) -> object:
        return parse_time_of_day(value)


class GeneratedPeriodOut(BaseModel):
    period_number: int = Field(alias="periodNumber")
    period_name: str = Field(alias="periodName")
    start_time: time = Field(alias="startTime")
    end_time: time = Field(alias="endTime")
    duration_minutes: int = Field(alias="durationMinutes")
    is_break: bool = Field(alias="isBreak")
    break_duration_minutes: int = Field(alias="breakDurationMinutes")
    display_order: int = Field(alias="displayOrder")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class GenerationStatsOut(BaseModel):
    total_periods: int = Field(alias="totalPeriods")
    total_breaks: int = Field(alias="totalBreaks")
    total_lecture_minutes: int = Field(alias="totalDuration")
    total_break_minutes: int = Field(alias="totalBreakTime")
    school_day_minutes: int = Field(alias="schoolDayDuration")
    utilization_percentage: int = Field(alias="utilizationPercentage")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class PeriodGenerationOut(BaseModel):
    periods: list[GeneratedPeriodOut]
    stats: GenerationStatsOut


class ValidationIssueOut(BaseModel):
    type: Literal["orphaned_schedules", "period_gaps", "overlapping_periods"]
    description: str
    count: int = 0
    details: list[str] = Field(default_factory=list)


class VersionValidationOut(BaseModel):
    version_id: str = Field(alias="versionId")
    is_valid: bool = Field(alias="isValid")
    issues: list[ValidationIssueOut] = Field(default_factory=list)
    validated_at: datetime = Field(alias="validatedAt")

    model_config = ConfigDict(populate_by_name=True)


class TimetableConfigOut(BaseModel):
    max_lectures_per_day: int = Field(alias="maxLecturesPerDay")
    lecture_duration_minutes: int = Field(alias="lectureDurationMinutes")
    break_duration_minutes: int = Field(alias="breakDurationMinutes")
    start_time: time = Field(alias="startTime")
    end_time: time = Field(alias="endTime")
    working_days: list[str] = Field(alias="workingDays")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class TimetableConfigUpdate(BaseModel):
    max_lectures_per_day: int | None = Field(default=None, alias="maxLecturesPerDay", ge=1, le=12)
    lecture_duration_minutes: int | None = Field(default=None, alias="lectureDurationMinutes", ge=15, le=180)
    break_duration_minutes: int | None = Field(default=None, alias="breakDurationMinutes", ge=0, le=60)
    start_time: time | None = Field(default=None, alias="startTime")
    end_time: time | None = Field(default=None, alias="endTime")
    working_days: list[str] | None = Field(default=None, alias="workingDays", max_length=7)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_time(cls, value: object) -> object:
        return parse_time_of_day(value)

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        cleaned = [day.strip().lower() for day in value if day.strip()]
        invalid = [day for day in cleaned if day not in WEEKDAY_VALUES]
        if invalid:
            raise ValueError(f"Invalid working day(s): {', '.join(invalid)}")
        if len(set(cleaned)) != len(cleaned):
            raise ValueError("Working days must be unique")
        return cleaned
