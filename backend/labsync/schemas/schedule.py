from __future__ import annotations

from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from labsync.models.conflict import ConflictType
from labsync.models.schedule import ScheduleStatus

COLOR_CODE_MAX_LENGTH = 20


class ScheduleCreate(BaseModel):
    session_title: str = Field(alias="sessionTitle", min_length=1, max_length=200)
    session_type: str = Field(default="lecture", alias="sessionType", min_length=1, max_length=50)
    session_description: str | None = Field(default=None, alias="sessionDescription")
    schedule_date: date = Field(alias="scheduleDate")
    period_id: str = Field(alias="periodId", min_length=1, max_length=36)
    version_id: str | None = Field(default=None, alias="versionId", min_length=1, max_length=36)
    lab_id: str | None = Field(default=None, alias="labId", max_length=36)
    room_name: str | None = Field(default=None, alias="roomName", max_length=100)
    instructor_id: str | None = Field(default=None, alias="instructorId", max_length=36)
    instructor_name: str | None = Field(default=None, alias="instructorName", max_length=200)
    class_id: str | None = Field(default=None, alias="classId", max_length=36)
    group_id: str | None = Field(default=None, alias="groupId", max_length=36)
    student_count: int = Field(default=0, alias="studentCount", ge=0, le=2000)
    max_capacity: int | None = Field(default=None, alias="maxCapacity", ge=0, le=2000)
    color_code: str = Field(default="#3B82F6", alias="colorCode", max_length=COLOR_CODE_MAX_LENGTH)
    notes: str | None = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("session_title", "session_type")
    @classmethod
    def normalize_text(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Value cannot be empty")
        return trimmed

    @model_validator(mode="after")
    def validate_capacity(self) -> "ScheduleCreate":
        if self.max_capacity is not None and self.student_count > self.max_capacity:
            raise ValueError("studentCount cannot exceed maxCapacity")
        return self


class ScheduleUpdate(BaseModel):
    """Updatable schedule fields. Anything else in the request body is ignored."""

    session_title: str | None = Field(default=None, alias="sessionTitle", min_length=1, max_length=200)
    session_type: str | None = Field(default=None, alias="sessionType", min_length=1, max_length=50)
    session_description: str | None = Field(default=None, alias="sessionDescription")
    schedule_date: date | None = Field(default=None, alias="scheduleDate")
    lab_id: str | None = Field(default=None, alias="labId", max_length=36)
    room_name: str | None = Field(default=None, alias="roomName", max_length=100)
    instructor_id: str | None = Field(default=None, alias="instructorId", max_length=36)
    instructor_name: str | None = Field(default=None, alias="instructorName", max_length=200)
    class_id: str | None = Field(default=None, alias="classId", max_length=36)
    group_id: str | None = Field(default=None, alias="groupId", max_length=36)
    student_count: int | None = Field(default=None, alias="studentCount", ge=0, le=2000)
    max_capacity: int | None = Field(default=None, alias="maxCapacity", ge=0, le=2000)
    status: ScheduleStatus | None = None
    color_code: str | None = Field(default=None, alias="colorCode", max_length=COLOR_CODE_MAX_LENGTH)
    notes: str | None = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("status")
    @classmethod
    def reject_migrated(cls, value: ScheduleStatus | None) -> ScheduleStatus | None:
        if value == ScheduleStatus.migrated:
            raise ValueError("Status 'migrated' is set only by version migration")
        return value


class ScheduleOut(BaseModel):
    id: str
    timetable_version_id: str = Field(alias="versionId")
    period_id: str = Field(alias="periodId")
    session_title: str = Field(alias="sessionTitle")
    session_type: str = Field(alias="sessionType")
    session_description: str | None = Field(default=None, alias="sessionDescription")
    schedule_date: date = Field(alias="scheduleDate")
    lab_id: str | None = Field(default=None, alias="labId")
    room_name: str | None = Field(default=None, alias="roomName")
    instructor_id: str | None = Field(default=None, alias="instructorId")
    instructor_name: str | None = Field(default=None, alias="instructorName")
    class_id: str | None = Field(default=None, alias="classId")
    group_id: str | None = Field(default=None, alias="groupId")
    student_count: int = Field(alias="studentCount")
    max_capacity: int | None = Field(default=None, alias="maxCapacity")
    status: ScheduleStatus
    color_code: str = Field(alias="colorCode")
    notes: str | None = None
    created_by_id: str | None = Field(default=None, alias="createdBy")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class ScheduleDetailOut(ScheduleOut):
    version_number: int | None = Field(default=None, alias="versionNumber")
    version_name: str | None = Field(default=None, alias="versionName")
    period_number: int | None = Field(default=None, alias="periodNumber")
    period_name: str | None = Field(default=None, alias="periodName")
    start_time: time | None = Field(default=None, alias="startTime")
    end_time: time | None = Field(default=None, alias="endTime")


class ConflictOut(BaseModel):
    id: str | None = None
    schedule_id_1: str = Field(alias="scheduleId1")
    schedule_id_2: str = Field(alias="scheduleId2")
    conflict_type: ConflictType = Field(alias="conflictType")
    conflict_description: str = Field(alias="conflictDescription")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class ScheduleWriteOut(BaseModel):
    schedule: ScheduleOut
    conflicts: list[ConflictOut] = Field(default_factory=list)


class TimetableStatsOut(BaseModel):
    total_schedules: int = Field(alias="totalSchedules")
    scheduled_sessions: int = Field(alias="scheduledSessions")
    completed_sessions: int = Field(alias="completedSessions")
    cancelled_sessions: int = Field(alias="cancelledSessions")
    migrated_sessions: int = Field(alias="migratedSessions")
    unique_instructors: int = Field(alias="uniqueInstructors")
    unique_labs: int = Field(alias="uniqueLabs")
    unique_classes: int = Field(alias="uniqueClasses")
    session_types: dict[str, int] = Field(default_factory=dict, alias="sessionTypes")

    model_config = ConfigDict(populate_by_name=True)
