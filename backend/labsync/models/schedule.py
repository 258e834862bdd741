import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import Date, DateTime, Enum as SAEnum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from labsync.db.base import Base


class ScheduleStatus(str, Enum):
    scheduled = "scheduled"
    completed = "completed"
    cancelled = "cancelled"
    migrated = "migrated"


class TimetableSchedule(Base):
    __tablename__ = "timetable_schedules"
    __table_args__ = (
        Index("ix_timetable_schedules_date_lab", "schedule_date", "lab_id"),
        Index("ix_timetable_schedules_date_instructor", "schedule_date", "instructor_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    timetable_version_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("timetable_versions.id"),
        nullable=False,
        index=True,
    )
    # Not a foreign key: replacing a version's periods must not cascade into bookings.
    period_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    session_title: Mapped[str] = mapped_column(String(200), nullable=False)
    session_type: Mapped[str] = mapped_column(String(50), nullable=False, default="lecture")
    session_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    schedule_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    lab_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    room_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    instructor_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    instructor_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    class_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    group_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    student_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[ScheduleStatus] = mapped_column(
        SAEnum(ScheduleStatus, name="schedule_status"),
        nullable=False,
        default=ScheduleStatus.scheduled,
    )
    color_code: Mapped[str] = mapped_column(String(20), nullable=False, default="#3B82F6")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
