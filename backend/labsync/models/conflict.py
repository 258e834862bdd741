import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from labsync.db.base import Base


class ConflictType(str, Enum):
    lab_double_booked = "lab_double_booked"
    instructor_double_booked = "instructor_double_booked"
    class_double_booked = "class_double_booked"
    group_double_booked = "group_double_booked"


class TimetableConflict(Base):
    __tablename__ = "timetable_conflicts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    schedule_id_1: Mapped[str] = mapped_column(
        String(36), ForeignKey("timetable_schedules.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # May equal schedule_id_1 for single-sided records.
    schedule_id_2: Mapped[str] = mapped_column(
        String(36), ForeignKey("timetable_schedules.id", ondelete="CASCADE"), nullable=False, index=True
    )
    conflict_type: Mapped[ConflictType] = mapped_column(SAEnum(ConflictType, name="conflict_type"), nullable=False)
    conflict_description: Mapped[str] = mapped_column(Text, nullable=False)
    detected_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
