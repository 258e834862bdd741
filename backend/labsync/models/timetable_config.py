from datetime import datetime, time

from sqlalchemy import DateTime, Integer, JSON, Time
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from labsync.db.base import Base


class TimetableConfig(Base):
    __tablename__ = "timetable_config"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    max_lectures_per_day: Mapped[int] = mapped_column(Integer, nullable=False, default=8)
    lecture_duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=45)
    break_duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=15)
    start_time: Mapped[time] = mapped_column(Time, nullable=False, default=time(8, 0))
    end_time: Mapped[time] = mapped_column(Time, nullable=False, default=time(17, 0))
    working_days: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
