from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from labsync.api.deps import get_current_user, get_db, require_schedule_writer
from labsync.core.config import get_settings
from labsync.models.schedule import ScheduleStatus
from labsync.models.user import User
from labsync.schemas.schedule import (
    ConflictOut,
    ScheduleCreate,
    ScheduleDetailOut,
    ScheduleOut,
    ScheduleUpdate,
    ScheduleWriteOut,
    TimetableStatsOut,
)
from labsync.services import schedule_service
from labsync.services.conflict_detector import find_conflicts

router = APIRouter()


def _write_response(schedule, conflicts) -> ScheduleWriteOut:
    return ScheduleWriteOut(
        schedule=ScheduleOut.model_validate(schedule),
        conflicts=[ConflictOut.model_validate(item) for item in conflicts],
    )


@router.get("/schedules", response_model=list[ScheduleDetailOut])
def list_schedules(
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    lab_id: str | None = Query(default=None, alias="labId"),
    instructor_id: str | None = Query(default=None, alias="instructorId"),
    class_id: str | None = Query(default=None, alias="classId"),
    group_id: str | None = Query(default=None, alias="groupId"),
    schedule_status: ScheduleStatus | None = Query(default=None, alias="status"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ScheduleDetailOut]:
    return schedule_service.list_schedules(
        db,
        start_date=start_date,
        end_date=end_date,
        lab_id=lab_id,
        instructor_id=instructor_id,
        class_id=class_id,
        group_id=group_id,
        status=schedule_status,
    )


@router.post("/schedules", response_model=ScheduleWriteOut, status_code=status.HTTP_201_CREATED)
def create_schedule(
    payload: ScheduleCreate,
    current_user: User = Depends(require_schedule_writer),
    db: Session = Depends(get_db),
) -> ScheduleWriteOut:
    schedule, conflicts = schedule_service.create_schedule(db, payload, actor=current_user, settings=get_settings())
    return _write_response(schedule, conflicts)


@router.get("/schedules/{schedule_id}", response_model=ScheduleOut)
def get_schedule(
    schedule_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    return schedule_service.get_schedule(db, schedule_id)


@router.get("/schedules/{schedule_id}/conflicts", response_model=list[ConflictOut])
def schedule_conflicts(
    schedule_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ConflictOut]:
    return [ConflictOut.model_validate(item) for item in find_conflicts(db, schedule_id)]


@router.put("/schedules/{schedule_id}", response_model=ScheduleWriteOut)
def update_schedule(
    schedule_id: str,
    payload: ScheduleUpdate,
    current_user: User = Depends(require_schedule_writer),
    db: Session = Depends(get_db),
) -> ScheduleWriteOut:
    schedule, conflicts = schedule_service.update_schedule(
        db, schedule_id, payload, actor=current_user, settings=get_settings()
    )
    return _write_response(schedule, conflicts)


@router.delete("/schedules/{schedule_id}", response_model=ScheduleOut)
def delete_schedule(
    schedule_id: str,
    current_user: User = Depends(require_schedule_writer),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    return schedule_service.delete_schedule(db, schedule_id, actor=current_user)


@router.get("/stats", response_model=TimetableStatsOut)
def stats(
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TimetableStatsOut:
    return TimetableStatsOut.model_validate(schedule_service.schedule_stats(db, start_date=start_date, end_date=end_date))
