from datetime import date, datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from labsync.api.deps import get_current_user, get_db, require_admin
from labsync.core.config import get_settings
from labsync.core.exceptions import AppError, ConfigurationError
from labsync.models.user import User
from labsync.schemas.schedule import ScheduleOut
from labsync.schemas.timetable import (
    MigrationSummaryOut,
    PeriodOut,
    PeriodsReplace,
    TimetableVersionCreate,
    TimetableVersionCreateOut,
    TimetableVersionHistoryOut,
    TimetableVersionOut,
    VersionActivateOut,
    VersionActivateRequest,
    VersionArchiveOut,
    VersionArchiveRequest,
    VersionCompareOut,
    VersionValidationOut,
)
from labsync.services import version_manager
from labsync.services.consistency_validator import validate_version
from labsync.services.schedule_service import list_version_schedules

router = APIRouter()
settings = get_settings()


@router.get("/versions", response_model=list[TimetableVersionOut])
def list_versions(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[TimetableVersionOut]:
    return version_manager.list_versions(db)


@router.get("/versions/active", response_model=TimetableVersionOut)
def get_active_version(
    on_date: date | None = Query(default=None, alias="date"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TimetableVersionOut:
    target_date = on_date or date.today()
    version = version_manager.resolve_active_version(db, target_date)
    if version is None:
        raise AppError(
            "No active timetable version found for the specified date",
            status_code=404,
            details={"date": target_date.isoformat()},
        )
    return version


@router.get("/versions/compare", response_model=VersionCompareOut)
def compare_versions(
    from_version_id: str = Query(alias="from"),
    to_version_id: str = Query(alias="to"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> VersionCompareOut:
    return VersionCompareOut.model_validate(version_manager.compare_versions(db, from_version_id, to_version_id))


@router.post("/versions", response_model=TimetableVersionCreateOut, status_code=status.HTTP_201_CREATED)
def create_version(
    payload: TimetableVersionCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> TimetableVersionCreateOut:
    version, summary = version_manager.create_version(
        db,
        version_name=payload.version_name,
        effective_from=payload.effective_from,
        description=payload.description,
        copy_from_version_id=payload.copy_from_version_id,
        copy_schedules=payload.copy_schedules,
        actor=current_user,
    )
    return TimetableVersionCreateOut(
        version=TimetableVersionOut.model_validate(version),
        migration=MigrationSummaryOut.model_validate(summary),
    )


@router.post("/versions/archive", response_model=VersionArchiveOut)
def archive_versions(
    payload: VersionArchiveRequest | None = None,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> VersionArchiveOut:
    cutoff = payload.cutoff_date if payload is not None else None
    if cutoff is None:
        if settings.archive_retention_days < 0:
            raise ConfigurationError("archive_retention_days must not be negative")
        cutoff = date.today() - timedelta(days=settings.archive_retention_days)
    archived = version_manager.archive_older_than(db, cutoff, actor=current_user)
    return VersionArchiveOut(
        archived_versions=[TimetableVersionOut.model_validate(item) for item in archived],
        archived_count=len(archived),
        archived_at=datetime.now(timezone.utc),
    )


@router.get("/versions/{version_id}", response_model=TimetableVersionHistoryOut)
def get_version(
    version_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TimetableVersionHistoryOut:
    history = version_manager.version_history(db, version_id)
    return TimetableVersionHistoryOut(
        **TimetableVersionOut.model_validate(history["version"]).model_dump(),
        period_count=history["period_count"],
        schedule_count=history["schedule_count"],
        active_schedule_count=history["active_schedule_count"],
    )


@router.post("/versions/{version_id}/activate", response_model=VersionActivateOut)
def activate_version(
    version_id: str,
    payload: VersionActivateRequest | None = None,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> VersionActivateOut:
    effective_date = payload.effective_date if payload is not None else None
    effective_date = effective_date or date.today()
    version, deactivated = version_manager.activate_version(db, version_id, effective_date, actor=current_user)
    return VersionActivateOut(
        activated_version=TimetableVersionOut.model_validate(version),
        deactivated_version_ids=deactivated,
        effective_date=effective_date,
    )


@router.get("/versions/{version_id}/periods", response_model=list[PeriodOut])
def list_periods(
    version_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[PeriodOut]:
    return version_manager.list_periods(db, version_id)


@router.put("/versions/{version_id}/periods", response_model=list[PeriodOut])
def replace_periods(
    version_id: str,
    payload: PeriodsReplace,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> list[PeriodOut]:
    return version_manager.replace_periods(db, version_id, payload.periods, actor=current_user)


@router.get("/versions/{version_id}/validate", response_model=VersionValidationOut)
def validate(
    version_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> VersionValidationOut:
    return VersionValidationOut.model_validate(validate_version(db, version_id))


@router.get("/versions/{version_id}/schedules", response_model=list[ScheduleOut])
def version_schedules(
    version_id: str,
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ScheduleOut]:
    return list_version_schedules(db, version_id, start_date=start_date, end_date=end_date)
