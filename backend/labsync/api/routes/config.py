from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from labsync.api.deps import get_current_user, get_db, require_admin
from labsync.models.user import User
from labsync.schemas.timetable import (
    GeneratedPeriodOut,
    GenerationStatsOut,
    PeriodGenerationOut,
    PeriodGenerationRequest,
    TimetableConfigOut,
    TimetableConfigUpdate,
)
from labsync.services.period_generator import BreakConfiguration, generate_periods
from labsync.services.timetable_config import get_config, update_config

router = APIRouter()


@router.get("/config", response_model=TimetableConfigOut)
def read_config(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TimetableConfigOut:
    return get_config(db)


@router.put("/config", response_model=TimetableConfigOut)
def write_config(
    payload: TimetableConfigUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> TimetableConfigOut:
    return update_config(db, payload, actor=current_user)


@router.post("/config/generate-periods", response_model=PeriodGenerationOut)
def generate(
    payload: PeriodGenerationRequest,
    current_user: User = Depends(require_admin),
) -> PeriodGenerationOut:
    result = generate_periods(
        payload.school_start_time,
        payload.school_end_time,
        payload.lecture_duration_minutes,
        [
            BreakConfiguration(after_lecture=item.after_lecture, duration_minutes=item.duration_minutes, name=item.name)
            for item in payload.break_configurations
        ],
        include_breaks=payload.include_breaks,
    )
    return PeriodGenerationOut(
        periods=[GeneratedPeriodOut.model_validate(item) for item in result.periods],
        stats=GenerationStatsOut.model_validate(result.stats),
    )
