"""Quarter filing endpoints.

Start a quarter, lay a weekly pattern over it, edit single days, follow
completion and submit.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from loguru import logger

from whereabouts.api.dependencies import get_service, to_http_exception
from whereabouts.api.schemas import (
    ApplyPatternRequest,
    ApplyResponse,
    CompletionResponse,
    CopyPatternRequest,
    SlotsResponse,
    StartQuarterRequest,
    UpdateDayRequest,
)
from whereabouts.domain.errors import NotFoundError, WhereaboutsPreconditionError
from whereabouts.domain.models import DailySlot, DaySlotPattern, Quarter, WeeklyPattern
from whereabouts.engine.quarter_applier import ApplyOutcome
from whereabouts.engine.quarters import days_until_deadline
from whereabouts.services.whereabouts_service import WhereaboutsService

router = APIRouter(prefix="/quarters", tags=["quarters"])

_HANDLED = (NotFoundError, WhereaboutsPreconditionError, ValueError)


def _apply_response(quarter: Quarter, outcome: ApplyOutcome) -> ApplyResponse:
    return ApplyResponse(
        quarter=quarter,
        created=outcome.created,
        updated=outcome.updated,
        unchanged=outcome.unchanged,
    )


@router.post("", response_model=Quarter, status_code=status.HTTP_201_CREATED)
def start_quarter(request: StartQuarterRequest, service: WhereaboutsService = Depends(get_service)) -> Quarter:
    """Create an empty draft quarter (409 if it already exists)."""
    try:
        return service.start_quarter(request.athlete_id, request.year, request.quarter)
    except _HANDLED as e:
        raise to_http_exception(e) from e


@router.get("", response_model=list[Quarter])
def list_quarters(
    athlete_id: str = Query(..., description="Athlete whose quarters to list"),
    service: WhereaboutsService = Depends(get_service),
) -> list[Quarter]:
    return service.list_quarters(athlete_id)


@router.post("/lock-expired", response_model=list[Quarter])
def lock_expired(
    athlete_id: str = Query(..., description="Athlete whose expired quarters to lock"),
    service: WhereaboutsService = Depends(get_service),
) -> list[Quarter]:
    return service.lock_expired_quarters(athlete_id)


@router.get("/{quarter_id}", response_model=Quarter)
def get_quarter(quarter_id: str, service: WhereaboutsService = Depends(get_service)) -> Quarter:
    try:
        return service.get_quarter(quarter_id)
    except _HANDLED as e:
        raise to_http_exception(e) from e


@router.get("/{quarter_id}/slots", response_model=SlotsResponse)
def get_slots(quarter_id: str, service: WhereaboutsService = Depends(get_service)) -> SlotsResponse:
    try:
        slots = service.get_slots(quarter_id)
    except _HANDLED as e:
        raise to_http_exception(e) from e
    return SlotsResponse(quarter_id=quarter_id, slots=list(slots.values()))


@router.get("/{quarter_id}/completion", response_model=CompletionResponse)
def get_completion(quarter_id: str, service: WhereaboutsService = Depends(get_service)) -> CompletionResponse:
    """Completion counters plus the dates still missing a valid slot."""
    try:
        quarter = service.refresh_completion(quarter_id)
        completion = service.get_completion(quarter_id)
    except _HANDLED as e:
        raise to_http_exception(e) from e

    return CompletionResponse(
        quarter_id=quarter.id,
        status=quarter.status.value,
        total_days=quarter.total_days,
        days_completed=completion.days_completed if completion else 0,
        completion_percentage=completion.completion_percentage if completion else 0,
        missing_dates=completion.missing_dates if completion else [],
        days_until_deadline=days_until_deadline(quarter, service.clock.today()),
    )


@router.post("/{quarter_id}/apply-pattern", response_model=ApplyResponse)
def apply_pattern(
    quarter_id: str,
    request: ApplyPatternRequest,
    service: WhereaboutsService = Depends(get_service),
) -> ApplyResponse:
    """Apply a weekly pattern: fill_only fills remaining days, overwrite replaces all."""
    try:
        quarter, outcome = service.apply_pattern(quarter_id, request.pattern, request.mode, request.competitions)
    except _HANDLED as e:
        raise to_http_exception(e) from e
    return _apply_response(quarter, outcome)


@router.put("/{quarter_id}/days/{slot_date}", response_model=DailySlot)
def update_day(
    quarter_id: str,
    slot_date: date,
    request: UpdateDayRequest,
    service: WhereaboutsService = Depends(get_service),
) -> DailySlot:
    try:
        return service.update_day(
            quarter_id,
            slot_date,
            DaySlotPattern(
                location_type=request.location_type,
                time_start=request.time_start,
                time_end=request.time_end,
            ),
            notes=request.notes,
            overnight_location_id=request.overnight_location_id,
        )
    except _HANDLED as e:
        raise to_http_exception(e) from e


@router.post("/{quarter_id}/submit", response_model=Quarter)
def submit_quarter(quarter_id: str, service: WhereaboutsService = Depends(get_service)) -> Quarter:
    """Submit a complete quarter (409 while incomplete, submitted or locked)."""
    try:
        return service.submit(quarter_id)
    except _HANDLED as e:
        logger.info(f"[WHEREABOUTS] Submit rejected for quarter {quarter_id}: {e}")
        raise to_http_exception(e) from e


@router.get("/{quarter_id}/pattern", response_model=WeeklyPattern | None)
def get_pattern(quarter_id: str, service: WhereaboutsService = Depends(get_service)) -> WeeklyPattern | None:
    """Weekly pattern recovered from the quarter's saved days (null when it has none)."""
    try:
        return service.extract_pattern(quarter_id)
    except _HANDLED as e:
        raise to_http_exception(e) from e


@router.post("/{quarter_id}/copy", response_model=ApplyResponse, status_code=status.HTTP_201_CREATED)
def copy_pattern(
    quarter_id: str,
    request: CopyPatternRequest,
    service: WhereaboutsService = Depends(get_service),
) -> ApplyResponse:
    """Start a new quarter pre-filled with this quarter's pattern."""
    try:
        quarter, outcome = service.copy_pattern_to_new_quarter(quarter_id, request.year, request.quarter)
    except _HANDLED as e:
        raise to_http_exception(e) from e
    return _apply_response(quarter, outcome)
