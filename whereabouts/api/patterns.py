from fastapi import APIRouter, Depends

from whereabouts.api.dependencies import get_service
from whereabouts.api.schemas import DayValidationResponse, PatternValidateRequest, PatternValidateResponse
from whereabouts.engine.pattern_engine import PatternEngine
from whereabouts.services.whereabouts_service import WhereaboutsService

router = APIRouter(prefix="/patterns", tags=["patterns"])


@router.post("/validate", response_model=PatternValidateResponse)
def validate_pattern(
    request: PatternValidateRequest,
    service: WhereaboutsService = Depends(get_service),
) -> PatternValidateResponse:
    """Per-day validation and summary counts of a pattern against the athlete's locations."""
    engine = PatternEngine(service.location_set(request.athlete_id), request.pattern)
    stats = engine.compute_stats()
    return PatternValidateResponse(
        days={day: DayValidationResponse(valid=v.valid, reason=v.reason) for day, v in engine.day_validations().items()},
        completed_days=stats.completed_days,
        valid_days=stats.valid_days,
        invalid_days=stats.invalid_days,
        home_count=stats.home_count,
        training_count=stats.training_count,
        gym_count=stats.gym_count,
        is_fully_valid=stats.is_fully_valid,
    )
