from fastapi import HTTPException, status
from loguru import logger

from whereabouts.config.settings import settings
from whereabouts.core.clock import AthleteClock
from whereabouts.db.repository import WhereaboutsRepository
from whereabouts.domain.errors import NotFoundError, PatternIntegrityError, WhereaboutsPreconditionError
from whereabouts.services.whereabouts_service import WhereaboutsService


def get_service() -> WhereaboutsService:
    """FastAPI dependency building the service from settings."""
    return WhereaboutsService(
        WhereaboutsRepository(),
        AthleteClock(settings.athlete_timezone),
        filing_deadline_day=settings.filing_deadline_day,
    )


def to_http_exception(err: Exception) -> HTTPException:
    """Map a whereabouts error onto an HTTP response.

    - NotFoundError -> 404
    - WhereaboutsPreconditionError -> 409 with {"code", "details"}
    - PatternIntegrityError / ValueError -> 422
    """
    if isinstance(err, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err))
    if isinstance(err, WhereaboutsPreconditionError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"code": err.code, "details": err.details},
        )
    if isinstance(err, (PatternIntegrityError, ValueError)):
        return HTTPException(status_code=422, detail=str(err))
    logger.exception(f"[WHEREABOUTS] Unexpected API error: {err}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error")
