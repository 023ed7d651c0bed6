"""Competition endpoints.

Saved competitions are laid over every later pattern or template
application for the athlete.
"""

from fastapi import APIRouter, Depends, Query, Response, status

from whereabouts.api.dependencies import get_service, to_http_exception
from whereabouts.api.schemas import CompetitionRequest, CreateCompetitionRequest
from whereabouts.domain.errors import NotFoundError
from whereabouts.domain.models import Competition
from whereabouts.services.whereabouts_service import WhereaboutsService

router = APIRouter(prefix="/competitions", tags=["competitions"])

_HANDLED = (NotFoundError, ValueError)


@router.get("", response_model=list[Competition])
def list_competitions(
    athlete_id: str = Query(..., description="Competition owner"),
    service: WhereaboutsService = Depends(get_service),
) -> list[Competition]:
    """Competitions ordered by start date."""
    return service.list_competitions(athlete_id)


@router.post("", response_model=Competition, status_code=status.HTTP_201_CREATED)
def add_competition(request: CreateCompetitionRequest, service: WhereaboutsService = Depends(get_service)) -> Competition:
    try:
        return service.add_competition(request.athlete_id, request.to_competition(athlete_id=request.athlete_id))
    except _HANDLED as e:
        raise to_http_exception(e) from e


@router.put("/{competition_id}", response_model=Competition)
def update_competition(
    competition_id: str,
    request: CompetitionRequest,
    service: WhereaboutsService = Depends(get_service),
) -> Competition:
    try:
        return service.update_competition(competition_id, request.to_competition(competition_id))
    except _HANDLED as e:
        raise to_http_exception(e) from e


@router.delete("/{competition_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_competition(competition_id: str, service: WhereaboutsService = Depends(get_service)) -> Response:
    try:
        service.delete_competition(competition_id)
    except _HANDLED as e:
        raise to_http_exception(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
