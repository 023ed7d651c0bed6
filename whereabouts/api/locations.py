from fastapi import APIRouter, Depends, Query, status

from whereabouts.api.dependencies import get_service
from whereabouts.domain.models import Location
from whereabouts.services.whereabouts_service import WhereaboutsService

router = APIRouter(prefix="/locations", tags=["locations"])


@router.get("", response_model=list[Location])
def list_locations(
    athlete_id: str = Query(..., description="Location owner"),
    service: WhereaboutsService = Depends(get_service),
) -> list[Location]:
    return service.list_locations(athlete_id)


@router.put("", response_model=Location, status_code=status.HTTP_200_OK)
def save_location(location: Location, service: WhereaboutsService = Depends(get_service)) -> Location:
    """Create or update a location (weekly_hours keyed by weekday).

    A new home, training or gym location replaces the athlete's previous one
    of that type. Unreadable or inverted opening hours are rejected with 422.
    """
    return service.save_location(location)
