"""Template endpoints: save, list, apply, choose default, delete."""

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from whereabouts.api.dependencies import get_service, to_http_exception
from whereabouts.api.schemas import ApplyResponse, ApplyTemplateRequest, SaveTemplateRequest, TemplateListResponse
from whereabouts.domain.errors import NotFoundError, WhereaboutsPreconditionError
from whereabouts.domain.models import Template
from whereabouts.services.whereabouts_service import WhereaboutsService

router = APIRouter(prefix="/templates", tags=["templates"])

_HANDLED = (NotFoundError, WhereaboutsPreconditionError, ValueError)


@router.get("", response_model=TemplateListResponse)
def list_templates(
    athlete_id: str = Query(..., description="Template owner"),
    service: WhereaboutsService = Depends(get_service),
) -> TemplateListResponse:
    """Templates ordered by usage count, most used first."""
    store = service.template_store(athlete_id)
    default = store.default_template
    return TemplateListResponse(
        templates=store.list_templates(),
        default_template_id=default.id if default else None,
    )


@router.post("", response_model=Template, status_code=status.HTTP_201_CREATED)
def save_template(request: SaveTemplateRequest, service: WhereaboutsService = Depends(get_service)) -> Template:
    """Save a pattern as a template.

    Raises:
        HTTPException: 422 with the per-day reasons when any day is invalid
    """
    result = service.save_template(request.athlete_id, request.pattern, request.name, request.description)
    if result.template is None:
        raise HTTPException(
            status_code=422,
            detail={"code": "PATTERN_NOT_VALID", "details": result.errors},
        )
    return result.template


@router.post("/{template_id}/apply", response_model=ApplyResponse)
def apply_template(
    template_id: str,
    request: ApplyTemplateRequest,
    service: WhereaboutsService = Depends(get_service),
) -> ApplyResponse:
    try:
        quarter, outcome = service.apply_template(template_id, request.quarter_id, request.mode)
    except _HANDLED as e:
        raise to_http_exception(e) from e
    return ApplyResponse(quarter=quarter, created=outcome.created, updated=outcome.updated, unchanged=outcome.unchanged)


@router.post("/{template_id}/default", response_model=Template)
def set_default_template(
    template_id: str,
    athlete_id: str = Query(..., description="Template owner"),
    service: WhereaboutsService = Depends(get_service),
) -> Template:
    try:
        return service.set_default_template(athlete_id, template_id)
    except _HANDLED as e:
        raise to_http_exception(e) from e


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_template(
    template_id: str,
    athlete_id: str = Query(..., description="Template owner"),
    service: WhereaboutsService = Depends(get_service),
) -> Response:
    try:
        service.delete_template(athlete_id, template_id)
    except _HANDLED as e:
        raise to_http_exception(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
