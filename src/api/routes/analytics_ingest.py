"""
Analytics Ingestion API Routes.

Click, view and location endpoints for the acting user. The actor comes from
the ``X-Actor-Id`` header set by the upstream auth layer.

Behavior:
- A repeat click or same-day repeat view is a 200 with ``is_unique=false`` /
  ``already_viewed=true``, never an error
- Unknown target ids are 404
- User agent and referrer fall back to the request headers
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Request

from src.api.deps import get_actor_id, get_ingestion_service
from src.api.schemas import (
    ErrorEnvelope,
    LocationResponse,
    TrackClickResponse,
    TrackRequest,
    TrackViewResponse,
    UpdateLocationRequest,
    raise_for_errors,
)
from src.components.interactions import (
    InteractionIngestionService,
    RecordClickInput,
    RecordViewInput,
    UpdateLocationInput,
    run_record_click,
    run_record_view,
    run_update_location,
)

router = APIRouter()


def _provenance(request: Request, body: TrackRequest) -> dict[str, str | None]:
    return {
        "session_id": body.session_id,
        "user_agent": body.user_agent or request.headers.get("user-agent"),
        "referrer": body.referrer or request.headers.get("referer"),
    }


# --- Routes ---


@router.post(
    "/track-click",
    response_model=TrackClickResponse,
    responses={400: {"model": ErrorEnvelope}, 404: {"model": ErrorEnvelope}},
)
def track_click(
    request: Request,
    body: TrackRequest,
    actor_id: UUID = Depends(get_actor_id),
    service: InteractionIngestionService = Depends(get_ingestion_service),
) -> TrackClickResponse:
    """Record the actor's click on a target. Each actor counts once per target."""
    result = run_record_click(
        RecordClickInput(actor_id=actor_id, target_id=body.target_id, **_provenance(request, body)),
        service=service,
    )
    raise_for_errors(result.errors)

    return TrackClickResponse(
        click_id=result.event.id if result.event else None,
        is_unique=result.created,
    )


@router.post(
    "/track-view",
    response_model=TrackViewResponse,
    responses={400: {"model": ErrorEnvelope}, 404: {"model": ErrorEnvelope}},
)
def track_view(
    request: Request,
    body: TrackRequest,
    actor_id: UUID = Depends(get_actor_id),
    service: InteractionIngestionService = Depends(get_ingestion_service),
) -> TrackViewResponse:
    """Record the actor's view of a target, at most once per UTC day."""
    result = run_record_view(
        RecordViewInput(actor_id=actor_id, target_id=body.target_id, **_provenance(request, body)),
        service=service,
    )
    raise_for_errors(result.errors)

    return TrackViewResponse(
        view_id=result.event.id if result.created and result.event else None,
        already_viewed=result.already_today,
    )


@router.post(
    "/update-location",
    response_model=LocationResponse,
    responses={400: {"model": ErrorEnvelope}},
)
def update_location(
    body: UpdateLocationRequest,
    actor_id: UUID = Depends(get_actor_id),
    service: InteractionIngestionService = Depends(get_ingestion_service),
) -> LocationResponse:
    """Store the actor's last-known coordinates used for later interactions."""
    result = run_update_location(
        UpdateLocationInput(
            actor_id=actor_id,
            longitude=body.longitude,
            latitude=body.latitude,
            city=body.city,
            address=body.address,
        ),
        service=service,
    )
    raise_for_errors(result.errors)

    location = result.location
    assert location is not None
    return LocationResponse(
        actor_id=location.actor_id,
        longitude=location.longitude,
        latitude=location.latitude,
        city=location.city,
        address=location.address,
    )
