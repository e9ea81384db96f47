"""Travel assistant endpoint - POST /travel/message."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import Field

from itinerary_backend.app.api.auth import get_current_context
from itinerary_backend.app.api.dependencies import get_trip_action_service
from itinerary_backend.app.config import Settings, get_settings
from itinerary_backend.app.db.context import RequestContext
from itinerary_backend.app.models.actions import TravelAssistantEnvelope
from itinerary_backend.app.models.trip import TripState, WireModel
from itinerary_backend.app.services.trip_actions import TripActionService
from itinerary_backend.app.travel.errors import TripActionError
from itinerary_backend.app.travel.orchestrator import build_travel_assistant_envelope

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/travel", tags=["travel"])


class TravelMessageRequest(WireModel):
    """Request body for POST /travel/message."""

    trip_id: str | None = Field(None, alias="tripId")
    message: str = Field(..., min_length=1, max_length=5000)
    client_operation_id: str | None = Field(
        None, min_length=8, max_length=191, alias="clientOperationId"
    )


class TravelMessageResponse(WireModel):
    """Response for POST /travel/message."""

    trip_id: str = Field(..., alias="tripId")
    assistant: TravelAssistantEnvelope


@router.post("/message", response_model=TravelMessageResponse, response_model_exclude_none=True)
async def travel_message(
    request: TravelMessageRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    service: Annotated[TripActionService, Depends(get_trip_action_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TravelMessageResponse:
    """Suggest actions for a user message without applying them.

    Creates a trip when none is given. The suggestions are meant to be
    submitted to POST /trips/{trip_id}/actions/apply by the caller.
    """
    trip_id = request.trip_id
    if not trip_id:
        trip_id = await service.create_trip(ctx.user_id, settings.assistant_trip_title)

    current_state = TripState.DISCOVERY
    try:
        snapshot = await service.get_trip_snapshot(ctx.user_id, trip_id)
        current_state = snapshot.trip_state
    except TripActionError as e:
        logger.warning(
            f"Could not read trip state for {trip_id}: {e}",
            extra={"structured": {"trip_id": trip_id, "user_id": ctx.user_id}},
        )

    envelope = build_travel_assistant_envelope(request.message, current_state)
    if request.client_operation_id:
        envelope = envelope.model_copy(
            update={"client_operation_id": request.client_operation_id}
        )

    return TravelMessageResponse(trip_id=trip_id, assistant=envelope)
