"""Rule-based travel assistant stub.

Turns a free-text message into a suggested action envelope. Keyword matching
only; the route layer decides whether to apply the suggestions.
"""

from itinerary_backend.app.db.ids import generate_id
from itinerary_backend.app.models.actions import (
    AddItemAction,
    AddItemPayload,
    CreateDayAction,
    CreateDayPayload,
    TravelAssistantEnvelope,
    TripAction,
    UpdateBudgetAction,
    UpdateBudgetPayload,
    UpdatePreferencesAction,
    UpdatePreferencesPayload,
)
from itinerary_backend.app.models.trip import (
    ItineraryItemInput,
    ItineraryItemType,
    TripPreferences,
    TripState,
)
from itinerary_backend.app.travel.state_machine import get_default_trip_state, get_state_guidance

ITINERARY_KEYWORDS = ("roteiro", "itinerary", "dia", "day")
BUDGET_KEYWORDS = ("orçamento", "budget")


def build_travel_assistant_envelope(
    message: str, current_state: TripState | None = None
) -> TravelAssistantEnvelope:
    """Suggest actions and a next workflow state for a user message.

    Args:
        message: Free-text user message
        current_state: Trip's current state (default state if unknown)

    Returns:
        Envelope with assistant text, next state, actions and a fresh
        client operation id
    """
    state = current_state or get_default_trip_state()
    lowered = message.lower()

    actions: list[TripAction] = []
    next_state = state
    assistant_message = (
        f"Got it. {get_state_guidance(state)} I'll structure the next step of your plan."
    )

    if any(keyword in lowered for keyword in ITINERARY_KEYWORDS):
        next_state = TripState.PLANNING if state == TripState.DISCOVERY else state
        actions.append(CreateDayAction(payload=CreateDayPayload(day_index=1)))
        actions.append(
            AddItemAction(
                payload=AddItemPayload(
                    item=ItineraryItemInput(
                        type=ItineraryItemType.attraction,
                        title="Suggested starting point",
                        description="Starter item generated automatically to begin the itinerary.",
                        day_index=1,
                        duration_min=120,
                    )
                )
            )
        )
        assistant_message = (
            "I suggested a starting point on Day 1 to kick off your itinerary. "
            "Tell me your preferences so we can refine it."
        )
    elif any(keyword in lowered for keyword in BUDGET_KEYWORDS):
        next_state = TripState.SELECTION if state == TripState.DISCOVERY else state
        actions.append(UpdateBudgetAction(payload=UpdateBudgetPayload(currency="USD")))
        assistant_message = (
            "Noted your budget context. I'll tailor the next suggestions to it."
        )
    else:
        actions.append(
            UpdatePreferencesAction(
                payload=UpdatePreferencesPayload(patch=TripPreferences(notes=message[:2000]))
            )
        )

    return TravelAssistantEnvelope(
        assistant_message=assistant_message,
        trip_state_next=next_state,
        actions=actions,
        client_operation_id=generate_id(),
    )
