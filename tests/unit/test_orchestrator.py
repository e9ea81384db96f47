"""Unit tests for the rule-based travel assistant."""

from itinerary_backend.app.models.actions import (
    AddItemAction,
    CreateDayAction,
    UpdateBudgetAction,
    UpdatePreferencesAction,
)
from itinerary_backend.app.models.trip import ItineraryItemType, TripState
from itinerary_backend.app.travel.orchestrator import build_travel_assistant_envelope


def test_itinerary_keyword_suggests_first_day() -> None:
    envelope = build_travel_assistant_envelope("Monte um roteiro para Roma", TripState.DISCOVERY)

    assert envelope.trip_state_next == TripState.PLANNING
    assert len(envelope.actions) == 2
    create_day, add_item = envelope.actions
    assert isinstance(create_day, CreateDayAction)
    assert create_day.payload.day_index == 1
    assert isinstance(add_item, AddItemAction)
    assert add_item.payload.item.type == ItineraryItemType.attraction
    assert add_item.payload.item.title == "Suggested starting point"
    assert add_item.payload.item.day_index == 1
    assert add_item.payload.item.duration_min == 120


def test_itinerary_keyword_keeps_later_state() -> None:
    envelope = build_travel_assistant_envelope("Add another day", TripState.REFINEMENT)

    assert envelope.trip_state_next == TripState.REFINEMENT


def test_budget_keyword_moves_to_selection() -> None:
    envelope = build_travel_assistant_envelope("My BUDGET is tight")

    assert envelope.trip_state_next == TripState.SELECTION
    assert len(envelope.actions) == 1
    assert isinstance(envelope.actions[0], UpdateBudgetAction)
    assert envelope.actions[0].payload.currency == "USD"


def test_other_message_becomes_notes() -> None:
    message = "I love museums " * 200

    envelope = build_travel_assistant_envelope(message, TripState.SELECTION)

    assert envelope.trip_state_next == TripState.SELECTION
    assert len(envelope.actions) == 1
    action = envelope.actions[0]
    assert isinstance(action, UpdatePreferencesAction)
    assert action.payload.patch.notes == message[:2000]
    assert "destination selection" in envelope.assistant_message


def test_each_envelope_gets_fresh_operation_id() -> None:
    first = build_travel_assistant_envelope("hello")
    second = build_travel_assistant_envelope("hello")

    assert first.client_operation_id != second.client_operation_id
    assert len(first.client_operation_id) >= 8


def test_envelope_wire_shape() -> None:
    wire = build_travel_assistant_envelope("budget").to_wire()

    assert set(wire) == {"assistantMessage", "tripStateNext", "actions", "clientOperationId"}
    assert wire["actions"] == [{"type": "UPDATE_BUDGET", "payload": {"currency": "USD"}}]
