"""Trip workflow state machine.

Pure functions over ``TripState``; no I/O. Self-transitions are always legal,
every other pair must appear in ``TRANSITIONS``.
"""

from typing import Any

from itinerary_backend.app.models.trip import TripState

STATE_ORDER: tuple[TripState, ...] = (
    TripState.DISCOVERY,
    TripState.SELECTION,
    TripState.PLANNING,
    TripState.REFINEMENT,
    TripState.FINALIZATION,
)

TRANSITIONS: dict[TripState, frozenset[TripState]] = {
    TripState.DISCOVERY: frozenset({TripState.SELECTION, TripState.PLANNING}),
    TripState.SELECTION: frozenset({TripState.DISCOVERY, TripState.PLANNING}),
    TripState.PLANNING: frozenset(
        {TripState.SELECTION, TripState.REFINEMENT, TripState.FINALIZATION}
    ),
    TripState.REFINEMENT: frozenset({TripState.PLANNING, TripState.FINALIZATION}),
    TripState.FINALIZATION: frozenset({TripState.REFINEMENT}),
}

_GUIDANCE: dict[TripState, str] = {
    TripState.DISCOVERY: (
        "Run discovery: preferences, budget, dates, origin, companions, pace and constraints."
    ),
    TripState.SELECTION: "Guide destination selection with objective comparisons and trade-offs.",
    TripState.PLANNING: (
        "Build the itinerary day by day with ordered items and estimated durations."
    ),
    TripState.REFINEMENT: "Optimize the plan: balance pace, cost, transfers and conflicts.",
    TripState.FINALIZATION: (
        "Close the final checklist: bookings, documents, logistics and open items."
    ),
}


def get_default_trip_state() -> TripState:
    """Initial state for new trips."""
    return TripState.DISCOVERY


def is_valid_transition(from_state: TripState, to_state: TripState) -> bool:
    """Check whether moving from ``from_state`` to ``to_state`` is allowed."""
    if from_state == to_state:
        return True
    return TripState(to_state) in TRANSITIONS[TripState(from_state)]


def allowed_transitions(state: TripState) -> list[TripState]:
    """States reachable from ``state`` in one step, in display order (self included)."""
    return [s for s in STATE_ORDER if is_valid_transition(state, s)]


def normalize_trip_state(value: Any) -> TripState:
    """Coerce an untrusted value to a state, falling back to the default."""
    if isinstance(value, TripState):
        return value
    if not isinstance(value, str):
        return get_default_trip_state()
    try:
        return TripState(value)
    except ValueError:
        return get_default_trip_state()


def get_state_guidance(state: TripState) -> str:
    """Instruction text the assistant uses for a given stage."""
    return _GUIDANCE.get(state, "Plan the trip incrementally.")
