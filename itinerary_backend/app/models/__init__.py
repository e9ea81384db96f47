"""Models package - re-exports for convenience."""

from itinerary_backend.app.models.actions import (
    MAX_ACTIONS_PER_BATCH,
    ApplyTripActionsResult,
    TravelAssistantEnvelope,
    TripAction,
    TripActionType,
    parse_trip_actions,
)
from itinerary_backend.app.models.trip import (
    CompanionType,
    ItineraryDayDraft,
    ItineraryItemDraft,
    ItineraryItemInput,
    ItineraryItemType,
    Pace,
    SnapshotDay,
    SnapshotItem,
    TripDraft,
    TripPreferences,
    TripSnapshot,
    TripSourceInput,
    TripState,
)

__all__ = [
    # Trip
    "TripState",
    "ItineraryItemType",
    "CompanionType",
    "Pace",
    "TripPreferences",
    "TripSourceInput",
    "ItineraryItemInput",
    "ItineraryItemDraft",
    "ItineraryDayDraft",
    "TripDraft",
    "SnapshotItem",
    "SnapshotDay",
    "TripSnapshot",
    # Actions
    "MAX_ACTIONS_PER_BATCH",
    "TripActionType",
    "TripAction",
    "parse_trip_actions",
    "ApplyTripActionsResult",
    "TravelAssistantEnvelope",
]
