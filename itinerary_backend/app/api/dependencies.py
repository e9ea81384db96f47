"""Shared FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends

from itinerary_backend.app.config import Settings, get_settings
from itinerary_backend.app.db.engine import get_session_factory
from itinerary_backend.app.services.trip_actions import TripActionService


def get_trip_action_service(
    settings: Annotated[Settings, Depends(get_settings)],
) -> TripActionService:
    """Build the trip action service from settings and the global session factory."""
    return TripActionService.from_settings(settings, get_session_factory())
