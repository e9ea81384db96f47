"""Tenancy-safe query helpers.

Child tables carry no owner column, so they are scoped by joining through
``trips.user_id``.
"""

from sqlalchemy import Select, select

from itinerary_backend.app.db.context import RequestContext
from itinerary_backend.app.db.models import (
    ItineraryDay,
    ItineraryItem,
    ItineraryVersion,
    Trip,
    TripActionLog,
    TripSource,
)


def select_trips(ctx: RequestContext) -> Select[tuple[Trip]]:
    """Select trips owned by the caller."""
    return select(Trip).where(Trip.user_id == ctx.user_id)


def owned_trip_ids(ctx: RequestContext) -> Select[tuple[str]]:
    """Subquery of trip ids owned by the caller."""
    return select(Trip.id).where(Trip.user_id == ctx.user_id)


def select_days(ctx: RequestContext, trip_id: str) -> Select[tuple[ItineraryDay]]:
    """Select a trip's days, scoped to the caller."""
    return select(ItineraryDay).where(
        ItineraryDay.trip_id == trip_id,
        ItineraryDay.trip_id.in_(owned_trip_ids(ctx)),
    )


def select_items(ctx: RequestContext, trip_id: str) -> Select[tuple[ItineraryItem]]:
    """Select a trip's items, scoped to the caller."""
    return select(ItineraryItem).where(
        ItineraryItem.trip_id == trip_id,
        ItineraryItem.trip_id.in_(owned_trip_ids(ctx)),
    )


def select_sources(ctx: RequestContext, trip_id: str) -> Select[tuple[TripSource]]:
    """Select a trip's sources, scoped to the caller."""
    return select(TripSource).where(
        TripSource.trip_id == trip_id,
        TripSource.trip_id.in_(owned_trip_ids(ctx)),
    )


def select_versions(ctx: RequestContext, trip_id: str) -> Select[tuple[ItineraryVersion]]:
    """Select a trip's versions, scoped to the caller."""
    return select(ItineraryVersion).where(
        ItineraryVersion.trip_id == trip_id,
        ItineraryVersion.trip_id.in_(owned_trip_ids(ctx)),
    )


def select_action_logs(ctx: RequestContext, trip_id: str) -> Select[tuple[TripActionLog]]:
    """Select a trip's audit rows, scoped to the caller."""
    return select(TripActionLog).where(
        TripActionLog.trip_id == trip_id,
        TripActionLog.trip_id.in_(owned_trip_ids(ctx)),
    )
