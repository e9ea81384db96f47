"""Repository protocol interfaces for trip data access."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from itinerary_backend.app.models.trip import ItineraryDayDraft


class ActionLogStatus(str, Enum):
    """Audit row status.

    Batches only write ``applied``. ``pending`` and ``failed`` are reserved
    and never written.
    """

    pending = "pending"
    applied = "applied"
    failed = "failed"


@dataclass
class TripRecord:
    """Trip row data record."""

    trip_id: str
    user_id: str
    title: str
    trip_state: str
    preferences: dict[str, Any]
    origin: str | None
    destination: str | None
    start_date: str | None
    end_date: str | None
    budget_min_cents: int | None
    budget_max_cents: int | None
    currency: str | None
    last_version: int
    created_at: datetime
    updated_at: datetime


@dataclass
class TripUpdate:
    """New values for a trip row after a batch."""

    trip_state: str
    preferences: dict[str, Any]
    origin: str | None
    destination: str | None
    start_date: str | None
    end_date: str | None
    budget_min_cents: int | None
    budget_max_cents: int | None
    currency: str | None
    last_version: int


@dataclass
class TripVersionRecord:
    """Immutable version row."""

    version_id: str
    trip_id: str
    version_number: int
    base_version: int
    client_operation_id: str
    summary: str | None
    snapshot: dict[str, Any]
    created_by: str
    created_at: datetime


@dataclass
class TripActionLogRecord:
    """Audit row for one applied action."""

    log_id: str
    trip_id: str
    version_id: str | None
    client_operation_id: str
    action_index: int
    action_type: str
    payload: dict[str, Any]
    status: ActionLogStatus
    error_text: str | None
    created_by: str
    created_at: datetime


@dataclass
class NewActionLog:
    """Audit row to insert."""

    action_index: int
    action_type: str
    payload: dict[str, Any]
    status: ActionLogStatus = ActionLogStatus.applied


class TripRepository(Protocol):
    """Row-level trip storage bound to one transaction and one owning user.

    Implementations never open or commit transactions themselves.
    """

    async def insert_trip(self, trip_id: str, title: str, trip_state: str) -> None:
        """Insert an empty trip at version 0."""
        ...

    async def get_trip(self, trip_id: str, *, for_update: bool = False) -> TripRecord | None:
        """Get trip by ID, optionally locking the row.

        Returns:
            Trip record or None if absent or not owned by the caller
        """
        ...

    async def update_trip(self, trip_id: str, trip_update: TripUpdate) -> None:
        """Overwrite the trip's state, preferences, denormalized fields and version."""
        ...

    async def load_days(self, trip_id: str) -> list[ItineraryDayDraft]:
        """Load materialized days with their items and sources."""
        ...

    async def replace_days(self, trip_id: str, days: list[ItineraryDayDraft]) -> None:
        """Delete all materialized days/items/sources and insert ``days``."""
        ...

    async def find_version_by_operation(
        self, trip_id: str, client_operation_id: str
    ) -> TripVersionRecord | None:
        """Find the version created by a given client operation."""
        ...

    async def get_latest_version(self, trip_id: str) -> TripVersionRecord | None:
        """Get the highest-numbered version."""
        ...

    async def get_version(self, trip_id: str, version_number: int) -> TripVersionRecord | None:
        """Get a version by number."""
        ...

    async def list_versions(self, trip_id: str) -> list[TripVersionRecord]:
        """List versions, newest first."""
        ...

    async def insert_version(
        self,
        trip_id: str,
        *,
        version_number: int,
        base_version: int,
        client_operation_id: str,
        summary: str | None,
        snapshot: dict[str, Any],
        created_by: str,
    ) -> str:
        """Append a version row.

        Returns:
            Version ID
        """
        ...

    async def insert_action_logs(
        self,
        trip_id: str,
        *,
        version_id: str,
        client_operation_id: str,
        logs: list[NewActionLog],
        created_by: str,
        created_at: datetime,
    ) -> None:
        """Append audit rows for one batch."""
        ...

    async def list_action_logs(self, trip_id: str, limit: int) -> list[TripActionLogRecord]:
        """List audit rows, newest first."""
        ...

    async def delete_action_logs(self, trip_id: str, version_ids: list[str]) -> int:
        """Delete audit rows belonging to the given versions.

        Returns:
            Number of rows deleted
        """
        ...
