"""Trip action service - transactional, idempotent, versioned batch application.

Every public operation opens exactly one ``owner_scope`` and hands its
session to a ``SqlTripRepository``. Nothing below this layer opens or
commits a transaction.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from itinerary_backend.app.config import Settings
from itinerary_backend.app.db.ids import generate_id
from itinerary_backend.app.db.repositories import (
    NewActionLog,
    TripActionLogRecord,
    TripRecord,
    TripRepository,
    TripUpdate,
    TripVersionRecord,
)
from itinerary_backend.app.db.scope import owner_scope
from itinerary_backend.app.db.sql_repositories import SqlTripRepository
from itinerary_backend.app.models.actions import ApplyTripActionsResult, TripAction
from itinerary_backend.app.models.trip import (
    ItineraryDayDraft,
    TripDraft,
    TripPreferences,
    TripSnapshot,
    TripState,
)
from itinerary_backend.app.travel.errors import (
    InvalidBudgetRangeError,
    OperationConflictError,
    TripActionError,
    TripNotFoundError,
)
from itinerary_backend.app.travel.reducer import apply_actions
from itinerary_backend.app.travel.snapshot import build_trip_snapshot
from itinerary_backend.app.travel.state_machine import (
    get_default_trip_state,
    normalize_trip_state,
)
from itinerary_backend.app.utils.logging import StructuredTripLogger
from itinerary_backend.app.utils.metrics import PrometheusTripMetrics

logger = logging.getLogger(__name__)


def budget_to_cents(value: float | None) -> int | None:
    """Convert a budget amount to integer cents."""
    if value is None:
        return None
    return round(value * 100)


def cents_to_budget(value: int | None) -> float | None:
    """Convert integer cents back to a budget amount."""
    if value is None:
        return None
    return value / 100


def draft_from_record(record: TripRecord, days: list[ItineraryDayDraft]) -> TripDraft:
    """Rebuild a draft from a trip row and its materialized days.

    Denormalized columns take precedence over the preferences JSON.
    """
    preferences: dict[str, Any] = dict(record.preferences)
    overlay = {
        "origin": record.origin,
        "destination": record.destination,
        "startDate": record.start_date,
        "endDate": record.end_date,
        "budgetMin": cents_to_budget(record.budget_min_cents),
        "budgetMax": cents_to_budget(record.budget_max_cents),
        "currency": record.currency,
    }
    preferences.update({key: value for key, value in overlay.items() if value is not None})

    return TripDraft(
        trip_state=normalize_trip_state(record.trip_state),
        preferences=TripPreferences.model_validate(preferences),
        days=days,
    )


class TripActionService:
    """Applies action batches to trips and serves their snapshots and history.

    Configuration is injected; the service never reads the environment.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        default_trip_title: str = "New Trip",
        action_log_default_limit: int = 100,
        action_log_max_limit: int = 500,
        trip_logger: StructuredTripLogger | None = None,
        metrics: PrometheusTripMetrics | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._default_trip_title = default_trip_title
        self._action_log_default_limit = action_log_default_limit
        self._action_log_max_limit = action_log_max_limit
        self._trip_logger = trip_logger or StructuredTripLogger()
        self._metrics = metrics or PrometheusTripMetrics()

    @classmethod
    def from_settings(
        cls, settings: Settings, session_factory: async_sessionmaker[AsyncSession]
    ) -> "TripActionService":
        """Build a service configured from ``settings``."""
        return cls(
            session_factory,
            default_trip_title=settings.default_trip_title,
            action_log_default_limit=settings.action_log_default_limit,
            action_log_max_limit=settings.action_log_max_limit,
        )

    async def create_trip(self, user_id: str, title: str | None = None) -> str:
        """Create an empty trip at the default workflow state and version 0.

        Returns:
            New trip ID
        """
        trip_id = generate_id()
        async with owner_scope(self._session_factory, user_id) as scope:
            repo = SqlTripRepository(scope.session, scope.ctx)
            await repo.insert_trip(
                trip_id, title or self._default_trip_title, get_default_trip_state().value
            )

        self._trip_logger.log_trip_created(trip_id, user_id)
        return trip_id

    async def apply_trip_actions(
        self,
        user_id: str,
        trip_id: str,
        client_operation_id: str,
        actions: list[TripAction],
        assistant_message: str | None = None,
        trip_state_next: TripState | None = None,
    ) -> ApplyTripActionsResult:
        """Apply one action batch atomically, or replay a previous one.

        A batch whose ``client_operation_id`` already produced a version for
        this trip returns that version's stored snapshot with
        ``idempotent=True`` and writes nothing.

        Args:
            user_id: Owning user
            trip_id: Target trip
            client_operation_id: Caller-supplied idempotency key
            actions: Validated actions, applied in order
            assistant_message: Stored as the version summary
            trip_state_next: Optional final workflow state

        Returns:
            New (or replayed) version number and snapshot

        Raises:
            TripNotFoundError: Trip absent or owned by someone else
            InvalidTripStateTransitionError: Illegal workflow transition
            ReorderMismatchError: REORDER_ITEMS ids differ from the day's items
            InvalidBudgetRangeError: Resulting budgetMax is below budgetMin
            OperationConflictError: A concurrent batch committed first
        """
        start = time.perf_counter()
        outcome = "rejected"
        error_reason: str | None = None
        result: ApplyTripActionsResult | None = None

        try:
            async with owner_scope(self._session_factory, user_id) as scope:
                repo = SqlTripRepository(scope.session, scope.ctx)

                existing = await repo.find_version_by_operation(trip_id, client_operation_id)
                if existing is not None:
                    committed_outcome = "replayed"
                    result = ApplyTripActionsResult(
                        version=existing.version_number,
                        idempotent=True,
                        snapshot=TripSnapshot.model_validate(existing.snapshot),
                    )
                else:
                    result = await self._apply_in_scope(
                        repo,
                        user_id=user_id,
                        trip_id=trip_id,
                        client_operation_id=client_operation_id,
                        actions=actions,
                        assistant_message=assistant_message,
                        trip_state_next=trip_state_next,
                    )
                    committed_outcome = "applied"
            outcome = committed_outcome
        except TripNotFoundError as e:
            outcome = "not_found"
            error_reason = str(e)
            raise
        except TripActionError as e:
            outcome = "rejected"
            error_reason = str(e)
            raise
        except IntegrityError as e:
            outcome = "conflict"
            error_reason = type(e).__name__
            raise OperationConflictError(trip_id, client_operation_id) from e
        finally:
            latency_ms = (time.perf_counter() - start) * 1000
            self._metrics.record_batch(outcome, latency_ms)
            self._trip_logger.log_batch(
                trip_id,
                user_id,
                client_operation_id,
                outcome,
                latency_ms,
                action_count=len(actions),
                version=result.version if result is not None else None,
                error_reason=error_reason,
            )

        if outcome == "applied":
            for action in actions:
                self._metrics.inc_action(action.type)

        return result

    async def _apply_in_scope(
        self,
        repo: TripRepository,
        *,
        user_id: str,
        trip_id: str,
        client_operation_id: str,
        actions: list[TripAction],
        assistant_message: str | None,
        trip_state_next: TripState | None,
    ) -> ApplyTripActionsResult:
        trip = await repo.get_trip(trip_id, for_update=True)
        if trip is None:
            raise TripNotFoundError(trip_id)

        draft = draft_from_record(trip, await repo.load_days(trip_id))
        next_draft = apply_actions(draft, actions, trip_state_next)

        preferences = next_draft.preferences
        if (
            preferences.budget_min is not None
            and preferences.budget_max is not None
            and preferences.budget_max < preferences.budget_min
        ):
            raise InvalidBudgetRangeError(preferences.budget_min, preferences.budget_max)

        next_version = trip.last_version + 1

        await repo.replace_days(trip_id, next_draft.days)

        await repo.update_trip(
            trip_id,
            TripUpdate(
                trip_state=next_draft.trip_state.value,
                preferences=preferences.to_wire(),
                origin=preferences.origin,
                destination=preferences.destination,
                start_date=preferences.start_date,
                end_date=preferences.end_date,
                budget_min_cents=budget_to_cents(preferences.budget_min),
                budget_max_cents=budget_to_cents(preferences.budget_max),
                currency=preferences.currency,
                last_version=next_version,
            ),
        )

        snapshot = build_trip_snapshot(trip_id, next_version, next_draft)
        version_id = await repo.insert_version(
            trip_id,
            version_number=next_version,
            base_version=trip.last_version,
            client_operation_id=client_operation_id,
            summary=assistant_message,
            snapshot=snapshot.to_wire(),
            created_by=user_id,
        )

        await repo.insert_action_logs(
            trip_id,
            version_id=version_id,
            client_operation_id=client_operation_id,
            logs=[
                NewActionLog(action_index=idx, action_type=action.type, payload=action.to_wire())
                for idx, action in enumerate(actions)
            ],
            created_by=user_id,
            created_at=datetime.now(timezone.utc),
        )

        return ApplyTripActionsResult(version=next_version, idempotent=False, snapshot=snapshot)

    async def get_trip_snapshot(self, user_id: str, trip_id: str) -> TripSnapshot:
        """Return the latest stored snapshot, or build one from current rows.

        Raises:
            TripNotFoundError: Trip absent or owned by someone else
        """
        async with owner_scope(self._session_factory, user_id) as scope:
            repo = SqlTripRepository(scope.session, scope.ctx)

            latest = await repo.get_latest_version(trip_id)
            if latest is not None:
                return TripSnapshot.model_validate(latest.snapshot)

            trip = await repo.get_trip(trip_id)
            if trip is None:
                raise TripNotFoundError(trip_id)

            draft = draft_from_record(trip, await repo.load_days(trip_id))
            return build_trip_snapshot(trip_id, trip.last_version, draft)

    async def list_trip_action_logs(
        self, user_id: str, trip_id: str, limit: int | None = None
    ) -> list[TripActionLogRecord]:
        """List audit rows newest-first. Unknown trips yield an empty list."""
        if limit is None:
            limit = self._action_log_default_limit
        limit = max(1, min(limit, self._action_log_max_limit))

        async with owner_scope(self._session_factory, user_id) as scope:
            repo = SqlTripRepository(scope.session, scope.ctx)
            return await repo.list_action_logs(trip_id, limit)

    async def delete_trip_actions_by_version(
        self, user_id: str, trip_id: str, version_ids: list[str]
    ) -> int:
        """Delete audit rows for the given versions.

        Returns:
            Number of rows deleted (0 for an empty ``version_ids``)
        """
        if not version_ids:
            return 0

        async with owner_scope(self._session_factory, user_id) as scope:
            repo = SqlTripRepository(scope.session, scope.ctx)
            deleted = await repo.delete_action_logs(trip_id, version_ids)

        logger.info(
            f"Deleted {deleted} action logs for trip {trip_id}",
            extra={"structured": {"trip_id": trip_id, "user_id": user_id, "deleted": deleted}},
        )
        return deleted

    async def list_trip_versions(self, user_id: str, trip_id: str) -> list[TripVersionRecord]:
        """List a trip's versions, newest first.

        Raises:
            TripNotFoundError: Trip absent or owned by someone else
        """
        async with owner_scope(self._session_factory, user_id) as scope:
            repo = SqlTripRepository(scope.session, scope.ctx)
            if await repo.get_trip(trip_id) is None:
                raise TripNotFoundError(trip_id)
            return await repo.list_versions(trip_id)

    async def get_trip_version_snapshot(
        self, user_id: str, trip_id: str, version_number: int
    ) -> TripSnapshot:
        """Return the stored snapshot of one version.

        Raises:
            TripNotFoundError: Trip or version absent, or trip owned by someone else
        """
        async with owner_scope(self._session_factory, user_id) as scope:
            repo = SqlTripRepository(scope.session, scope.ctx)
            version = await repo.get_version(trip_id, version_number)

        if version is None:
            raise TripNotFoundError(trip_id)
        return TripSnapshot.model_validate(version.snapshot)
