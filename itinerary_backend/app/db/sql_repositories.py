"""SQL implementation of the trip repository (async SQLAlchemy)."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession

from itinerary_backend.app.db.context import RequestContext
from itinerary_backend.app.db.ids import generate_id
from itinerary_backend.app.db.models import (
    VARCHAR_LENGTH,
    ItineraryDay,
    ItineraryItem,
    ItineraryVersion,
    Trip,
    TripActionLog,
    TripSource,
)
from itinerary_backend.app.db.queries import (
    owned_trip_ids,
    select_action_logs,
    select_days,
    select_items,
    select_sources,
    select_trips,
    select_versions,
)
from itinerary_backend.app.db.repositories import (
    ActionLogStatus,
    NewActionLog,
    TripActionLogRecord,
    TripRecord,
    TripUpdate,
    TripVersionRecord,
)
from itinerary_backend.app.models.trip import (
    ItineraryDayDraft,
    ItineraryItemDraft,
    TripSourceInput,
)


def _to_trip_record(trip: Trip) -> TripRecord:
    return TripRecord(
        trip_id=trip.id,
        user_id=trip.user_id,
        title=trip.title,
        trip_state=trip.trip_state,
        preferences=dict(trip.preferences or {}),
        origin=trip.origin,
        destination=trip.destination,
        start_date=trip.start_date,
        end_date=trip.end_date,
        budget_min_cents=trip.budget_min_cents,
        budget_max_cents=trip.budget_max_cents,
        currency=trip.currency,
        last_version=trip.last_version,
        created_at=trip.created_at,
        updated_at=trip.updated_at,
    )


def _to_version_record(version: ItineraryVersion) -> TripVersionRecord:
    return TripVersionRecord(
        version_id=version.id,
        trip_id=version.trip_id,
        version_number=version.version_number,
        base_version=version.base_version,
        client_operation_id=version.client_operation_id,
        summary=version.summary,
        snapshot=version.snapshot,
        created_by=version.created_by,
        created_at=version.created_at,
    )


def _to_log_record(log: TripActionLog) -> TripActionLogRecord:
    return TripActionLogRecord(
        log_id=log.id,
        trip_id=log.trip_id,
        version_id=log.version_id,
        client_operation_id=log.client_operation_id,
        action_index=log.action_index,
        action_type=log.action_type,
        payload=log.payload,
        status=ActionLogStatus(log.status),
        error_text=log.error_text,
        created_by=log.created_by,
        created_at=log.created_at,
    )


class SqlTripRepository:
    """SQL implementation of TripRepository.

    Bound to the session of an open owner scope; never commits.
    """

    def __init__(self, session: AsyncSession, ctx: RequestContext) -> None:
        self._session = session
        self._ctx = ctx

    async def insert_trip(self, trip_id: str, title: str, trip_state: str) -> None:
        """Insert an empty trip at version 0."""
        trip = Trip(
            id=trip_id,
            user_id=self._ctx.user_id,
            title=title[:VARCHAR_LENGTH - 1],
            trip_state=trip_state,
            preferences={},
            last_version=0,
        )
        self._session.add(trip)
        await self._session.flush()

    async def get_trip(self, trip_id: str, *, for_update: bool = False) -> TripRecord | None:
        """Get trip by ID, optionally locking the row."""
        query = select_trips(self._ctx).where(Trip.id == trip_id)
        if for_update:
            query = query.with_for_update()

        result = await self._session.execute(query)
        trip = result.scalar_one_or_none()

        if trip is None:
            return None

        return _to_trip_record(trip)

    async def update_trip(self, trip_id: str, trip_update: TripUpdate) -> None:
        """Overwrite the trip's mutable fields and bump its version."""
        await self._session.execute(
            update(Trip)
            .where(Trip.id == trip_id, Trip.user_id == self._ctx.user_id)
            .values(
                trip_state=trip_update.trip_state,
                preferences=trip_update.preferences,
                origin=trip_update.origin,
                destination=trip_update.destination,
                start_date=trip_update.start_date,
                end_date=trip_update.end_date,
                budget_min_cents=trip_update.budget_min_cents,
                budget_max_cents=trip_update.budget_max_cents,
                currency=trip_update.currency,
                last_version=trip_update.last_version,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )

    async def load_days(self, trip_id: str) -> list[ItineraryDayDraft]:
        """Load materialized days with their items and sources."""
        day_rows = (await self._session.execute(select_days(self._ctx, trip_id))).scalars().all()
        item_rows = (
            await self._session.execute(
                select_items(self._ctx, trip_id).order_by(ItineraryItem.position)
            )
        ).scalars().all()
        source_rows = (
            await self._session.execute(select_sources(self._ctx, trip_id))
        ).scalars().all()

        sources = {source.id: source for source in source_rows}
        days = {
            day.id: ItineraryDayDraft(day_index=day.day_index, date=day.date, items=[])
            for day in day_rows
        }

        for item in item_rows:
            day = days.get(item.day_id)
            if day is None:
                continue
            source = sources.get(item.source_id) if item.source_id else None
            day.items.append(
                ItineraryItemDraft(
                    id=item.id,
                    day_index=day.day_index,
                    position=item.position,
                    type=item.item_type,
                    title=item.title,
                    description=item.description,
                    location=item.location,
                    duration_min=item.duration_min,
                    source=(
                        TripSourceInput(
                            url=source.url,
                            title=source.title,
                            publisher=source.publisher,
                            snippet=source.snippet,
                        )
                        if source is not None
                        else None
                    ),
                )
            )

        return sorted(days.values(), key=lambda d: d.day_index)

    async def replace_days(self, trip_id: str, days: list[ItineraryDayDraft]) -> None:
        """Delete all materialized rows for the trip and insert ``days``.

        Item ids are preserved; sources get fresh ids on every rewrite.
        """
        for model in (ItineraryItem, ItineraryDay, TripSource):
            await self._session.execute(
                delete(model)
                .where(model.trip_id == trip_id, model.trip_id.in_(owned_trip_ids(self._ctx)))
                .execution_options(synchronize_session=False)
            )
        # Rows loaded earlier in this transaction are gone; their ids are reused below
        self._session.expunge_all()

        day_rows = [
            ItineraryDay(id=generate_id(), trip_id=trip_id, day_index=day.day_index, date=day.date)
            for day in days
        ]
        self._session.add_all(day_rows)
        await self._session.flush()

        source_rows: list[TripSource] = []
        item_rows: list[ItineraryItem] = []
        for day, day_row in zip(days, day_rows):
            for item in day.items:
                source_id: str | None = None
                if item.source is not None:
                    source_id = generate_id()
                    source_rows.append(
                        TripSource(
                            id=source_id,
                            trip_id=trip_id,
                            url=item.source.url,
                            title=item.source.title,
                            publisher=item.source.publisher,
                            snippet=item.source.snippet,
                        )
                    )
                item_rows.append(
                    ItineraryItem(
                        id=item.id or generate_id(),
                        trip_id=trip_id,
                        day_id=day_row.id,
                        item_type=item.type.value,
                        title=item.title[:VARCHAR_LENGTH - 1],
                        description=item.description,
                        location=item.location,
                        duration_min=item.duration_min,
                        position=item.position,
                        source_id=source_id,
                        metadata_={},
                    )
                )

        if source_rows:
            self._session.add_all(source_rows)
            await self._session.flush()
        if item_rows:
            self._session.add_all(item_rows)
            await self._session.flush()

    async def find_version_by_operation(
        self, trip_id: str, client_operation_id: str
    ) -> TripVersionRecord | None:
        """Find the version created by a given client operation."""
        result = await self._session.execute(
            select_versions(self._ctx, trip_id)
            .where(ItineraryVersion.client_operation_id == client_operation_id)
            .limit(1)
        )
        version = result.scalar_one_or_none()
        return _to_version_record(version) if version is not None else None

    async def get_latest_version(self, trip_id: str) -> TripVersionRecord | None:
        """Get the highest-numbered version."""
        result = await self._session.execute(
            select_versions(self._ctx, trip_id)
            .order_by(ItineraryVersion.version_number.desc())
            .limit(1)
        )
        version = result.scalar_one_or_none()
        return _to_version_record(version) if version is not None else None

    async def get_version(self, trip_id: str, version_number: int) -> TripVersionRecord | None:
        """Get a version by number."""
        result = await self._session.execute(
            select_versions(self._ctx, trip_id).where(
                ItineraryVersion.version_number == version_number
            )
        )
        version = result.scalar_one_or_none()
        return _to_version_record(version) if version is not None else None

    async def list_versions(self, trip_id: str) -> list[TripVersionRecord]:
        """List versions, newest first."""
        result = await self._session.execute(
            select_versions(self._ctx, trip_id).order_by(ItineraryVersion.version_number.desc())
        )
        return [_to_version_record(version) for version in result.scalars().all()]

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
        """Append a version row."""
        version = ItineraryVersion(
            id=generate_id(),
            trip_id=trip_id,
            version_number=version_number,
            base_version=base_version,
            client_operation_id=client_operation_id,
            summary=summary,
            snapshot=snapshot,
            created_by=created_by,
        )
        self._session.add(version)
        await self._session.flush()
        return version.id

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
        if not logs:
            return

        self._session.add_all(
            [
                TripActionLog(
                    id=generate_id(),
                    trip_id=trip_id,
                    version_id=version_id,
                    client_operation_id=client_operation_id,
                    action_index=log.action_index,
                    action_type=log.action_type,
                    payload=log.payload,
                    status=log.status.value,
                    created_by=created_by,
                    created_at=created_at,
                )
                for log in logs
            ]
        )
        await self._session.flush()

    async def list_action_logs(self, trip_id: str, limit: int) -> list[TripActionLogRecord]:
        """List audit rows, newest batch first, later actions first within a batch."""
        result = await self._session.execute(
            select_action_logs(self._ctx, trip_id)
            .order_by(TripActionLog.created_at.desc(), TripActionLog.action_index.desc())
            .limit(limit)
        )
        return [_to_log_record(log) for log in result.scalars().all()]

    async def delete_action_logs(self, trip_id: str, version_ids: list[str]) -> int:
        """Delete audit rows belonging to the given versions."""
        if not version_ids:
            return 0

        result = await self._session.execute(
            delete(TripActionLog)
            .where(
                TripActionLog.trip_id == trip_id,
                TripActionLog.trip_id.in_(owned_trip_ids(self._ctx)),
                TripActionLog.version_id.in_(version_ids),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
