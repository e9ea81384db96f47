"""Snapshot builder - projects a draft into the external snapshot shape."""

from itinerary_backend.app.models.trip import SnapshotDay, SnapshotItem, TripDraft, TripSnapshot


def build_trip_snapshot(trip_id: str, version: int, draft: TripDraft) -> TripSnapshot:
    """Build a snapshot of ``draft`` at ``version``.

    Pure projection: the result shares no mutable state with ``draft``.
    """
    return TripSnapshot(
        trip_id=trip_id,
        version=version,
        trip_state=draft.trip_state,
        preferences=draft.preferences.model_copy(deep=True),
        days=[
            SnapshotDay(
                day_index=day.day_index,
                date=day.date,
                items=[
                    SnapshotItem(
                        id=item.id,
                        type=item.type,
                        title=item.title,
                        description=item.description,
                        location=item.location,
                        duration_min=item.duration_min,
                        position=item.position,
                        source=item.source.model_copy() if item.source else None,
                    )
                    for item in day.items
                ],
            )
            for day in draft.days
        ],
    )
