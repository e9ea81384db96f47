"""Trip draft reducer - applies an ordered action batch to a draft.

This is a pure function with no I/O. The input draft is never mutated: the
reducer works on a ``model_copy(deep=True)`` clone. Every draft field is a
plain value or nested model, so the clone is complete; private attributes and
undeclared extras are not part of a draft and are not copied.

Errors propagate to the caller. The reducer does not catch them or return a
partially applied draft; the enclosing transaction discards everything.
"""

import re
from collections.abc import Callable

from itinerary_backend.app.db.ids import generate_id
from itinerary_backend.app.models.actions import (
    AddItemAction,
    CreateDayAction,
    MoveItemAction,
    RemoveDayAction,
    RemoveItemAction,
    ReorderItemsAction,
    SetTripStateAction,
    TripAction,
    TripActionType,
    UpdateBudgetAction,
    UpdateDatesAction,
    UpdateItemAction,
    UpdatePreferencesAction,
)
from itinerary_backend.app.models.trip import (
    ItineraryDayDraft,
    ItineraryItemDraft,
    TripDraft,
    TripState,
)
from itinerary_backend.app.travel.errors import (
    InvalidTripStateTransitionError,
    ReorderItemNotFoundError,
    ReorderMismatchError,
    UnsupportedActionError,
)
from itinerary_backend.app.travel.state_machine import is_valid_transition

IdFactory = Callable[[], str]

# ASCII digits only, optional leading plus
_DAY_KEY_PATTERN = re.compile(r"\+?[0-9]+")


def ensure_day(draft: TripDraft, day_index: int) -> ItineraryDayDraft:
    """Return the day with ``day_index``, appending an empty one if absent."""
    for day in draft.days:
        if day.day_index == day_index:
            return day
    day = ItineraryDayDraft(day_index=day_index)
    draft.days.append(day)
    return day


def find_item(
    draft: TripDraft, item_id: str
) -> tuple[ItineraryDayDraft, ItineraryItemDraft] | None:
    """Locate an item anywhere in the draft."""
    for day in draft.days:
        for item in day.items:
            if item.id == item_id:
                return day, item
    return None


def remove_item_by_id(draft: TripDraft, item_id: str) -> bool:
    """Remove an item from whichever day holds it. Returns False if absent."""
    for day in draft.days:
        for idx, item in enumerate(day.items):
            if item.id == item_id:
                del day.items[idx]
                return True
    return False


def normalize_draft(draft: TripDraft) -> None:
    """Sort days by index and renumber item positions 1..N from array order.

    Items are deliberately NOT sorted by their stored ``position``: MOVE_ITEM
    and REORDER_ITEMS express their result through array order, and sorting
    by stale positions would undo them.
    """
    draft.days.sort(key=lambda day: day.day_index)
    for day in draft.days:
        for idx, item in enumerate(day.items):
            item.position = idx + 1


def _transition(draft: TripDraft, to_state: TripState) -> None:
    if not is_valid_transition(draft.trip_state, to_state):
        raise InvalidTripStateTransitionError(draft.trip_state.value, TripState(to_state).value)
    draft.trip_state = TripState(to_state)


# Handlers. Each mutates the working draft in place.


def _create_day(draft: TripDraft, action: CreateDayAction, new_id: IdFactory) -> None:
    day = ensure_day(draft, action.payload.day_index)
    if action.payload.date:
        day.date = action.payload.date


def _remove_day(draft: TripDraft, action: RemoveDayAction, new_id: IdFactory) -> None:
    draft.days = [day for day in draft.days if day.day_index != action.payload.day_index]


def _add_item(draft: TripDraft, action: AddItemAction, new_id: IdFactory) -> None:
    item_input = action.payload.item
    day = ensure_day(draft, item_input.day_index)
    position = item_input.position
    new_item = ItineraryItemDraft(
        id=new_id(),
        day_index=item_input.day_index,
        position=position or len(day.items) + 1,
        type=item_input.type,
        title=item_input.title,
        description=item_input.description,
        location=item_input.location,
        duration_min=item_input.duration_min,
        source=item_input.source.model_copy() if item_input.source else None,
    )
    if position and position <= len(day.items):
        day.items.insert(position - 1, new_item)
    else:
        day.items.append(new_item)


def _remove_item(draft: TripDraft, action: RemoveItemAction, new_id: IdFactory) -> None:
    remove_item_by_id(draft, action.payload.item_id)


def _move_item(draft: TripDraft, action: MoveItemAction, new_id: IdFactory) -> None:
    found = find_item(draft, action.payload.item_id)
    if found is None:
        return
    _, item = found
    remove_item_by_id(draft, item.id)
    target_day = ensure_day(draft, action.payload.to_day_index)
    to_position = action.payload.to_position
    target_index = to_position - 1 if to_position and to_position > 0 else len(target_day.items)
    # Out-of-range positions clamp to the end rather than failing
    target_index = min(target_index, len(target_day.items))
    target_day.items.insert(
        target_index, item.model_copy(update={"day_index": action.payload.to_day_index})
    )


def _reorder_items(draft: TripDraft, action: ReorderItemsAction, new_id: IdFactory) -> None:
    day = ensure_day(draft, action.payload.day_index)
    ordered_ids = action.payload.ordered_item_ids
    if sorted(item.id for item in day.items) != sorted(ordered_ids):
        raise ReorderMismatchError(action.payload.day_index)
    by_id = {item.id: item for item in day.items}
    reordered: list[ItineraryItemDraft] = []
    for item_id in ordered_ids:
        if item_id not in by_id:
            raise ReorderItemNotFoundError(item_id)
        reordered.append(by_id[item_id])
    day.items = reordered


def _update_item(draft: TripDraft, action: UpdateItemAction, new_id: IdFactory) -> None:
    found = find_item(draft, action.payload.item_id)
    if found is None:
        return
    day, item = found
    # Null patch fields behave like absent ones
    changes = action.payload.patch.model_dump(exclude_none=True)
    if "source" in changes:
        changes["source"] = action.payload.patch.source.model_copy()  # type: ignore[union-attr]
    updated = item.model_copy(update=changes)
    day.items[day.items.index(item)] = updated


def _update_preferences(
    draft: TripDraft, action: UpdatePreferencesAction, new_id: IdFactory
) -> None:
    patch = action.payload.patch.model_dump(exclude_unset=True)
    draft.preferences = draft.preferences.model_copy(update=patch)


def _update_dates(draft: TripDraft, action: UpdateDatesAction, new_id: IdFactory) -> None:
    payload = action.payload
    if payload.start_date:
        draft.preferences.start_date = payload.start_date
    if payload.end_date:
        draft.preferences.end_date = payload.end_date
    for day_key, day_date in (payload.day_dates or {}).items():
        if not _DAY_KEY_PATTERN.fullmatch(day_key):
            continue
        day_index = int(day_key)
        if day_index <= 0:
            continue
        ensure_day(draft, day_index).date = day_date


def _update_budget(draft: TripDraft, action: UpdateBudgetAction, new_id: IdFactory) -> None:
    payload = action.payload
    if payload.budget_min is not None:
        draft.preferences.budget_min = payload.budget_min
    if payload.budget_max is not None:
        draft.preferences.budget_max = payload.budget_max
    if payload.currency is not None:
        draft.preferences.currency = payload.currency


def _set_trip_state(draft: TripDraft, action: SetTripStateAction, new_id: IdFactory) -> None:
    _transition(draft, action.payload.trip_state)


_ACTION_HANDLERS: dict[str, Callable[[TripDraft, TripAction, IdFactory], None]] = {
    TripActionType.CREATE_DAY.value: _create_day,  # type: ignore[dict-item]
    TripActionType.REMOVE_DAY.value: _remove_day,  # type: ignore[dict-item]
    TripActionType.ADD_ITEM.value: _add_item,  # type: ignore[dict-item]
    TripActionType.REMOVE_ITEM.value: _remove_item,  # type: ignore[dict-item]
    TripActionType.MOVE_ITEM.value: _move_item,  # type: ignore[dict-item]
    TripActionType.REORDER_ITEMS.value: _reorder_items,  # type: ignore[dict-item]
    TripActionType.UPDATE_ITEM.value: _update_item,  # type: ignore[dict-item]
    TripActionType.UPDATE_TRIP_PREFERENCES.value: _update_preferences,  # type: ignore[dict-item]
    TripActionType.UPDATE_DATES.value: _update_dates,  # type: ignore[dict-item]
    TripActionType.UPDATE_BUDGET.value: _update_budget,  # type: ignore[dict-item]
    TripActionType.SET_TRIP_STATE.value: _set_trip_state,  # type: ignore[dict-item]
}


def apply_actions(
    draft: TripDraft,
    actions: list[TripAction],
    trip_state_next: TripState | None = None,
    *,
    id_factory: IdFactory = generate_id,
) -> TripDraft:
    """Apply ``actions`` in order and return a new, normalized draft.

    Args:
        draft: Current draft (left untouched)
        actions: Validated actions, applied left to right
        trip_state_next: Optional final state, validated against the state
            reached after the batch
        id_factory: Id generator for items created by ADD_ITEM

    Returns:
        New draft with days sorted and positions renumbered

    Raises:
        InvalidTripStateTransitionError: SET_TRIP_STATE or ``trip_state_next``
            requests an illegal transition
        ReorderMismatchError: REORDER_ITEMS ids differ from the day's items
        UnsupportedActionError: Action type has no handler
    """
    next_draft = draft.model_copy(deep=True)

    for action in actions:
        action_type = getattr(action, "type", None)
        handler = _ACTION_HANDLERS.get(str(action_type))
        if handler is None:
            raise UnsupportedActionError(str(action_type))
        handler(next_draft, action, id_factory)

    if trip_state_next is not None and trip_state_next != next_draft.trip_state:
        _transition(next_draft, trip_state_next)

    normalize_draft(next_draft)
    return next_draft
