"""Unit tests for the trip draft reducer."""

import itertools
from collections.abc import Callable

import pytest

from itinerary_backend.app.models.actions import TripAction, parse_trip_actions
from itinerary_backend.app.models.trip import (
    ItineraryDayDraft,
    ItineraryItemDraft,
    ItineraryItemType,
    TripDraft,
    TripPreferences,
    TripState,
)
from itinerary_backend.app.travel.errors import (
    InvalidTripStateTransitionError,
    ReorderMismatchError,
    UnsupportedActionError,
)
from itinerary_backend.app.travel.reducer import apply_actions, normalize_draft


def _ids() -> Callable[[], str]:
    counter = itertools.count(1)
    return lambda: f"new-{next(counter)}"


def _item(
    item_id: str, day_index: int, position: int, title: str | None = None
) -> ItineraryItemDraft:
    return ItineraryItemDraft(
        id=item_id,
        day_index=day_index,
        position=position,
        type=ItineraryItemType.attraction,
        title=title or item_id,
    )


def _draft(state: TripState = TripState.PLANNING) -> TripDraft:
    """Two days: day 1 holds a, b, c; day 2 holds d."""
    return TripDraft(
        trip_state=state,
        days=[
            ItineraryDayDraft(
                day_index=1,
                items=[_item("a", 1, 1), _item("b", 1, 2), _item("c", 1, 3)],
            ),
            ItineraryDayDraft(day_index=2, items=[_item("d", 2, 1)]),
        ],
    )


def _actions(*raw: dict) -> list[TripAction]:
    return parse_trip_actions(list(raw))


def _ids_of(draft: TripDraft, day_index: int) -> list[str]:
    day = next(d for d in draft.days if d.day_index == day_index)
    return [item.id for item in day.items]


def _assert_normalized(draft: TripDraft) -> None:
    indexes = [day.day_index for day in draft.days]
    assert indexes == sorted(indexes)
    for day in draft.days:
        assert [item.position for item in day.items] == list(range(1, len(day.items) + 1))


def test_input_draft_is_not_mutated() -> None:
    """The caller's draft serializes identically after a successful batch."""
    draft = _draft()
    before = draft.model_dump(mode="json")

    apply_actions(
        draft,
        _actions(
            {"type": "REMOVE_ITEM", "payload": {"itemId": "a"}},
            {"type": "MOVE_ITEM", "payload": {"itemId": "d", "toDayIndex": 1, "toPosition": 1}},
            {"type": "UPDATE_TRIP_PREFERENCES", "payload": {"patch": {"destination": "Rome"}}},
            {"type": "CREATE_DAY", "payload": {"dayIndex": 5}},
        ),
        id_factory=_ids(),
    )

    assert draft.model_dump(mode="json") == before


def test_create_day_is_idempotent() -> None:
    result = apply_actions(
        TripDraft(),
        _actions(
            {"type": "CREATE_DAY", "payload": {"dayIndex": 1}},
            {"type": "CREATE_DAY", "payload": {"dayIndex": 1, "date": "2026-05-01"}},
        ),
    )

    assert len(result.days) == 1
    assert result.days[0].day_index == 1
    assert result.days[0].date == "2026-05-01"


def test_days_sorted_after_out_of_order_creation() -> None:
    result = apply_actions(
        TripDraft(),
        _actions(
            {"type": "CREATE_DAY", "payload": {"dayIndex": 3}},
            {"type": "CREATE_DAY", "payload": {"dayIndex": 1}},
            {"type": "CREATE_DAY", "payload": {"dayIndex": 2}},
        ),
    )

    assert [day.day_index for day in result.days] == [1, 2, 3]


def test_remove_day_drops_items_and_ignores_missing() -> None:
    result = apply_actions(
        _draft(),
        _actions(
            {"type": "REMOVE_DAY", "payload": {"dayIndex": 1}},
            {"type": "REMOVE_DAY", "payload": {"dayIndex": 9}},
        ),
    )

    assert [day.day_index for day in result.days] == [2]
    assert _ids_of(result, 2) == ["d"]


def test_add_item_appends_with_generated_id() -> None:
    result = apply_actions(
        _draft(),
        _actions(
            {
                "type": "ADD_ITEM",
                "payload": {"item": {"type": "restaurant", "title": "Trattoria", "dayIndex": 1}},
            }
        ),
        id_factory=_ids(),
    )

    assert _ids_of(result, 1) == ["a", "b", "c", "new-1"]
    added = result.days[0].items[3]
    assert added.position == 4
    assert added.type == ItineraryItemType.restaurant
    assert added.day_index == 1


def test_add_item_inserts_at_position() -> None:
    result = apply_actions(
        _draft(),
        _actions(
            {
                "type": "ADD_ITEM",
                "payload": {
                    "item": {"type": "hotel", "title": "Hotel", "dayIndex": 1, "position": 2}
                },
            }
        ),
        id_factory=_ids(),
    )

    assert _ids_of(result, 1) == ["a", "new-1", "b", "c"]
    _assert_normalized(result)


def test_add_item_beyond_end_appends() -> None:
    result = apply_actions(
        _draft(),
        _actions(
            {
                "type": "ADD_ITEM",
                "payload": {
                    "item": {"type": "other", "title": "Late", "dayIndex": 2, "position": 10}
                },
            }
        ),
        id_factory=_ids(),
    )

    assert _ids_of(result, 2) == ["d", "new-1"]
    assert result.days[1].items[1].position == 2


def test_add_item_creates_missing_day() -> None:
    result = apply_actions(
        TripDraft(),
        _actions(
            {
                "type": "ADD_ITEM",
                "payload": {"item": {"type": "activity", "title": "Walk", "dayIndex": 4}},
            }
        ),
        id_factory=_ids(),
    )

    assert [day.day_index for day in result.days] == [4]
    assert result.days[0].items[0].position == 1


def test_remove_item_renumbers_positions() -> None:
    """Removing the first of two items leaves the survivor at position 1."""
    draft = TripDraft(
        days=[ItineraryDayDraft(day_index=1, items=[_item("x", 1, 1), _item("y", 1, 2)])]
    )

    result = apply_actions(draft, _actions({"type": "REMOVE_ITEM", "payload": {"itemId": "x"}}))

    assert len(result.days[0].items) == 1
    assert result.days[0].items[0].id == "y"
    assert result.days[0].items[0].position == 1


def test_remove_missing_item_is_noop() -> None:
    draft = _draft()

    result = apply_actions(draft, _actions({"type": "REMOVE_ITEM", "payload": {"itemId": "zzz"}}))

    assert result.model_dump() == draft.model_dump()


def test_move_item_across_days() -> None:
    draft = _draft()
    draft.days[0].items[1].description = "Keep me"

    result = apply_actions(
        draft,
        _actions(
            {"type": "MOVE_ITEM", "payload": {"itemId": "b", "toDayIndex": 2, "toPosition": 1}}
        ),
    )

    assert _ids_of(result, 1) == ["a", "c"]
    assert _ids_of(result, 2) == ["b", "d"]
    moved = result.days[1].items[0]
    assert moved.day_index == 2
    assert moved.position == 1
    assert moved.title == "b"
    assert moved.description == "Keep me"
    _assert_normalized(result)


def test_move_item_without_position_appends() -> None:
    result = apply_actions(
        _draft(),
        _actions({"type": "MOVE_ITEM", "payload": {"itemId": "a", "toDayIndex": 2}}),
    )

    assert _ids_of(result, 2) == ["d", "a"]


def test_move_item_clamps_out_of_range_position() -> None:
    result = apply_actions(
        _draft(),
        _actions(
            {"type": "MOVE_ITEM", "payload": {"itemId": "a", "toDayIndex": 2, "toPosition": 50}}
        ),
    )

    assert _ids_of(result, 2) == ["d", "a"]
    assert result.days[1].items[1].position == 2


def test_move_item_within_day() -> None:
    result = apply_actions(
        _draft(),
        _actions(
            {"type": "MOVE_ITEM", "payload": {"itemId": "c", "toDayIndex": 1, "toPosition": 1}}
        ),
    )

    assert _ids_of(result, 1) == ["c", "a", "b"]
    _assert_normalized(result)


def test_move_missing_item_is_noop() -> None:
    draft = _draft()

    result = apply_actions(
        draft,
        _actions({"type": "MOVE_ITEM", "payload": {"itemId": "nope", "toDayIndex": 7}}),
    )

    assert [day.day_index for day in result.days] == [1, 2]


def test_reorder_items_follows_given_order() -> None:
    result = apply_actions(
        _draft(),
        _actions(
            {
                "type": "REORDER_ITEMS",
                "payload": {"dayIndex": 1, "orderedItemIds": ["c", "a", "b"]},
            }
        ),
    )

    assert _ids_of(result, 1) == ["c", "a", "b"]
    assert [item.position for item in result.days[0].items] == [1, 2, 3]


@pytest.mark.parametrize(
    "ordered_ids",
    [
        ["a", "b"],
        ["a", "b", "c", "d"],
        ["a", "b", "x"],
        ["a", "a", "b"],
    ],
)
def test_reorder_items_mismatch_raises(ordered_ids: list[str]) -> None:
    with pytest.raises(ReorderMismatchError) as exc_info:
        apply_actions(
            _draft(),
            _actions(
                {
                    "type": "REORDER_ITEMS",
                    "payload": {"dayIndex": 1, "orderedItemIds": ordered_ids},
                }
            ),
        )

    assert "orderedItemIds must match current items in day 1" in str(exc_info.value)


def test_reorder_items_on_missing_day_raises() -> None:
    with pytest.raises(ReorderMismatchError):
        apply_actions(
            _draft(),
            _actions(
                {"type": "REORDER_ITEMS", "payload": {"dayIndex": 9, "orderedItemIds": ["a"]}}
            ),
        )


def test_update_item_merges_patch() -> None:
    result = apply_actions(
        _draft(),
        _actions(
            {
                "type": "UPDATE_ITEM",
                "payload": {
                    "itemId": "b",
                    "patch": {
                        "title": "Pantheon",
                        "durationMin": 45,
                        "source": {"url": "https://example.com/pantheon"},
                    },
                },
            }
        ),
    )

    item = result.days[0].items[1]
    assert item.id == "b"
    assert item.title == "Pantheon"
    assert item.duration_min == 45
    assert item.type == ItineraryItemType.attraction
    assert item.source is not None
    assert item.source.url == "https://example.com/pantheon"
    assert item.position == 2


def test_update_item_null_field_preserves_value() -> None:
    draft = _draft()
    draft.days[0].items[0].description = "Original"

    result = apply_actions(
        draft,
        _actions(
            {
                "type": "UPDATE_ITEM",
                "payload": {"itemId": "a", "patch": {"title": "New", "description": None}},
            }
        ),
    )

    assert result.days[0].items[0].title == "New"
    assert result.days[0].items[0].description == "Original"


def test_update_missing_item_is_noop() -> None:
    draft = _draft()

    result = apply_actions(
        draft,
        _actions({"type": "UPDATE_ITEM", "payload": {"itemId": "nope", "patch": {"title": "X"}}}),
    )

    assert result.model_dump() == draft.model_dump()


def test_update_preferences_merges_only_given_fields() -> None:
    draft = TripDraft(preferences=TripPreferences(origin="Lisbon", travelers=2))

    result = apply_actions(
        draft,
        _actions(
            {
                "type": "UPDATE_TRIP_PREFERENCES",
                "payload": {"patch": {"destination": "Rome", "pace": "slow"}},
            }
        ),
    )

    assert result.preferences.origin == "Lisbon"
    assert result.preferences.travelers == 2
    assert result.preferences.destination == "Rome"
    assert result.preferences.pace == "slow"


def test_update_dates_sets_preferences_and_day_dates() -> None:
    result = apply_actions(
        _draft(),
        _actions(
            {
                "type": "UPDATE_DATES",
                "payload": {
                    "startDate": "2026-05-01",
                    "endDate": "2026-05-03",
                    "dayDates": {"1": "2026-05-01", "3": "2026-05-03", "abc": "x", "0": "y"},
                },
            }
        ),
    )

    assert result.preferences.start_date == "2026-05-01"
    assert result.preferences.end_date == "2026-05-03"
    assert [day.day_index for day in result.days] == [1, 2, 3]
    assert result.days[0].date == "2026-05-01"
    assert result.days[1].date is None
    assert result.days[2].date == "2026-05-03"


def test_update_dates_accepts_only_ascii_digit_keys() -> None:
    result = apply_actions(
        TripDraft(),
        _actions(
            {
                "type": "UPDATE_DATES",
                "payload": {
                    "dayDates": {
                        "1_0": "underscore",
                        "٢": "arabic-indic",
                        " 4": "padded",
                        "+3": "2026-05-03",
                    },
                },
            }
        ),
    )

    assert [(day.day_index, day.date) for day in result.days] == [(3, "2026-05-03")]


def test_update_budget_partial_preserves_other_fields() -> None:
    draft = TripDraft(preferences=TripPreferences(budget_min=100, budget_max=900, currency="EUR"))

    result = apply_actions(
        draft,
        _actions({"type": "UPDATE_BUDGET", "payload": {"budgetMax": 1200}}),
    )

    assert result.preferences.budget_min == 100
    assert result.preferences.budget_max == 1200
    assert result.preferences.currency == "EUR"


def test_set_trip_state_valid_and_invalid() -> None:
    result = apply_actions(
        _draft(TripState.PLANNING),
        _actions({"type": "SET_TRIP_STATE", "payload": {"tripState": "REFINEMENT"}}),
    )
    assert result.trip_state == TripState.REFINEMENT

    with pytest.raises(InvalidTripStateTransitionError) as exc_info:
        apply_actions(
            _draft(TripState.DISCOVERY),
            _actions({"type": "SET_TRIP_STATE", "payload": {"tripState": "FINALIZATION"}}),
        )

    assert "DISCOVERY -> FINALIZATION" in str(exc_info.value)


@pytest.mark.parametrize("state", list(TripState))
def test_set_trip_state_to_itself_succeeds(state: TripState) -> None:
    result = apply_actions(
        _draft(state),
        _actions({"type": "SET_TRIP_STATE", "payload": {"tripState": state.value}}),
    )

    assert result.trip_state == state


def test_trip_state_next_applied_after_batch() -> None:
    """tripStateNext is checked against the state reached inside the batch."""
    result = apply_actions(
        _draft(TripState.DISCOVERY),
        _actions({"type": "SET_TRIP_STATE", "payload": {"tripState": "PLANNING"}}),
        TripState.REFINEMENT,
    )
    assert result.trip_state == TripState.REFINEMENT

    with pytest.raises(InvalidTripStateTransitionError):
        apply_actions(
            _draft(TripState.DISCOVERY),
            _actions({"type": "CREATE_DAY", "payload": {"dayIndex": 1}}),
            TripState.FINALIZATION,
        )


def test_failed_batch_leaves_input_untouched() -> None:
    draft = _draft(TripState.DISCOVERY)
    before = draft.model_dump(mode="json")

    with pytest.raises(InvalidTripStateTransitionError):
        apply_actions(
            draft,
            _actions(
                {"type": "REMOVE_DAY", "payload": {"dayIndex": 1}},
                {"type": "SET_TRIP_STATE", "payload": {"tripState": "FINALIZATION"}},
            ),
        )

    assert draft.model_dump(mode="json") == before


def test_unknown_action_type_refused() -> None:
    """An object that slipped past validation still cannot be applied."""

    class Rogue:
        type = "TELEPORT"
        payload: dict = {}

    with pytest.raises(UnsupportedActionError) as exc_info:
        apply_actions(_draft(), [Rogue()])  # type: ignore[list-item]

    assert str(exc_info.value) == "Unsupported action: TELEPORT"


def test_coliseu_scenario() -> None:
    result = apply_actions(
        TripDraft(),
        _actions(
            {"type": "CREATE_DAY", "payload": {"dayIndex": 1}},
            {
                "type": "ADD_ITEM",
                "payload": {
                    "item": {
                        "type": "attraction",
                        "title": "Coliseu",
                        "dayIndex": 1,
                        "durationMin": 120,
                    }
                },
            },
        ),
        TripState.PLANNING,
    )

    assert result.trip_state == TripState.PLANNING
    assert len(result.days) == 1
    assert result.days[0].day_index == 1
    assert len(result.days[0].items) == 1
    assert result.days[0].items[0].position == 1
    assert result.days[0].items[0].title == "Coliseu"


def test_normalize_uses_array_order_not_stored_position() -> None:
    draft = TripDraft(
        days=[
            ItineraryDayDraft(day_index=2, items=[_item("q", 2, 7), _item("p", 2, 1)]),
            ItineraryDayDraft(day_index=1),
        ]
    )

    normalize_draft(draft)

    assert [day.day_index for day in draft.days] == [1, 2]
    assert [(item.id, item.position) for item in draft.days[1].items] == [("q", 1), ("p", 2)]
