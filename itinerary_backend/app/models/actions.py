"""Trip action models - the closed set of edits a batch may contain."""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import Field, TypeAdapter, model_validator

from itinerary_backend.app.models.trip import (
    ItineraryItemInput,
    ItineraryItemType,
    TripPreferences,
    TripSnapshot,
    TripSourceInput,
    TripState,
    WireModel,
)

MAX_ACTIONS_PER_BATCH = 200


class TripActionType(str, Enum):
    """Action discriminator values."""

    CREATE_DAY = "CREATE_DAY"
    REMOVE_DAY = "REMOVE_DAY"
    ADD_ITEM = "ADD_ITEM"
    REMOVE_ITEM = "REMOVE_ITEM"
    MOVE_ITEM = "MOVE_ITEM"
    REORDER_ITEMS = "REORDER_ITEMS"
    UPDATE_ITEM = "UPDATE_ITEM"
    UPDATE_TRIP_PREFERENCES = "UPDATE_TRIP_PREFERENCES"
    UPDATE_DATES = "UPDATE_DATES"
    UPDATE_BUDGET = "UPDATE_BUDGET"
    SET_TRIP_STATE = "SET_TRIP_STATE"


# Payloads


class CreateDayPayload(WireModel):
    day_index: int = Field(..., gt=0, alias="dayIndex")
    date: str | None = None


class RemoveDayPayload(WireModel):
    day_index: int = Field(..., gt=0, alias="dayIndex")


class AddItemPayload(WireModel):
    item: ItineraryItemInput


class RemoveItemPayload(WireModel):
    item_id: str = Field(..., min_length=1, alias="itemId")


class MoveItemPayload(WireModel):
    item_id: str = Field(..., min_length=1, alias="itemId")
    to_day_index: int = Field(..., gt=0, alias="toDayIndex")
    to_position: int | None = Field(default=None, gt=0, alias="toPosition")


class ReorderItemsPayload(WireModel):
    day_index: int = Field(..., gt=0, alias="dayIndex")
    ordered_item_ids: list[Annotated[str, Field(min_length=1)]] = Field(
        ..., min_length=1, alias="orderedItemIds"
    )


class ItemPatch(WireModel):
    """Fields UPDATE_ITEM may change. At least one must be given."""

    type: ItineraryItemType | None = None
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    location: str | None = Field(default=None, max_length=255)
    duration_min: int | None = Field(default=None, gt=0, le=1440, alias="durationMin")
    source: TripSourceInput | None = None

    @model_validator(mode="after")
    def validate_not_empty(self) -> "ItemPatch":
        """Reject an empty patch."""
        if not self.model_fields_set:
            raise ValueError("patch must have at least one field")
        return self


class UpdateItemPayload(WireModel):
    item_id: str = Field(..., min_length=1, alias="itemId")
    patch: ItemPatch


class UpdatePreferencesPayload(WireModel):
    patch: TripPreferences


class UpdateDatesPayload(WireModel):
    start_date: str | None = Field(default=None, alias="startDate")
    end_date: str | None = Field(default=None, alias="endDate")
    # Keys are day indexes as strings, as they arrive from JSON objects
    day_dates: dict[str, str] | None = Field(default=None, alias="dayDates")


class UpdateBudgetPayload(WireModel):
    budget_min: float | None = Field(default=None, ge=0, alias="budgetMin")
    budget_max: float | None = Field(default=None, ge=0, alias="budgetMax")
    currency: str | None = Field(default=None, min_length=3, max_length=3)

    @model_validator(mode="after")
    def validate_budget_order(self) -> "UpdateBudgetPayload":
        """Ensure budget_max >= budget_min when both are given."""
        if (
            self.budget_min is not None
            and self.budget_max is not None
            and self.budget_max < self.budget_min
        ):
            raise ValueError("budgetMax must be >= budgetMin")
        return self


class SetTripStatePayload(WireModel):
    trip_state: TripState = Field(..., alias="tripState")


# Actions


class CreateDayAction(WireModel):
    type: Literal["CREATE_DAY"] = "CREATE_DAY"
    payload: CreateDayPayload


class RemoveDayAction(WireModel):
    type: Literal["REMOVE_DAY"] = "REMOVE_DAY"
    payload: RemoveDayPayload


class AddItemAction(WireModel):
    type: Literal["ADD_ITEM"] = "ADD_ITEM"
    payload: AddItemPayload


class RemoveItemAction(WireModel):
    type: Literal["REMOVE_ITEM"] = "REMOVE_ITEM"
    payload: RemoveItemPayload


class MoveItemAction(WireModel):
    type: Literal["MOVE_ITEM"] = "MOVE_ITEM"
    payload: MoveItemPayload


class ReorderItemsAction(WireModel):
    type: Literal["REORDER_ITEMS"] = "REORDER_ITEMS"
    payload: ReorderItemsPayload


class UpdateItemAction(WireModel):
    type: Literal["UPDATE_ITEM"] = "UPDATE_ITEM"
    payload: UpdateItemPayload


class UpdatePreferencesAction(WireModel):
    type: Literal["UPDATE_TRIP_PREFERENCES"] = "UPDATE_TRIP_PREFERENCES"
    payload: UpdatePreferencesPayload


class UpdateDatesAction(WireModel):
    type: Literal["UPDATE_DATES"] = "UPDATE_DATES"
    payload: UpdateDatesPayload


class UpdateBudgetAction(WireModel):
    type: Literal["UPDATE_BUDGET"] = "UPDATE_BUDGET"
    payload: UpdateBudgetPayload


class SetTripStateAction(WireModel):
    type: Literal["SET_TRIP_STATE"] = "SET_TRIP_STATE"
    payload: SetTripStatePayload


TripAction = Annotated[
    Union[
        CreateDayAction,
        RemoveDayAction,
        AddItemAction,
        RemoveItemAction,
        MoveItemAction,
        ReorderItemsAction,
        UpdateItemAction,
        UpdatePreferencesAction,
        UpdateDatesAction,
        UpdateBudgetAction,
        SetTripStateAction,
    ],
    Field(discriminator="type"),
]

_trip_actions_adapter: TypeAdapter[list[TripAction]] = TypeAdapter(list[TripAction])


def parse_trip_actions(raw: list[dict[str, Any]]) -> list[TripAction]:
    """Validate a list of wire-format actions.

    Raises:
        pydantic.ValidationError: If any action is malformed or has an unknown type
    """
    return _trip_actions_adapter.validate_python(raw)


class ApplyTripActionsResult(WireModel):
    """Outcome of applying (or replaying) one action batch."""

    version: int
    idempotent: bool
    snapshot: TripSnapshot


class TravelAssistantEnvelope(WireModel):
    """Suggested edits produced by the assistant for one user message.

    Serialized with camelCase keys (``assistantMessage``, ``tripStateNext``,
    ``clientOperationId``) so the envelope can be posted to the apply endpoint
    unchanged. Snake_case keys (``assistant_message``) are not emitted.
    """

    assistant_message: str = Field(..., min_length=1, alias="assistantMessage")
    trip_state_next: TripState = Field(..., alias="tripStateNext")
    actions: list[TripAction]
    client_operation_id: str = Field(..., min_length=8, max_length=191, alias="clientOperationId")
