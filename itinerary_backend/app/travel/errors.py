"""Errors raised by the trip draft reducer and the trip action service."""


class TripActionError(Exception):
    """Base class for trip action failures. Any of these aborts the batch."""

    pass


class TripNotFoundError(TripActionError):
    """Trip does not exist or is not owned by the caller."""

    def __init__(self, trip_id: str) -> None:
        super().__init__(f"Trip {trip_id} not found")
        self.trip_id = trip_id


class InvalidTripStateTransitionError(TripActionError):
    """Workflow state change not allowed by the transition table."""

    def __init__(self, from_state: str, to_state: str) -> None:
        super().__init__(f"Invalid trip state transition: {from_state} -> {to_state}")
        self.from_state = from_state
        self.to_state = to_state


class ReorderMismatchError(TripActionError):
    """REORDER_ITEMS ids do not match the day's current items."""

    def __init__(self, day_index: int) -> None:
        super().__init__(f"orderedItemIds must match current items in day {day_index}")
        self.day_index = day_index


class ReorderItemNotFoundError(TripActionError):
    """An id vanished while rebuilding the reordered item list."""

    def __init__(self, item_id: str) -> None:
        super().__init__(f"Item {item_id} not found during reorder")
        self.item_id = item_id


class UnsupportedActionError(TripActionError):
    """Action discriminator has no handler."""

    def __init__(self, action_type: str) -> None:
        super().__init__(f"Unsupported action: {action_type}")
        self.action_type = action_type


class OperationConflictError(TripActionError):
    """A concurrent batch for the same trip committed first. Safe to retry."""

    def __init__(self, trip_id: str, client_operation_id: str) -> None:
        super().__init__(
            f"Concurrent update conflict on trip {trip_id} "
            f"(operation {client_operation_id}); retry the request"
        )
        self.trip_id = trip_id
        self.client_operation_id = client_operation_id


class InvalidBudgetRangeError(TripActionError):
    """Batch would leave budgetMax below budgetMin."""

    def __init__(self, budget_min: float, budget_max: float) -> None:
        super().__init__(f"budgetMax ({budget_max}) must be >= budgetMin ({budget_min})")
        self.budget_min = budget_min
        self.budget_max = budget_max
