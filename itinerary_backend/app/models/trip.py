"""Trip draft and snapshot models - the reducer's unit of work and its wire shape."""

from enum import Enum
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TripState(str, Enum):
    """Workflow lifecycle stage of a trip."""

    DISCOVERY = "DISCOVERY"
    SELECTION = "SELECTION"
    PLANNING = "PLANNING"
    REFINEMENT = "REFINEMENT"
    FINALIZATION = "FINALIZATION"


class ItineraryItemType(str, Enum):
    """Kind of itinerary item."""

    attraction = "attraction"
    restaurant = "restaurant"
    hotel = "hotel"
    transport = "transport"
    activity = "activity"
    other = "other"


class CompanionType(str, Enum):
    """Who the traveler is going with."""

    solo = "solo"
    couple = "couple"
    family = "family"
    friends = "friends"
    business = "business"


class Pace(str, Enum):
    """Desired trip pace."""

    slow = "slow"
    moderate = "moderate"
    fast = "fast"


class WireModel(BaseModel):
    """Base for models exchanged as camelCase JSON."""

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        """Serialize to the external JSON shape (camelCase, optionals omitted)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TripPreferences(WireModel):
    """Traveler preferences. All fields optional; merged shallowly."""

    origin: str | None = Field(default=None, max_length=255)
    destination: str | None = Field(default=None, max_length=255)
    start_date: str | None = Field(default=None, max_length=30, alias="startDate")
    end_date: str | None = Field(default=None, max_length=30, alias="endDate")
    budget_min: float | None = Field(default=None, ge=0, alias="budgetMin")
    budget_max: float | None = Field(default=None, ge=0, alias="budgetMax")
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    travelers: int | None = Field(default=None, gt=0, le=50)
    companion_type: CompanionType | None = Field(default=None, alias="companionType")
    pace: Pace | None = None
    travel_styles: list[str] | None = Field(default=None, max_length=20, alias="travelStyles")
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("travel_styles")
    @classmethod
    def validate_travel_styles(cls, v: list[str] | None) -> list[str] | None:
        """Ensure each style tag is short."""
        if v is not None and any(len(style) > 50 for style in v):
            raise ValueError("travel styles must be at most 50 characters")
        return v


class TripSourceInput(WireModel):
    """Citation attached to an itinerary item (copied by value)."""

    url: str = Field(..., max_length=2048)
    title: str | None = Field(default=None, max_length=255)
    publisher: str | None = Field(default=None, max_length=255)
    snippet: str | None = Field(default=None, max_length=5000)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Require an absolute http(s) URL, kept verbatim."""
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("url must be an absolute http(s) URL")
        return v


class ItineraryItemInput(WireModel):
    """New item as submitted by ADD_ITEM."""

    type: ItineraryItemType
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    location: str | None = Field(default=None, max_length=255)
    duration_min: int | None = Field(default=None, gt=0, le=1440, alias="durationMin")
    day_index: int = Field(..., gt=0, alias="dayIndex")
    position: int | None = Field(default=None, gt=0)
    source: TripSourceInput | None = None


class ItineraryItemDraft(WireModel):
    """Item inside a draft day."""

    id: str
    day_index: int = Field(..., alias="dayIndex")
    position: int
    type: ItineraryItemType
    title: str
    description: str | None = None
    location: str | None = None
    duration_min: int | None = Field(default=None, alias="durationMin")
    source: TripSourceInput | None = None


class ItineraryDayDraft(WireModel):
    """Day inside a draft; ``items`` array order is authoritative."""

    day_index: int = Field(..., alias="dayIndex")
    date: str | None = None
    items: list[ItineraryItemDraft] = Field(default_factory=list)


class TripDraft(WireModel):
    """In-memory trip content owned by a single reducer invocation."""

    trip_state: TripState = Field(default=TripState.DISCOVERY, alias="tripState")
    preferences: TripPreferences = Field(default_factory=TripPreferences)
    days: list[ItineraryDayDraft] = Field(default_factory=list)


class SnapshotItem(WireModel):
    """Item as exposed in a snapshot."""

    id: str
    type: ItineraryItemType
    title: str
    description: str | None = None
    location: str | None = None
    duration_min: int | None = Field(default=None, alias="durationMin")
    position: int
    source: TripSourceInput | None = None


class SnapshotDay(WireModel):
    """Day as exposed in a snapshot."""

    day_index: int = Field(..., alias="dayIndex")
    date: str | None = None
    items: list[SnapshotItem] = Field(default_factory=list)


class TripSnapshot(WireModel):
    """Externally visible, versioned serialization of a trip."""

    trip_id: str = Field(..., alias="tripId")
    version: int = Field(..., ge=0)
    trip_state: TripState = Field(..., alias="tripState")
    preferences: TripPreferences = Field(default_factory=TripPreferences)
    days: list[SnapshotDay] = Field(default_factory=list)
