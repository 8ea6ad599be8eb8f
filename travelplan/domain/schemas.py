"""
Request/Response schemas for API endpoints.
These schemas define the contract between the web client and the backend.
"""
import json
from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field, HttpUrl, TypeAdapter, field_validator, model_validator

from travelplan.domain.models import (
    AccommodationStatus,
    ImportStrategy,
    TransportType,
    TravelItemType,
)


_http_url = TypeAdapter(HttpUrl)

# Zero-padded 24h clock; string order equals clock order only in this form
CLOCK_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


def _has_non_empty_text(node: Any) -> bool:
    """True if a rich-text document holds at least one non-blank text node."""
    if isinstance(node, dict):
        text = node.get("text")
        if isinstance(text, str):
            return bool(text.strip())
        return _has_non_empty_text(node.get("content"))
    if isinstance(node, list):
        return any(_has_non_empty_text(child) for child in node)
    return False


# =============================================================================
# Shared
# =============================================================================

class LocationSchema(BaseModel):
    """A point on the map. Latitude and longitude always come together."""
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    label: Optional[str] = Field(default=None, max_length=200)

    @field_validator("label")
    @classmethod
    def blank_label_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @classmethod
    def from_columns(
        cls,
        lat: Optional[float],
        lng: Optional[float],
        label: Optional[str],
    ) -> Optional["LocationSchema"]:
        """Rebuild a location from its three columns; None unless both coordinates are set."""
        if lat is None or lng is None:
            return None
        return cls(lat=lat, lng=lng, label=label)


class TimelineAnchorResponse(BaseModel):
    """One entry of a day timeline."""
    type: TravelItemType
    id: UUID


# =============================================================================
# Trips
# =============================================================================

class TripCreateRequest(BaseModel):
    """Request schema for creating a new trip."""
    name: str = Field(min_length=1, max_length=120, description="Trip name")
    start_date: date = Field(description="First day of the trip")
    end_date: date = Field(description="Last day of the trip (inclusive)")

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("Trip name is required")
        return value

    @model_validator(mode="after")
    def check_date_range(self) -> "TripCreateRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Lisbon long weekend",
                "start_date": "2025-05-01",
                "end_date": "2025-05-04",
            }
        }


class TripUpdateRequest(BaseModel):
    """Request schema for updating a trip (partial updates)."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    start_date: Optional[date] = Field(default=None)
    end_date: Optional[date] = Field(default=None)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("Trip name is required")
        return value


class TripDayUpdateRequest(BaseModel):
    """Cover image and short note of a single day."""
    image_url: Optional[str] = Field(default=None, max_length=2000)
    note: Optional[str] = Field(default=None, max_length=280)

    @field_validator("image_url")
    @classmethod
    def check_image_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value:
            return None
        if value.startswith("/uploads/"):
            return value
        return str(_http_url.validate_python(value))

    @field_validator("note")
    @classmethod
    def blank_note_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


class TripSummaryResponse(BaseModel):
    """Trip card: identity, date range and number of days."""
    id: UUID
    name: str
    start_date: date
    end_date: date
    hero_image_url: Optional[str] = None
    day_count: int


class TripListResponse(BaseModel):
    trips: list[TripSummaryResponse]


class AccommodationResponse(BaseModel):
    id: UUID
    trip_day_id: UUID
    name: str
    notes: Optional[str] = None
    status: AccommodationStatus
    cost_cents: Optional[int] = None
    link: Optional[str] = None
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    location: Optional[LocationSchema] = None


class DayPlanItemResponse(BaseModel):
    id: UUID
    trip_day_id: UUID
    title: Optional[str] = None
    content_json: str
    from_time: Optional[str] = None
    to_time: Optional[str] = None
    cost_cents: Optional[int] = None
    link_url: Optional[str] = None
    location: Optional[LocationSchema] = None
    created_at: datetime


class TripDayResponse(BaseModel):
    """A day of the trip with its stay and plan items in timeline order."""
    id: UUID
    date: date
    day_index: int
    image_url: Optional[str] = None
    note: Optional[str] = None
    missing_accommodation: bool
    missing_plan: bool
    planned_cost_subtotal: Optional[int] = Field(
        default=None, description="Sum of plan item costs in cents, null if none are priced"
    )
    accommodation: Optional[AccommodationResponse] = None
    plan_items: list[DayPlanItemResponse] = Field(default_factory=list)


class TripDetailResponse(BaseModel):
    """Full trip view used by the trip page and returned after updates."""
    id: UUID
    name: str
    start_date: date
    end_date: date
    hero_image_url: Optional[str] = None
    day_count: int
    planned_cost_total: Optional[int] = None
    accommodation_cost_total_cents: Optional[int] = None
    days: list[TripDayResponse]


# =============================================================================
# Accommodations
# =============================================================================

class AccommodationRequest(BaseModel):
    """Create-or-replace payload for a day's stay."""
    name: str = Field(min_length=1, max_length=200)
    notes: Optional[str] = Field(default=None, max_length=1000)
    status: AccommodationStatus = Field(default=AccommodationStatus.PLANNED)
    cost_cents: Optional[int] = Field(default=None, ge=0)
    link: Optional[HttpUrl] = Field(default=None)
    check_in_time: Optional[str] = Field(default=None, pattern=CLOCK_TIME_PATTERN)
    check_out_time: Optional[str] = Field(default=None, pattern=CLOCK_TIME_PATTERN)
    location: Optional[LocationSchema] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Accommodation name is required")
        return value

    @field_validator("notes")
    @classmethod
    def blank_notes_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


# =============================================================================
# Day plan items
# =============================================================================

class DayPlanItemRequest(BaseModel):
    """Create or update payload for a plan item."""
    title: Optional[str] = Field(default=None, max_length=200)
    content_json: str = Field(min_length=1, description="Rich-text document serialized as JSON")
    from_time: Optional[str] = Field(default=None, pattern=CLOCK_TIME_PATTERN)
    to_time: Optional[str] = Field(default=None, pattern=CLOCK_TIME_PATTERN)
    cost_cents: Optional[int] = Field(default=None, ge=0)
    link_url: Optional[HttpUrl] = Field(default=None)
    location: Optional[LocationSchema] = None

    @field_validator("content_json")
    @classmethod
    def check_content(cls, value: str) -> str:
        value = value.strip()
        try:
            document = json.loads(value)
        except ValueError:
            raise ValueError("Content must be valid and non-empty JSON")
        if not _has_non_empty_text(document):
            raise ValueError("Content must be valid and non-empty JSON")
        return value

    @field_validator("title")
    @classmethod
    def blank_title_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @model_validator(mode="after")
    def check_time_range(self) -> "DayPlanItemRequest":
        if self.to_time and not self.from_time:
            raise ValueError("to_time requires from_time")
        if self.to_time and self.from_time and self.to_time < self.from_time:
            raise ValueError("to_time must not be before from_time")
        return self


class DayPlanItemListResponse(BaseModel):
    items: list[DayPlanItemResponse]


# =============================================================================
# Travel segments
# =============================================================================

class TravelSegmentRequest(BaseModel):
    """Create or update payload for a travel segment between two anchors."""
    from_item_type: TravelItemType
    from_item_id: UUID
    to_item_type: TravelItemType
    to_item_id: UUID
    transport_type: TransportType
    duration_minutes: int = Field(gt=0)
    distance_km: Optional[float] = Field(default=None, gt=0)
    link_url: Optional[HttpUrl] = Field(default=None)

    @model_validator(mode="after")
    def check_segment(self) -> "TravelSegmentRequest":
        if self.from_item_type == self.to_item_type and self.from_item_id == self.to_item_id:
            raise ValueError("Travel segment must connect two different items")
        if self.transport_type == TransportType.CAR and self.distance_km is None:
            raise ValueError("Distance is required for car travel")
        if self.transport_type != TransportType.CAR and self.distance_km is not None:
            raise ValueError("Distance is only allowed for car travel")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "from_item_type": "accommodation",
                "from_item_id": "550e8400-e29b-41d4-a716-446655440000",
                "to_item_type": "dayPlanItem",
                "to_item_id": "6fa459ea-ee8a-3ca4-894e-db77e160355e",
                "transport_type": "car",
                "duration_minutes": 35,
                "distance_km": 28.5,
            }
        }


class TravelSegmentResponse(BaseModel):
    id: UUID
    trip_day_id: UUID
    from_item_type: TravelItemType
    from_item_id: UUID
    to_item_type: TravelItemType
    to_item_id: UUID
    transport_type: TransportType
    duration_minutes: int
    distance_km: Optional[float] = None
    link_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TravelSegmentListResponse(BaseModel):
    segments: list[TravelSegmentResponse]


class DayTimelineResponse(BaseModel):
    trip_day_id: UUID
    anchors: list[TimelineAnchorResponse]


# =============================================================================
# Export / import
# =============================================================================

class ExportMeta(BaseModel):
    exported_at: datetime
    app_version: str = Field(min_length=1)
    format_version: int = Field(gt=0)


class ExportTrip(BaseModel):
    id: UUID
    name: str = Field(min_length=1, max_length=120)
    start_date: date
    end_date: date
    hero_image_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="after")
    def check_date_range(self) -> "ExportTrip":
        if self.end_date < self.start_date:
            raise ValueError("Start date must be before or equal to end date")
        return self


class ExportAccommodation(BaseModel):
    id: UUID
    name: str = Field(min_length=1)
    notes: Optional[str] = None
    status: AccommodationStatus
    cost_cents: Optional[int] = Field(default=None, ge=0)
    link: Optional[str] = None
    check_in_time: Optional[str] = Field(default=None, pattern=CLOCK_TIME_PATTERN)
    check_out_time: Optional[str] = Field(default=None, pattern=CLOCK_TIME_PATTERN)
    location: Optional[LocationSchema] = None
    created_at: datetime
    updated_at: datetime


class ExportPlanItem(BaseModel):
    id: UUID
    title: Optional[str] = None
    content_json: str = Field(min_length=1)
    from_time: Optional[str] = Field(default=None, pattern=CLOCK_TIME_PATTERN)
    to_time: Optional[str] = Field(default=None, pattern=CLOCK_TIME_PATTERN)
    cost_cents: Optional[int] = Field(default=None, ge=0)
    link_url: Optional[str] = None
    location: Optional[LocationSchema] = None
    created_at: datetime
    updated_at: datetime


class ExportTravelSegment(BaseModel):
    id: UUID
    from_item_type: TravelItemType
    from_item_id: UUID
    to_item_type: TravelItemType
    to_item_id: UUID
    transport_type: TransportType
    duration_minutes: int = Field(gt=0)
    distance_km: Optional[float] = Field(default=None, gt=0)
    link_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ExportDay(BaseModel):
    id: UUID
    date: date
    day_index: int = Field(ge=1)
    image_url: Optional[str] = None
    note: Optional[str] = Field(default=None, max_length=280)
    created_at: datetime
    updated_at: datetime
    accommodation: Optional[ExportAccommodation] = None
    plan_items: list[ExportPlanItem] = Field(default_factory=list)
    travel_segments: list[ExportTravelSegment] = Field(default_factory=list)


class TripExportPayload(BaseModel):
    """Self-contained JSON document of one trip."""
    meta: ExportMeta
    trip: ExportTrip
    days: list[ExportDay] = Field(min_length=1)

    @model_validator(mode="after")
    def check_days(self) -> "TripExportPayload":
        expected_days = (self.trip.end_date - self.trip.start_date).days + 1
        if len(self.days) != expected_days:
            raise ValueError("Trip days are incomplete for the selected trip date range")

        seen: set[int] = set()
        for day in self.days:
            if day.day_index in seen:
                raise ValueError(f"Duplicate day_index detected: {day.day_index}")
            seen.add(day.day_index)

        dates = {day.date for day in self.days}
        if len(dates) != len(self.days):
            raise ValueError("Duplicate day date detected")
        if any(not self.trip.start_date <= d <= self.trip.end_date for d in dates):
            raise ValueError("Trip day date is outside the trip date range")

        # Day n of the trip is start_date + (n - 1) days
        for day in self.days:
            expected_index = (day.date - self.trip.start_date).days + 1
            if day.day_index != expected_index:
                raise ValueError(
                    f"day_index {day.day_index} does not match date {day.date.isoformat()} "
                    f"(expected {expected_index})"
                )
        return self


class TripImportRequest(BaseModel):
    payload: TripExportPayload
    strategy: Optional[ImportStrategy] = None
    target_trip_id: Optional[UUID] = None

    @model_validator(mode="after")
    def check_strategy(self) -> "TripImportRequest":
        if self.strategy == ImportStrategy.OVERWRITE and self.target_trip_id is None:
            raise ValueError("target_trip_id is required for overwrite strategy")
        if self.strategy != ImportStrategy.OVERWRITE and self.target_trip_id is not None:
            raise ValueError("target_trip_id is only allowed for overwrite strategy")
        return self


class TripConflictResponse(BaseModel):
    """An existing trip whose name collides with an imported one."""
    id: UUID
    name: str
    start_date: date
    end_date: date


class TripImportResponse(BaseModel):
    trip: TripSummaryResponse
    mode: ImportStrategy = Field(description="How the trip was stored: createNew or overwrite")
