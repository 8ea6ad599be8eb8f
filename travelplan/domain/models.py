"""
Core domain types for the Travel Plan backend.
"""
from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class AccommodationStatus(str, Enum):
    """Booking state of a stay."""
    PLANNED = "planned"
    BOOKED = "booked"


class TravelItemType(str, Enum):
    """Kind of item a travel segment can start or end at."""
    ACCOMMODATION = "accommodation"
    DAY_PLAN_ITEM = "dayPlanItem"


class TransportType(str, Enum):
    """Means of transport for a travel segment."""
    CAR = "car"
    SHIP = "ship"
    FLIGHT = "flight"


class AdjacencyStatus(str, Enum):
    """Outcome of checking two anchors against a day timeline."""
    OK = "ok"
    MISSING = "missing"
    NOT_ADJACENT = "not_adjacent"


class MutationStatus(str, Enum):
    """Outcome of a scoped write on a trip day."""
    NOT_FOUND = "not_found"
    MISSING = "missing"
    NOT_ADJACENT = "not_adjacent"
    OK = "ok"


class ImportStrategy(str, Enum):
    """How an import resolves a trip name that already exists."""
    OVERWRITE = "overwrite"
    CREATE_NEW = "createNew"


class ImportOutcome(str, Enum):
    """Result of an import attempt."""
    IMPORTED = "imported"
    CONFLICT = "conflict"
    TARGET_NOT_FOUND = "target_not_found"
    TARGET_NOT_CONFLICT = "target_not_conflict"


@dataclass(frozen=True)
class TimelineAnchor:
    """
    A fixed point of a trip day the traveller moves between:
    a stay or a plan item, identified by type and id.
    """
    type: TravelItemType
    id: UUID
