"""
Day timeline and travel segment adjacency.

A trip day's timeline is the ordered list of anchors a traveller moves
between:

    previous night's stay -> plan items (by start time) -> tonight's stay

A travel segment may only connect two consecutive anchors, which keeps the
day's travel graph a simple path.
"""
from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from travelplan.application.ownership import find_trip_day_for_user
from travelplan.domain.models import AdjacencyStatus, TimelineAnchor, TravelItemType
from travelplan.infrastructure.models import AccommodationModel, DayPlanItemModel, TripDayModel


class PlanItemLike(Protocol):
    id: UUID
    from_time: Optional[str]
    created_at: datetime


def plan_item_sort_key(item: PlanItemLike) -> tuple:
    """
    Timed items first, by HH:mm (zero-padded, so string order is clock
    order), then creation time, then id as the final tie-break.
    """
    has_start = bool(item.from_time)
    return (
        not has_start,
        item.from_time if has_start else "",
        item.created_at,
        str(item.id),
    )


def order_plan_items(items: Iterable[PlanItemLike]) -> list:
    return sorted(items, key=plan_item_sort_key)


def assemble_timeline(
    previous_accommodation_id: Optional[UUID],
    plan_items: Iterable[PlanItemLike],
    accommodation_id: Optional[UUID],
) -> list[TimelineAnchor]:
    timeline: list[TimelineAnchor] = []

    if previous_accommodation_id is not None:
        timeline.append(TimelineAnchor(TravelItemType.ACCOMMODATION, previous_accommodation_id))

    for item in order_plan_items(plan_items):
        timeline.append(TimelineAnchor(TravelItemType.DAY_PLAN_ITEM, item.id))

    if accommodation_id is not None:
        timeline.append(TimelineAnchor(TravelItemType.ACCOMMODATION, accommodation_id))

    return timeline


def _index_of(anchor: TimelineAnchor, timeline: Sequence[TimelineAnchor]) -> int:
    for index, entry in enumerate(timeline):
        if entry.id == anchor.id and entry.type == anchor.type:
            return index
    return -1


def ensure_adjacent(
    from_anchor: TimelineAnchor,
    to_anchor: TimelineAnchor,
    timeline: Sequence[TimelineAnchor],
) -> AdjacencyStatus:
    """
    Check that to_anchor directly follows from_anchor.

    Both anchors are matched on type and id. A reversed or non-consecutive
    pair (including from == to) is NOT_ADJACENT.
    """
    from_index = _index_of(from_anchor, timeline)
    if from_index < 0:
        return AdjacencyStatus.MISSING

    to_index = _index_of(to_anchor, timeline)
    if to_index < 0:
        return AdjacencyStatus.MISSING

    if to_index != from_index + 1:
        return AdjacencyStatus.NOT_ADJACENT

    return AdjacencyStatus.OK


async def _accommodation_id_for_day(db: AsyncSession, trip_day_id: UUID) -> Optional[UUID]:
    result = await db.execute(
        select(AccommodationModel.id).where(AccommodationModel.trip_day_id == trip_day_id)
    )
    return result.scalar_one_or_none()


async def build_segment_timeline(
    db: AsyncSession,
    user_id: UUID,
    trip_id: UUID,
    trip_day_id: UUID,
) -> Optional[list[TimelineAnchor]]:
    """
    Build the anchor timeline of one trip day.

    Returns:
        Ordered anchors (possibly empty), or None if the day does not exist
        for this user and trip
    """
    day = await find_trip_day_for_user(db, user_id, trip_id, trip_day_id)
    if day is None:
        return None

    # dayIndex is unique per trip, so this is the day immediately before
    result = await db.execute(
        select(AccommodationModel.id)
        .select_from(TripDayModel)
        .outerjoin(AccommodationModel, AccommodationModel.trip_day_id == TripDayModel.id)
        .where(TripDayModel.trip_id == trip_id, TripDayModel.day_index < day.day_index)
        .order_by(TripDayModel.day_index.desc(), TripDayModel.date.desc())
        .limit(1)
    )
    previous_accommodation_id = result.scalar_one_or_none()

    result = await db.execute(
        select(DayPlanItemModel.id, DayPlanItemModel.from_time, DayPlanItemModel.created_at)
        .where(DayPlanItemModel.trip_day_id == day.id)
    )
    plan_items = result.all()

    accommodation_id = await _accommodation_id_for_day(db, day.id)

    return assemble_timeline(previous_accommodation_id, plan_items, accommodation_id)


async def ensure_segment_adjacent(
    db: AsyncSession,
    user_id: UUID,
    trip_id: UUID,
    trip_day_id: UUID,
    from_anchor: TimelineAnchor,
    to_anchor: TimelineAnchor,
) -> AdjacencyStatus:
    """
    Build the day's timeline and check the two anchors against it.

    Writers call this after taking the trip lock, so the answer holds until
    their transaction ends. An unknown day reports MISSING.
    """
    timeline = await build_segment_timeline(db, user_id, trip_id, trip_day_id)
    if timeline is None:
        return AdjacencyStatus.MISSING
    return ensure_adjacent(from_anchor, to_anchor, timeline)
