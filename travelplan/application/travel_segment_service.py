"""
Travel segment service.

Create and update are gated by the day timeline: a segment must join two
anchors that follow each other directly. The trip row is locked before the
timeline is read, and the check and the write share one transaction. Every
anchor writer takes the same lock, so the timeline cannot change between
validation and commit.
"""
import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from travelplan.application.ownership import find_trip_day_for_user
from travelplan.application.segment_timeline import ensure_segment_adjacent
from travelplan.domain.models import AdjacencyStatus, MutationStatus, TimelineAnchor
from travelplan.domain.schemas import TravelSegmentRequest, TravelSegmentResponse
from travelplan.infrastructure.models import TravelSegmentModel

logger = logging.getLogger(__name__)


@dataclass
class TravelSegmentResult:
    status: MutationStatus
    segment: Optional[TravelSegmentModel] = None
    # False when an update names a segment that is not on the day
    segment_found: bool = True


_ADJACENCY_TO_MUTATION = {
    AdjacencyStatus.MISSING: MutationStatus.MISSING,
    AdjacencyStatus.NOT_ADJACENT: MutationStatus.NOT_ADJACENT,
}


def segment_to_response(segment: TravelSegmentModel) -> TravelSegmentResponse:
    return TravelSegmentResponse(
        id=segment.id,
        trip_day_id=segment.trip_day_id,
        from_item_type=segment.from_item_type,
        from_item_id=segment.from_item_id,
        to_item_type=segment.to_item_type,
        to_item_id=segment.to_item_id,
        transport_type=segment.transport_type,
        duration_minutes=segment.duration_minutes,
        distance_km=segment.distance_km,
        link_url=segment.link_url,
        created_at=segment.created_at,
        updated_at=segment.updated_at,
    )


def _apply_request(segment: TravelSegmentModel, request: TravelSegmentRequest) -> None:
    segment.from_item_type = request.from_item_type
    segment.from_item_id = request.from_item_id
    segment.to_item_type = request.to_item_type
    segment.to_item_id = request.to_item_id
    segment.transport_type = request.transport_type
    segment.duration_minutes = request.duration_minutes
    segment.distance_km = request.distance_km
    segment.link_url = str(request.link_url) if request.link_url else None


def _anchors(request: TravelSegmentRequest) -> tuple[TimelineAnchor, TimelineAnchor]:
    return (
        TimelineAnchor(request.from_item_type, request.from_item_id),
        TimelineAnchor(request.to_item_type, request.to_item_id),
    )


async def _find_segment(db: AsyncSession, trip_day_id: UUID, segment_id: UUID) -> Optional[TravelSegmentModel]:
    result = await db.execute(
        select(TravelSegmentModel).where(
            TravelSegmentModel.id == segment_id,
            TravelSegmentModel.trip_day_id == trip_day_id,
        )
    )
    return result.scalar_one_or_none()


async def list_travel_segments(
    db: AsyncSession,
    user_id: UUID,
    trip_id: UUID,
    trip_day_id: UUID,
) -> Optional[list[TravelSegmentModel]]:
    day = await find_trip_day_for_user(db, user_id, trip_id, trip_day_id)
    if day is None:
        return None

    result = await db.execute(
        select(TravelSegmentModel)
        .where(TravelSegmentModel.trip_day_id == day.id)
        .order_by(TravelSegmentModel.created_at.asc(), TravelSegmentModel.id.asc())
    )
    return list(result.scalars().all())


async def _check_adjacency(
    db: AsyncSession,
    user_id: UUID,
    trip_id: UUID,
    trip_day_id: UUID,
    request: TravelSegmentRequest,
) -> Optional[MutationStatus]:
    adjacency = await ensure_segment_adjacent(db, user_id, trip_id, trip_day_id, *_anchors(request))
    if adjacency == AdjacencyStatus.OK:
        return None
    return _ADJACENCY_TO_MUTATION[adjacency]


async def create_travel_segment(
    db: AsyncSession,
    user_id: UUID,
    trip_id: UUID,
    trip_day_id: UUID,
    request: TravelSegmentRequest,
) -> TravelSegmentResult:
    try:
        day = await find_trip_day_for_user(db, user_id, trip_id, trip_day_id, lock_trip=True)
        if day is None:
            await db.rollback()
            return TravelSegmentResult(MutationStatus.NOT_FOUND)

        rejected = await _check_adjacency(db, user_id, trip_id, day.id, request)
        if rejected is not None:
            await db.rollback()
            return TravelSegmentResult(rejected)

        segment = TravelSegmentModel(trip_day_id=day.id)
        _apply_request(segment, request)
        db.add(segment)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(segment)
    logger.info(f"Created travel segment {segment.id} on trip day {trip_day_id}")
    return TravelSegmentResult(MutationStatus.OK, segment)


async def update_travel_segment(
    db: AsyncSession,
    user_id: UUID,
    trip_id: UUID,
    trip_day_id: UUID,
    segment_id: UUID,
    request: TravelSegmentRequest,
) -> TravelSegmentResult:
    try:
        day = await find_trip_day_for_user(db, user_id, trip_id, trip_day_id, lock_trip=True)
        if day is None:
            await db.rollback()
            return TravelSegmentResult(MutationStatus.NOT_FOUND)

        segment = await _find_segment(db, day.id, segment_id)
        if segment is None:
            await db.rollback()
            return TravelSegmentResult(MutationStatus.MISSING, segment_found=False)

        rejected = await _check_adjacency(db, user_id, trip_id, day.id, request)
        if rejected is not None:
            await db.rollback()
            return TravelSegmentResult(rejected)

        _apply_request(segment, request)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(segment)
    return TravelSegmentResult(MutationStatus.OK, segment)


async def delete_travel_segment(
    db: AsyncSession,
    user_id: UUID,
    trip_id: UUID,
    trip_day_id: UUID,
    segment_id: UUID,
) -> MutationStatus:
    day = await find_trip_day_for_user(db, user_id, trip_id, trip_day_id, lock_trip=True)
    if day is None:
        await db.rollback()
        return MutationStatus.NOT_FOUND

    segment = await _find_segment(db, day.id, segment_id)
    if segment is None:
        await db.rollback()
        return MutationStatus.MISSING

    await db.delete(segment)
    await db.commit()
    return MutationStatus.OK
