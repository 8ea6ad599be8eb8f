"""
Day plan items: the things a traveller plans to do on a trip day.
"""
import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from travelplan.application.accommodation_service import location_columns
from travelplan.application.ownership import find_trip_day_for_user
from travelplan.application.segment_timeline import order_plan_items
from travelplan.domain.models import MutationStatus, TravelItemType
from travelplan.domain.schemas import DayPlanItemRequest, DayPlanItemResponse, LocationSchema
from travelplan.infrastructure.models import DayPlanItemModel, TravelSegmentModel

logger = logging.getLogger(__name__)


@dataclass
class DayPlanItemResult:
    status: MutationStatus
    item: Optional[DayPlanItemModel] = None


def plan_item_to_response(item: DayPlanItemModel) -> DayPlanItemResponse:
    return DayPlanItemResponse(
        id=item.id,
        trip_day_id=item.trip_day_id,
        title=item.title,
        content_json=item.content_json,
        from_time=item.from_time,
        to_time=item.to_time,
        cost_cents=item.cost_cents,
        link_url=item.link_url,
        location=LocationSchema.from_columns(item.location_lat, item.location_lng, item.location_label),
        created_at=item.created_at,
    )


def _apply_request(item: DayPlanItemModel, request: DayPlanItemRequest) -> None:
    item.title = request.title
    item.content_json = request.content_json
    item.from_time = request.from_time
    item.to_time = request.to_time
    item.cost_cents = request.cost_cents
    item.link_url = str(request.link_url) if request.link_url else None
    for column, value in location_columns(request.location).items():
        setattr(item, column, value)


async def list_plan_items(
    db: AsyncSession,
    user_id: UUID,
    trip_id: UUID,
    trip_day_id: UUID,
) -> Optional[list[DayPlanItemModel]]:
    """Plan items of a day in timeline order, or None if the day was not found."""
    day = await find_trip_day_for_user(db, user_id, trip_id, trip_day_id)
    if day is None:
        return None

    result = await db.execute(
        select(DayPlanItemModel).where(DayPlanItemModel.trip_day_id == day.id)
    )
    return order_plan_items(result.scalars().all())


async def create_plan_item(
    db: AsyncSession,
    user_id: UUID,
    trip_id: UUID,
    trip_day_id: UUID,
    request: DayPlanItemRequest,
) -> Optional[DayPlanItemModel]:
    day = await find_trip_day_for_user(db, user_id, trip_id, trip_day_id, lock_trip=True)
    if day is None:
        return None

    item = DayPlanItemModel(trip_day_id=day.id)
    _apply_request(item, request)
    db.add(item)

    await db.commit()
    await db.refresh(item)
    return item


async def _find_item(db: AsyncSession, trip_day_id: UUID, item_id: UUID) -> Optional[DayPlanItemModel]:
    result = await db.execute(
        select(DayPlanItemModel).where(
            DayPlanItemModel.id == item_id,
            DayPlanItemModel.trip_day_id == trip_day_id,
        )
    )
    return result.scalar_one_or_none()


async def update_plan_item(
    db: AsyncSession,
    user_id: UUID,
    trip_id: UUID,
    trip_day_id: UUID,
    item_id: UUID,
    request: DayPlanItemRequest,
) -> DayPlanItemResult:
    day = await find_trip_day_for_user(db, user_id, trip_id, trip_day_id, lock_trip=True)
    if day is None:
        return DayPlanItemResult(MutationStatus.NOT_FOUND)

    item = await _find_item(db, day.id, item_id)
    if item is None:
        return DayPlanItemResult(MutationStatus.MISSING)

    _apply_request(item, request)

    await db.commit()
    await db.refresh(item)
    return DayPlanItemResult(MutationStatus.OK, item)


async def delete_plan_item(
    db: AsyncSession,
    user_id: UUID,
    trip_id: UUID,
    trip_day_id: UUID,
    item_id: UUID,
) -> MutationStatus:
    """Delete a plan item and every travel segment anchored on it."""
    day = await find_trip_day_for_user(db, user_id, trip_id, trip_day_id, lock_trip=True)
    if day is None:
        return MutationStatus.NOT_FOUND

    item = await _find_item(db, day.id, item_id)
    if item is None:
        return MutationStatus.MISSING

    try:
        await db.execute(
            delete(TravelSegmentModel).where(
                TravelSegmentModel.trip_day_id == day.id,
                or_(
                    and_(
                        TravelSegmentModel.from_item_type == TravelItemType.DAY_PLAN_ITEM,
                        TravelSegmentModel.from_item_id == item.id,
                    ),
                    and_(
                        TravelSegmentModel.to_item_type == TravelItemType.DAY_PLAN_ITEM,
                        TravelSegmentModel.to_item_id == item.id,
                    ),
                ),
            ).execution_options(synchronize_session=False)
        )
        await db.delete(item)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Deleted plan item {item_id} of trip day {day.id}")
    return MutationStatus.OK
