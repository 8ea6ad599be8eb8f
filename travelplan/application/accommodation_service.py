"""
Accommodation service: the stay attached to a trip day.
"""
import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from travelplan.application.ownership import find_trip_day_for_user
from travelplan.domain.models import MutationStatus, TravelItemType
from travelplan.domain.schemas import AccommodationRequest, AccommodationResponse, LocationSchema
from travelplan.infrastructure.models import AccommodationModel, TravelSegmentModel, TripDayModel

logger = logging.getLogger(__name__)


@dataclass
class AccommodationResult:
    status: MutationStatus
    accommodation: Optional[AccommodationModel] = None


def accommodation_to_response(accommodation: AccommodationModel) -> AccommodationResponse:
    return AccommodationResponse(
        id=accommodation.id,
        trip_day_id=accommodation.trip_day_id,
        name=accommodation.name,
        notes=accommodation.notes,
        status=accommodation.status,
        cost_cents=accommodation.cost_cents,
        link=accommodation.link,
        check_in_time=accommodation.check_in_time,
        check_out_time=accommodation.check_out_time,
        location=LocationSchema.from_columns(
            accommodation.location_lat,
            accommodation.location_lng,
            accommodation.location_label,
        ),
    )


def location_columns(location: Optional[LocationSchema]) -> dict:
    return {
        "location_lat": location.lat if location else None,
        "location_lng": location.lng if location else None,
        "location_label": location.label if location else None,
    }


def _apply_request(accommodation: AccommodationModel, request: AccommodationRequest, partial_times: bool) -> None:
    accommodation.name = request.name
    accommodation.notes = request.notes
    accommodation.status = request.status
    accommodation.cost_cents = request.cost_cents
    accommodation.link = str(request.link) if request.link else None
    for column, value in location_columns(request.location).items():
        setattr(accommodation, column, value)

    # On update, check-in/out times are only touched when sent
    if not partial_times or "check_in_time" in request.model_fields_set:
        accommodation.check_in_time = request.check_in_time
    if not partial_times or "check_out_time" in request.model_fields_set:
        accommodation.check_out_time = request.check_out_time


async def _find_for_day(db: AsyncSession, trip_day_id: UUID) -> Optional[AccommodationModel]:
    result = await db.execute(
        select(AccommodationModel).where(AccommodationModel.trip_day_id == trip_day_id)
    )
    return result.scalar_one_or_none()


async def upsert_accommodation(
    db: AsyncSession,
    user_id: UUID,
    trip_id: UUID,
    trip_day_id: UUID,
    request: AccommodationRequest,
) -> Optional[AccommodationModel]:
    """
    Create the day's stay, or replace it if one already exists.

    Returns:
        The stored accommodation, or None if the trip day was not found
    """
    day = await find_trip_day_for_user(db, user_id, trip_id, trip_day_id, lock_trip=True)
    if day is None:
        return None

    accommodation = await _find_for_day(db, day.id)
    if accommodation is None:
        accommodation = AccommodationModel(trip_day_id=day.id)
        db.add(accommodation)

    _apply_request(accommodation, request, partial_times=False)

    await db.commit()
    await db.refresh(accommodation)
    return accommodation


async def update_accommodation(
    db: AsyncSession,
    user_id: UUID,
    trip_id: UUID,
    trip_day_id: UUID,
    request: AccommodationRequest,
) -> AccommodationResult:
    day = await find_trip_day_for_user(db, user_id, trip_id, trip_day_id, lock_trip=True)
    if day is None:
        return AccommodationResult(MutationStatus.NOT_FOUND)

    accommodation = await _find_for_day(db, day.id)
    if accommodation is None:
        return AccommodationResult(MutationStatus.MISSING)

    _apply_request(accommodation, request, partial_times=True)

    await db.commit()
    await db.refresh(accommodation)
    return AccommodationResult(MutationStatus.OK, accommodation)


async def delete_accommodation(
    db: AsyncSession,
    user_id: UUID,
    trip_id: UUID,
    trip_day_id: UUID,
) -> bool:
    """
    Remove the day's stay together with the travel segments that start or
    end at it. Deleting a stay that does not exist is a no-op.

    Returns:
        False if the trip day was not found, True otherwise
    """
    day = await find_trip_day_for_user(db, user_id, trip_id, trip_day_id, lock_trip=True)
    if day is None:
        return False

    accommodation = await _find_for_day(db, day.id)
    if accommodation is None:
        return True

    try:
        await db.execute(
            delete(TravelSegmentModel).where(
                or_(
                    and_(
                        TravelSegmentModel.from_item_type == TravelItemType.ACCOMMODATION,
                        TravelSegmentModel.from_item_id == accommodation.id,
                    ),
                    and_(
                        TravelSegmentModel.to_item_type == TravelItemType.ACCOMMODATION,
                        TravelSegmentModel.to_item_id == accommodation.id,
                    ),
                )
            ).execution_options(synchronize_session=False)
        )
        await db.delete(accommodation)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Deleted accommodation {accommodation.id} of trip day {day.id}")
    return True


async def copy_from_previous_night(
    db: AsyncSession,
    user_id: UUID,
    trip_id: UUID,
    trip_day_id: UUID,
) -> AccommodationResult:
    """
    Copy the previous day's stay onto this day (cost is not copied).

    MISSING if this is the first day or the previous day has no stay.
    """
    day = await find_trip_day_for_user(db, user_id, trip_id, trip_day_id, lock_trip=True)
    if day is None:
        return AccommodationResult(MutationStatus.NOT_FOUND)

    result = await db.execute(
        select(AccommodationModel)
        .join(TripDayModel, TripDayModel.id == AccommodationModel.trip_day_id)
        .where(TripDayModel.trip_id == trip_id, TripDayModel.day_index == day.day_index - 1)
    )
    previous = result.scalar_one_or_none()
    if previous is None:
        return AccommodationResult(MutationStatus.MISSING)

    accommodation = await _find_for_day(db, day.id)
    if accommodation is None:
        accommodation = AccommodationModel(trip_day_id=day.id)
        db.add(accommodation)

    accommodation.name = previous.name
    accommodation.notes = previous.notes
    accommodation.status = previous.status
    accommodation.cost_cents = None
    accommodation.link = previous.link
    accommodation.check_in_time = previous.check_in_time
    accommodation.check_out_time = previous.check_out_time
    accommodation.location_lat = previous.location_lat
    accommodation.location_lng = previous.location_lng
    accommodation.location_label = previous.location_label

    await db.commit()
    await db.refresh(accommodation)
    return AccommodationResult(MutationStatus.OK, accommodation)
