"""
Trip service.
Handles creation, listing, detail views and updates of trips and their days.
"""
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from travelplan.application.accommodation_service import accommodation_to_response
from travelplan.application.day_plan_service import plan_item_to_response
from travelplan.application.day_reconciler import create_days, reconcile_trip_days
from travelplan.application.ownership import find_trip_day_for_user
from travelplan.application.segment_timeline import order_plan_items
from travelplan.domain.schemas import (
    TripCreateRequest,
    TripDayResponse,
    TripDayUpdateRequest,
    TripDetailResponse,
    TripSummaryResponse,
    TripUpdateRequest,
)
from travelplan.infrastructure.models import TripDayModel, TripModel

logger = logging.getLogger(__name__)


class TripDateRangeError(ValueError):
    """Merged update would end the trip before it starts."""
    pass


def _sum_or_none(values: list[Optional[int]]) -> Optional[int]:
    """Sum of the non-null values, or None when there are none."""
    present = [value for value in values if value is not None]
    return sum(present) if present else None


class TripService:
    """
    Service for trips and their day-level data.
    All lookups are scoped to the owning user.
    """

    @staticmethod
    def _trip_model_to_summary(trip: TripModel, day_count: int) -> TripSummaryResponse:
        return TripSummaryResponse(
            id=trip.id,
            name=trip.name,
            start_date=trip.start_date,
            end_date=trip.end_date,
            hero_image_url=trip.hero_image_url,
            day_count=day_count,
        )

    @staticmethod
    def _day_model_to_response(day: TripDayModel) -> TripDayResponse:
        plan_items = order_plan_items(day.plan_items)
        return TripDayResponse(
            id=day.id,
            date=day.date,
            day_index=day.day_index,
            image_url=day.image_url,
            note=day.note,
            missing_accommodation=day.accommodation is None,
            missing_plan=not plan_items,
            planned_cost_subtotal=_sum_or_none([item.cost_cents for item in plan_items]),
            accommodation=accommodation_to_response(day.accommodation) if day.accommodation else None,
            plan_items=[plan_item_to_response(item) for item in plan_items],
        )

    async def create_trip(
        self,
        db: AsyncSession,
        user_id: UUID,
        request: TripCreateRequest,
    ) -> TripSummaryResponse:
        """
        Create a trip and one day per date of its range in a single transaction.
        """
        try:
            trip = TripModel(
                user_id=user_id,
                name=request.name,
                start_date=request.start_date,
                end_date=request.end_date,
            )
            db.add(trip)
            await db.flush()

            day_count = await create_days(db, trip.id, request.start_date, request.end_date)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(f"Created trip {trip.id} with {day_count} days")
        return self._trip_model_to_summary(trip, day_count)

    async def list_trips(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> list[TripSummaryResponse]:
        """Trips of a user, soonest first."""
        day_count = (
            select(func.count(TripDayModel.id))
            .where(TripDayModel.trip_id == TripModel.id)
            .correlate(TripModel)
            .scalar_subquery()
        )
        result = await db.execute(
            select(TripModel, day_count)
            .where(TripModel.user_id == user_id)
            .order_by(TripModel.start_date.asc(), TripModel.created_at.asc())
        )
        return [self._trip_model_to_summary(trip, count) for trip, count in result.all()]

    async def get_trip_detail(
        self,
        db: AsyncSession,
        user_id: UUID,
        trip_id: UUID,
    ) -> Optional[TripDetailResponse]:
        """
        Get a trip with every day, its stay and its plan items.

        Returns:
            TripDetailResponse if found, None otherwise
        """
        result = await db.execute(
            select(TripModel)
            .where(TripModel.id == trip_id, TripModel.user_id == user_id)
            .options(
                selectinload(TripModel.days).selectinload(TripDayModel.accommodation),
                selectinload(TripModel.days).selectinload(TripDayModel.plan_items),
            )
            .execution_options(populate_existing=True)
        )
        trip = result.scalar_one_or_none()

        if trip is None:
            return None

        days = sorted(trip.days, key=lambda day: day.day_index)
        day_responses = [self._day_model_to_response(day) for day in days]

        return TripDetailResponse(
            id=trip.id,
            name=trip.name,
            start_date=trip.start_date,
            end_date=trip.end_date,
            hero_image_url=trip.hero_image_url,
            day_count=len(days),
            planned_cost_total=_sum_or_none([day.planned_cost_subtotal for day in day_responses]),
            accommodation_cost_total_cents=_sum_or_none(
                [day.accommodation.cost_cents for day in days if day.accommodation is not None]
            ),
            days=day_responses,
        )

    async def update_trip(
        self,
        db: AsyncSession,
        user_id: UUID,
        trip_id: UUID,
        request: TripUpdateRequest,
    ) -> Optional[TripDetailResponse]:
        """
        Update name and/or date range (partial updates) and reconcile days.

        Raises:
            TripDateRangeError: if the merged range ends before it starts

        Returns:
            Updated TripDetailResponse if trip found, None otherwise
        """
        result = await db.execute(
            select(TripModel.name, TripModel.start_date, TripModel.end_date)
            .where(TripModel.id == trip_id, TripModel.user_id == user_id)
        )
        current = result.one_or_none()
        if current is None:
            return None

        name = request.name if request.name is not None else current.name
        start_date = request.start_date if request.start_date is not None else current.start_date
        end_date = request.end_date if request.end_date is not None else current.end_date

        if end_date < start_date:
            raise TripDateRangeError("end_date must be on or after start_date")

        reconciled = await reconcile_trip_days(db, user_id, trip_id, name, start_date, end_date)
        if reconciled is None:
            return None

        logger.info(
            f"Updated trip {trip_id}: {start_date.isoformat()}..{end_date.isoformat()} "
            f"({reconciled.day_count} days)"
        )
        return await self.get_trip_detail(db, user_id, trip_id)

    async def delete_trip(
        self,
        db: AsyncSession,
        user_id: UUID,
        trip_id: UUID,
    ) -> bool:
        """Delete a trip; days and their content go with it (ON DELETE CASCADE)."""
        result = await db.execute(
            delete(TripModel)
            .where(TripModel.id == trip_id, TripModel.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        await db.commit()

        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"Deleted trip {trip_id}")
        return deleted

    async def update_trip_day(
        self,
        db: AsyncSession,
        user_id: UUID,
        trip_id: UUID,
        trip_day_id: UUID,
        request: TripDayUpdateRequest,
    ) -> Optional[TripDayResponse]:
        """Set a day's cover image and/or note. Only fields sent are changed."""
        day = await find_trip_day_for_user(db, user_id, trip_id, trip_day_id)
        if day is None:
            return None

        if "image_url" in request.model_fields_set:
            day.image_url = request.image_url
        if "note" in request.model_fields_set:
            day.note = request.note

        await db.commit()

        result = await db.execute(
            select(TripDayModel)
            .where(TripDayModel.id == day.id)
            .options(
                selectinload(TripDayModel.accommodation),
                selectinload(TripDayModel.plan_items),
            )
            .execution_options(populate_existing=True)
        )
        return self._day_model_to_response(result.scalar_one())
