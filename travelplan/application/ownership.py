"""
User-scoped lookups shared by the trip services.

Every row is reachable only through its trip and the trip only through its
owner, so each lookup filters on (user_id, trip_id).
"""
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from travelplan.infrastructure.models import TripDayModel, TripModel


async def find_trip_day_for_user(
    db: AsyncSession,
    user_id: UUID,
    trip_id: UUID,
    trip_day_id: UUID,
    lock_trip: bool = False,
) -> Optional[TripDayModel]:
    """
    Resolve a trip day owned by the user.

    With lock_trip the owning trip row stays locked until the caller's
    transaction ends. Every writer that adds, moves or removes a timeline
    anchor, every travel segment writer and day reconciliation take this
    same lock, so a segment's adjacency check cannot interleave with a
    change to the timeline of its day or of the day before.
    """
    query = (
        select(TripDayModel)
        .join(TripModel, TripModel.id == TripDayModel.trip_id)
        .where(
            TripDayModel.id == trip_day_id,
            TripDayModel.trip_id == trip_id,
            TripModel.user_id == user_id,
        )
        .execution_options(populate_existing=True)
    )
    if lock_trip:
        query = query.with_for_update(of=TripModel)

    result = await db.execute(query)
    return result.scalar_one_or_none()
