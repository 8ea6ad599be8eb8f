"""
Trips API endpoints: trip CRUD, day details and the day timeline.
All endpoints require authentication (Bearer token) and are scoped to the caller.
"""
from uuid import UUID
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from travelplan.infrastructure.database import get_db
from travelplan.application.trip_service import TripService, TripDateRangeError
from travelplan.application.segment_timeline import build_segment_timeline
from travelplan.domain.schemas import (
    DayTimelineResponse,
    TimelineAnchorResponse,
    TripCreateRequest,
    TripDayResponse,
    TripDayUpdateRequest,
    TripDetailResponse,
    TripListResponse,
    TripSummaryResponse,
    TripUpdateRequest,
)
from travelplan.auth.dependencies import get_current_user
from travelplan.auth.models import UserModel
from travelplan.api.errors import api_error, not_found, trip_day_not_found


router = APIRouter(prefix="/trips", tags=["trips"])


@router.post(
    "",
    response_model=TripSummaryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new trip",
    description="Create a trip and one day for every date of its range."
)
async def create_trip(
    request: TripCreateRequest,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> TripSummaryResponse:
    return await TripService().create_trip(db, user.id, request)


@router.get(
    "",
    response_model=TripListResponse,
    summary="List trips",
)
async def list_trips(
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> TripListResponse:
    trips = await TripService().list_trips(db, user.id)
    return TripListResponse(trips=trips)


@router.get(
    "/{trip_id}",
    response_model=TripDetailResponse,
    summary="Get trip with days",
    description="Trip with all days, stays, plan items, missing flags and cost totals."
)
async def get_trip(
    trip_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> TripDetailResponse:
    trip = await TripService().get_trip_detail(db, user.id, trip_id)
    if trip is None:
        raise not_found("Trip not found")
    return trip


@router.patch(
    "/{trip_id}",
    response_model=TripDetailResponse,
    summary="Update trip",
    description="Rename a trip and/or change its date range. Days are reconciled in place."
)
async def update_trip(
    trip_id: UUID,
    request: TripUpdateRequest,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> TripDetailResponse:
    """
    Update a trip (partial update).

    - Days whose date stays inside the new range keep their id and content
    - Days outside the new range are deleted with their content
    - New dates get empty days
    """
    try:
        trip = await TripService().update_trip(db, user.id, trip_id, request)
    except TripDateRangeError as e:
        raise api_error(status.HTTP_400_BAD_REQUEST, "validation_error", str(e))

    if trip is None:
        raise not_found("Trip not found")
    return trip


@router.delete(
    "/{trip_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete trip",
)
async def delete_trip(
    trip_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> Response:
    deleted = await TripService().delete_trip(db, user.id, trip_id)
    if not deleted:
        raise not_found("Trip not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    "/{trip_id}/days/{day_id}",
    response_model=TripDayResponse,
    summary="Update trip day",
    description="Set the cover image and/or note of a single day."
)
async def update_trip_day(
    trip_id: UUID,
    day_id: UUID,
    request: TripDayUpdateRequest,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> TripDayResponse:
    day = await TripService().update_trip_day(db, user.id, trip_id, day_id, request)
    if day is None:
        raise trip_day_not_found()
    return day


@router.get(
    "/{trip_id}/days/{day_id}/timeline",
    response_model=DayTimelineResponse,
    summary="Get day timeline",
    description="Ordered anchors travel segments may connect: previous stay, plan items, this day's stay."
)
async def get_day_timeline(
    trip_id: UUID,
    day_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> DayTimelineResponse:
    timeline = await build_segment_timeline(db, user.id, trip_id, day_id)
    if timeline is None:
        raise trip_day_not_found()

    return DayTimelineResponse(
        trip_day_id=day_id,
        anchors=[TimelineAnchorResponse(type=anchor.type, id=anchor.id) for anchor in timeline],
    )
