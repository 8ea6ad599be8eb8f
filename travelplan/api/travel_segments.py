"""
Travel segment API endpoints.

A segment may only connect two anchors that follow each other directly in
the day timeline (see GET /trips/{trip_id}/days/{day_id}/timeline).
"""
import logging
from uuid import UUID
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from travelplan.infrastructure.database import get_db
from travelplan.application.travel_segment_service import (
    TravelSegmentResult,
    create_travel_segment,
    delete_travel_segment,
    list_travel_segments,
    segment_to_response,
    update_travel_segment,
)
from travelplan.domain.models import MutationStatus
from travelplan.domain.schemas import (
    TravelSegmentListResponse,
    TravelSegmentRequest,
    TravelSegmentResponse,
)
from travelplan.auth.dependencies import get_current_user
from travelplan.auth.models import UserModel
from travelplan.api.errors import api_error, not_found, trip_day_not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trips/{trip_id}/days/{day_id}/travel-segments", tags=["travel_segments"])


def _segment_exists():
    return api_error(
        status.HTTP_409_CONFLICT,
        "travel_segment_exists",
        "A travel segment between these items already exists",
    )


def _raise_for_status(result: TravelSegmentResult) -> None:
    if result.status == MutationStatus.NOT_FOUND:
        raise trip_day_not_found()
    if result.status == MutationStatus.MISSING and not result.segment_found:
        raise not_found("Travel segment not found")
    if result.status == MutationStatus.MISSING:
        raise not_found("Travel segment item not found")
    if result.status == MutationStatus.NOT_ADJACENT:
        raise api_error(
            status.HTTP_400_BAD_REQUEST,
            "validation_error",
            "Travel segment items must be adjacent in the day timeline",
        )


@router.get(
    "",
    response_model=TravelSegmentListResponse,
    summary="List travel segments of a day",
)
async def get_travel_segments(
    trip_id: UUID,
    day_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> TravelSegmentListResponse:
    segments = await list_travel_segments(db, user.id, trip_id, day_id)
    if segments is None:
        raise trip_day_not_found()
    return TravelSegmentListResponse(segments=[segment_to_response(s) for s in segments])


@router.post(
    "",
    response_model=TravelSegmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a travel segment",
)
async def post_travel_segment(
    trip_id: UUID,
    day_id: UUID,
    request: TravelSegmentRequest,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> TravelSegmentResponse:
    """
    Add a travel segment between two adjacent anchors.

    - 404 if the trip day or one of the anchors does not exist
    - 400 if the anchors are not adjacent
    - 409 if the same pair is already connected on this day
    """
    user_id = user.id
    try:
        result = await create_travel_segment(db, user_id, trip_id, day_id, request)
    except IntegrityError:
        logger.warning(f"Duplicate travel segment on trip day {day_id}")
        raise _segment_exists()

    _raise_for_status(result)
    return segment_to_response(result.segment)


@router.put(
    "/{segment_id}",
    response_model=TravelSegmentResponse,
    summary="Replace a travel segment",
)
async def put_travel_segment(
    trip_id: UUID,
    day_id: UUID,
    segment_id: UUID,
    request: TravelSegmentRequest,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> TravelSegmentResponse:
    user_id = user.id
    try:
        result = await update_travel_segment(db, user_id, trip_id, day_id, segment_id, request)
    except IntegrityError:
        logger.warning(f"Duplicate travel segment on trip day {day_id}")
        raise _segment_exists()

    _raise_for_status(result)
    return segment_to_response(result.segment)


@router.delete(
    "/{segment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a travel segment",
)
async def remove_travel_segment(
    trip_id: UUID,
    day_id: UUID,
    segment_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> Response:
    outcome = await delete_travel_segment(db, user.id, trip_id, day_id, segment_id)
    if outcome == MutationStatus.NOT_FOUND:
        raise trip_day_not_found()
    if outcome == MutationStatus.MISSING:
        raise not_found("Travel segment not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
