"""
Accommodation API endpoints: the stay attached to a trip day.
"""
from uuid import UUID
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from travelplan.infrastructure.database import get_db
from travelplan.application.accommodation_service import (
    accommodation_to_response,
    copy_from_previous_night,
    delete_accommodation,
    update_accommodation,
    upsert_accommodation,
)
from travelplan.domain.models import MutationStatus
from travelplan.domain.schemas import AccommodationRequest, AccommodationResponse
from travelplan.auth.dependencies import get_current_user
from travelplan.auth.models import UserModel
from travelplan.api.errors import not_found, trip_day_not_found


router = APIRouter(prefix="/trips/{trip_id}/days/{day_id}/accommodation", tags=["accommodations"])


@router.put(
    "",
    response_model=AccommodationResponse,
    summary="Create or replace the day's stay",
)
async def put_accommodation(
    trip_id: UUID,
    day_id: UUID,
    request: AccommodationRequest,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> AccommodationResponse:
    accommodation = await upsert_accommodation(db, user.id, trip_id, day_id, request)
    if accommodation is None:
        raise trip_day_not_found()
    return accommodation_to_response(accommodation)


@router.patch(
    "",
    response_model=AccommodationResponse,
    summary="Update the day's stay",
    description="Check-in and check-out times are only changed when sent."
)
async def patch_accommodation(
    trip_id: UUID,
    day_id: UUID,
    request: AccommodationRequest,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> AccommodationResponse:
    result = await update_accommodation(db, user.id, trip_id, day_id, request)
    if result.status == MutationStatus.NOT_FOUND:
        raise trip_day_not_found()
    if result.status == MutationStatus.MISSING:
        raise not_found("Accommodation not found")
    return accommodation_to_response(result.accommodation)


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove the day's stay",
    description="Travel segments starting or ending at the stay are removed too."
)
async def remove_accommodation(
    trip_id: UUID,
    day_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> Response:
    found = await delete_accommodation(db, user.id, trip_id, day_id)
    if not found:
        raise trip_day_not_found()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/copy-previous",
    response_model=AccommodationResponse,
    summary="Copy the previous night's stay",
    description="Copies the stay of the previous day onto this day, without its cost."
)
async def copy_previous_accommodation(
    trip_id: UUID,
    day_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> AccommodationResponse:
    result = await copy_from_previous_night(db, user.id, trip_id, day_id)
    if result.status == MutationStatus.NOT_FOUND:
        raise trip_day_not_found()
    if result.status == MutationStatus.MISSING:
        raise not_found("Previous night has no accommodation")
    return accommodation_to_response(result.accommodation)
