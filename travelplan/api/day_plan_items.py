"""
Day plan item API endpoints.
"""
from uuid import UUID
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from travelplan.infrastructure.database import get_db
from travelplan.application.day_plan_service import (
    create_plan_item,
    delete_plan_item,
    list_plan_items,
    plan_item_to_response,
    update_plan_item,
)
from travelplan.domain.models import MutationStatus
from travelplan.domain.schemas import DayPlanItemListResponse, DayPlanItemRequest, DayPlanItemResponse
from travelplan.auth.dependencies import get_current_user
from travelplan.auth.models import UserModel
from travelplan.api.errors import not_found, trip_day_not_found


router = APIRouter(prefix="/trips/{trip_id}/days/{day_id}/plan-items", tags=["day_plan_items"])


@router.get(
    "",
    response_model=DayPlanItemListResponse,
    summary="List plan items",
    description="Plan items of a day in timeline order (by start time, untimed items last)."
)
async def get_plan_items(
    trip_id: UUID,
    day_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> DayPlanItemListResponse:
    items = await list_plan_items(db, user.id, trip_id, day_id)
    if items is None:
        raise trip_day_not_found()
    return DayPlanItemListResponse(items=[plan_item_to_response(item) for item in items])


@router.post(
    "",
    response_model=DayPlanItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a plan item",
)
async def post_plan_item(
    trip_id: UUID,
    day_id: UUID,
    request: DayPlanItemRequest,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> DayPlanItemResponse:
    item = await create_plan_item(db, user.id, trip_id, day_id, request)
    if item is None:
        raise trip_day_not_found()
    return plan_item_to_response(item)


@router.patch(
    "/{item_id}",
    response_model=DayPlanItemResponse,
    summary="Update a plan item",
)
async def patch_plan_item(
    trip_id: UUID,
    day_id: UUID,
    item_id: UUID,
    request: DayPlanItemRequest,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> DayPlanItemResponse:
    result = await update_plan_item(db, user.id, trip_id, day_id, item_id, request)
    if result.status == MutationStatus.NOT_FOUND:
        raise trip_day_not_found()
    if result.status == MutationStatus.MISSING:
        raise not_found("Plan item not found")
    return plan_item_to_response(result.item)


@router.delete(
    "/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a plan item",
    description="Travel segments starting or ending at the item are removed too."
)
async def remove_plan_item(
    trip_id: UUID,
    day_id: UUID,
    item_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> Response:
    outcome = await delete_plan_item(db, user.id, trip_id, day_id, item_id)
    if outcome == MutationStatus.NOT_FOUND:
        raise trip_day_not_found()
    if outcome == MutationStatus.MISSING:
        raise not_found("Plan item not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
