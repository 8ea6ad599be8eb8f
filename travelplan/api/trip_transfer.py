"""
Trip export/import API endpoints.
"""
from datetime import datetime, timezone
from uuid import UUID
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from travelplan.infrastructure.database import get_db
from travelplan.application.trip_transfer import export_filename, get_trip_export, import_trip
from travelplan.domain.models import ImportOutcome
from travelplan.domain.schemas import (
    TripExportPayload,
    TripImportRequest,
    TripImportResponse,
    TripSummaryResponse,
)
from travelplan.auth.dependencies import get_current_user
from travelplan.auth.models import UserModel
from travelplan.api.errors import api_error, not_found


router = APIRouter(prefix="/trips", tags=["trip_transfer"])


@router.get(
    "/{trip_id}/export",
    response_model=TripExportPayload,
    summary="Export a trip",
    description="Download the trip with all days and their content as a JSON attachment."
)
async def export_trip(
    trip_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> JSONResponse:
    payload = await get_trip_export(db, user.id, trip_id)
    if payload is None:
        raise not_found("Trip not found")

    filename = export_filename(payload.trip.name, datetime.now(timezone.utc).date())
    return JSONResponse(
        content=payload.model_dump(mode="json"),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post(
    "/import",
    response_model=TripImportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Import a trip",
    description="Import an exported trip as a new trip or over a same-name trip."
)
async def import_trip_payload(
    request: TripImportRequest,
    db: AsyncSession = Depends(get_db),
    user: UserModel = Depends(get_current_user),
) -> TripImportResponse:
    """
    Import a trip export.

    - Without strategy: 409 trip_name_conflict if a trip with the same name exists
    - createNew: always creates a new trip, renaming it if needed
    - overwrite: replaces target_trip_id, which must be one of the conflicts
    """
    result = await import_trip(db, user.id, request)

    if result.outcome == ImportOutcome.CONFLICT:
        raise api_error(
            status.HTTP_409_CONFLICT,
            "trip_name_conflict",
            "Trip with same name already exists",
            conflicts=[conflict.model_dump(mode="json") for conflict in result.conflicts],
            strategy_required=True,
        )
    if result.outcome == ImportOutcome.TARGET_NOT_FOUND:
        raise not_found("Target trip not found for overwrite")
    if result.outcome == ImportOutcome.TARGET_NOT_CONFLICT:
        raise api_error(
            status.HTTP_409_CONFLICT,
            "trip_name_conflict",
            "Target trip must be selected from name conflicts",
        )

    trip = result.trip
    return TripImportResponse(
        trip=TripSummaryResponse(
            id=trip.id,
            name=trip.name,
            start_date=trip.start_date,
            end_date=trip.end_date,
            hero_image_url=trip.hero_image_url,
            day_count=result.day_count,
        ),
        mode=result.mode,
    )
