"""
Trip export and import.

An export is a self-contained JSON document of one trip: the trip, every day,
each day's stay, plan items and travel segments. Importing writes the document
back under fresh ids, either as a new trip or over an existing trip that has
the same name.
"""
import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from travelplan.application.accommodation_service import location_columns
from travelplan.config import settings
from travelplan.domain.models import ImportOutcome, ImportStrategy, TravelItemType
from travelplan.domain.schemas import (
    ExportAccommodation,
    ExportDay,
    ExportMeta,
    ExportPlanItem,
    ExportTravelSegment,
    ExportTrip,
    LocationSchema,
    TripConflictResponse,
    TripExportPayload,
    TripImportRequest,
)
from travelplan.infrastructure.models import (
    AccommodationModel,
    DayPlanItemModel,
    TravelSegmentModel,
    TripDayModel,
    TripModel,
)

logger = logging.getLogger(__name__)

TRIP_NAME_MAX_LENGTH = 120
IMPORTED_SUFFIX = " (imported)"


@dataclass
class TripImportResult:
    outcome: ImportOutcome
    trip: Optional[TripModel] = None
    day_count: int = 0
    mode: Optional[ImportStrategy] = None
    conflicts: list[TripConflictResponse] = field(default_factory=list)


def export_filename(name: str, on: date) -> str:
    """
    Attachment name for an export, e.g. ``trip-lisbon-long-weekend-2025-05-01.json``.
    """
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")[:64] or "trip"
    return f"trip-{slug}-{on.isoformat()}.json"


# =============================================================================
# Export
# =============================================================================

def _export_day(day: TripDayModel) -> ExportDay:
    accommodation = None
    if day.accommodation is not None:
        acc = day.accommodation
        accommodation = ExportAccommodation(
            id=acc.id,
            name=acc.name,
            notes=acc.notes,
            status=acc.status,
            cost_cents=acc.cost_cents,
            link=acc.link,
            check_in_time=acc.check_in_time,
            check_out_time=acc.check_out_time,
            location=LocationSchema.from_columns(acc.location_lat, acc.location_lng, acc.location_label),
            created_at=acc.created_at,
            updated_at=acc.updated_at,
        )

    plan_items = sorted(day.plan_items, key=lambda item: (item.created_at, str(item.id)))
    segments = sorted(day.travel_segments, key=lambda segment: (segment.created_at, str(segment.id)))

    return ExportDay(
        id=day.id,
        date=day.date,
        day_index=day.day_index,
        image_url=day.image_url,
        note=day.note,
        created_at=day.created_at,
        updated_at=day.updated_at,
        accommodation=accommodation,
        plan_items=[
            ExportPlanItem(
                id=item.id,
                title=item.title,
                content_json=item.content_json,
                from_time=item.from_time,
                to_time=item.to_time,
                cost_cents=item.cost_cents,
                link_url=item.link_url,
                location=LocationSchema.from_columns(item.location_lat, item.location_lng, item.location_label),
                created_at=item.created_at,
                updated_at=item.updated_at,
            )
            for item in plan_items
        ],
        travel_segments=[
            ExportTravelSegment(
                id=segment.id,
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
            for segment in segments
        ],
    )


async def get_trip_export(
    db: AsyncSession,
    user_id: UUID,
    trip_id: UUID,
) -> Optional[TripExportPayload]:
    """
    Build the export document of a trip, or None if the user has no such trip.

    exported_at is the trip's last update time, so exporting unchanged data
    twice yields the same document.
    """
    result = await db.execute(
        select(TripModel)
        .where(TripModel.id == trip_id, TripModel.user_id == user_id)
        .options(
            selectinload(TripModel.days).selectinload(TripDayModel.accommodation),
            selectinload(TripModel.days).selectinload(TripDayModel.plan_items),
            selectinload(TripModel.days).selectinload(TripDayModel.travel_segments),
        )
        .execution_options(populate_existing=True)
    )
    trip = result.scalar_one_or_none()
    if trip is None:
        return None

    return TripExportPayload(
        meta=ExportMeta(
            exported_at=trip.updated_at,
            app_version=settings.app_version,
            format_version=settings.export_format_version,
        ),
        trip=ExportTrip(
            id=trip.id,
            name=trip.name,
            start_date=trip.start_date,
            end_date=trip.end_date,
            hero_image_url=trip.hero_image_url,
            created_at=trip.created_at,
            updated_at=trip.updated_at,
        ),
        days=[_export_day(day) for day in sorted(trip.days, key=lambda day: day.day_index)],
    )


# =============================================================================
# Import
# =============================================================================

async def _find_name_conflicts(db: AsyncSession, user_id: UUID, name: str) -> list[TripConflictResponse]:
    result = await db.execute(
        select(TripModel.id, TripModel.name, TripModel.start_date, TripModel.end_date)
        .where(TripModel.user_id == user_id, TripModel.name == name)
        .order_by(TripModel.created_at.asc())
    )
    return [
        TripConflictResponse(id=row.id, name=row.name, start_date=row.start_date, end_date=row.end_date)
        for row in result.all()
    ]


async def _available_name(db: AsyncSession, user_id: UUID, name: str) -> str:
    """First free name of the form 'name (imported)', 'name (imported 2)', ..."""
    result = await db.execute(select(TripModel.name).where(TripModel.user_id == user_id))
    taken = set(result.scalars().all())

    attempt = 1
    while True:
        suffix = IMPORTED_SUFFIX if attempt == 1 else f" (imported {attempt})"
        candidate = name[:TRIP_NAME_MAX_LENGTH - len(suffix)].rstrip() + suffix
        if candidate not in taken:
            return candidate
        attempt += 1


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.replace(tzinfo=None)


def _build_trip_rows(trip_id: UUID, days: list[ExportDay]) -> list:
    """
    ORM rows for the exported days under fresh ids.

    Travel segment anchors are remapped to the new stay and plan item ids.
    A segment may start at the previous night's stay, so the id map spans
    the whole trip. Segments whose anchors are not in the payload are dropped.
    """
    rows: list = []
    new_ids: dict[tuple[TravelItemType, UUID], UUID] = {}
    new_day_ids: dict[UUID, UUID] = {}

    for day in days:
        day_row = TripDayModel(
            id=uuid.uuid4(),
            trip_id=trip_id,
            date=day.date,
            day_index=day.day_index,
            image_url=day.image_url,
            note=day.note,
        )
        new_day_ids[day.id] = day_row.id
        rows.append(day_row)

        if day.accommodation is not None:
            acc = day.accommodation
            acc_row = AccommodationModel(
                id=uuid.uuid4(),
                trip_day_id=day_row.id,
                name=acc.name,
                notes=acc.notes,
                status=acc.status,
                cost_cents=acc.cost_cents,
                link=acc.link,
                check_in_time=acc.check_in_time,
                check_out_time=acc.check_out_time,
                **location_columns(acc.location),
            )
            new_ids[(TravelItemType.ACCOMMODATION, acc.id)] = acc_row.id
            rows.append(acc_row)

        for item in day.plan_items:
            # created_at is kept so plan items without a start time stay in their exported order
            item_row = DayPlanItemModel(
                id=uuid.uuid4(),
                trip_day_id=day_row.id,
                title=item.title,
                content_json=item.content_json,
                from_time=item.from_time,
                to_time=item.to_time,
                cost_cents=item.cost_cents,
                link_url=item.link_url,
                created_at=_naive_utc(item.created_at),
                **location_columns(item.location),
            )
            new_ids[(TravelItemType.DAY_PLAN_ITEM, item.id)] = item_row.id
            rows.append(item_row)

    for day in days:
        for segment in day.travel_segments:
            from_id = new_ids.get((segment.from_item_type, segment.from_item_id))
            to_id = new_ids.get((segment.to_item_type, segment.to_item_id))
            if from_id is None or to_id is None:
                logger.warning(f"Skipping travel segment {segment.id}: anchor not found in import payload")
                continue
            rows.append(
                TravelSegmentModel(
                    id=uuid.uuid4(),
                    trip_day_id=new_day_ids[day.id],
                    from_item_type=segment.from_item_type,
                    from_item_id=from_id,
                    to_item_type=segment.to_item_type,
                    to_item_id=to_id,
                    transport_type=segment.transport_type,
                    duration_minutes=segment.duration_minutes,
                    distance_km=segment.distance_km,
                    link_url=segment.link_url,
                    created_at=_naive_utc(segment.created_at),
                )
            )

    return rows


async def import_trip(
    db: AsyncSession,
    user_id: UUID,
    request: TripImportRequest,
) -> TripImportResult:
    """
    Import an exported trip for a user in a single transaction.

    Without a strategy, an existing trip of the same name is reported as a
    conflict and nothing is written. createNew stores a new trip, renaming
    it if the name is taken. overwrite replaces the content of the target
    trip, which must be one of the name conflicts.
    """
    payload = request.payload
    name = payload.trip.name.strip()

    conflicts = await _find_name_conflicts(db, user_id, name)
    if request.strategy is None and conflicts:
        logger.warning(f"Import of '{name}' conflicts with {len(conflicts)} existing trip(s)")
        return TripImportResult(ImportOutcome.CONFLICT, conflicts=conflicts)

    try:
        if request.strategy == ImportStrategy.OVERWRITE:
            result = await db.execute(
                select(TripModel)
                .where(TripModel.id == request.target_trip_id, TripModel.user_id == user_id)
                .with_for_update()
            )
            trip = result.scalar_one_or_none()
            if trip is None:
                await db.rollback()
                return TripImportResult(ImportOutcome.TARGET_NOT_FOUND)
            if trip.id not in {conflict.id for conflict in conflicts}:
                await db.rollback()
                return TripImportResult(ImportOutcome.TARGET_NOT_CONFLICT, conflicts=conflicts)

            # Day content goes with the days (ON DELETE CASCADE)
            await db.execute(
                delete(TripDayModel)
                .where(TripDayModel.trip_id == trip.id)
                .execution_options(synchronize_session=False)
            )
            trip.name = name
            trip.start_date = payload.trip.start_date
            trip.end_date = payload.trip.end_date
            trip.hero_image_url = payload.trip.hero_image_url
            trip.updated_at = datetime.utcnow()
            mode = ImportStrategy.OVERWRITE
        else:
            if conflicts:
                name = await _available_name(db, user_id, name)
            trip = TripModel(
                id=uuid.uuid4(),
                user_id=user_id,
                name=name,
                start_date=payload.trip.start_date,
                end_date=payload.trip.end_date,
                hero_image_url=payload.trip.hero_image_url,
            )
            db.add(trip)
            mode = ImportStrategy.CREATE_NEW

        await db.flush()
        db.add_all(_build_trip_rows(trip.id, sorted(payload.days, key=lambda d: d.day_index)))
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Imported trip {trip.id} ({mode.value}) with {len(payload.days)} days")
    return TripImportResult(ImportOutcome.IMPORTED, trip=trip, day_count=len(payload.days), mode=mode)
