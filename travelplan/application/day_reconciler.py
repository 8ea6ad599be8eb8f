"""
Trip day reconciliation.

Keeps a trip's TripDay rows equal to its inclusive date range. Days are
matched by calendar date, so a day whose date stays inside the range keeps
its id (and the stay, plan items, images and travel segments hanging off
it) when the range shrinks, grows or shifts. Renumbering happens in place.

Nothing in here commits except reconcile_trip_days, which owns the
transaction for a trip update.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union
from uuid import UUID

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from travelplan.infrastructure.models import TripDayModel, TripModel


DateInput = Union[str, date, datetime]


@dataclass(frozen=True)
class PlannedDay:
    """Target position of a calendar date inside a trip."""
    date: date
    day_index: int


@dataclass
class ReconcileResult:
    """Trip row after an update together with its final number of days."""
    trip: TripModel
    day_count: int


def normalize_to_utc_date(value: DateInput) -> date:
    """
    Reduce a date, datetime or ISO-8601 string to its UTC calendar date.

    Naive datetimes are taken to be UTC already; aware ones are converted
    first, so "2024-06-15T23:30:00-02:00" lands on June 16th.
    """
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text)
        value = datetime.fromisoformat(text.replace("Z", "+00:00"))

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()

    return value


def date_key(value: date) -> str:
    """Map key for a calendar date (YYYY-MM-DD)."""
    return value.isoformat()


def build_trip_days(start_date: date, end_date: date) -> list[PlannedDay]:
    """Every date of [start_date, end_date] with its 1-based day index."""
    if start_date > end_date:
        raise ValueError(f"start_date {start_date} is after end_date {end_date}")

    span = (end_date - start_date).days
    return [
        PlannedDay(date=start_date + timedelta(days=offset), day_index=offset + 1)
        for offset in range(span + 1)
    ]


async def create_days(
    db: AsyncSession,
    trip_id: UUID,
    start_date: date,
    end_date: date,
) -> int:
    """
    Insert the day rows of a freshly created trip.

    Returns:
        Number of days created
    """
    planned = build_trip_days(start_date, end_date)
    await db.execute(
        insert(TripDayModel),
        [
            {"trip_id": trip_id, "date": day.date, "day_index": day.day_index}
            for day in planned
        ],
    )
    return len(planned)


async def count_days(db: AsyncSession, trip_id: UUID) -> int:
    result = await db.execute(
        select(func.count()).select_from(TripDayModel).where(TripDayModel.trip_id == trip_id)
    )
    return result.scalar_one()


async def reconcile_days(
    db: AsyncSession,
    trip_id: UUID,
    start_date: date,
    end_date: date,
) -> int:
    """
    Bring the trip's days in line with a new date range.

    Existing days are matched to target dates by calendar date. Matches keep
    their id and are renumbered if needed, dates without a match get a new
    empty day, and days outside the range are deleted along with their
    content (ON DELETE CASCADE).

    Must run inside the caller's transaction.

    Returns:
        Final number of days for the trip
    """
    result = await db.execute(
        select(TripDayModel.id, TripDayModel.date, TripDayModel.day_index)
        .where(TripDayModel.trip_id == trip_id)
    )
    existing = result.all()

    existing_by_date = {date_key(row.date): row for row in existing}
    retained_ids: set[UUID] = set()
    moved = []
    to_create: list[PlannedDay] = []

    for planned in build_trip_days(start_date, end_date):
        row = existing_by_date.get(date_key(planned.date))
        if row is None:
            to_create.append(planned)
            continue

        retained_ids.add(row.id)
        if row.day_index != planned.day_index or row.date != planned.date:
            moved.append((row.id, planned))

    stale_ids = [row.id for row in existing if row.id not in retained_ids]
    if stale_ids:
        await db.execute(
            delete(TripDayModel)
            .where(TripDayModel.id.in_(stale_ids))
            .execution_options(synchronize_session=False)
        )

    # Park moved days on negative indices first so (trip_id, day_index)
    # stays unique after every statement.
    for day_id, planned in moved:
        await db.execute(
            update(TripDayModel)
            .where(TripDayModel.id == day_id)
            .values(day_index=-planned.day_index)
            .execution_options(synchronize_session=False)
        )
    for day_id, planned in moved:
        await db.execute(
            update(TripDayModel)
            .where(TripDayModel.id == day_id)
            .values(date=planned.date, day_index=planned.day_index)
            .execution_options(synchronize_session=False)
        )

    for planned in to_create:
        await db.execute(
            insert(TripDayModel).values(
                trip_id=trip_id,
                date=planned.date,
                day_index=planned.day_index,
            )
        )

    return await count_days(db, trip_id)


async def reconcile_trip_days(
    db: AsyncSession,
    user_id: UUID,
    trip_id: UUID,
    name: str,
    start_date: DateInput,
    end_date: DateInput,
) -> Optional[ReconcileResult]:
    """
    Update a trip's name and date range and reconcile its days atomically.

    The trip row is locked (SELECT ... FOR UPDATE) for the whole unit of
    work so two updates of the same trip cannot both act on stale day
    rows. Any failure rolls everything back and propagates.

    Returns:
        ReconcileResult, or None if the user has no such trip
    """
    normalized_start = normalize_to_utc_date(start_date)
    normalized_end = normalize_to_utc_date(end_date)

    try:
        result = await db.execute(
            select(TripModel)
            .where(TripModel.id == trip_id, TripModel.user_id == user_id)
            .with_for_update()
        )
        trip = result.scalar_one_or_none()

        if trip is None:
            await db.rollback()
            return None

        day_count = await reconcile_days(db, trip.id, normalized_start, normalized_end)

        trip.name = name
        trip.start_date = normalized_start
        trip.end_date = normalized_end
        trip.updated_at = datetime.utcnow()

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(trip)
    return ReconcileResult(trip=trip, day_count=day_count)
