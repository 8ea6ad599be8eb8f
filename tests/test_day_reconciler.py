"""
Tests for trip day reconciliation: date coverage, identity preservation,
idempotence and atomicity of date-range updates.
"""
import pytest
from datetime import date, datetime, timedelta, timezone
from uuid import uuid4
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from travelplan.application.day_reconciler import (
    build_trip_days,
    count_days,
    date_key,
    normalize_to_utc_date,
    reconcile_trip_days,
)
from travelplan.auth.models import UserModel
from travelplan.infrastructure.models import AccommodationModel, DayPlanItemModel, TripDayModel, TripModel


async def _days(db, trip_id):
    result = await db.execute(
        select(TripDayModel.id, TripDayModel.date, TripDayModel.day_index)
        .where(TripDayModel.trip_id == trip_id)
        .order_by(TripDayModel.day_index)
    )
    return [tuple(row) for row in result.all()]


def _assert_dense(days, start):
    assert [day_index for _, _, day_index in days] == list(range(1, len(days) + 1))
    assert [d for _, d, _ in days] == [start + timedelta(days=i) for i in range(len(days))]


# =============================================================================
# Pure helpers
# =============================================================================

def test_build_trip_days_covers_inclusive_range():
    days = build_trip_days(date(2024, 2, 27), date(2024, 3, 1))

    assert [d.date for d in days] == [
        date(2024, 2, 27), date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1),
    ]
    assert [d.day_index for d in days] == [1, 2, 3, 4]


def test_build_trip_days_single_day():
    days = build_trip_days(date(2024, 6, 1), date(2024, 6, 1))

    assert len(days) == 1
    assert days[0].day_index == 1


def test_build_trip_days_rejects_reversed_range():
    with pytest.raises(ValueError):
        build_trip_days(date(2024, 6, 2), date(2024, 6, 1))


def test_normalize_to_utc_date():
    assert normalize_to_utc_date("2024-06-15") == date(2024, 6, 15)
    assert normalize_to_utc_date("2024-06-15T00:00:00.000Z") == date(2024, 6, 15)
    assert normalize_to_utc_date("2024-06-15T23:30:00-02:00") == date(2024, 6, 16)
    assert normalize_to_utc_date(datetime(2024, 6, 15, 1, 0, tzinfo=timezone(timedelta(hours=3)))) == date(2024, 6, 14)
    assert normalize_to_utc_date(date(2024, 6, 15)) == date(2024, 6, 15)


def test_date_key_ignores_time_of_day():
    assert date_key(normalize_to_utc_date("2024-06-15T18:45:00Z")) == date_key(date(2024, 6, 15))


# =============================================================================
# Creation
# =============================================================================

@pytest.mark.asyncio
async def test_create_trip_creates_one_day_per_date(db, make_trip):
    trip = await make_trip(start=date(2024, 6, 1), end=date(2024, 6, 5))

    assert trip.day_count == 5
    days = await _days(db, trip.id)
    assert len(days) == 5
    _assert_dense(days, date(2024, 6, 1))


@pytest.mark.asyncio
async def test_create_single_day_trip(db, make_trip):
    trip = await make_trip(start=date(2024, 6, 1), end=date(2024, 6, 1))

    assert trip.day_count == 1
    assert await count_days(db, trip.id) == 1


# =============================================================================
# Reconciliation
# =============================================================================

@pytest.mark.asyncio
async def test_shift_by_one_day_preserves_overlapping_days(db, user_id, make_trip):
    trip = await make_trip(start=date(2024, 6, 1), end=date(2024, 6, 5))
    before = await _days(db, trip.id)
    ids_by_date = {d: day_id for day_id, d, _ in before}

    first_day_id = ids_by_date[date(2024, 6, 1)]
    second_day_id = ids_by_date[date(2024, 6, 2)]
    db.add(AccommodationModel(trip_day_id=first_day_id, name="Gone"))
    db.add(DayPlanItemModel(trip_day_id=first_day_id, content_json='{"text": "gone"}'))
    db.add(AccommodationModel(trip_day_id=second_day_id, name="Kept"))
    await db.commit()

    result = await reconcile_trip_days(db, user_id, trip.id, "Alps", "2024-06-02", "2024-06-06")

    assert result is not None
    assert result.day_count == 5
    after = await _days(db, trip.id)
    _assert_dense(after, date(2024, 6, 2))

    after_ids = {d: day_id for day_id, d, _ in after}
    for offset in range(1, 5):
        d = date(2024, 6, 1) + timedelta(days=offset)
        assert after_ids[d] == ids_by_date[d]
    assert after_ids[date(2024, 6, 6)] not in ids_by_date.values()
    assert first_day_id not in after_ids.values()

    # Content of the deleted day is gone, content of kept days survives
    acc_names = (await db.execute(select(AccommodationModel.name))).scalars().all()
    assert acc_names == ["Kept"]
    plan_count = (await db.execute(select(func.count()).select_from(DayPlanItemModel))).scalar_one()
    assert plan_count == 0


@pytest.mark.asyncio
async def test_reconcile_same_range_is_idempotent(db, user_id, make_trip):
    trip = await make_trip(start=date(2024, 6, 1), end=date(2024, 6, 4))
    before = await _days(db, trip.id)

    result = await reconcile_trip_days(db, user_id, trip.id, "Alps", date(2024, 6, 1), date(2024, 6, 4))

    assert result.day_count == 4
    assert await _days(db, trip.id) == before


@pytest.mark.asyncio
async def test_extend_and_shrink(db, user_id, make_trip):
    trip = await make_trip(start=date(2024, 6, 3), end=date(2024, 6, 4))
    before = {d: day_id for day_id, d, _ in await _days(db, trip.id)}

    result = await reconcile_trip_days(db, user_id, trip.id, "Alps", "2024-06-01", "2024-06-06")
    assert result.day_count == 6
    grown = await _days(db, trip.id)
    _assert_dense(grown, date(2024, 6, 1))
    grown_ids = {d: day_id for day_id, d, _ in grown}
    assert grown_ids[date(2024, 6, 3)] == before[date(2024, 6, 3)]
    assert grown_ids[date(2024, 6, 4)] == before[date(2024, 6, 4)]

    result = await reconcile_trip_days(db, user_id, trip.id, "Alps", "2024-06-04", "2024-06-04")
    assert result.day_count == 1
    assert await _days(db, trip.id) == [(before[date(2024, 6, 4)], date(2024, 6, 4), 1)]


@pytest.mark.asyncio
async def test_disjoint_range_replaces_every_day(db, user_id, make_trip):
    trip = await make_trip(start=date(2024, 6, 1), end=date(2024, 6, 3))
    before_ids = {day_id for day_id, _, _ in await _days(db, trip.id)}

    result = await reconcile_trip_days(db, user_id, trip.id, "Autumn", "2024-10-01", "2024-10-02")

    assert result.day_count == 2
    assert result.trip.name == "Autumn"
    assert result.trip.start_date == date(2024, 10, 1)
    assert result.trip.end_date == date(2024, 10, 2)
    after = await _days(db, trip.id)
    _assert_dense(after, date(2024, 10, 1))
    assert before_ids.isdisjoint({day_id for day_id, _, _ in after})


@pytest.mark.asyncio
async def test_reconcile_unknown_trip_returns_none(db, user_id):
    assert await reconcile_trip_days(db, user_id, uuid4(), "x", "2024-06-01", "2024-06-02") is None


@pytest.mark.asyncio
async def test_reconcile_is_scoped_to_owner(db, make_trip):
    trip = await make_trip()
    stranger = UserModel(email="stranger@example.com")
    db.add(stranger)
    await db.commit()
    stranger_id = stranger.id

    assert await reconcile_trip_days(db, stranger_id, trip.id, "Mine", "2024-06-01", "2024-06-09") is None
    assert await count_days(db, trip.id) == 3


@pytest.mark.asyncio
async def test_failure_midway_leaves_days_unchanged(db, user_id, make_trip, monkeypatch):
    trip = await make_trip(start=date(2024, 6, 1), end=date(2024, 6, 5))
    before = await _days(db, trip.id)

    original_execute = AsyncSession.execute
    writes = {"count": 0}

    async def failing_execute(self, statement, *args, **kwargs):
        if getattr(statement, "is_dml", False):
            writes["count"] += 1
            if writes["count"] == 4:
                raise RuntimeError("simulated database failure")
        return await original_execute(self, statement, *args, **kwargs)

    monkeypatch.setattr(AsyncSession, "execute", failing_execute)
    with pytest.raises(RuntimeError):
        await reconcile_trip_days(db, user_id, trip.id, "Renamed", "2024-06-02", "2024-06-06")
    monkeypatch.undo()

    assert writes["count"] == 4
    assert await _days(db, trip.id) == before
    name = (await db.execute(select(TripModel.name).where(TripModel.id == trip.id))).scalar_one()
    assert name == "Alps"
