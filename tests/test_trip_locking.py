"""
Tests that writers touching a day timeline serialize on the owning trip row.

SQLite ignores FOR UPDATE, so the statements are recorded and compiled for
PostgreSQL, where the lock is taken.
"""
import pytest
from datetime import date
from sqlalchemy import Select, select
from sqlalchemy.dialects import postgresql
from sqlalchemy.ext.asyncio import AsyncSession

from travelplan.application.accommodation_service import (
    copy_from_previous_night,
    delete_accommodation,
    upsert_accommodation,
)
from travelplan.application.day_plan_service import (
    create_plan_item,
    delete_plan_item,
    list_plan_items,
    update_plan_item,
)
from travelplan.application.ownership import find_trip_day_for_user
from travelplan.application.travel_segment_service import create_travel_segment, update_travel_segment
from travelplan.domain.models import MutationStatus, TransportType, TravelItemType
from travelplan.domain.schemas import AccommodationRequest, DayPlanItemRequest, TravelSegmentRequest
from travelplan.infrastructure.models import TripDayModel


@pytest.fixture
def recorded(monkeypatch):
    statements = []
    original_execute = AsyncSession.execute

    async def recording_execute(self, statement, *args, **kwargs):
        statements.append(statement)
        return await original_execute(self, statement, *args, **kwargs)

    monkeypatch.setattr(AsyncSession, "execute", recording_execute)
    return statements


def _locks_trip(statements) -> bool:
    for statement in statements:
        if isinstance(statement, Select):
            sql = str(statement.compile(dialect=postgresql.dialect()))
            if "FOR UPDATE OF trips" in sql:
                return True
    return False


async def _day_ids(db, trip_id):
    result = await db.execute(
        select(TripDayModel.id).where(TripDayModel.trip_id == trip_id).order_by(TripDayModel.day_index)
    )
    return result.scalars().all()


def _plan_item(text, from_time):
    return DayPlanItemRequest(content_json='{"text": "%s"}' % text, from_time=from_time)


@pytest.mark.asyncio
async def test_trip_day_lookup_can_lock_the_trip(db, user_id, make_trip, recorded):
    trip = await make_trip()
    (day, *_) = await _day_ids(db, trip.id)

    recorded.clear()
    assert await find_trip_day_for_user(db, user_id, trip.id, day) is not None
    assert not _locks_trip(recorded)

    recorded.clear()
    assert await find_trip_day_for_user(db, user_id, trip.id, day, lock_trip=True) is not None
    assert _locks_trip(recorded)


@pytest.mark.asyncio
async def test_timeline_writers_lock_the_trip(db, user_id, make_trip, recorded):
    trip = await make_trip(start=date(2024, 6, 1), end=date(2024, 6, 2))
    trip_id = trip.id
    day1, day2 = await _day_ids(db, trip_id)

    recorded.clear()
    stay = await upsert_accommodation(db, user_id, trip_id, day1, AccommodationRequest(name="Hut"))
    assert _locks_trip(recorded)
    stay_id = stay.id

    recorded.clear()
    copied = await copy_from_previous_night(db, user_id, trip_id, day2)
    assert copied.status == MutationStatus.OK
    assert _locks_trip(recorded)

    recorded.clear()
    item = await create_plan_item(db, user_id, trip_id, day2, _plan_item("Hike", "09:00"))
    assert _locks_trip(recorded)
    item_id = item.id

    recorded.clear()
    updated = await update_plan_item(db, user_id, trip_id, day2, item_id, _plan_item("Long hike", "08:00"))
    assert updated.status == MutationStatus.OK
    assert _locks_trip(recorded)

    recorded.clear()
    segment_request = TravelSegmentRequest(
        from_item_type=TravelItemType.ACCOMMODATION,
        from_item_id=stay_id,
        to_item_type=TravelItemType.DAY_PLAN_ITEM,
        to_item_id=item_id,
        transport_type=TransportType.FLIGHT,
        duration_minutes=30,
    )
    created = await create_travel_segment(db, user_id, trip_id, day2, segment_request)
    assert created.status == MutationStatus.OK
    assert _locks_trip(recorded)
    segment_id = created.segment.id

    recorded.clear()
    replaced = await update_travel_segment(db, user_id, trip_id, day2, segment_id, segment_request)
    assert replaced.status == MutationStatus.OK
    assert _locks_trip(recorded)

    recorded.clear()
    assert await delete_plan_item(db, user_id, trip_id, day2, item_id) == MutationStatus.OK
    assert _locks_trip(recorded)

    recorded.clear()
    assert await delete_accommodation(db, user_id, trip_id, day1) is True
    assert _locks_trip(recorded)


@pytest.mark.asyncio
async def test_readers_do_not_lock(db, user_id, make_trip, recorded):
    trip = await make_trip()
    (day, *_) = await _day_ids(db, trip.id)

    recorded.clear()
    assert await list_plan_items(db, user_id, trip.id, day) == []
    assert not _locks_trip(recorded)
