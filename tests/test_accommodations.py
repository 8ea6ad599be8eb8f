"""
Tests for accommodation endpoints.
"""
import pytest
from uuid import uuid4


@pytest.fixture
async def trip_days(client, auth_headers):
    """A three-day trip; returns (trip_id, [day ids])."""
    response = await client.post(
        "/api/trips",
        json={"name": "Dolomites", "start_date": "2025-07-01", "end_date": "2025-07-03"},
        headers=auth_headers,
    )
    trip_id = response.json()["id"]
    detail = (await client.get(f"/api/trips/{trip_id}", headers=auth_headers)).json()
    return trip_id, [day["id"] for day in detail["days"]]


def _url(trip_id, day_id):
    return f"/api/trips/{trip_id}/days/{day_id}/accommodation"


HOTEL = {
    "name": "Hotel Cristallo",
    "notes": "Late arrival",
    "status": "booked",
    "cost_cents": 18000,
    "link": "https://example.com/cristallo",
    "check_in_time": "16:00",
    "check_out_time": "10:00",
    "location": {"lat": 46.54, "lng": 12.13, "label": "Cortina"},
}


@pytest.mark.asyncio
async def test_put_creates_then_replaces(client, auth_headers, trip_days):
    trip_id, days = trip_days

    response = await client.put(_url(trip_id, days[0]), json=HOTEL, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Hotel Cristallo"
    assert data["status"] == "booked"
    assert data["check_in_time"] == "16:00"
    assert data["location"] == {"lat": 46.54, "lng": 12.13, "label": "Cortina"}
    first_id = data["id"]

    response = await client.put(_url(trip_id, days[0]), json={"name": "Rifugio"}, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == first_id
    assert data["name"] == "Rifugio"
    assert data["status"] == "planned"
    assert data["cost_cents"] is None
    assert data["check_in_time"] is None
    assert data["location"] is None


@pytest.mark.asyncio
async def test_patch_keeps_times_not_sent(client, auth_headers, trip_days):
    trip_id, days = trip_days
    await client.put(_url(trip_id, days[0]), json=HOTEL, headers=auth_headers)

    response = await client.patch(
        _url(trip_id, days[0]),
        json={"name": "Hotel Cristallo", "check_out_time": "11:00"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["check_in_time"] == "16:00"
    assert data["check_out_time"] == "11:00"


@pytest.mark.asyncio
async def test_patch_without_stay_is_not_found(client, auth_headers, trip_days):
    trip_id, days = trip_days

    response = await client.patch(_url(trip_id, days[0]), json={"name": "Nope"}, headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["detail"]["message"] == "Accommodation not found"


@pytest.mark.asyncio
async def test_accommodation_validation(client, auth_headers, trip_days):
    trip_id, days = trip_days
    url = _url(trip_id, days[0])

    invalid_payloads = [
        {"name": ""},
        {"name": "Hotel", "cost_cents": -1},
        {"name": "Hotel", "check_in_time": "9:00"},
        {"name": "Hotel", "check_in_time": "24:00"},
        {"name": "Hotel", "link": "ftp://example.com"},
        {"name": "Hotel", "location": {"lat": 91, "lng": 0}},
        {"name": "Hotel", "location": {"lat": 10}},
        {"name": "Hotel", "status": "cancelled"},
    ]
    for payload in invalid_payloads:
        response = await client.put(url, json=payload, headers=auth_headers)
        assert response.status_code == 422, payload


@pytest.mark.asyncio
async def test_unknown_day_is_not_found(client, auth_headers, other_auth_headers, trip_days):
    trip_id, days = trip_days

    response = await client.put(_url(trip_id, uuid4()), json=HOTEL, headers=auth_headers)
    assert response.status_code == 404

    response = await client.put(_url(trip_id, days[0]), json=HOTEL, headers=other_auth_headers)
    assert response.status_code == 404
    assert response.json()["detail"]["message"] == "Trip day not found"


@pytest.mark.asyncio
async def test_delete_is_idempotent(client, auth_headers, trip_days):
    trip_id, days = trip_days
    await client.put(_url(trip_id, days[0]), json=HOTEL, headers=auth_headers)

    response = await client.delete(_url(trip_id, days[0]), headers=auth_headers)
    assert response.status_code == 204

    response = await client.delete(_url(trip_id, days[0]), headers=auth_headers)
    assert response.status_code == 204

    detail = (await client.get(f"/api/trips/{trip_id}", headers=auth_headers)).json()
    assert detail["days"][0]["accommodation"] is None


@pytest.mark.asyncio
async def test_delete_removes_segments_anchored_on_stay(client, auth_headers, trip_days):
    trip_id, days = trip_days
    stay = (await client.put(_url(trip_id, days[0]), json=HOTEL, headers=auth_headers)).json()
    item = (await client.post(
        f"/api/trips/{trip_id}/days/{days[1]}/plan-items",
        json={"content_json": '{"text": "Tre Cime"}', "from_time": "09:00"},
        headers=auth_headers,
    )).json()
    segments_url = f"/api/trips/{trip_id}/days/{days[1]}/travel-segments"
    response = await client.post(
        segments_url,
        json={
            "from_item_type": "accommodation",
            "from_item_id": stay["id"],
            "to_item_type": "dayPlanItem",
            "to_item_id": item["id"],
            "transport_type": "car",
            "duration_minutes": 40,
            "distance_km": 32.5,
        },
        headers=auth_headers,
    )
    assert response.status_code == 201

    await client.delete(_url(trip_id, days[0]), headers=auth_headers)

    response = await client.get(segments_url, headers=auth_headers)
    assert response.json()["segments"] == []


@pytest.mark.asyncio
async def test_copy_previous_night(client, auth_headers, trip_days):
    trip_id, days = trip_days
    await client.put(_url(trip_id, days[0]), json=HOTEL, headers=auth_headers)

    response = await client.post(f"{_url(trip_id, days[1])}/copy-previous", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["trip_day_id"] == days[1]
    assert data["name"] == "Hotel Cristallo"
    assert data["status"] == "booked"
    assert data["check_in_time"] == "16:00"
    assert data["location"]["label"] == "Cortina"
    assert data["cost_cents"] is None


@pytest.mark.asyncio
async def test_copy_previous_night_without_source(client, auth_headers, trip_days):
    trip_id, days = trip_days

    response = await client.post(f"{_url(trip_id, days[0])}/copy-previous", headers=auth_headers)
    assert response.status_code == 404

    response = await client.post(f"{_url(trip_id, days[2])}/copy-previous", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["detail"]["message"] == "Previous night has no accommodation"
