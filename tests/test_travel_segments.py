"""
Tests for travel segment endpoints and their adjacency rules.
"""
import pytest
from uuid import uuid4


@pytest.fixture
async def day(client, auth_headers):
    """
    Day two of a trip with timeline:
    previous night's stay -> museum (10:00) -> dinner (19:00) -> tonight's stay
    """
    response = await client.post(
        "/api/trips",
        json={"name": "Vienna", "start_date": "2025-03-01", "end_date": "2025-03-02"},
        headers=auth_headers,
    )
    trip_id = response.json()["id"]
    detail = (await client.get(f"/api/trips/{trip_id}", headers=auth_headers)).json()
    day1, day2 = [d["id"] for d in detail["days"]]
    base = f"/api/trips/{trip_id}/days"

    previous = (await client.put(f"{base}/{day1}/accommodation", json={"name": "Hotel A"}, headers=auth_headers)).json()
    tonight = (await client.put(f"{base}/{day2}/accommodation", json={"name": "Hotel B"}, headers=auth_headers)).json()
    dinner = (await client.post(
        f"{base}/{day2}/plan-items",
        json={"content_json": '{"text": "Dinner"}', "from_time": "19:00"},
        headers=auth_headers,
    )).json()
    museum = (await client.post(
        f"{base}/{day2}/plan-items",
        json={"content_json": '{"text": "Museum"}', "from_time": "10:00"},
        headers=auth_headers,
    )).json()

    return {
        "trip_id": trip_id,
        "day_id": day2,
        "previous_day_id": day1,
        "url": f"{base}/{day2}/travel-segments",
        "previous": ("accommodation", previous["id"]),
        "museum": ("dayPlanItem", museum["id"]),
        "dinner": ("dayPlanItem", dinner["id"]),
        "tonight": ("accommodation", tonight["id"]),
    }


def _segment(from_anchor, to_anchor, **overrides):
    body = {
        "from_item_type": from_anchor[0],
        "from_item_id": from_anchor[1],
        "to_item_type": to_anchor[0],
        "to_item_id": to_anchor[1],
        "transport_type": "flight",
        "duration_minutes": 25,
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_day_timeline(client, auth_headers, day):
    response = await client.get(
        f"/api/trips/{day['trip_id']}/days/{day['day_id']}/timeline", headers=auth_headers
    )

    assert response.status_code == 200
    anchors = [(a["type"], a["id"]) for a in response.json()["anchors"]]
    assert anchors == [day["previous"], day["museum"], day["dinner"], day["tonight"]]


@pytest.mark.asyncio
async def test_create_between_adjacent_anchors(client, auth_headers, day):
    response = await client.post(
        day["url"],
        json=_segment(day["previous"], day["museum"], transport_type="car", distance_km=4.2),
        headers=auth_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["trip_day_id"] == day["day_id"]
    assert data["from_item_id"] == day["previous"][1]
    assert data["to_item_type"] == "dayPlanItem"
    assert data["transport_type"] == "car"
    assert data["distance_km"] == 4.2

    response = await client.get(day["url"], headers=auth_headers)
    assert [s["id"] for s in response.json()["segments"]] == [data["id"]]


@pytest.mark.asyncio
async def test_non_adjacent_anchors_are_rejected(client, auth_headers, day):
    response = await client.post(day["url"], json=_segment(day["previous"], day["dinner"]), headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "validation_error"

    response = await client.post(day["url"], json=_segment(day["dinner"], day["museum"]), headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_missing_anchor_is_not_found(client, auth_headers, day):
    response = await client.post(
        day["url"], json=_segment(day["museum"], ("dayPlanItem", str(uuid4()))), headers=auth_headers
    )

    assert response.status_code == 404
    assert response.json()["detail"]["message"] == "Travel segment item not found"


@pytest.mark.asyncio
async def test_unknown_day_is_not_found(client, auth_headers, day):
    url = f"/api/trips/{day['trip_id']}/days/{uuid4()}/travel-segments"

    response = await client.post(url, json=_segment(day["previous"], day["museum"]), headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["detail"]["message"] == "Trip day not found"


@pytest.mark.asyncio
async def test_duplicate_segment_conflicts(client, auth_headers, day):
    body = _segment(day["museum"], day["dinner"])
    response = await client.post(day["url"], json=body, headers=auth_headers)
    assert response.status_code == 201

    response = await client.post(day["url"], json=body, headers=auth_headers)
    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "travel_segment_exists"


@pytest.mark.asyncio
async def test_segment_validation(client, auth_headers, day):
    invalid = [
        _segment(day["museum"], day["museum"]),
        _segment(day["museum"], day["dinner"], transport_type="car"),
        _segment(day["museum"], day["dinner"], distance_km=12),
        _segment(day["museum"], day["dinner"], duration_minutes=0),
        _segment(day["museum"], day["dinner"], transport_type="bike"),
        _segment(day["museum"], day["dinner"], link_url="javascript:alert(1)"),
    ]
    for body in invalid:
        response = await client.post(day["url"], json=body, headers=auth_headers)
        assert response.status_code == 422, body


@pytest.mark.asyncio
async def test_update_segment(client, auth_headers, day):
    created = (await client.post(day["url"], json=_segment(day["museum"], day["dinner"]), headers=auth_headers)).json()

    response = await client.put(
        f"{day['url']}/{created['id']}",
        json=_segment(day["dinner"], day["tonight"], transport_type="ship", duration_minutes=50),
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["id"] == created["id"]
    assert response.json()["transport_type"] == "ship"
    assert response.json()["to_item_id"] == day["tonight"][1]

    response = await client.put(
        f"{day['url']}/{created['id']}",
        json=_segment(day["previous"], day["tonight"]),
        headers=auth_headers,
    )
    assert response.status_code == 400

    response = await client.put(
        f"{day['url']}/{uuid4()}",
        json=_segment(day["museum"], day["dinner"]),
        headers=auth_headers,
    )
    assert response.status_code == 404
    assert response.json()["detail"]["message"] == "Travel segment not found"


@pytest.mark.asyncio
async def test_delete_segment(client, auth_headers, day):
    created = (await client.post(day["url"], json=_segment(day["museum"], day["dinner"]), headers=auth_headers)).json()

    response = await client.delete(f"{day['url']}/{created['id']}", headers=auth_headers)
    assert response.status_code == 204

    response = await client.delete(f"{day['url']}/{created['id']}", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_deleting_plan_item_removes_its_segments(client, auth_headers, day):
    await client.post(day["url"], json=_segment(day["previous"], day["museum"]), headers=auth_headers)
    kept = (await client.post(day["url"], json=_segment(day["dinner"], day["tonight"]), headers=auth_headers)).json()

    plan_url = f"/api/trips/{day['trip_id']}/days/{day['day_id']}/plan-items/{day['museum'][1]}"
    response = await client.delete(plan_url, headers=auth_headers)
    assert response.status_code == 204

    response = await client.get(day["url"], headers=auth_headers)
    assert [s["id"] for s in response.json()["segments"]] == [kept["id"]]


@pytest.mark.asyncio
async def test_deleting_previous_night_stay_removes_its_segments(client, auth_headers, day):
    response = await client.post(day["url"], json=_segment(day["previous"], day["museum"]), headers=auth_headers)
    assert response.status_code == 201

    stay_url = f"/api/trips/{day['trip_id']}/days/{day['previous_day_id']}/accommodation"
    response = await client.delete(stay_url, headers=auth_headers)
    assert response.status_code == 204

    response = await client.get(day["url"], headers=auth_headers)
    assert response.json()["segments"] == []

    # The stay is no longer an anchor of the day
    response = await client.post(day["url"], json=_segment(day["previous"], day["museum"]), headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["detail"]["message"] == "Travel segment item not found"
