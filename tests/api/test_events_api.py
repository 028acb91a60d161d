"""Tests for event API endpoints."""

from uuid import uuid4

from httpx import AsyncClient

OWNER_ID = "7f9c2b1e-3d4a-4c5b-8e6f-0a1b2c3d4e5f"


def event_payload(**overrides) -> dict:
    payload = {
        "owner_id": OWNER_ID,
        "name": f"Event {uuid4().hex[:8]}",
        "description": "Talks and workshops",
        "start_date": "2030-09-01T09:00:00Z",
        "end_date": "2030-09-02T18:00:00Z",
        "capacity": 3,
        "price": 49.0,
    }
    payload.update(overrides)
    return payload


def participant_payload(**overrides) -> dict:
    payload = {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "email": f"ada.{uuid4().hex[:8]}@example.com",
        "phone": "+33612345678",
    }
    payload.update(overrides)
    return payload


async def create_event(client: AsyncClient, **overrides) -> dict:
    response = await client.post("/events", json=event_payload(**overrides))
    assert response.status_code == 201, response.text
    return response.json()


async def test_create_and_get_event(client: AsyncClient):
    created = await create_event(client, name="PyCon Lille")

    assert created["tickets_remaining"] == 3

    response = await client.get(f"/events/{created['id']}")
    assert response.status_code == 200
    assert response.json()["name"] == "PyCon Lille"


async def test_list_events(client: AsyncClient):
    await create_event(client)
    await create_event(client)

    response = await client.get("/events")

    assert response.status_code == 200
    assert len(response.json()) == 2


async def test_create_with_inverted_dates(client: AsyncClient):
    response = await client.post(
        "/events",
        json=event_payload(start_date="2024-12-26T00:00:00Z", end_date="2024-12-25T00:00:00Z"),
    )

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INVALID_DATE_RANGE"
    assert (await client.get("/events")).json() == []


async def test_create_duplicate_name(client: AsyncClient):
    await create_event(client, name="Twice")

    response = await client.post("/events", json=event_payload(name="Twice"))

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["code"] == "EVENT_NAME_CONFLICT"
    assert detail["context"] == {"name": "Twice"}


async def test_create_negative_capacity(client: AsyncClient):
    response = await client.post("/events", json=event_payload(capacity=-1))

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INVALID_CAPACITY"


async def test_create_missing_fields(client: AsyncClient):
    response = await client.post("/events", json={"name": "Incomplete"})

    assert response.status_code == 422


async def test_get_unknown_and_malformed(client: AsyncClient):
    missing = await client.get(f"/events/{uuid4()}")
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "EVENT_NOT_FOUND"

    malformed = await client.get("/events/65f1c0ffee")
    assert malformed.status_code == 400
    assert malformed.json()["detail"]["code"] == "INVALID_ID_FORMAT"


async def test_search_by_name(client: AsyncClient):
    created = await create_event(client, name="DjangoCon")

    found = await client.get("/events/search", params={"name": "DjangoCon"})
    assert found.status_code == 200
    assert found.json()["id"] == created["id"]

    missing = await client.get("/events/search", params={"name": "FlaskCon"})
    assert missing.status_code == 404


async def test_events_by_owner(client: AsyncClient):
    mine = await create_event(client)
    await create_event(client, owner_id=str(uuid4()))

    response = await client.get(f"/events/owner/{OWNER_ID}")

    assert [e["id"] for e in response.json()] == [mine["id"]]


async def test_update_event(client: AsyncClient):
    created = await create_event(client)

    response = await client.put(f"/events/{created['id']}", json={"capacity": 10})

    assert response.status_code == 200
    body = response.json()
    assert body["capacity"] == 10
    assert body["tickets_remaining"] == 10
    assert body["name"] == created["name"]


async def test_delete_event_cascades(client: AsyncClient):
    event = await create_event(client)
    registered = await client.post(
        "/participants", json={**participant_payload(), "event_id": event["id"]}
    )
    participant_id = registered.json()["id"]

    response = await client.delete(f"/events/{event['id']}")

    assert response.status_code == 200
    assert (await client.get(f"/events/{event['id']}")).status_code == 404
    assert (await client.get(f"/participants/{participant_id}")).status_code == 404


async def test_event_participants(client: AsyncClient):
    event = await create_event(client)
    await client.post("/participants", json={**participant_payload(), "event_id": event["id"]})

    response = await client.get(f"/events/{event['id']}/participants")

    assert response.status_code == 200
    assert len(response.json()) == 1


async def test_statistics(client: AsyncClient):
    event = await create_event(client, capacity=4)
    await client.post("/participants", json={**participant_payload(), "event_id": event["id"]})

    response = await client.get("/events/statistics")

    assert response.status_code == 200
    body = response.json()
    assert body["total_events"] == 1
    assert body["total_participants"] == 1
    assert body["ticket_utilization"]["utilization_rate"] == 0.25
    assert body["events_by_month"] == {"September": 1}


async def test_export_csv_and_cleanup(client: AsyncClient, tmp_path):
    event = await create_event(client)
    await client.post(
        "/participants",
        json={**participant_payload(last_name="Hopper"), "event_id": event["id"]},
    )

    response = await client.get(
        f"/events/{event['id']}/participants/export", params={"format": "csv"}
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert f"event-{event['id']}-participants-" in response.headers["content-disposition"]
    assert "Hopper" in response.content.decode("utf-8-sig")
    export_dir = tmp_path / "exports"
    assert not any(export_dir.iterdir())


async def test_export_excel(client: AsyncClient):
    event = await create_event(client)
    await client.post("/participants", json={**participant_payload(), "event_id": event["id"]})

    response = await client.get(
        f"/events/{event['id']}/participants/export", params={"format": "excel"}
    )

    assert response.status_code == 200
    assert response.content.startswith(b"PK")


async def test_export_empty_event(client: AsyncClient):
    event = await create_event(client)

    response = await client.get(f"/events/{event['id']}/participants/export")

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "EMPTY_EXPORT"


async def test_export_unknown_format(client: AsyncClient):
    event = await create_event(client)

    response = await client.get(
        f"/events/{event['id']}/participants/export", params={"format": "docx"}
    )

    assert response.status_code == 422
