import httpx
import pytest

from vetclinic.api.deps import get_business_hours, get_store
from vetclinic.core.config import settings
from vetclinic.main import app


@pytest.fixture
async def client(store, hours):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_business_hours] = lambda: hours
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


def _payload(pet, scheduled_at="2026-10-20T15:00:00", kind="consultation"):
    return {"client_id": pet.client_id, "pet_id": pet.id, "scheduled_at": scheduled_at, "kind": kind}


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_available_slots(client):
    resp = await client.get("/api/v1/slots/available", params={"date": "2026-10-20"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["availability"] == "available"
    assert body["slots"][0] == "9:00"
    assert len(body["slots"]) == 9


async def test_available_slots_closed_day(client, store):
    resp = await client.get("/api/v1/slots/available", params={"date": "2026-10-25"})
    body = resp.json()
    assert body["availability"] == "closed"
    assert body["message"] == "Cannot schedule on Sundays: the clinic is closed on this day."
    assert store.reads == 0


async def test_create_and_list(client, rex):
    resp = await client.post("/api/v1/appointments", json=_payload(rex))
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["appointment"]["status"] == "scheduled"

    resp = await client.get("/api/v1/appointments")
    assert [a["id"] for a in resp.json()] == [body["appointment"]["id"]]


async def test_create_rejection_keeps_message(client, rex):
    resp = await client.post("/api/v1/appointments", json=_payload(rex, "2026-10-20T07:00:00"))
    assert resp.status_code == 409
    assert resp.json()["success"] is False
    assert resp.json()["message"] == "Cannot schedule at 7:00: outside operating hours (9:00 to 18:00)."


async def test_invalid_kind_is_422(client, rex):
    resp = await client.post("/api/v1/appointments", json=_payload(rex, kind="grooming"))
    assert resp.status_code == 422


async def test_store_failure_is_503(client, store, rex):
    store.fail_writes = True
    resp = await client.post("/api/v1/appointments", json=_payload(rex))
    assert resp.status_code == 503
    assert resp.json()["message"] == "Could not save the appointment. Please try again."


async def test_lifecycle_over_http(client, rex):
    created = (await client.post("/api/v1/appointments", json=_payload(rex, kind="exam"))).json()
    aid = created["appointment"]["id"]

    resp = await client.patch(f"/api/v1/appointments/{aid}", json={"notes": "fasting since 8pm"})
    assert resp.status_code == 200
    assert resp.json()["appointment"]["notes"] == "fasting since 8pm"

    assert (await client.post(f"/api/v1/appointments/{aid}/confirm")).status_code == 200
    assert (await client.post(f"/api/v1/appointments/{aid}/complete")).status_code == 200

    resp = await client.post(
        f"/api/v1/appointments/{aid}/exam-result",
        json={
            "exam_name": "Blood panel",
            "result_date": "2024-01-15",
            "result_summary": "All values within reference ranges.",
            "attachment_url": "",
        },
    )
    assert resp.status_code == 201
    assert resp.json()["appointment"]["has_result"] is True

    resp = await client.post(f"/api/v1/appointments/{aid}/cancel")
    assert resp.status_code == 409
    assert resp.json()["message"] == "Appointment is already finalized (completed)."


async def test_exam_result_validation(client, rex):
    resp = await client.post(
        "/api/v1/appointments/1/exam-result",
        json={"exam_name": "X", "result_date": "2024-01-15", "result_summary": "short"},
    )
    assert resp.status_code == 422


async def test_unknown_appointment_is_404(client):
    resp = await client.post("/api/v1/appointments/4242/cancel")
    assert resp.status_code == 404
    assert resp.json()["message"] == "Appointment not found."


async def test_agent_requires_configuration(client, monkeypatch):
    monkeypatch.setattr(settings, "llm_api_key", "")
    resp = await client.post("/api/v1/agent/appointments", json={"prompt": "book Rex tomorrow"})
    assert resp.status_code == 503


async def test_patch_null_clears_notes(client, rex):
    payload = {**_payload(rex), "notes": "bring vaccination card"}
    aid = (await client.post("/api/v1/appointments", json=payload)).json()["appointment"]["id"]
    resp = await client.patch(f"/api/v1/appointments/{aid}", json={"notes": None})
    assert resp.status_code == 200
    assert resp.json()["appointment"]["notes"] is None
