from uuid import UUID

import pytest
from httpx import AsyncClient

from tenantgate.domain.entities import UserRole

WEBHOOK = {
    "name": "CRM sync",
    "url": "https://hooks.acme.com/in",
    "events": ["user.created", "user.login"],
}


@pytest.fixture
def admin_headers(verified_user, login, set_role):
    async def _admin_headers():
        user = await verified_user(email="admin@acme.com")
        await set_role(user["id"], UserRole.admin)
        return await login(email="admin@acme.com")

    return _admin_headers


@pytest.mark.asyncio
async def test_list_available_events(client: AsyncClient, verified_user, login):
    await verified_user()
    headers = await login()

    response = await client.get("/api/webhooks/events", headers=headers)

    assert response.status_code == 200
    events = response.json()["events"]
    assert events["user.created"] == "User account created"
    assert "webhook.test" in events


@pytest.mark.asyncio
async def test_webhook_crud(client: AsyncClient, admin_headers):
    headers = await admin_headers()

    created = await client.post("/api/webhooks", json=WEBHOOK, headers=headers)
    assert created.status_code == 201
    body = created.json()
    assert len(body["secret"]) == 64
    webhook_id = body["webhook"]["id"]

    listed = await client.get("/api/webhooks", headers=headers)
    assert [w["id"] for w in listed.json()] == [webhook_id]

    updated = await client.put(
        f"/api/webhooks/{webhook_id}", json={"active": False}, headers=headers
    )
    assert updated.status_code == 200
    assert updated.json()["active"] is False
    assert updated.json()["name"] == "CRM sync"

    active_only = await client.get("/api/webhooks", params={"active": True}, headers=headers)
    assert active_only.json() == []

    detail = await client.get(f"/api/webhooks/{webhook_id}", headers=headers)
    assert detail.status_code == 200
    assert detail.json()["stats"]["total_deliveries"] == 0
    assert "secret" not in detail.json()["webhook"]

    rotated = await client.post(f"/api/webhooks/{webhook_id}/regenerate-secret", headers=headers)
    assert rotated.status_code == 200
    assert rotated.json()["secret"] != body["secret"]

    deleted = await client.delete(f"/api/webhooks/{webhook_id}", headers=headers)
    assert deleted.status_code == 200

    missing = await client.get(f"/api/webhooks/{webhook_id}", headers=headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_invalid_webhook_rejected(client: AsyncClient, admin_headers):
    headers = await admin_headers()

    response = await client.post(
        "/api/webhooks", json={**WEBHOOK, "events": ["user.exploded"]}, headers=headers
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_member_cannot_register_webhook(client: AsyncClient, verified_user, login):
    await verified_user()
    headers = await login()

    response = await client.post("/api/webhooks", json=WEBHOOK, headers=headers)

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


@pytest.mark.asyncio
async def test_test_event_is_queued(client: AsyncClient, admin_headers, queue):
    headers = await admin_headers()
    created = await client.post("/api/webhooks", json=WEBHOOK, headers=headers)
    webhook_id = created.json()["webhook"]["id"]

    response = await client.post(f"/api/webhooks/{webhook_id}/test", headers=headers)

    assert response.status_code == 202
    delivery = response.json()
    assert delivery["event_type"] == "webhook.test"
    assert delivery["status"] == "pending"
    assert delivery["attempts"] == 0
    assert (UUID(delivery["id"]), None) in queue.enqueued

    history = await client.get(f"/api/webhooks/{webhook_id}/deliveries", headers=headers)
    assert [d["id"] for d in history.json()] == [delivery["id"]]


@pytest.mark.asyncio
async def test_subscribed_events_create_deliveries(
    client: AsyncClient, admin_headers, queue
):
    headers = await admin_headers()
    created = await client.post("/api/webhooks", json=WEBHOOK, headers=headers)
    webhook_id = created.json()["webhook"]["id"]

    await client.post(
        "/api/auth/register",
        json={"name": "New", "email": "new@acme.com", "password": "SecurePass123!"},
    )

    history = await client.get(f"/api/webhooks/{webhook_id}/deliveries", headers=headers)
    assert [d["event_type"] for d in history.json()] == ["user.created"]
    assert len(queue.enqueued) == 1
