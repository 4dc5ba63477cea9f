import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_magic_link_sign_in(client: AsyncClient, notifier, verified_user):
    await verified_user()

    response = await client.post("/api/auth/magic-link", json={"email": "user@acme.com"})
    assert response.status_code == 200
    path = notifier.last_magic_link_path("user@acme.com")
    assert path.startswith("/api/auth/magic-link/verify/")

    first = await client.get(path)
    assert first.status_code == 200
    assert first.json()["state"] == "authenticated"
    assert first.json()["access_token"]

    second = await client.get(path)
    assert second.status_code == 401


@pytest.mark.asyncio
async def test_unknown_email_looks_the_same(client: AsyncClient, notifier):
    response = await client.post("/api/auth/magic-link", json={"email": "ghost@acme.com"})

    assert response.status_code == 200
    assert response.json()["status"] == "sent"
    assert notifier.magic_links == []


@pytest.mark.asyncio
async def test_magic_link_rate_limited(client: AsyncClient, verified_user):
    await verified_user()
    for _ in range(3):
        sent = await client.post("/api/auth/magic-link", json={"email": "user@acme.com"})
        assert sent.status_code == 200

    response = await client.post("/api/auth/magic-link", json={"email": "user@acme.com"})

    assert response.status_code == 429
    assert "Retry-After" in response.headers


@pytest.mark.asyncio
async def test_magic_link_from_other_tenant(client: AsyncClient, notifier, verified_user):
    await verified_user()
    await client.post("/api/auth/magic-link", json={"email": "user@acme.com"})

    response = await client.get(
        notifier.last_magic_link_path("user@acme.com"),
        headers={"X-Tenant-ID": "7b0f3f5c-4c1e-4a55-9d0e-2f3c1a9b8e77"},
    )

    assert response.status_code == 401
