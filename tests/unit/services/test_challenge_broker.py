import asyncio
from uuid import uuid4

import pytest

from tenantgate.domain.entities import RequestContext

CONTEXT = RequestContext(ip="10.0.0.1", user_agent="pytest")


@pytest.mark.asyncio
async def test_challenge_peek_does_not_consume(challenges):
    challenge = await challenges.create_challenge("User@Acme.com", uuid4(), CONTEXT)

    assert (await challenges.peek_challenge(challenge.token)).is_ok()
    peeked = await challenges.peek_challenge(challenge.token)

    assert peeked.is_ok()
    assert peeked.value.email == "user@acme.com"
    assert peeked.value.ip == "10.0.0.1"


@pytest.mark.asyncio
async def test_challenge_resolves_once(challenges):
    challenge = await challenges.create_challenge("user@acme.com", uuid4(), CONTEXT)

    first = await challenges.resolve_challenge(challenge.token)
    second = await challenges.resolve_challenge(challenge.token)

    assert first.is_ok()
    assert second.is_err()
    assert second.error.code == "CHALLENGE_NOT_FOUND"


@pytest.mark.asyncio
async def test_concurrent_resolution_has_single_winner(challenges):
    challenge = await challenges.create_challenge("user@acme.com", uuid4(), CONTEXT)

    results = await asyncio.gather(
        *[challenges.resolve_challenge(challenge.token) for _ in range(5)]
    )

    assert sum(1 for r in results if r.is_ok()) == 1


@pytest.mark.asyncio
async def test_challenge_expires(challenges, clock):
    challenge = await challenges.create_challenge("user@acme.com", uuid4(), CONTEXT)

    clock.advance(10 * 60)
    result = await challenges.peek_challenge(challenge.token)

    assert result.is_err()


@pytest.mark.asyncio
async def test_magic_link_rate_limited_per_email(challenges, tenant_id):
    for _ in range(3):
        assert (await challenges.create_magic_link("user@acme.com", tenant_id, CONTEXT)).is_ok()

    refused = await challenges.create_magic_link("USER@acme.com", tenant_id, CONTEXT)
    other_email = await challenges.create_magic_link("other@acme.com", tenant_id, CONTEXT)

    assert refused.is_err()
    assert refused.error.code == "RATE_LIMITED"
    assert refused.error.retry_after == 3600
    assert other_email.is_ok()


@pytest.mark.asyncio
async def test_magic_link_consumed_once(challenges, tenant_id):
    link = (await challenges.create_magic_link("user@acme.com", tenant_id, CONTEXT)).value

    assert (await challenges.peek_magic_link(link.token)).is_ok()
    assert (await challenges.consume_magic_link(link.token)).is_ok()
    assert (await challenges.consume_magic_link(link.token)).is_err()
    assert (await challenges.peek_magic_link(link.token)).is_err()


@pytest.mark.asyncio
async def test_magic_link_expires_after_fifteen_minutes(challenges, clock, tenant_id):
    link = (await challenges.create_magic_link("user@acme.com", tenant_id, CONTEXT)).value

    clock.advance(14 * 60)
    assert (await challenges.peek_magic_link(link.token)).is_ok()

    clock.advance(60)
    assert (await challenges.peek_magic_link(link.token)).is_err()


@pytest.mark.asyncio
async def test_discard_magic_link(challenges, tenant_id):
    link = (await challenges.create_magic_link("user@acme.com", tenant_id, CONTEXT)).value

    await challenges.discard_magic_link(link.token)

    assert (await challenges.peek_magic_link(link.token)).is_err()
