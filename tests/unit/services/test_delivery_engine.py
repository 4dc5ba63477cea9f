import json
import logging
from datetime import timedelta
from uuid import uuid4

import httpx
import pytest

from tenantgate.app.services.delivery_engine import USER_AGENT, DeliveryEngine
from tenantgate.app.services.webhook_signing import verify_signature
from tenantgate.domain.entities import DeliveryStatus, Webhook, WebhookDelivery


@pytest.fixture
def webhook(tenant_id):
    return Webhook(
        id=uuid4(),
        tenant_id=tenant_id,
        name="CRM sync",
        url="https://hooks.example.com/tenantgate",
        events=["user.created", "user.deleted"],
        secret="whsec_" + "a" * 32,
        headers={"X-Api-Key": "abc", "X-Webhook-Signature": "forged", "user-agent": "spoof"},
        max_retries=3,
        retry_delay=60,
    )


@pytest.fixture
def delivery(webhook, clock):
    return WebhookDelivery(
        id=uuid4(),
        webhook_id=webhook.id,
        event_type="user.created",
        payload={"user_id": "42", "email": "user@acme.com"},
        created_at=clock.datetime(),
        updated_at=clock.datetime(),
    )


@pytest.fixture
def receiver():
    """Scripted webhook receiver; append responses to `replies`, inspect `requests`"""

    class Receiver:
        def __init__(self):
            self.requests = []
            self.replies = []

        def handler(self, request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            reply = self.replies.pop(0) if self.replies else httpx.Response(200, text="ok")
            if isinstance(reply, Exception):
                raise reply
            return reply

    return Receiver()


@pytest.fixture
def engine(mock_uow, queue, cache, clock, receiver):
    return DeliveryEngine(
        mock_uow,
        queue,
        cache,
        timeout_seconds=5,
        client_factory=lambda: httpx.AsyncClient(transport=httpx.MockTransport(receiver.handler)),
        clock=clock.datetime,
    )


@pytest.fixture
def stored(mock_uow, webhook, delivery):
    mock_uow.webhooks.get_by_id.return_value = webhook
    mock_uow.webhook_deliveries.get_by_id.return_value = delivery
    return delivery


@pytest.mark.asyncio
async def test_dispatch_creates_delivery_per_subscribed_webhook(
    engine, mock_uow, queue, webhook, tenant_id
):
    mock_uow.webhooks.list_subscribed.return_value = [webhook]

    deliveries = await engine.dispatch(tenant_id, "user.created", {"user_id": "42"})

    assert len(deliveries) == 1
    assert deliveries[0].status == DeliveryStatus.pending
    assert deliveries[0].attempts == 0
    assert deliveries[0].payload == {"user_id": "42"}
    mock_uow.commit.assert_called_once()
    assert queue.enqueued == [(deliveries[0].id, None)]
    assert webhook.last_triggered_at is not None


@pytest.mark.asyncio
async def test_dispatch_without_listeners_sends_nothing(engine, mock_uow, queue, tenant_id):
    deliveries = await engine.dispatch(tenant_id, "user.created", {})

    assert deliveries == []
    assert queue.enqueued == []


@pytest.mark.asyncio
async def test_successful_delivery(engine, stored, receiver, queue):
    result = await engine.deliver(stored.id)

    assert result.status == DeliveryStatus.success
    assert result.attempts == 1
    assert result.response_status == 200
    assert result.response_body == "ok"
    assert result.delivered_at is not None
    assert queue.enqueued == []
    assert len(receiver.requests) == 1


@pytest.mark.asyncio
async def test_request_is_signed_envelope(engine, stored, webhook, receiver):
    await engine.deliver(stored.id)

    request = receiver.requests[0]
    body = request.content
    envelope = json.loads(body)

    assert envelope["event"] == "user.created"
    assert envelope["data"] == {"user_id": "42", "email": "user@acme.com"}
    assert envelope["webhook_id"] == str(webhook.id)
    assert envelope["delivery_id"] == str(stored.id)
    assert verify_signature(body, request.headers["X-Webhook-Signature"], webhook.secret)
    assert stored.signature == request.headers["X-Webhook-Signature"]


@pytest.mark.asyncio
async def test_protocol_headers_win_over_custom_headers(engine, stored, receiver):
    await engine.deliver(stored.id)

    headers = receiver.requests[0].headers
    assert headers["X-Api-Key"] == "abc"
    assert headers["User-Agent"] == USER_AGENT
    assert headers["X-Webhook-Signature"].startswith("sha256=")
    assert headers["X-Webhook-Signature"] != "forged"
    assert headers["X-Webhook-Event"] == "user.created"
    assert headers["X-Webhook-Delivery"] == str(stored.id)
    assert headers["Content-Type"] == "application/json"


@pytest.mark.asyncio
async def test_failing_endpoint_retries_with_linear_backoff(
    engine, stored, receiver, queue, clock
):
    receiver.replies = [httpx.Response(500, text="boom") for _ in range(4)]
    start = clock.datetime()

    for expected_delay in (60, 120, 180):
        result = await engine.deliver(stored.id)
        assert result.status == DeliveryStatus.pending
        assert result.next_retry_at == clock.datetime() + timedelta(seconds=expected_delay)
        clock.advance(expected_delay)

    final = await engine.deliver(stored.id)

    assert final.status == DeliveryStatus.failed
    assert final.attempts == 4
    assert final.next_retry_at is None
    assert final.error_message == "HTTP 500: boom"
    assert final.response_status == 500
    assert [eta for _, eta in queue.enqueued] == [
        start + timedelta(seconds=60),
        start + timedelta(seconds=60 + 120),
        start + timedelta(seconds=60 + 120 + 180),
    ]
    assert len(receiver.requests) == 4


@pytest.mark.asyncio
async def test_retry_then_success(engine, stored, receiver, clock):
    receiver.replies = [httpx.Response(503, text="busy"), httpx.Response(204)]

    first = await engine.deliver(stored.id)
    clock.advance(60)
    second = await engine.deliver(stored.id)

    assert first.attempts == 1
    assert second.status == DeliveryStatus.success
    assert second.attempts == 2
    assert second.error_message is None


@pytest.mark.asyncio
async def test_network_error_is_a_failed_attempt(engine, stored, receiver):
    receiver.replies = [httpx.ConnectError("connection refused")]

    result = await engine.deliver(stored.id)

    assert result.status == DeliveryStatus.pending
    assert result.attempts == 1
    assert result.response_status is None
    assert "connection refused" in result.error_message


@pytest.mark.asyncio
async def test_attempt_before_scheduled_retry_is_skipped(engine, stored, receiver, queue, clock):
    receiver.replies = [httpx.Response(500, text="boom"), httpx.Response(200, text="ok")]

    await engine.deliver(stored.id)
    clock.advance(59)
    early = await engine.deliver(stored.id)

    assert early.status == DeliveryStatus.pending
    assert early.attempts == 1
    assert len(receiver.requests) == 1
    assert len(queue.enqueued) == 1

    clock.advance(1)
    on_time = await engine.deliver(stored.id)

    assert on_time.status == DeliveryStatus.success
    assert on_time.attempts == 2


@pytest.mark.asyncio
async def test_naive_retry_time_is_read_as_utc(engine, stored, receiver, clock):
    stored.next_retry_at = (clock.datetime() + timedelta(seconds=30)).replace(tzinfo=None)

    assert (await engine.deliver(stored.id)).attempts == 0
    clock.advance(30)
    assert (await engine.deliver(stored.id)).status == DeliveryStatus.success


@pytest.mark.asyncio
async def test_unparseable_url_is_a_failed_attempt(engine, stored, webhook, receiver, queue):
    webhook.url = "http://example.com:abc/hook"

    result = await engine.deliver(stored.id)

    assert result.status == DeliveryStatus.pending
    assert result.attempts == 1
    assert result.error_message
    assert result.next_retry_at is not None
    assert len(queue.enqueued) == 1
    assert receiver.requests == []


@pytest.mark.asyncio
async def test_unparseable_url_fails_terminally_without_retries(engine, stored, webhook, mock_uow):
    webhook.url = "http://example.com:abc/hook"
    webhook.max_retries = 0

    result = await engine.deliver(stored.id)

    assert result.status == DeliveryStatus.failed
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_enqueue_failure_is_logged_and_others_still_queued(
    engine, mock_uow, queue, webhook, tenant_id, caplog
):
    second = Webhook(
        id=uuid4(),
        tenant_id=tenant_id,
        name="Billing",
        url="https://billing.example.com/hooks",
        events=["user.created"],
        secret="whsec_" + "b" * 32,
    )
    mock_uow.webhooks.list_subscribed.return_value = [webhook, second]
    calls = []
    original = queue.enqueue

    async def flaky_enqueue(delivery_id, eta=None):
        calls.append(delivery_id)
        if len(calls) == 1:
            raise ConnectionError("broker down")
        await original(delivery_id, eta=eta)

    queue.enqueue = flaky_enqueue

    with caplog.at_level(logging.ERROR):
        deliveries = await engine.dispatch(tenant_id, "user.created", {"user_id": "42"})

    assert len(deliveries) == 2
    assert queue.enqueued == [(deliveries[1].id, None)]
    assert str(deliveries[0].id) in caplog.text


@pytest.mark.asyncio
async def test_zero_retries_fails_after_first_attempt(engine, stored, webhook, receiver, queue):
    webhook.max_retries = 0
    receiver.replies = [httpx.Response(400, text="bad")]

    result = await engine.deliver(stored.id)

    assert result.status == DeliveryStatus.failed
    assert result.attempts == 1
    assert queue.enqueued == []


@pytest.mark.asyncio
async def test_inactive_webhook_fails_without_sending(engine, stored, webhook, receiver):
    webhook.active = False

    result = await engine.deliver(stored.id)

    assert result.status == DeliveryStatus.failed
    assert result.error_message == "Webhook is inactive"
    assert result.attempts == 0
    assert receiver.requests == []


@pytest.mark.asyncio
async def test_deleted_webhook_is_noop(engine, stored, mock_uow, receiver):
    mock_uow.webhooks.get_by_id.return_value = None

    assert await engine.deliver(stored.id) is None
    assert receiver.requests == []


@pytest.mark.asyncio
async def test_terminal_delivery_is_not_resent(engine, stored, receiver):
    await engine.deliver(stored.id)
    await engine.deliver(stored.id)

    assert len(receiver.requests) == 1


@pytest.mark.asyncio
async def test_concurrent_attempt_is_skipped(engine, stored, cache, receiver):
    await cache.add(f"webhook_delivery_lock:{stored.id}", {"delivery_id": str(stored.id)}, 60)

    assert await engine.deliver(stored.id) is None
    assert receiver.requests == []


@pytest.mark.asyncio
async def test_lock_released_after_attempt(engine, stored, cache):
    await engine.deliver(stored.id)

    assert not await cache.exists(f"webhook_delivery_lock:{stored.id}")


@pytest.mark.asyncio
async def test_response_body_is_capped(engine, stored, receiver):
    receiver.replies = [httpx.Response(200, text="x" * 70000)]

    result = await engine.deliver(stored.id)

    assert len(result.response_body) == 65535
