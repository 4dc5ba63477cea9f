"""
Webhook Delivery Engine

Fans an event out to subscribed webhooks and performs individual delivery
attempts: sign, POST, record, and schedule the next attempt.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

import httpx

from tenantgate.app.services.cache import CacheStore
from tenantgate.app.services.delivery_queue import DeliveryQueue
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.services.webhook_signing import canonical_json, sign
from tenantgate.domain.base import utcnow
from tenantgate.domain.entities import Webhook, WebhookDelivery
from tenantgate.domain.errors import DeliveryError

logger = logging.getLogger(__name__)

USER_AGENT = "tenantgate-webhooks/1.0"
PROTOCOL_HEADERS = (
    "content-type",
    "user-agent",
    "x-webhook-signature",
    "x-webhook-event",
    "x-webhook-delivery",
)
MAX_RESPONSE_BODY = 65535


class DeliveryEngine:
    """
    Dispatches events and runs delivery attempts.

    Business Rules:
    - dispatch creates one pending delivery per active webhook of the tenant
      subscribed to the event, commits, then enqueues each delivery
    - deliver performs exactly one attempt; a 2xx response is success
    - after a failed attempt n, a retry is scheduled at now + retry_delay * n
      while n <= max_retries, so a delivery gets at most max_retries + 1 attempts
    - a deleted webhook or a terminal delivery makes deliver a no-op; an
      inactive webhook fails the delivery without sending
    - an attempt arriving before next_retry_at (queue redelivery or a duplicate
      entry) is skipped; the scheduled task still runs at its time
    - any send error, including an unparseable URL, is a failed attempt
    - deliveries that could not be queued after commit are logged by id;
      they stay pending
    - a cache lock keeps attempts of one delivery strictly sequential
    - custom headers never override protocol headers
    """

    def __init__(
        self,
        uow: UnitOfWork,
        queue: DeliveryQueue,
        cache: CacheStore,
        timeout_seconds: float = 30,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.queue = queue
        self.cache = cache
        self.timeout_seconds = timeout_seconds
        self.client_factory = client_factory or (
            lambda: httpx.AsyncClient(timeout=self.timeout_seconds)
        )
        self.clock = clock

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    async def dispatch(
        self, tenant_id: UUID, event_type: str, payload: Dict[str, Any]
    ) -> List[WebhookDelivery]:
        """
        Create and enqueue deliveries for every subscribed webhook.

        Args:
            tenant_id: Tenant the event belongs to
            event_type: Event name (e.g. "user.created")
            payload: Event data; snapshotted into each delivery

        Returns:
            Created deliveries (empty if nobody listens)
        """
        async with self.uow:
            webhooks = await self.uow.webhooks.list_subscribed(tenant_id, event_type)
            deliveries = [
                await self._create_delivery(webhook, event_type, payload)
                for webhook in webhooks
            ]
            await self.uow.commit()

        await self._enqueue_all(deliveries)

        if deliveries:
            logger.info(
                f"Dispatched {event_type} for tenant {tenant_id} "
                f"to {len(deliveries)} webhook(s)"
            )
        return deliveries

    async def dispatch_to(
        self, webhook: Webhook, event_type: str, payload: Dict[str, Any]
    ) -> WebhookDelivery:
        """Create and enqueue a delivery to a single webhook (used by webhook tests)"""
        async with self.uow:
            delivery = await self._create_delivery(webhook, event_type, payload)
            await self.uow.commit()

        await self._enqueue_all([delivery])
        return delivery

    async def _enqueue_all(self, deliveries: List[WebhookDelivery]) -> None:
        unqueued = []
        for delivery in deliveries:
            try:
                await self.queue.enqueue(delivery.id)
            except Exception:
                logger.exception(f"Failed to queue delivery {delivery.id}")
                unqueued.append(str(delivery.id))
        if unqueued:
            logger.error(f"Deliveries left pending without a queued attempt: {', '.join(unqueued)}")

    async def _create_delivery(
        self, webhook: Webhook, event_type: str, payload: Dict[str, Any]
    ) -> WebhookDelivery:
        now = self.clock()
        delivery = await self.uow.webhook_deliveries.create(
            WebhookDelivery(
                webhook_id=webhook.id,
                event_type=event_type,
                payload=dict(payload),
                created_at=now,
                updated_at=now,
            )
        )
        webhook.last_triggered_at = now
        await self.uow.webhooks.update(webhook)
        return delivery

    # ------------------------------------------------------------------
    # Attempts
    # ------------------------------------------------------------------

    @staticmethod
    def _lock_key(delivery_id: UUID) -> str:
        return f"webhook_delivery_lock:{delivery_id}"

    def build_request(
        self, webhook: Webhook, delivery: WebhookDelivery, at: datetime
    ) -> tuple:
        """Serialized body, signature and headers of one attempt"""
        envelope = {
            "event": delivery.event_type,
            "data": delivery.payload,
            "webhook_id": str(webhook.id),
            "delivery_id": str(delivery.id),
            "timestamp": at.isoformat(),
        }
        body = canonical_json(envelope)
        signature = sign(body, webhook.secret)

        headers = {
            name: value
            for name, value in (webhook.headers or {}).items()
            if name.lower() not in PROTOCOL_HEADERS
        }
        headers.update(
            {
                "Content-Type": "application/json",
                "User-Agent": USER_AGENT,
                "X-Webhook-Signature": signature,
                "X-Webhook-Event": delivery.event_type,
                "X-Webhook-Delivery": str(delivery.id),
            }
        )
        return body, signature, headers

    async def deliver(self, delivery_id: UUID) -> Optional[WebhookDelivery]:
        """
        Perform one delivery attempt.

        Returns:
            The updated delivery, or None if the delivery/webhook no longer
            exists or another attempt holds the lock
        """
        lock_key = self._lock_key(delivery_id)
        if not await self.cache.add(
            lock_key, {"delivery_id": str(delivery_id)}, int(self.timeout_seconds) + 30
        ):
            logger.info(f"Delivery {delivery_id} is already being attempted, skipping")
            return None

        try:
            return await self._attempt(delivery_id)
        finally:
            await self.cache.delete(lock_key)

    async def _attempt(self, delivery_id: UUID) -> Optional[WebhookDelivery]:
        next_retry_at = None

        async with self.uow:
            delivery = await self.uow.webhook_deliveries.get_by_id(delivery_id)
            if delivery is None:
                logger.warning(f"Delivery {delivery_id} not found")
                return None
            if delivery.is_terminal():
                return delivery

            webhook = await self.uow.webhooks.get_by_id(delivery.webhook_id)
            if webhook is None:
                logger.info(f"Webhook of delivery {delivery_id} was deleted, skipping")
                return None

            now = self.clock()
            if not delivery.is_due(now):
                logger.info(
                    f"Delivery {delivery_id} is not due until {delivery.next_retry_at}, skipping"
                )
                return delivery

            if not webhook.active:
                delivery.mark_failed("Webhook is inactive", now)
                await self.uow.webhook_deliveries.update(delivery)
                await self.uow.commit()
                return delivery

            body, signature, headers = self.build_request(webhook, delivery, now)
            delivery.attempts += 1
            delivery.signature = signature

            error: Optional[DeliveryError] = None
            try:
                async with self.client_factory() as client:
                    response = await client.post(
                        webhook.url,
                        content=body,
                        headers=headers,
                        timeout=self.timeout_seconds,
                    )
                delivery.response_status = response.status_code
                delivery.response_body = response.text[:MAX_RESPONSE_BODY]
                if not response.is_success:
                    error = DeliveryError(f"HTTP {response.status_code}: {response.text[:500]}")
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                error = DeliveryError(str(exc) or exc.__class__.__name__)

            now = self.clock()
            if error is None:
                delivery.mark_succeeded(delivery.response_status, delivery.response_body, now)
                logger.info(
                    f"Webhook delivered: webhook={webhook.id} delivery={delivery.id} "
                    f"event={delivery.event_type} status={delivery.response_status}"
                )
            else:
                delivery.error_message = error.message
                logger.warning(
                    f"Webhook delivery failed: webhook={webhook.id} delivery={delivery.id} "
                    f"attempt={delivery.attempts} error={error.message}"
                )
                if delivery.attempts <= webhook.max_retries:
                    next_retry_at = delivery.schedule_retry(webhook.retry_delay, now)
                    logger.info(f"Retry of delivery {delivery.id} scheduled at {next_retry_at}")
                else:
                    delivery.mark_failed(error.message, now)

            await self.uow.webhook_deliveries.update(delivery)
            await self.uow.commit()

        if next_retry_at is not None:
            await self.queue.enqueue(delivery.id, eta=next_retry_at)
        return delivery
