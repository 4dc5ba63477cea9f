import logging
from typing import Any, Dict, List
from uuid import UUID

from tenantgate.app.services.delivery_engine import DeliveryEngine
from tenantgate.domain.entities import WebhookDelivery

logger = logging.getLogger(__name__)


class EventBus:
    """
    Entry point for domain events.

    Use cases publish after committing their own state change. Webhook
    fan-out problems are logged and never reach the publisher.
    """

    def __init__(self, engine: DeliveryEngine):
        self.engine = engine

    async def publish(
        self, tenant_id: UUID, event_type: str, payload: Dict[str, Any]
    ) -> List[WebhookDelivery]:
        try:
            return await self.engine.dispatch(tenant_id, event_type, payload)
        except Exception:
            logger.exception(f"Failed to dispatch {event_type} for tenant {tenant_id}")
            return []
