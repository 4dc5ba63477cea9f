import time
from datetime import UTC, datetime
from typing import Callable
from uuid import UUID

from tenantgate.app.services.delivery_engine import DeliveryEngine
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.use_cases.guards import authorize_actor
from tenantgate.domain.errors import NotFound
from tenantgate.libs.result import Result, Return
from .dtos import DeliveryInfo


class SendTestEventUseCase:
    """Queue a webhook.test delivery to a single webhook (webhooks.manage)"""

    # Keep pytest from collecting this class
    __test__ = False

    def __init__(
        self,
        uow: UnitOfWork,
        engine: DeliveryEngine,
        clock: Callable[[], float] = time.time,
    ):
        self.uow = uow
        self.engine = engine
        self.clock = clock

    async def execute(
        self, tenant_id: UUID, actor_id: UUID, webhook_id: UUID
    ) -> Result[DeliveryInfo]:
        async with self.uow:
            webhook = await self.uow.webhooks.get_for_tenant(tenant_id, webhook_id)
            if webhook is None:
                return Return.err(NotFound("Webhook"))

            authorized = await authorize_actor(
                self.uow, tenant_id, actor_id, "webhooks.manage", webhook
            )
            if authorized.is_err():
                return authorized

            delivery = await self.engine.dispatch_to(
                webhook,
                "webhook.test",
                {
                    "message": "This is a test webhook",
                    "webhook_id": str(webhook.id),
                    "timestamp": datetime.fromtimestamp(self.clock(), UTC).isoformat(),
                },
            )
            return Return.ok(DeliveryInfo.from_delivery(delivery))
