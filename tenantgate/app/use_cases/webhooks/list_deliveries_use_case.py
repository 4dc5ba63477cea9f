from typing import List
from uuid import UUID

from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.use_cases.guards import authorize_actor
from tenantgate.domain.errors import NotFound
from tenantgate.libs.result import Result, Return
from .dtos import DeliveryInfo


class ListDeliveriesUseCase:
    """Delivery history of a webhook, newest first"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self, tenant_id: UUID, actor_id: UUID, webhook_id: UUID, limit: int = 50
    ) -> Result[List[DeliveryInfo]]:
        async with self.uow:
            webhook = await self.uow.webhooks.get_for_tenant(tenant_id, webhook_id)
            if webhook is None:
                return Return.err(NotFound("Webhook"))

            authorized = await authorize_actor(
                self.uow, tenant_id, actor_id, "webhooks.manage", webhook
            )
            if authorized.is_err():
                return authorized

            deliveries = await self.uow.webhook_deliveries.list_by_webhook(
                webhook.id, limit=limit
            )
            return Return.ok([DeliveryInfo.from_delivery(d) for d in deliveries])
