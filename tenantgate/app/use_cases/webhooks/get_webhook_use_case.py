from uuid import UUID

from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.use_cases.guards import authorize_actor
from tenantgate.domain.errors import NotFound
from tenantgate.libs.result import Result, Return
from .dtos import DeliveryInfo, DeliveryStats, WebhookDetailResponse, WebhookInfo

RECENT_DELIVERIES = 10


class GetWebhookUseCase:
    """Webhook with its 10 most recent deliveries and delivery statistics"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self, tenant_id: UUID, actor_id: UUID, webhook_id: UUID
    ) -> Result[WebhookDetailResponse]:
        async with self.uow:
            webhook = await self.uow.webhooks.get_for_tenant(tenant_id, webhook_id)
            if webhook is None:
                return Return.err(NotFound("Webhook"))

            authorized = await authorize_actor(
                self.uow, tenant_id, actor_id, "webhooks.manage", webhook
            )
            if authorized.is_err():
                return authorized

            recent = await self.uow.webhook_deliveries.list_by_webhook(
                webhook.id, limit=RECENT_DELIVERIES
            )
            counts = await self.uow.webhook_deliveries.count_by_status(webhook.id)

            return Return.ok(
                WebhookDetailResponse(
                    webhook=WebhookInfo.from_webhook(webhook),
                    recent_deliveries=[DeliveryInfo.from_delivery(d) for d in recent],
                    stats=DeliveryStats.from_counts(counts),
                )
            )
