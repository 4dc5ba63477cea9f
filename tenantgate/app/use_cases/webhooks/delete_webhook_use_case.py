import logging
from uuid import UUID

from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.use_cases.guards import authorize_actor
from tenantgate.domain.errors import NotFound
from tenantgate.libs.result import Result, Return
from .dtos import WebhookDeletedResponse

logger = logging.getLogger(__name__)


class DeleteWebhookUseCase:
    """Delete a webhook together with its delivery history (webhooks.manage)"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self, tenant_id: UUID, actor_id: UUID, webhook_id: UUID
    ) -> Result[WebhookDeletedResponse]:
        async with self.uow:
            webhook = await self.uow.webhooks.get_for_tenant(tenant_id, webhook_id)
            if webhook is None:
                return Return.err(NotFound("Webhook"))

            authorized = await authorize_actor(
                self.uow, tenant_id, actor_id, "webhooks.manage", webhook
            )
            if authorized.is_err():
                return authorized

            deleted = await self.uow.webhooks.delete(webhook)
            await self.uow.commit()

        logger.info(f"Webhook {webhook_id} deleted with {deleted} deliveries")
        return Return.ok(
            WebhookDeletedResponse(message="Webhook deleted", deliveries_deleted=deleted)
        )
