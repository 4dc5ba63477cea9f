import logging
import secrets
from uuid import UUID

from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.use_cases.guards import authorize_actor
from tenantgate.domain.errors import NotFound
from tenantgate.libs.result import Result, Return
from .dtos import WebhookSecretResponse

logger = logging.getLogger(__name__)


class RegenerateWebhookSecretUseCase:
    """
    Use case for rotating a webhook signing secret.

    Business Rules:
    - Hard cutover: every attempt after the commit, including retries of
      older deliveries, is signed with the new secret
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self, tenant_id: UUID, actor_id: UUID, webhook_id: UUID
    ) -> Result[WebhookSecretResponse]:
        async with self.uow:
            webhook = await self.uow.webhooks.get_for_tenant(tenant_id, webhook_id)
            if webhook is None:
                return Return.err(NotFound("Webhook"))

            authorized = await authorize_actor(
                self.uow, tenant_id, actor_id, "webhooks.manage", webhook
            )
            if authorized.is_err():
                return authorized

            webhook.secret = secrets.token_hex(32)
            webhook = await self.uow.webhooks.update(webhook)
            await self.uow.commit()

            logger.info(f"Secret of webhook {webhook_id} regenerated")
            return Return.ok(
                WebhookSecretResponse(
                    secret=webhook.secret,
                    message="Webhook secret regenerated. Update your endpoint to use the new secret",
                )
            )
