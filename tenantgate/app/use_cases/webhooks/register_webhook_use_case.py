import logging
import secrets
from uuid import UUID

from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.use_cases.guards import authorize_actor
from tenantgate.domain.entities import Webhook
from tenantgate.domain.errors import ValidationError
from tenantgate.libs.result import Result, Return
from .dtos import RegisterWebhookCommand, WebhookCreatedResponse, WebhookInfo
from .validation import validate_events, validate_retry_policy, validate_url

logger = logging.getLogger(__name__)


class RegisterWebhookUseCase:
    """
    Use case for subscribing an endpoint to events.

    Business Rules:
    - Requires webhooks.manage
    - URL must be http(s); it is not contacted
    - Events must be known event types
    - max_retries in [0, 10], retry_delay in [5, 3600]
    - Secret defaults to 64 random hex characters and is returned only here
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self, tenant_id: UUID, actor_id: UUID, command: RegisterWebhookCommand
    ) -> Result[WebhookCreatedResponse]:
        if not command.name.strip():
            return Return.err(ValidationError("The name field is required"))
        for error in (
            validate_url(command.url),
            validate_events(command.events),
            validate_retry_policy(command.max_retries, command.retry_delay),
        ):
            if error is not None:
                return Return.err(error)

        async with self.uow:
            authorized = await authorize_actor(self.uow, tenant_id, actor_id, "webhooks.manage")
            if authorized.is_err():
                return authorized

            webhook = await self.uow.webhooks.create(
                Webhook(
                    tenant_id=tenant_id,
                    name=command.name.strip(),
                    url=command.url,
                    events=sorted(set(command.events)),
                    secret=command.secret or secrets.token_hex(32),
                    active=command.active,
                    headers=command.headers,
                    max_retries=command.max_retries,
                    retry_delay=command.retry_delay,
                )
            )
            await self.uow.commit()

            logger.info(f"Webhook {webhook.id} registered in tenant {tenant_id}")
            return Return.ok(
                WebhookCreatedResponse(
                    webhook=WebhookInfo.from_webhook(webhook), secret=webhook.secret
                )
            )
