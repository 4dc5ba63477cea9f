import time
from datetime import UTC, datetime
from typing import Callable
from uuid import UUID

from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.use_cases.guards import authorize_actor
from tenantgate.domain.errors import NotFound, ValidationError
from tenantgate.libs.result import Result, Return
from .dtos import UpdateWebhookCommand, WebhookInfo
from .validation import validate_events, validate_retry_policy, validate_url


class UpdateWebhookUseCase:
    """
    Use case for changing a webhook.

    Business Rules:
    - Requires webhooks.manage
    - Only fields present in the command change; the secret never does
    - Deactivation stops queued retries (checked before each attempt)
    """

    def __init__(self, uow: UnitOfWork, clock: Callable[[], float] = time.time):
        self.uow = uow
        self.clock = clock

    async def execute(
        self,
        tenant_id: UUID,
        actor_id: UUID,
        webhook_id: UUID,
        command: UpdateWebhookCommand,
    ) -> Result[WebhookInfo]:
        if command.name is not None and not command.name.strip():
            return Return.err(ValidationError("The name field is required"))
        checks = [validate_retry_policy(command.max_retries, command.retry_delay)]
        if command.url is not None:
            checks.append(validate_url(command.url))
        if command.events is not None:
            checks.append(validate_events(command.events))
        for error in checks:
            if error is not None:
                return Return.err(error)

        async with self.uow:
            webhook = await self.uow.webhooks.get_for_tenant(tenant_id, webhook_id)
            if webhook is None:
                return Return.err(NotFound("Webhook"))

            authorized = await authorize_actor(
                self.uow, tenant_id, actor_id, "webhooks.manage", webhook
            )
            if authorized.is_err():
                return authorized

            changes = command.model_dump(exclude_none=True)
            if "name" in changes:
                changes["name"] = changes["name"].strip()
            if "events" in changes:
                changes["events"] = sorted(set(changes["events"]))
            for field, value in changes.items():
                setattr(webhook, field, value)
            webhook.updated_at = datetime.fromtimestamp(self.clock(), UTC)

            webhook = await self.uow.webhooks.update(webhook)
            await self.uow.commit()
            return Return.ok(WebhookInfo.from_webhook(webhook))
