from typing import List, Optional
from uuid import UUID

from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.use_cases.guards import authorize_actor
from tenantgate.libs.result import Result, Return
from .dtos import WebhookInfo


class ListWebhooksUseCase:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self, tenant_id: UUID, actor_id: UUID, active: Optional[bool] = None
    ) -> Result[List[WebhookInfo]]:
        async with self.uow:
            authorized = await authorize_actor(self.uow, tenant_id, actor_id, "webhooks.manage")
            if authorized.is_err():
                return authorized

            webhooks = await self.uow.webhooks.list_by_tenant(tenant_id, active=active)
            return Return.ok([WebhookInfo.from_webhook(w) for w in webhooks])
