from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from tenantgate.app.repositories.webhook_repository import IWebhookRepository
from tenantgate.domain.entities import Webhook, WebhookDelivery


class WebhookRepository(IWebhookRepository):
    """Webhook repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, webhook_id: UUID) -> Optional[Webhook]:
        """Get webhook by ID regardless of tenant"""
        stmt = select(Webhook).where(Webhook.id == webhook_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_for_tenant(self, tenant_id: UUID, webhook_id: UUID) -> Optional[Webhook]:
        """Get webhook by ID within a tenant"""
        stmt = select(Webhook).where(
            Webhook.id == webhook_id, Webhook.tenant_id == tenant_id
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def list_by_tenant(
        self, tenant_id: UUID, active: Optional[bool] = None
    ) -> List[Webhook]:
        """List webhooks of a tenant, newest first"""
        stmt = select(Webhook).where(Webhook.tenant_id == tenant_id)
        if active is not None:
            stmt = stmt.where(Webhook.active == active)
        stmt = stmt.order_by(Webhook.created_at.desc())
        result = await self.session.exec(stmt)
        return list(result.all())

    async def list_subscribed(self, tenant_id: UUID, event_type: str) -> List[Webhook]:
        """
        Active webhooks of a tenant subscribed to event_type.

        The event filter is applied in Python: JSON containment operators
        differ between SQLite and PostgreSQL.
        """
        stmt = select(Webhook).where(
            Webhook.tenant_id == tenant_id, Webhook.active == True  # noqa: E712
        )
        result = await self.session.exec(stmt)
        return [webhook for webhook in result.all() if webhook.listens_to(event_type)]

    async def create(self, webhook: Webhook) -> Webhook:
        """Create a new webhook"""
        self.session.add(webhook)
        await self.session.flush()
        await self.session.refresh(webhook)
        return webhook

    async def update(self, webhook: Webhook) -> Webhook:
        """Update existing webhook"""
        self.session.add(webhook)
        await self.session.flush()
        await self.session.refresh(webhook)
        return webhook

    async def delete(self, webhook: Webhook) -> int:
        """Delete webhook and its deliveries"""
        stmt = delete(WebhookDelivery).where(WebhookDelivery.webhook_id == webhook.id)
        result = await self.session.execute(stmt)
        await self.session.delete(webhook)
        await self.session.flush()
        return result.rowcount
