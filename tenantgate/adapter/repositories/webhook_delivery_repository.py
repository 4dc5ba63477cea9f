from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from tenantgate.app.repositories.webhook_delivery_repository import (
    IWebhookDeliveryRepository,
)
from tenantgate.domain.entities import WebhookDelivery


class WebhookDeliveryRepository(IWebhookDeliveryRepository):
    """Webhook delivery repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, delivery_id: UUID) -> Optional[WebhookDelivery]:
        """Get delivery by ID"""
        stmt = select(WebhookDelivery).where(WebhookDelivery.id == delivery_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def create(self, delivery: WebhookDelivery) -> WebhookDelivery:
        """Create a new delivery"""
        self.session.add(delivery)
        await self.session.flush()
        await self.session.refresh(delivery)
        return delivery

    async def update(self, delivery: WebhookDelivery) -> WebhookDelivery:
        """Update existing delivery in place"""
        self.session.add(delivery)
        await self.session.flush()
        await self.session.refresh(delivery)
        return delivery

    async def list_by_webhook(
        self, webhook_id: UUID, limit: Optional[int] = None
    ) -> List[WebhookDelivery]:
        """Deliveries of a webhook, newest first"""
        stmt = (
            select(WebhookDelivery)
            .where(WebhookDelivery.webhook_id == webhook_id)
            .order_by(WebhookDelivery.created_at.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.exec(stmt)
        return list(result.all())

    async def count_by_status(self, webhook_id: UUID) -> Dict[str, int]:
        """Map of status value -> number of deliveries for a webhook"""
        stmt = (
            select(WebhookDelivery.status, func.count())
            .where(WebhookDelivery.webhook_id == webhook_id)
            .group_by(WebhookDelivery.status)
        )
        result = await self.session.exec(stmt)
        return {
            getattr(status, "value", status): count for status, count in result.all()
        }
