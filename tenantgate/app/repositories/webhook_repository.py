from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from tenantgate.domain.entities import Webhook


class IWebhookRepository(ABC):
    """Webhook repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, webhook_id: UUID) -> Optional[Webhook]:
        """Get webhook by ID regardless of tenant (used by the delivery worker)"""
        pass

    @abstractmethod
    async def get_for_tenant(self, tenant_id: UUID, webhook_id: UUID) -> Optional[Webhook]:
        """Get webhook by ID within a tenant"""
        pass

    @abstractmethod
    async def list_by_tenant(
        self, tenant_id: UUID, active: Optional[bool] = None
    ) -> List[Webhook]:
        """List webhooks of a tenant, newest first"""
        pass

    @abstractmethod
    async def list_subscribed(self, tenant_id: UUID, event_type: str) -> List[Webhook]:
        """Active webhooks of a tenant subscribed to event_type"""
        pass

    @abstractmethod
    async def create(self, webhook: Webhook) -> Webhook:
        """Create a new webhook"""
        pass

    @abstractmethod
    async def update(self, webhook: Webhook) -> Webhook:
        """Update existing webhook"""
        pass

    @abstractmethod
    async def delete(self, webhook: Webhook) -> int:
        """Delete webhook and its deliveries. Returns count of deleted deliveries."""
        pass
