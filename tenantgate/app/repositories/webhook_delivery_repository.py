from abc import ABC, abstractmethod
from typing import Dict, List, Optional
from uuid import UUID

from tenantgate.domain.entities import WebhookDelivery


class IWebhookDeliveryRepository(ABC):
    """Webhook delivery repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, delivery_id: UUID) -> Optional[WebhookDelivery]:
        """Get delivery by ID"""
        pass

    @abstractmethod
    async def create(self, delivery: WebhookDelivery) -> WebhookDelivery:
        """Create a new delivery"""
        pass

    @abstractmethod
    async def update(self, delivery: WebhookDelivery) -> WebhookDelivery:
        """Update existing delivery in place"""
        pass

    @abstractmethod
    async def list_by_webhook(
        self, webhook_id: UUID, limit: Optional[int] = None
    ) -> List[WebhookDelivery]:
        """Deliveries of a webhook, newest first"""
        pass

    @abstractmethod
    async def count_by_status(self, webhook_id: UUID) -> Dict[str, int]:
        """Map of status value -> number of deliveries for a webhook"""
        pass
