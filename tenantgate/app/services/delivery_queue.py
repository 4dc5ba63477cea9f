from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID


class DeliveryQueue(ABC):
    """Deferred execution of webhook delivery attempts - application layer"""

    @abstractmethod
    async def enqueue(self, delivery_id: UUID, eta: Optional[datetime] = None) -> None:
        """Run one delivery attempt as soon as possible, or not before eta"""
        pass
