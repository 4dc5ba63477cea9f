import asyncio
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from celery import Task

from tenantgate.app.services.delivery_queue import DeliveryQueue

logger = logging.getLogger(__name__)


class CeleryDeliveryQueue(DeliveryQueue):
    """Delivery queue backed by a Celery task taking the delivery id"""

    def __init__(self, task: Task):
        self.task = task

    async def enqueue(self, delivery_id: UUID, eta: Optional[datetime] = None) -> None:
        # Publishing to the broker is blocking I/O
        await asyncio.to_thread(self.task.apply_async, args=[str(delivery_id)], eta=eta)
        logger.debug(f"Queued delivery {delivery_id} (eta={eta})")
