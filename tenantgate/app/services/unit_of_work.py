from abc import ABC, abstractmethod

from tenantgate.app.repositories.login_event_repository import ILoginEventRepository
from tenantgate.app.repositories.user_repository import IUserRepository
from tenantgate.app.repositories.webhook_delivery_repository import (
    IWebhookDeliveryRepository,
)
from tenantgate.app.repositories.webhook_repository import IWebhookRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    users: IUserRepository
    login_events: ILoginEventRepository
    webhooks: IWebhookRepository
    webhook_deliveries: IWebhookDeliveryRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
