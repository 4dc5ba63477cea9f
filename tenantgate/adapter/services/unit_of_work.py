from sqlmodel.ext.asyncio.session import AsyncSession

from tenantgate.adapter.repositories.login_event_repository import LoginEventRepository
from tenantgate.adapter.repositories.user_repository import UserRepository
from tenantgate.adapter.repositories.webhook_delivery_repository import (
    WebhookDeliveryRepository,
)
from tenantgate.adapter.repositories.webhook_repository import WebhookRepository
from tenantgate.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        # Initialize all repositories with the session
        self.users = UserRepository(self.session)
        self.login_events = LoginEventRepository(self.session)
        self.webhooks = WebhookRepository(self.session)
        self.webhook_deliveries = WebhookDeliveryRepository(self.session)
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
