from typing import List
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from tenantgate.app.repositories.login_event_repository import ILoginEventRepository
from tenantgate.domain.entities import LoginEvent


class LoginEventRepository(ILoginEventRepository):
    """Login event repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, event: LoginEvent) -> LoginEvent:
        """Append a login event"""
        self.session.add(event)
        await self.session.flush()
        return event

    async def list_by_user(self, user_id: UUID, limit: int = 50) -> List[LoginEvent]:
        """Most recent login events of a user"""
        stmt = (
            select(LoginEvent)
            .where(LoginEvent.user_id == user_id)
            .order_by(LoginEvent.attempted_at.desc())
            .limit(limit)
        )
        result = await self.session.exec(stmt)
        return list(result.all())
