from abc import ABC, abstractmethod
from typing import List
from uuid import UUID

from tenantgate.domain.entities import LoginEvent


class ILoginEventRepository(ABC):
    """Login event repository interface - application layer"""

    @abstractmethod
    async def create(self, event: LoginEvent) -> LoginEvent:
        """Append a login event"""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: UUID, limit: int = 50) -> List[LoginEvent]:
        """Most recent login events of a user"""
        pass
