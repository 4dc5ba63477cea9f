from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from tenantgate.domain.entities import User, UserRole


class IUserRepository(ABC):
    """User repository interface - application layer"""

    @abstractmethod
    async def get_by_email(self, tenant_id: UUID, email: str) -> Optional[User]:
        """Get a live (not soft-deleted) user by email within a tenant"""
        pass

    @abstractmethod
    async def get_by_id(
        self, tenant_id: UUID, user_id: UUID, include_deleted: bool = False
    ) -> Optional[User]:
        """Get user by ID within a tenant"""
        pass

    @abstractmethod
    async def list_by_tenant(
        self,
        tenant_id: UUID,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        email_verified: Optional[bool] = None,
        limit: int = 15,
        offset: int = 0,
    ) -> List[User]:
        """List live users of a tenant, newest first"""
        pass

    @abstractmethod
    async def create(self, user: User) -> User:
        """Create a new user"""
        pass

    @abstractmethod
    async def update(self, user: User) -> User:
        """
        Persist user changes guarded by user.version.

        Raises StaleVersionError if the stored version differs; on success
        user.version is incremented.
        """
        pass

    @abstractmethod
    async def purge(self, user: User) -> None:
        """Hard-delete the user row"""
        pass
