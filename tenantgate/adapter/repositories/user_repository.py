from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_
from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from tenantgate.app.repositories.user_repository import IUserRepository
from tenantgate.domain.base import utcnow
from tenantgate.domain.entities import User, UserRole
from tenantgate.domain.errors import StaleVersionError


class UserRepository(IUserRepository):
    """User repository implementation using SQLModel"""

    # Columns never written by update()
    _IMMUTABLE = {"id", "tenant_id", "version", "created_at"}

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, tenant_id: UUID, email: str) -> Optional[User]:
        """Get a live user by email within a tenant"""
        stmt = select(User).where(
            User.tenant_id == tenant_id,
            User.email == email.lower(),
            User.deleted_at.is_(None),
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_id(
        self, tenant_id: UUID, user_id: UUID, include_deleted: bool = False
    ) -> Optional[User]:
        """Get user by ID within a tenant"""
        stmt = select(User).where(User.tenant_id == tenant_id, User.id == user_id)
        if not include_deleted:
            stmt = stmt.where(User.deleted_at.is_(None))
        result = await self.session.exec(stmt)
        return result.one_or_none()

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
        stmt = select(User).where(User.tenant_id == tenant_id, User.deleted_at.is_(None))
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        if role is not None:
            stmt = stmt.where(User.role == role)
        if email_verified is True:
            stmt = stmt.where(User.email_verified_at.is_not(None))
        elif email_verified is False:
            stmt = stmt.where(User.email_verified_at.is_(None))
        stmt = stmt.order_by(User.created_at.desc(), User.id).offset(offset).limit(limit)
        result = await self.session.exec(stmt)
        return list(result.all())

    async def create(self, user: User) -> User:
        """Create a new user"""
        user.email = user.email.lower()
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def update(self, user: User) -> User:
        """
        Compare-and-swap on the version column.

        The UPDATE only matches the row if its version still equals the one
        the caller read; zero affected rows means another writer got there
        first and nothing is written.
        """
        expected = user.version
        now = utcnow()
        values = user.model_dump(exclude=self._IMMUTABLE)
        values["updated_at"] = now

        stmt = (
            update(User)
            .where(User.id == user.id, User.version == expected)
            .values(**values, version=expected + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            raise StaleVersionError("User", user.id, expected)

        user.version = expected + 1
        user.updated_at = now
        return user

    async def purge(self, user: User) -> None:
        """Hard-delete the user row"""
        await self.session.delete(user)
        await self.session.flush()
