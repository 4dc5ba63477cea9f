from uuid import UUID

from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.domain.errors import NotFound
from tenantgate.libs.result import Result, Return
from .dtos import UserInfo


class GetCurrentUserUseCase:
    """Profile of the authenticated user"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, tenant_id: UUID, user_id: UUID) -> Result[UserInfo]:
        async with self.uow:
            user = await self.uow.users.get_by_id(tenant_id, user_id)
            if user is None:
                return Return.err(NotFound("User"))
            return Return.ok(UserInfo.from_user(user))
