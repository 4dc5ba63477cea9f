from uuid import UUID

from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.use_cases.guards import authorize_actor
from tenantgate.domain.errors import NotFound
from tenantgate.libs.result import Result, Return
from .dtos import UserDetail


class GetUserUseCase:
    """Show one live user; allowed on oneself or with users.read"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, tenant_id: UUID, actor_id: UUID, user_id: UUID) -> Result[UserDetail]:
        async with self.uow:
            target = await self.uow.users.get_by_id(tenant_id, user_id)
            if target is None:
                return Return.err(NotFound("User"))

            authorized = await authorize_actor(
                self.uow, tenant_id, actor_id, "users.view", target
            )
            if authorized.is_err():
                return authorized

            return Return.ok(UserDetail.from_user(target))
