import logging
from uuid import UUID

from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.use_cases.auth.dtos import MessageResponse
from tenantgate.app.use_cases.guards import authorize_actor
from tenantgate.domain.errors import NotFound
from tenantgate.libs.result import Result, Return

logger = logging.getLogger(__name__)


class PurgeUserUseCase:
    """
    Use case for permanently removing a user.

    Business Rules:
    - Owners only, never oneself
    - Works on live and soft-deleted users alike
    - Login events are kept; their user_id no longer resolves
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self, tenant_id: UUID, actor_id: UUID, user_id: UUID
    ) -> Result[MessageResponse]:
        async with self.uow:
            target = await self.uow.users.get_by_id(tenant_id, user_id, include_deleted=True)
            if target is None:
                return Return.err(NotFound("User"))

            authorized = await authorize_actor(
                self.uow, tenant_id, actor_id, "users.purge", target
            )
            if authorized.is_err():
                return authorized

            await self.uow.users.purge(target)
            await self.uow.commit()

        logger.info(f"User {user_id} purged by {actor_id} in tenant {tenant_id}")
        return Return.ok(MessageResponse(status="purged", message="User permanently deleted"))
