from uuid import UUID

from tenantgate.app.services.event_bus import EventBus
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.use_cases.auth.dtos import UserInfo
from tenantgate.app.use_cases.guards import authorize_actor
from tenantgate.domain.errors import NotFound, StaleVersionError, ValidationError, VersionConflict
from tenantgate.libs.result import Result, Return


class RestoreUserUseCase:
    """
    Use case for undoing a soft delete.

    Business Rules:
    - Requires users.delete
    - Only tombstoned users can be restored
    - Publishes user.updated
    """

    def __init__(self, uow: UnitOfWork, events: EventBus):
        self.uow = uow
        self.events = events

    async def execute(self, tenant_id: UUID, actor_id: UUID, user_id: UUID) -> Result[UserInfo]:
        async with self.uow:
            target = await self.uow.users.get_by_id(tenant_id, user_id, include_deleted=True)
            if target is None:
                return Return.err(NotFound("User"))

            authorized = await authorize_actor(
                self.uow, tenant_id, actor_id, "users.restore", target
            )
            if authorized.is_err():
                return authorized

            if not target.is_deleted():
                return Return.err(
                    ValidationError("User is not deleted", code="USER_NOT_DELETED")
                )

            target.deleted_at = None
            try:
                await self.uow.users.update(target)
                await self.uow.commit()
            except StaleVersionError:
                return Return.err(VersionConflict())

            info = UserInfo.from_user(target)
            await self.events.publish(
                tenant_id,
                "user.updated",
                {"user_id": info.id, "email": info.email, "restored": True},
            )
            return Return.ok(info)
