import logging
import time
from datetime import UTC, datetime
from typing import Callable
from uuid import UUID

from tenantgate.app.services.event_bus import EventBus
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.use_cases.auth.dtos import MessageResponse
from tenantgate.app.use_cases.guards import authorize_actor
from tenantgate.domain.errors import NotFound, StaleVersionError, VersionConflict
from tenantgate.libs.result import Result, Return

logger = logging.getLogger(__name__)


class DeleteUserUseCase:
    """
    Use case for soft-deleting a user.

    Business Rules:
    - Requires users.delete; nobody deletes themselves; only owners delete owners
    - The row is tombstoned (deleted_at) and disappears from logins and lookups
    - Publishes user.deleted
    """

    def __init__(
        self, uow: UnitOfWork, events: EventBus, clock: Callable[[], float] = time.time
    ):
        self.uow = uow
        self.events = events
        self.clock = clock

    async def execute(
        self, tenant_id: UUID, actor_id: UUID, user_id: UUID
    ) -> Result[MessageResponse]:
        async with self.uow:
            target = await self.uow.users.get_by_id(tenant_id, user_id)
            if target is None:
                return Return.err(NotFound("User"))

            authorized = await authorize_actor(
                self.uow, tenant_id, actor_id, "users.delete", target
            )
            if authorized.is_err():
                return authorized

            target.deleted_at = datetime.fromtimestamp(self.clock(), UTC)
            try:
                await self.uow.users.update(target)
                await self.uow.commit()
            except StaleVersionError:
                return Return.err(VersionConflict())

            logger.info(f"User {user_id} deleted by {actor_id} in tenant {tenant_id}")
            await self.events.publish(
                tenant_id,
                "user.deleted",
                {"user_id": str(user_id), "email": target.email, "deleted_by": str(actor_id)},
            )
            return Return.ok(MessageResponse(status="deleted", message="User deleted"))
