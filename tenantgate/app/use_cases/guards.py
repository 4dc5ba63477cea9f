from typing import Any, Optional
from uuid import UUID

from tenantgate.app.services.authorization import authorize
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.domain.entities import User
from tenantgate.domain.errors import Forbidden, NotFound
from tenantgate.libs.result import Result, Return


async def load_actor(uow: UnitOfWork, tenant_id: UUID, actor_id: UUID) -> Result[User]:
    """Authenticated user performing the request. Call inside ``async with uow``."""
    actor = await uow.users.get_by_id(tenant_id, actor_id)
    if actor is None:
        return Return.err(NotFound("User"))
    return Return.ok(actor)


async def authorize_actor(
    uow: UnitOfWork,
    tenant_id: UUID,
    actor_id: UUID,
    action: str,
    resource: Optional[Any] = None,
) -> Result[User]:
    """Load the actor and check it may perform action (on resource)"""
    result = await load_actor(uow, tenant_id, actor_id)
    if result.is_err():
        return result
    if not authorize(result.value, action, resource):
        return Return.err(Forbidden())
    return result
