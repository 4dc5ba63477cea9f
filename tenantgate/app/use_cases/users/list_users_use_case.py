from typing import Optional
from uuid import UUID

from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.use_cases.guards import authorize_actor
from tenantgate.domain.entities import UserRole
from tenantgate.domain.errors import ValidationError
from tenantgate.libs.result import Result, Return
from .dtos import UserDetail, UserListResponse

MAX_PAGE_SIZE = 100


class ListUsersUseCase:
    """
    Use case for listing the users of a tenant.

    Business Rules:
    - Requires users.read
    - Soft-deleted users are not listed
    - search matches name or email (case-insensitive substring)
    - limit is 1..100; one extra row is fetched to tell whether more follow
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self,
        tenant_id: UUID,
        actor_id: UUID,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        email_verified: Optional[bool] = None,
        limit: int = 15,
        offset: int = 0,
    ) -> Result[UserListResponse]:
        if not 1 <= limit <= MAX_PAGE_SIZE:
            return Return.err(ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}"))
        if offset < 0:
            return Return.err(ValidationError("offset must not be negative"))

        async with self.uow:
            authorized = await authorize_actor(self.uow, tenant_id, actor_id, "users.read")
            if authorized.is_err():
                return authorized

            users = await self.uow.users.list_by_tenant(
                tenant_id,
                search=search.strip() if search else None,
                role=role,
                email_verified=email_verified,
                limit=limit + 1,
                offset=offset,
            )

        return Return.ok(
            UserListResponse(
                users=[UserDetail.from_user(user) for user in users[:limit]],
                limit=limit,
                offset=offset,
                has_more=len(users) > limit,
            )
        )
