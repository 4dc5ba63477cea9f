from uuid import UUID

from tenantgate.app.services.credential_store import CredentialStore
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.domain.errors import NotFound
from tenantgate.libs.result import Result, Return
from .dtos import TwoFactorStatusResponse


class GetTwoFactorStatusUseCase:
    def __init__(self, uow: UnitOfWork, credentials: CredentialStore):
        self.uow = uow
        self.credentials = credentials

    async def execute(self, tenant_id: UUID, user_id: UUID) -> Result[TwoFactorStatusResponse]:
        async with self.uow:
            user = await self.uow.users.get_by_id(tenant_id, user_id)
            if user is None:
                return Return.err(NotFound("User"))

            enabled = user.has_two_factor_enabled()
            return Return.ok(
                TwoFactorStatusResponse(
                    enabled=enabled,
                    pending_confirmation=not enabled and user.totp_secret is not None,
                    recovery_codes_remaining=len(self.credentials.recovery_codes(user)),
                )
            )
