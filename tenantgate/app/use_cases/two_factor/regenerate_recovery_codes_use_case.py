from uuid import UUID

from tenantgate.app.services.credential_store import CredentialStore
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.domain.errors import NotFound, StaleVersionError, ValidationError, VersionConflict
from tenantgate.libs.result import Result, Return
from .dtos import RecoveryCodesResponse


class RegenerateRecoveryCodesUseCase:
    """Replace all recovery codes (password required, 2FA must be enabled)"""

    def __init__(self, uow: UnitOfWork, credentials: CredentialStore):
        self.uow = uow
        self.credentials = credentials

    async def execute(
        self, tenant_id: UUID, user_id: UUID, password: str
    ) -> Result[RecoveryCodesResponse]:
        async with self.uow:
            user = await self.uow.users.get_by_id(tenant_id, user_id)
            if user is None:
                return Return.err(NotFound("User"))

            if not self.credentials.verify_password(user, password):
                return Return.err(
                    ValidationError("The provided password is incorrect", code="INVALID_PASSWORD")
                )
            if not user.has_two_factor_enabled():
                return Return.err(
                    ValidationError(
                        "Two-factor authentication is not enabled",
                        code="TWO_FACTOR_NOT_ENABLED",
                    )
                )

            try:
                codes = await self.credentials.replace_recovery_codes(user)
                await self.uow.commit()
            except StaleVersionError:
                return Return.err(VersionConflict())

            return Return.ok(
                RecoveryCodesResponse(
                    recovery_codes=codes,
                    message="Recovery codes regenerated. Previous codes no longer work",
                )
            )
