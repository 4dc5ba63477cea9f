from uuid import UUID

from tenantgate.app.services.credential_store import CredentialStore
from tenantgate.app.services.totp import provisioning_uri
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.domain.errors import NotFound, StaleVersionError, ValidationError, VersionConflict
from tenantgate.libs.result import Result, Return
from .dtos import EnableTwoFactorResponse


class EnableTwoFactorUseCase:
    """
    Use case for starting 2FA setup.

    Business Rules:
    - Fails if 2FA is already enabled
    - Stores a new encrypted secret and 8 recovery codes, replacing any
      unconfirmed setup
    - 2FA is not enforced until confirmed with a valid code
    """

    def __init__(self, uow: UnitOfWork, credentials: CredentialStore, issuer: str = "tenantgate"):
        self.uow = uow
        self.credentials = credentials
        self.issuer = issuer

    async def execute(self, tenant_id: UUID, user_id: UUID) -> Result[EnableTwoFactorResponse]:
        async with self.uow:
            user = await self.uow.users.get_by_id(tenant_id, user_id)
            if user is None:
                return Return.err(NotFound("User"))

            if user.has_two_factor_enabled():
                return Return.err(
                    ValidationError(
                        "Two-factor authentication is already enabled",
                        code="TWO_FACTOR_ALREADY_ENABLED",
                    )
                )

            try:
                secret, codes = await self.credentials.begin_two_factor(user)
                await self.uow.commit()
            except StaleVersionError:
                return Return.err(VersionConflict())

            return Return.ok(
                EnableTwoFactorResponse(
                    secret=secret,
                    otpauth_uri=provisioning_uri(secret, user.email, self.issuer),
                    recovery_codes=codes,
                    message="Scan the code with your authenticator app, then confirm with a generated code",
                )
            )
