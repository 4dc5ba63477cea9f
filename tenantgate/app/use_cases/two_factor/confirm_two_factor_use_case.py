from uuid import UUID

from tenantgate.app.services.credential_store import CredentialStore
from tenantgate.app.services.event_bus import EventBus
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.domain.errors import (
    InvalidCode,
    NotFound,
    StaleVersionError,
    ValidationError,
    VersionConflict,
)
from tenantgate.libs.result import Result, Return
from ..auth.dtos import MessageResponse


class ConfirmTwoFactorUseCase:
    """
    Use case for activating 2FA with a code from the authenticator app.

    Business Rules:
    - Requires a pending setup (secret stored, not yet enabled)
    - The code must verify against the pending secret
    - Publishes user.2fa_enabled
    """

    def __init__(self, uow: UnitOfWork, credentials: CredentialStore, events: EventBus):
        self.uow = uow
        self.credentials = credentials
        self.events = events

    async def execute(self, tenant_id: UUID, user_id: UUID, code: str) -> Result[MessageResponse]:
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
            if user.totp_secret is None:
                return Return.err(
                    ValidationError(
                        "Two-factor authentication has not been set up",
                        code="TWO_FACTOR_NOT_SETUP",
                    )
                )

            if not self.credentials.verify_totp(user, code):
                return Return.err(InvalidCode())

            try:
                await self.credentials.enable_two_factor(user)
                await self.uow.commit()
            except StaleVersionError:
                return Return.err(VersionConflict())

            await self.events.publish(
                tenant_id, "user.2fa_enabled", {"user_id": str(user.id), "email": user.email}
            )
            return Return.ok(
                MessageResponse(
                    status="enabled", message="Two-factor authentication enabled"
                )
            )
