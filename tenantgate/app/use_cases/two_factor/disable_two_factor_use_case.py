from uuid import UUID

from tenantgate.app.services.credential_store import CredentialStore
from tenantgate.app.services.event_bus import EventBus
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.domain.errors import NotFound, StaleVersionError, ValidationError, VersionConflict
from tenantgate.libs.result import Result, Return
from ..auth.dtos import MessageResponse


class DisableTwoFactorUseCase:
    """
    Use case for turning 2FA off.

    Business Rules:
    - Current password required
    - Secret and recovery codes are erased
    - Publishes user.2fa_disabled
    """

    def __init__(self, uow: UnitOfWork, credentials: CredentialStore, events: EventBus):
        self.uow = uow
        self.credentials = credentials
        self.events = events

    async def execute(
        self, tenant_id: UUID, user_id: UUID, password: str
    ) -> Result[MessageResponse]:
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
                await self.credentials.disable_two_factor(user)
                await self.uow.commit()
            except StaleVersionError:
                return Return.err(VersionConflict())

            await self.events.publish(
                tenant_id, "user.2fa_disabled", {"user_id": str(user.id), "email": user.email}
            )
            return Return.ok(
                MessageResponse(
                    status="disabled", message="Two-factor authentication disabled"
                )
            )
