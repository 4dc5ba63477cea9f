"""
Resend Verification Email Use Case

Sends a fresh signed verification link to the authenticated user.
"""

from uuid import UUID

from tenantgate.app.services.notifier import Notifier
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.services.url_signer import UrlSigner
from tenantgate.domain.errors import AlreadyVerified, NotFound
from tenantgate.libs.result import Result, Return
from .dtos import ResendVerificationResponse


class ResendVerificationUseCase:
    """
    Use case for resending email verification.

    Business Rules:
    - Already verified -> ALREADY_VERIFIED, nothing sent
    - Links are stateless; earlier links stay valid until they expire
    """

    def __init__(
        self,
        uow: UnitOfWork,
        signer: UrlSigner,
        notifier: Notifier,
        verification_expire_minutes: int = 60,
    ):
        self.uow = uow
        self.signer = signer
        self.notifier = notifier
        self.verification_expire_minutes = verification_expire_minutes

    async def execute(
        self, tenant_id: UUID, user_id: UUID
    ) -> Result[ResendVerificationResponse]:
        async with self.uow:
            user = await self.uow.users.get_by_id(tenant_id, user_id)
            if user is None:
                return Return.err(NotFound("User"))

            if user.has_verified_email():
                return Return.err(AlreadyVerified())

            url = self.signer.verification_url(user, self.verification_expire_minutes)
            await self.notifier.send_verification_email(user.email, user.name, url)

        return Return.ok(
            ResendVerificationResponse(
                status="sent", message="Verification link sent to your email address"
            )
        )
