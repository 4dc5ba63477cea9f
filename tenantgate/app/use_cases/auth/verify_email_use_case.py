"""
Verify Email Use Case

Handles the signed email-verification link.
"""

import hmac
from uuid import UUID

from tenantgate.app.services.credential_store import CredentialStore
from tenantgate.app.services.event_bus import EventBus
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.services.url_signer import UrlSigner, email_hash
from tenantgate.domain.errors import (
    InvalidSignature,
    NotFound,
    StaleVersionError,
    VersionConflict,
)
from tenantgate.libs.result import Result, Return
from .dtos import VerifyEmailResponse


class VerifyEmailUseCase:
    """
    Use case for email verification.

    Business Rules:
    - The link signature and expiry are checked before anything is loaded
    - The hash segment must match the user's current email
    - Verifying twice fails with ALREADY_VERIFIED (harmless for the user)
    - Publishes user.email_verified
    """

    def __init__(
        self,
        uow: UnitOfWork,
        credentials: CredentialStore,
        signer: UrlSigner,
        events: EventBus,
    ):
        self.uow = uow
        self.credentials = credentials
        self.signer = signer
        self.events = events

    async def execute(
        self,
        tenant_id: UUID,
        user_id: UUID,
        hash_value: str,
        expires: int,
        signature: str,
    ) -> Result[VerifyEmailResponse]:
        """
        Execute email verification use case.

        Args:
            tenant_id: Tenant selected by the request
            user_id: User id from the link
            hash_value: sha1 of the email from the link
            expires: Expiry (epoch seconds) from the link
            signature: HMAC signature from the link

        Returns:
            Result with verification status, or InvalidSignature / NotFound /
            AlreadyVerified / VersionConflict
        """
        path = f"/email/verify/{user_id}/{hash_value}"
        checked = self.signer.verify(path, expires, signature)
        if checked.is_err():
            return checked

        async with self.uow:
            user = await self.uow.users.get_by_id(tenant_id, user_id)
            if user is None:
                return Return.err(NotFound("User"))

            if not hmac.compare_digest(email_hash(user.email), hash_value):
                return Return.err(InvalidSignature())

            try:
                marked = await self.credentials.mark_email_verified(user)
                if marked.is_err():
                    return marked
                await self.uow.commit()
            except StaleVersionError:
                return Return.err(VersionConflict())

            await self.events.publish(
                tenant_id,
                "user.email_verified",
                {"user_id": str(user.id), "email": user.email},
            )

            return Return.ok(
                VerifyEmailResponse(status="verified", message="Email verified successfully")
            )
