import logging
from uuid import UUID

from tenantgate.app.services.challenge_broker import ChallengeBroker
from tenantgate.app.services.notifier import Notifier
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.services.url_signer import UrlSigner
from tenantgate.domain.entities import RequestContext
from tenantgate.domain.errors import EmailVerificationRequired
from tenantgate.libs.result import Result, Return
from .dtos import MessageResponse

logger = logging.getLogger(__name__)

SENT_MESSAGE = "If the account exists, a magic link has been sent to the email address"


class SendMagicLinkUseCase:
    """
    Use case for requesting a passwordless login link.

    Business Rules:
    - Unknown emails get the same response as known ones and nothing is sent
    - The account must have a verified email
    - At most 3 links per email per rolling hour (RATE_LIMITED otherwise)
    - The link is valid for 15 minutes and single use
    """

    def __init__(
        self,
        uow: UnitOfWork,
        challenges: ChallengeBroker,
        signer: UrlSigner,
        notifier: Notifier,
        expire_minutes: int = 15,
    ):
        self.uow = uow
        self.challenges = challenges
        self.signer = signer
        self.notifier = notifier
        self.expire_minutes = expire_minutes

    async def execute(
        self, tenant_id: UUID, email: str, context: RequestContext
    ) -> Result[MessageResponse]:
        async with self.uow:
            user = await self.uow.users.get_by_email(tenant_id, email)
            if user is None:
                logger.info(f"Magic link requested for unknown email in tenant {tenant_id}")
                return Return.ok(MessageResponse(status="sent", message=SENT_MESSAGE))
            verified = user.has_verified_email()

        if not verified:
            return Return.err(
                EmailVerificationRequired(
                    "Please verify your email address before requesting a magic link"
                )
            )

        created = await self.challenges.create_magic_link(email, tenant_id, context)
        if created.is_err():
            return created

        url = self.signer.url(f"/auth/magic-link/verify/{created.value.token}")
        await self.notifier.send_magic_link(email.lower(), url, self.expire_minutes)
        return Return.ok(MessageResponse(status="sent", message=SENT_MESSAGE))
