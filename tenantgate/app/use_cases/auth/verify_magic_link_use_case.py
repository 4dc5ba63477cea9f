from uuid import UUID

from tenantgate.app.services.challenge_broker import ChallengeBroker
from tenantgate.app.services.credential_store import CredentialStore
from tenantgate.app.services.event_bus import EventBus
from tenantgate.app.services.token_issuer import TokenIssuer
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.domain.entities import AuthState, LoginMethod, RequestContext
from tenantgate.domain.errors import (
    ChallengeNotFound,
    StaleVersionError,
    TwoFactorRequired,
    VersionConflict,
)
from tenantgate.libs.result import Result, Return
from .dtos import LoginResponse
from .login_completion import LoginCompletion


class VerifyMagicLinkUseCase:
    """
    Use case for logging in through a magic link.

    Business Rules:
    - Without 2FA the token is consumed atomically and a session token issued
    - With 2FA the token is kept and a 2FA challenge referencing it is
      returned; the token is discarded only once the 2FA step succeeds
    - A token of another tenant is treated as unknown
    """

    def __init__(
        self,
        uow: UnitOfWork,
        credentials: CredentialStore,
        tokens: TokenIssuer,
        challenges: ChallengeBroker,
        events: EventBus,
    ):
        self.uow = uow
        self.challenges = challenges
        self.completion = LoginCompletion(uow, credentials, tokens, events)

    async def execute(
        self, tenant_id: UUID, token: str, context: RequestContext
    ) -> Result[LoginResponse]:
        peeked = await self.challenges.peek_magic_link(token)
        if peeked.is_err():
            return peeked
        link = peeked.value

        if link.tenant_id != str(tenant_id):
            return Return.err(ChallengeNotFound("Invalid or expired magic link"))

        async with self.uow:
            user = await self.uow.users.get_by_email(tenant_id, link.email)
            if user is None:
                await self.challenges.discard_magic_link(token)
                return Return.err(ChallengeNotFound("Invalid or expired magic link"))

            if user.has_two_factor_enabled():
                challenge = await self.challenges.create_challenge(
                    user.email, tenant_id, context, magic_link_token=token
                )
                return Return.ok(
                    LoginResponse(
                        state=AuthState.two_factor_pending,
                        message=TwoFactorRequired().message,
                        challenge_token=challenge.token,
                        expires_in=int(challenge.expires_at - challenge.issued_at),
                    )
                )

            consumed = await self.challenges.consume_magic_link(token)
            if consumed.is_err():
                return consumed

            try:
                response = await self.completion.complete(user, LoginMethod.magic_link, context)
            except StaleVersionError:
                return Return.err(VersionConflict())

        return Return.ok(response)
