"""
Verify Two-Factor Use Case

Second step of a login: TOTP code or recovery code against a pending
challenge.
"""

import logging
from uuid import UUID

from tenantgate.app.services.challenge_broker import ChallengeBroker
from tenantgate.app.services.credential_store import CredentialStore
from tenantgate.app.services.event_bus import EventBus
from tenantgate.app.services.token_issuer import TokenIssuer
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.domain.entities import LoginEvent, LoginMethod
from tenantgate.domain.errors import (
    ChallengeNotFound,
    InvalidCode,
    StaleVersionError,
    ValidationError,
    VersionConflict,
)
from tenantgate.libs.result import Result, Return
from .dtos import LoginResponse, VerifyTwoFactorCommand
from .login_completion import LoginCompletion

logger = logging.getLogger(__name__)


class VerifyTwoFactorUseCase:
    """
    Use case for completing a login with a second factor.

    Business Rules:
    - The challenge is read without consuming it while the factor is checked,
      so a mistyped code does not burn it
    - The challenge is consumed atomically only after the factor matched; a
      caller losing that race gets CHALLENGE_NOT_FOUND
    - The challenge is already consumed when the user write happens; a
      VERSION_CONFLICT there (concurrent change to the same user) means the
      login has to start over from the password or magic-link step
    - A recovery code is removed on use; reusing it fails with INVALID_CODE
    - The challenge must belong to the same tenant and email
    - A magic-link token chained to the challenge is discarded on success
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
        self.credentials = credentials
        self.challenges = challenges
        self.completion = LoginCompletion(uow, credentials, tokens, events)

    async def execute(
        self, tenant_id: UUID, command: VerifyTwoFactorCommand
    ) -> Result[LoginResponse]:
        """
        Execute 2FA verification.

        Args:
            tenant_id: Tenant selected by the request
            command: Challenge token, email and one of code / recovery_code

        Returns:
            Result with an authenticated LoginResponse, or ValidationError /
            ChallengeNotFound / ChallengeExpired / InvalidCode / VersionConflict
        """
        if not command.code and not command.recovery_code:
            return Return.err(ValidationError("Either code or recovery_code is required"))

        peeked = await self.challenges.peek_challenge(command.challenge_token)
        if peeked.is_err():
            return peeked
        challenge = peeked.value

        if challenge.tenant_id != str(tenant_id) or challenge.email != command.email.lower():
            return Return.err(ChallengeNotFound())

        async with self.uow:
            user = await self.uow.users.get_by_email(tenant_id, challenge.email)
            if user is None or not user.has_two_factor_enabled():
                return Return.err(ChallengeNotFound())

            if command.code:
                valid = self.credentials.verify_totp(user, command.code)
            else:
                valid = self.credentials.match_recovery_code(user, command.recovery_code)

            if not valid:
                await self.uow.login_events.create(
                    LoginEvent(
                        tenant_id=tenant_id,
                        user_id=user.id,
                        email=user.email,
                        ip_address=command.context.ip,
                        user_agent=command.context.user_agent,
                        login_method=LoginMethod.two_factor,
                        successful=False,
                        failure_reason="invalid_two_factor_code",
                    )
                )
                await self.uow.commit()
                logger.warning(f"Invalid 2FA code for user {user.id}")
                return Return.err(InvalidCode())

            resolved = await self.challenges.resolve_challenge(command.challenge_token)
            if resolved.is_err():
                return resolved

            try:
                if not command.code:
                    consumed = await self.credentials.consume_recovery_code(
                        user, command.recovery_code
                    )
                    if not consumed:
                        return Return.err(InvalidCode())

                response = await self.completion.complete(
                    user, LoginMethod.two_factor, command.context
                )
            except StaleVersionError:
                return Return.err(VersionConflict())

        if challenge.magic_link_token:
            await self.challenges.discard_magic_link(challenge.magic_link_token)

        return Return.ok(response)
