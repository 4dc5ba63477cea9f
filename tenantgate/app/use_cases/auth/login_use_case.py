"""
Login Use Case

Password login: rate limiting, credential check, email verification gate,
then either a 2FA challenge or a session token.
"""

import logging
from typing import Optional
from uuid import UUID

from tenantgate.app.services.challenge_broker import ChallengeBroker
from tenantgate.app.services.credential_store import CredentialStore
from tenantgate.app.services.event_bus import EventBus
from tenantgate.app.services.rate_limiter import RateLimiter
from tenantgate.app.services.token_issuer import TokenIssuer
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.domain.entities import (
    AuthState,
    LoginEvent,
    LoginMethod,
    RequestContext,
)
from tenantgate.domain.errors import (
    EmailVerificationRequired,
    InvalidCredentials,
    RateLimited,
    StaleVersionError,
    TwoFactorRequired,
    VersionConflict,
)
from tenantgate.libs.result import Result, Return
from .dtos import LoginCommand, LoginResponse
from .login_completion import LoginCompletion

logger = logging.getLogger(__name__)


class LoginUseCase:
    """
    Use case for password login.

    Business Rules:
    - Sliding window per client IP (default 5 attempts / 15 minutes); once
      exhausted the attempt is refused before credentials are checked and
      logged as a failed login (rate_limited) without extending the window
    - Constant-time password comparison, also when the email is unknown
    - A wrong password hits the limiter and is logged (invalid_credentials)
    - A correct password clears the limiter
    - Unverified email -> EMAIL_VERIFICATION_REQUIRED, no token
    - 2FA enabled -> challenge token, state two_factor_pending, no session token
    - Otherwise -> session token, login stats updated, user.login published
    """

    def __init__(
        self,
        uow: UnitOfWork,
        credentials: CredentialStore,
        tokens: TokenIssuer,
        challenges: ChallengeBroker,
        limiter: RateLimiter,
        events: EventBus,
        max_attempts: int = 5,
        decay_minutes: int = 15,
    ):
        self.uow = uow
        self.credentials = credentials
        self.challenges = challenges
        self.limiter = limiter
        self.max_attempts = max_attempts
        self.window_seconds = decay_minutes * 60
        self.completion = LoginCompletion(uow, credentials, tokens, events)

    async def _log_failure(
        self,
        tenant_id: UUID,
        email: str,
        context: RequestContext,
        reason: str,
        user_id: Optional[UUID] = None,
    ) -> None:
        await self.uow.login_events.create(
            LoginEvent(
                tenant_id=tenant_id,
                user_id=user_id,
                email=email.lower(),
                ip_address=context.ip,
                user_agent=context.user_agent,
                login_method=LoginMethod.password,
                successful=False,
                failure_reason=reason,
            )
        )
        await self.uow.commit()

    async def execute(self, tenant_id: UUID, command: LoginCommand) -> Result[LoginResponse]:
        """
        Execute login use case.

        Args:
            tenant_id: Tenant selected by the request
            command: LoginCommand with email, password and client context

        Returns:
            Result with LoginResponse (authenticated or two_factor_pending), or
            RateLimited / InvalidCredentials / EmailVerificationRequired /
            VersionConflict
        """
        limiter_key = f"login:{command.context.ip or 'unknown'}"

        async with self.uow:
            retry_after = await self.limiter.check(
                limiter_key, self.max_attempts, self.window_seconds
            )
            if retry_after is not None:
                await self._log_failure(tenant_id, command.email, command.context, "rate_limited")
                return Return.err(RateLimited(retry_after))

            user = await self.uow.users.get_by_email(tenant_id, command.email)

            if not self.credentials.verify_password(user, command.password):
                await self.limiter.hit(limiter_key, self.window_seconds)
                await self._log_failure(
                    tenant_id,
                    command.email,
                    command.context,
                    "invalid_credentials",
                    user_id=user.id if user else None,
                )
                logger.warning(
                    f"Failed login for {command.email} in tenant {tenant_id} "
                    f"from {command.context.ip}"
                )
                return Return.err(InvalidCredentials())

            await self.limiter.clear(limiter_key)

            if not user.has_verified_email():
                return Return.err(EmailVerificationRequired())

            if user.has_two_factor_enabled():
                challenge = await self.challenges.create_challenge(
                    user.email, tenant_id, command.context
                )
                return Return.ok(
                    LoginResponse(
                        state=AuthState.two_factor_pending,
                        message=TwoFactorRequired().message,
                        challenge_token=challenge.token,
                        expires_in=int(challenge.expires_at - challenge.issued_at),
                    )
                )

            try:
                response = await self.completion.complete(
                    user, LoginMethod.password, command.context, password=command.password
                )
            except StaleVersionError:
                return Return.err(VersionConflict())

            return Return.ok(response)
