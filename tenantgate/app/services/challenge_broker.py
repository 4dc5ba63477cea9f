"""
Challenge Broker

Short-lived, single-use login state held in the cache: pending 2FA
challenges and magic-link tokens.
"""

import logging
import secrets
import time
from typing import Callable, Optional
from uuid import UUID

from tenantgate.app.services.cache import CacheStore
from tenantgate.app.services.rate_limiter import RateLimiter
from tenantgate.domain.entities import LoginChallenge, MagicLinkToken, RequestContext
from tenantgate.domain.errors import (
    ChallengeExpired,
    ChallengeNotFound,
    RateLimited,
)
from tenantgate.libs.result import Result, Return

logger = logging.getLogger(__name__)


class ChallengeBroker:
    """
    Issues and resolves challenges.

    Business Rules:
    - resolve_challenge / consume_magic_link are one atomic read-and-delete:
      of two concurrent callers exactly one gets the record
    - peek_* never consumes, so a wrong second factor does not burn the challenge
    - magic links are rate limited per tenant and email; a refused send
      creates nothing
    """

    CHALLENGE_PREFIX = "2fa_challenge:"
    MAGIC_LINK_PREFIX = "magic_link:"

    def __init__(
        self,
        cache: CacheStore,
        limiter: RateLimiter,
        challenge_ttl_minutes: int = 10,
        magic_link_ttl_minutes: int = 15,
        magic_link_max_attempts: int = 3,
        magic_link_decay_minutes: int = 60,
        clock: Callable[[], float] = time.time,
    ):
        self.cache = cache
        self.limiter = limiter
        self.challenge_ttl = challenge_ttl_minutes * 60
        self.magic_link_ttl = magic_link_ttl_minutes * 60
        self.magic_link_max_attempts = magic_link_max_attempts
        self.magic_link_window = magic_link_decay_minutes * 60
        self.clock = clock

    # ------------------------------------------------------------------
    # 2FA challenges
    # ------------------------------------------------------------------

    async def create_challenge(
        self,
        email: str,
        tenant_id: UUID,
        context: RequestContext,
        magic_link_token: Optional[str] = None,
    ) -> LoginChallenge:
        now = self.clock()
        challenge = LoginChallenge(
            token=secrets.token_urlsafe(48),
            email=email.lower(),
            tenant_id=str(tenant_id),
            ip=context.ip,
            user_agent=context.user_agent,
            issued_at=now,
            expires_at=now + self.challenge_ttl,
            magic_link_token=magic_link_token,
        )
        await self.cache.set(
            self.CHALLENGE_PREFIX + challenge.token,
            challenge.model_dump(),
            self.challenge_ttl,
        )
        return challenge

    async def peek_challenge(self, token: str) -> Result[LoginChallenge]:
        data = await self.cache.get(self.CHALLENGE_PREFIX + token)
        if data is None:
            return Return.err(ChallengeNotFound())
        challenge = LoginChallenge(**data)
        if challenge.is_expired(self.clock()):
            await self.cache.delete(self.CHALLENGE_PREFIX + token)
            return Return.err(ChallengeExpired())
        return Return.ok(challenge)

    async def resolve_challenge(self, token: str) -> Result[LoginChallenge]:
        data = await self.cache.pop(self.CHALLENGE_PREFIX + token)
        if data is None:
            return Return.err(ChallengeNotFound())
        challenge = LoginChallenge(**data)
        if challenge.is_expired(self.clock()):
            return Return.err(ChallengeExpired())
        return Return.ok(challenge)

    # ------------------------------------------------------------------
    # Magic links
    # ------------------------------------------------------------------

    async def create_magic_link(
        self, email: str, tenant_id: UUID, context: RequestContext
    ) -> Result[MagicLinkToken]:
        email = email.lower()
        limiter_key = f"magic_link:{tenant_id}:{email}"
        retry_after = await self.limiter.check(
            limiter_key, self.magic_link_max_attempts, self.magic_link_window
        )
        if retry_after is not None:
            return Return.err(
                RateLimited(
                    retry_after,
                    f"Too many magic link requests. Please try again in {retry_after} seconds",
                )
            )
        await self.limiter.hit(limiter_key, self.magic_link_window)

        now = self.clock()
        link = MagicLinkToken(
            token=secrets.token_urlsafe(48),
            email=email,
            tenant_id=str(tenant_id),
            ip=context.ip,
            user_agent=context.user_agent,
            issued_at=now,
            expires_at=now + self.magic_link_ttl,
        )
        await self.cache.set(
            self.MAGIC_LINK_PREFIX + link.token, link.model_dump(), self.magic_link_ttl
        )
        logger.info(f"Magic link issued for {email} in tenant {tenant_id}")
        return Return.ok(link)

    async def peek_magic_link(self, token: str) -> Result[MagicLinkToken]:
        data = await self.cache.get(self.MAGIC_LINK_PREFIX + token)
        if data is None:
            return Return.err(ChallengeNotFound("Invalid or expired magic link"))
        link = MagicLinkToken(**data)
        if link.is_expired(self.clock()):
            await self.cache.delete(self.MAGIC_LINK_PREFIX + token)
            return Return.err(ChallengeExpired("Magic link has expired"))
        return Return.ok(link)

    async def consume_magic_link(self, token: str) -> Result[MagicLinkToken]:
        data = await self.cache.pop(self.MAGIC_LINK_PREFIX + token)
        if data is None:
            return Return.err(ChallengeNotFound("Invalid or expired magic link"))
        link = MagicLinkToken(**data)
        if link.is_expired(self.clock()):
            return Return.err(ChallengeExpired("Magic link has expired"))
        return Return.ok(link)

    async def discard_magic_link(self, token: str) -> None:
        await self.cache.delete(self.MAGIC_LINK_PREFIX + token)
