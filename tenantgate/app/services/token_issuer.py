"""
Token Issuer

HS256 session tokens scoped to one tenant. Revocation is a denylist of
token ids held in the cache until the token could no longer be used.
"""

import logging
import math
import time
import uuid
from typing import Any, Callable, Dict, Optional
from uuid import UUID

from jose import JWTError, jwt
from pydantic import BaseModel

from tenantgate.app.services.cache import CacheStore
from tenantgate.domain.entities import User
from tenantgate.domain.errors import (
    ConfigurationError,
    RefreshWindowExpired,
    TenantMismatch,
    TokenExpired,
    TokenInvalid,
)
from tenantgate.libs.result import Result, Return

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
REQUIRED_CLAIMS = ("sub", "tenant_id", "jti", "iat", "exp", "refresh_exp")


class IssuedToken(BaseModel):
    """Session token handed to clients"""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    expires_at: int
    refresh_expires_at: int


class TokenIssuer:
    """
    Mints and validates session tokens.

    Business Rules:
    - exp is now + ttl; refresh_exp is fixed at first issue and carried over
      by every refresh
    - A token may be refreshed while now < refresh_exp, even after exp
    - Refresh and logout denylist the presented jti; a denylisted token is
      invalid everywhere
    """

    def __init__(
        self,
        secret: str,
        cache: CacheStore,
        ttl_minutes: int = 60,
        refresh_ttl_minutes: int = 20160,
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ConfigurationError("JWT_SECRET must be set")
        self.secret = secret
        self.cache = cache
        self.ttl_seconds = ttl_minutes * 60
        self.refresh_ttl_seconds = refresh_ttl_minutes * 60
        self.clock = clock

    @staticmethod
    def _denylist_key(jti: str) -> str:
        return f"jwt_denylist:{jti}"

    def _mint(self, sub: str, tenant_id: str, refresh_exp: Optional[int] = None) -> IssuedToken:
        now = int(self.clock())
        exp = now + self.ttl_seconds
        if refresh_exp is None:
            refresh_exp = now + self.refresh_ttl_seconds
        claims = {
            "sub": sub,
            "tenant_id": tenant_id,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": exp,
            "refresh_exp": refresh_exp,
        }
        token = jwt.encode(claims, self.secret, algorithm=ALGORITHM)
        return IssuedToken(
            access_token=token,
            expires_in=self.ttl_seconds,
            expires_at=exp,
            refresh_expires_at=refresh_exp,
        )

    def issue(self, user: User) -> IssuedToken:
        return self._mint(str(user.id), str(user.tenant_id))

    def _decode(self, token: str) -> Optional[Dict[str, Any]]:
        """Signature and shape check only; expiry is judged against self.clock"""
        try:
            claims = jwt.decode(
                token, self.secret, algorithms=[ALGORITHM], options={"verify_exp": False}
            )
        except JWTError:
            return None
        if any(claim not in claims for claim in REQUIRED_CLAIMS):
            return None
        return claims

    async def _check(
        self, token: str, tenant_id: Optional[UUID]
    ) -> Result[Dict[str, Any]]:
        claims = self._decode(token)
        if claims is None:
            return Return.err(TokenInvalid())
        if await self.cache.exists(self._denylist_key(claims["jti"])):
            return Return.err(TokenInvalid("Token has been revoked"))
        if tenant_id is not None and claims["tenant_id"] != str(tenant_id):
            return Return.err(TenantMismatch())
        return Return.ok(claims)

    async def validate(
        self, token: str, tenant_id: Optional[UUID] = None
    ) -> Result[Dict[str, Any]]:
        """
        Validate a session token.

        Args:
            token: Encoded token
            tenant_id: Tenant of the request; None skips the tenant check

        Returns:
            Result with the token claims, or TokenInvalid / TokenExpired /
            TenantMismatch
        """
        result = await self._check(token, tenant_id)
        if result.is_err():
            return result
        if self.clock() >= result.value["exp"]:
            return Return.err(TokenExpired())
        return result

    async def _denylist(self, claims: Dict[str, Any]) -> bool:
        # A token stays usable for refresh until refresh_exp, so the entry must live that long
        remaining = math.ceil(max(claims["exp"], claims["refresh_exp"]) - self.clock())
        return await self.cache.add(
            self._denylist_key(claims["jti"]),
            {"sub": claims["sub"], "tenant_id": claims["tenant_id"]},
            max(1, remaining),
        )

    async def refresh(
        self, token: str, tenant_id: Optional[UUID] = None
    ) -> Result[IssuedToken]:
        result = await self._check(token, tenant_id)
        if result.is_err():
            return result
        claims = result.value
        if self.clock() >= claims["refresh_exp"]:
            return Return.err(RefreshWindowExpired())

        # Only one concurrent refresh of the same token wins the denylist slot
        if not await self._denylist(claims):
            return Return.err(TokenInvalid("Token has been revoked"))

        logger.info(f"Refreshed token for user {claims['sub']}")
        return Return.ok(
            self._mint(claims["sub"], claims["tenant_id"], refresh_exp=claims["refresh_exp"])
        )

    async def revoke(self, token: str) -> Result[None]:
        claims = self._decode(token)
        if claims is None:
            return Return.err(TokenInvalid())
        await self._denylist(claims)
        logger.info(f"Revoked token {claims['jti']} of user {claims['sub']}")
        return Return.ok(None)
