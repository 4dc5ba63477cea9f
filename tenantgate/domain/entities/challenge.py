"""
Challenge Records

Ephemeral login state kept only in the cache tier, never in the database.
Timestamps are POSIX seconds so records round-trip through JSON unchanged.
"""

from typing import Optional

from pydantic import BaseModel


class RequestContext(BaseModel):
    """Client details captured with every login attempt."""

    ip: Optional[str] = None
    user_agent: Optional[str] = None


class LoginChallenge(BaseModel):
    """Pending second-factor step of a login (password or magic link)."""

    token: str
    email: str
    tenant_id: str
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    issued_at: float
    expires_at: float
    magic_link_token: Optional[str] = None

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class MagicLinkToken(BaseModel):
    """Passwordless login token delivered by email."""

    token: str
    email: str
    tenant_id: str
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    issued_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at
