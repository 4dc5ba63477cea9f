"""
LoginEvent Entity

Append-only log of login attempts for security analytics.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from tenantgate.domain.base import utcnow
from .enums import LoginMethod


class LoginEvent(SQLModel, table=True):
    """
    LoginEvent entity - one row per login attempt, successful or not.

    Business Rules:
    - Never updated
    - user_id is null when the email did not match any account
    - failure_reason is one of: invalid_credentials, rate_limited,
      invalid_two_factor_code
    """

    __tablename__ = "login_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    tenant_id: UUID = Field(index=True)
    user_id: Optional[UUID] = Field(default=None, index=True)
    email: Optional[str] = Field(default=None, max_length=255)

    ip_address: Optional[str] = Field(default=None, max_length=45)
    user_agent: Optional[str] = Field(default=None)
    login_method: LoginMethod = Field(default=LoginMethod.password)
    successful: bool = Field(default=True)
    failure_reason: Optional[str] = Field(default=None, max_length=64)

    attempted_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime(timezone=True))
    )

    __table_args__ = (
        Index("idx_login_event_attempted_at", "attempted_at"),
        Index("idx_login_event_ip", "ip_address"),
        Index("idx_login_event_successful", "successful"),
    )
