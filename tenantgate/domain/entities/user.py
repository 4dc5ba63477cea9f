"""
User Entity

Tenant-scoped identity with credentials and second-factor state.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel, UniqueConstraint

from tenantgate.domain.base import utcnow
from .enums import UserRole


class User(SQLModel, table=True):
    """
    User entity - one identity inside one tenant.

    Business Rules:
    - Email is unique per tenant
    - Email verification required before any login succeeds
    - Password stored as argon2id hash (legacy bcrypt hashes still verify)
    - totp_secret and recovery_codes are ciphertext produced by SecretCodec
    - totp_enabled implies totp_secret is present
    - version increments on every write (optimistic locking)
    - delete is a tombstone (deleted_at); purge removes the row
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    tenant_id: UUID = Field(index=True)

    name: str = Field(max_length=255)
    email: str = Field(max_length=255)
    password_hash: str = Field(max_length=255)
    role: UserRole = Field(default=UserRole.member)

    email_verified_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )

    # Second factor (ciphertext)
    totp_secret: Optional[str] = Field(default=None)
    totp_enabled: bool = Field(default=False)
    recovery_codes: Optional[str] = Field(default=None)

    # Login statistics
    last_login_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )
    login_count: int = Field(default=0)

    version: int = Field(default=1, nullable=False)

    # Timestamps
    created_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime(timezone=True))
    )
    updated_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime(timezone=True))
    )
    deleted_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "email", name="uq_user_tenant_email"),
        Index("idx_user_deleted_at", "deleted_at"),
    )

    def has_verified_email(self) -> bool:
        return self.email_verified_at is not None

    def has_two_factor_enabled(self) -> bool:
        return self.totp_enabled and self.totp_secret is not None

    def is_deleted(self) -> bool:
        return self.deleted_at is not None
