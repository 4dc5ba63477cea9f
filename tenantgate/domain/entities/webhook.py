"""
Webhook Entity

Tenant-scoped subscription of an external endpoint to domain events.
"""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from tenantgate.domain.base import utcnow

AVAILABLE_EVENTS: Dict[str, str] = {
    "user.created": "User account created",
    "user.updated": "User profile updated",
    "user.deleted": "User account deleted",
    "user.login": "User logged in",
    "user.logout": "User logged out",
    "user.email_verified": "User email verified",
    "user.2fa_enabled": "Two-factor authentication enabled",
    "user.2fa_disabled": "Two-factor authentication disabled",
    "tenant.created": "New tenant created",
    "tenant.updated": "Tenant updated",
    "tenant.deleted": "Tenant deleted",
    "webhook.test": "Test webhook event",
    "gdpr.export_completed": "GDPR data export completed",
    "gdpr.deletion_requested": "GDPR account deletion requested",
    "gdpr.deletion_completed": "GDPR account deletion completed",
}


class Webhook(SQLModel, table=True):
    """
    Webhook entity - subscriber endpoint for a tenant.

    Business Rules:
    - events is a subset of AVAILABLE_EVENTS
    - secret signs every delivery (HMAC-SHA256); regeneration is a hard cutover
    - max_retries in [0, 10], retry_delay in [5, 3600] seconds
    - inactive webhooks receive no new deliveries and queued retries stop
    - deleting a webhook deletes its deliveries
    """

    __tablename__ = "webhooks"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    tenant_id: UUID = Field(index=True)

    name: str = Field(max_length=255)
    url: str = Field(max_length=2048)
    events: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    secret: str = Field(max_length=255)
    active: bool = Field(default=True)
    headers: Optional[Dict[str, str]] = Field(default=None, sa_column=Column(JSON))

    max_retries: int = Field(default=3)
    retry_delay: int = Field(default=60)

    last_triggered_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )
    created_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime(timezone=True))
    )
    updated_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime(timezone=True))
    )

    __table_args__ = (Index("idx_webhook_tenant_active", "tenant_id", "active"),)

    def listens_to(self, event_type: str) -> bool:
        return event_type in (self.events or [])
