"""
WebhookDelivery Entity

One delivery of one event occurrence to one webhook, across all its attempts.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from tenantgate.domain.base import as_utc, utcnow
from .enums import DeliveryStatus


class WebhookDelivery(SQLModel, table=True):
    """
    WebhookDelivery entity - mutated in place by the delivery engine.

    Business Rules:
    - payload is a snapshot taken at dispatch and never modified
    - status only moves pending -> pending | success | failed
    - attempts never exceeds webhook.max_retries + 1
    - the id is stable across retries
    """

    __tablename__ = "webhook_deliveries"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    webhook_id: UUID = Field(foreign_key="webhooks.id", nullable=False, index=True)

    event_type: str = Field(max_length=100)
    payload: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    status: DeliveryStatus = Field(default=DeliveryStatus.pending)
    attempts: int = Field(default=0)

    response_status: Optional[int] = Field(default=None)
    response_body: Optional[str] = Field(default=None)
    error_message: Optional[str] = Field(default=None)
    signature: Optional[str] = Field(default=None, max_length=128)

    delivered_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )
    next_retry_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )
    created_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime(timezone=True))
    )
    updated_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime(timezone=True))
    )

    __table_args__ = (
        Index("idx_delivery_webhook_created", "webhook_id", "created_at"),
        Index("idx_delivery_status", "status"),
    )

    def is_terminal(self) -> bool:
        return self.status in (DeliveryStatus.success, DeliveryStatus.failed)

    def is_due(self, at: datetime) -> bool:
        """False while a scheduled retry is still in the future"""
        return self.next_retry_at is None or as_utc(self.next_retry_at) <= at

    def _ensure_pending(self) -> None:
        if self.is_terminal():
            raise ValueError(
                f"Delivery {self.id} is already {self.status.value}"
            )

    def mark_succeeded(self, response_status: int, response_body: str, at: datetime) -> None:
        self._ensure_pending()
        self.status = DeliveryStatus.success
        self.response_status = response_status
        self.response_body = response_body
        self.error_message = None
        self.delivered_at = at
        self.next_retry_at = None
        self.updated_at = at

    def schedule_retry(self, retry_delay: int, at: datetime) -> datetime:
        """Linear backoff: the n-th failed attempt waits retry_delay * n."""
        self._ensure_pending()
        self.status = DeliveryStatus.pending
        self.next_retry_at = at + timedelta(seconds=retry_delay * self.attempts)
        self.updated_at = at
        return self.next_retry_at

    def mark_failed(self, error_message: str, at: datetime) -> None:
        self._ensure_pending()
        self.status = DeliveryStatus.failed
        self.error_message = error_message
        self.next_retry_at = None
        self.updated_at = at
