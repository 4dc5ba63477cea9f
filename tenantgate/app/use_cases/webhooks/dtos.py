"""
Webhook Use Case DTOs (Data Transfer Objects)

Commands and responses for the webhook registry. The signing secret is only
ever returned by register and regenerate-secret.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel

from tenantgate.domain.entities import Webhook, WebhookDelivery


# ============================================================================
# Command DTOs
# ============================================================================


class RegisterWebhookCommand(BaseModel):
    name: str
    url: str
    events: List[str]
    secret: Optional[str] = None
    active: bool = True
    headers: Optional[Dict[str, str]] = None
    max_retries: int = 3
    retry_delay: int = 60


class UpdateWebhookCommand(BaseModel):
    """Partial update; None leaves a field untouched. The secret is not updatable."""

    name: Optional[str] = None
    url: Optional[str] = None
    events: Optional[List[str]] = None
    active: Optional[bool] = None
    headers: Optional[Dict[str, str]] = None
    max_retries: Optional[int] = None
    retry_delay: Optional[int] = None


# ============================================================================
# Response DTOs
# ============================================================================


class WebhookInfo(BaseModel):
    id: str
    name: str
    url: str
    events: List[str]
    active: bool
    headers: Optional[Dict[str, str]] = None
    max_retries: int
    retry_delay: int
    last_triggered_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_webhook(cls, webhook: Webhook) -> "WebhookInfo":
        return cls(
            id=str(webhook.id),
            name=webhook.name,
            url=webhook.url,
            events=list(webhook.events or []),
            active=webhook.active,
            headers=webhook.headers,
            max_retries=webhook.max_retries,
            retry_delay=webhook.retry_delay,
            last_triggered_at=webhook.last_triggered_at,
            created_at=webhook.created_at,
            updated_at=webhook.updated_at,
        )


class WebhookCreatedResponse(BaseModel):
    webhook: WebhookInfo
    secret: str


class WebhookSecretResponse(BaseModel):
    secret: str
    message: str


class DeliveryInfo(BaseModel):
    id: str
    webhook_id: str
    event_type: str
    status: str
    attempts: int
    response_status: Optional[int] = None
    error_message: Optional[str] = None
    delivered_at: Optional[datetime] = None
    next_retry_at: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_delivery(cls, delivery: WebhookDelivery) -> "DeliveryInfo":
        return cls(
            id=str(delivery.id),
            webhook_id=str(delivery.webhook_id),
            event_type=delivery.event_type,
            status=getattr(delivery.status, "value", delivery.status),
            attempts=delivery.attempts,
            response_status=delivery.response_status,
            error_message=delivery.error_message,
            delivered_at=delivery.delivered_at,
            next_retry_at=delivery.next_retry_at,
            created_at=delivery.created_at,
        )


class DeliveryStats(BaseModel):
    total_deliveries: int
    successful_deliveries: int
    failed_deliveries: int
    pending_deliveries: int
    success_rate: float

    @classmethod
    def from_counts(cls, counts: Dict[str, int]) -> "DeliveryStats":
        successful = counts.get("success", 0)
        failed = counts.get("failed", 0)
        pending = counts.get("pending", 0)
        total = successful + failed + pending
        return cls(
            total_deliveries=total,
            successful_deliveries=successful,
            failed_deliveries=failed,
            pending_deliveries=pending,
            success_rate=round(successful / total * 100, 2) if total else 0.0,
        )


class WebhookDetailResponse(BaseModel):
    webhook: WebhookInfo
    recent_deliveries: List[DeliveryInfo]
    stats: DeliveryStats


class WebhookDeletedResponse(BaseModel):
    message: str
    deliveries_deleted: int
