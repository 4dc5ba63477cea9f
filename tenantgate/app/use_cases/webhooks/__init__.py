"""
Webhook Registry Use Cases
"""

from .register_webhook_use_case import RegisterWebhookUseCase
from .update_webhook_use_case import UpdateWebhookUseCase
from .delete_webhook_use_case import DeleteWebhookUseCase
from .get_webhook_use_case import GetWebhookUseCase
from .list_webhooks_use_case import ListWebhooksUseCase
from .regenerate_webhook_secret_use_case import RegenerateWebhookSecretUseCase
from .send_test_event_use_case import SendTestEventUseCase
from .list_deliveries_use_case import ListDeliveriesUseCase
from .dtos import (
    RegisterWebhookCommand,
    UpdateWebhookCommand,
    WebhookInfo,
    WebhookCreatedResponse,
    WebhookSecretResponse,
    WebhookDetailResponse,
    WebhookDeletedResponse,
    DeliveryInfo,
    DeliveryStats,
)

__all__ = [
    # Use Cases
    "RegisterWebhookUseCase",
    "UpdateWebhookUseCase",
    "DeleteWebhookUseCase",
    "GetWebhookUseCase",
    "ListWebhooksUseCase",
    "RegenerateWebhookSecretUseCase",
    "SendTestEventUseCase",
    "ListDeliveriesUseCase",
    # DTOs - Commands
    "RegisterWebhookCommand",
    "UpdateWebhookCommand",
    # DTOs - Responses
    "WebhookInfo",
    "WebhookCreatedResponse",
    "WebhookSecretResponse",
    "WebhookDetailResponse",
    "WebhookDeletedResponse",
    "DeliveryInfo",
    "DeliveryStats",
]
