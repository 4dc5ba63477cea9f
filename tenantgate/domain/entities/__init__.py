"""
tenantgate Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    AuthState,
    DeliveryStatus,
    LoginMethod,
    UserRole,
)

# Export all entities
from .user import User
from .login_event import LoginEvent
from .webhook import AVAILABLE_EVENTS, Webhook
from .webhook_delivery import WebhookDelivery
from .challenge import LoginChallenge, MagicLinkToken, RequestContext

__all__ = [
    # Enums
    "AuthState",
    "DeliveryStatus",
    "LoginMethod",
    "UserRole",
    # Entities
    "User",
    "LoginEvent",
    "Webhook",
    "WebhookDelivery",
    "AVAILABLE_EVENTS",
    # Cache records
    "LoginChallenge",
    "MagicLinkToken",
    "RequestContext",
]
