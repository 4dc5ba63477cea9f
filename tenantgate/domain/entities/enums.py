"""
tenantgate Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class UserRole(str, Enum):
    """User role within its tenant"""

    owner = "owner"
    admin = "admin"
    member = "member"
    auditor = "auditor"


class LoginMethod(str, Enum):
    """How a login attempt authenticated"""

    password = "password"
    magic_link = "magic_link"
    two_factor = "2fa"


class AuthState(str, Enum):
    """States of the authentication flow"""

    anonymous = "anonymous"
    credentials_pending = "credentials_pending"
    email_unverified = "email_unverified"
    magic_link_pending = "magic_link_pending"
    two_factor_pending = "two_factor_pending"
    authenticated = "authenticated"
    rejected = "rejected"


class DeliveryStatus(str, Enum):
    """Webhook delivery status"""

    pending = "pending"
    success = "success"
    failed = "failed"
