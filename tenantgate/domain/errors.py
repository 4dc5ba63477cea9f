"""
Typed errors returned inside ``Result`` objects.

Every subclass pins a stable ``code`` so the API layer and callers can
switch on it. ``ConfigurationError`` and ``StaleVersionError`` are real
exceptions: the first is fatal at startup, the second is raised by the
user repository and converted to ``VersionConflict`` by the use cases.
"""

from typing import Optional

from tenantgate.libs.result import Error


class ConfigurationError(Exception):
    """Missing or invalid configuration detected at startup."""


class StaleVersionError(Exception):
    """A versioned write presented a version that is no longer current."""

    def __init__(self, entity: str, entity_id, expected_version: int):
        self.entity = entity
        self.entity_id = entity_id
        self.expected_version = expected_version
        super().__init__(
            f"{entity} {entity_id} was modified concurrently "
            f"(expected version {expected_version})"
        )


def _message(message: Optional[str], default: str) -> str:
    return message if message is not None else default


# ============================================================================
# Validation
# ============================================================================


class ValidationError(Error):
    def __init__(self, message: Optional[str] = None, code: str = "VALIDATION_ERROR"):
        super().__init__(code, _message(message, "The given data was invalid"))


class InvalidCode(ValidationError):
    def __init__(self, message: Optional[str] = None):
        super().__init__(
            _message(message, "The provided verification code is invalid"),
            code="INVALID_CODE",
        )


class AlreadyVerified(ValidationError):
    def __init__(self, message: Optional[str] = None):
        super().__init__(
            _message(message, "Email already verified"), code="ALREADY_VERIFIED"
        )


class InvalidSignature(ValidationError):
    def __init__(self, message: Optional[str] = None):
        super().__init__(
            _message(message, "Invalid verification link"), code="INVALID_SIGNATURE"
        )


class NotFound(Error):
    def __init__(self, what: str):
        super().__init__("NOT_FOUND", f"{what} not found")


# ============================================================================
# Authentication
# ============================================================================


class AuthenticationError(Error):
    pass


class InvalidCredentials(AuthenticationError):
    def __init__(self, message: Optional[str] = None):
        super().__init__(
            "INVALID_CREDENTIALS", _message(message, "Invalid email or password")
        )


class EmailVerificationRequired(AuthenticationError):
    def __init__(self, message: Optional[str] = None):
        super().__init__(
            "EMAIL_VERIFICATION_REQUIRED",
            _message(message, "Please verify your email address before logging in"),
        )


class TwoFactorRequired(AuthenticationError):
    def __init__(self, message: Optional[str] = None):
        super().__init__(
            "TWO_FACTOR_REQUIRED",
            _message(message, "Two-factor authentication required"),
        )


class ChallengeExpired(AuthenticationError):
    def __init__(self, message: Optional[str] = None):
        super().__init__(
            "CHALLENGE_EXPIRED", _message(message, "The challenge has expired")
        )


class ChallengeNotFound(AuthenticationError):
    def __init__(self, message: Optional[str] = None):
        super().__init__(
            "CHALLENGE_NOT_FOUND",
            _message(message, "The challenge is invalid or has already been used"),
        )


class TokenExpired(AuthenticationError):
    def __init__(self):
        super().__init__("TOKEN_EXPIRED", "Token has expired")


class TokenInvalid(AuthenticationError):
    def __init__(self, message: Optional[str] = None):
        super().__init__("TOKEN_INVALID", _message(message, "Invalid token"))


class TenantMismatch(AuthenticationError):
    def __init__(self):
        super().__init__("TENANT_MISMATCH", "Token was not issued for this tenant")


class RefreshWindowExpired(AuthenticationError):
    def __init__(self):
        super().__init__(
            "REFRESH_WINDOW_EXPIRED", "Token can no longer be refreshed"
        )


# ============================================================================
# Authorization, throttling, concurrency, delivery
# ============================================================================


class Forbidden(Error):
    def __init__(self, message: Optional[str] = None):
        super().__init__(
            "FORBIDDEN", _message(message, "This action is unauthorized")
        )


class RateLimited(Error):
    def __init__(self, retry_after: int, message: Optional[str] = None):
        self.retry_after = retry_after
        super().__init__(
            "RATE_LIMITED",
            _message(message, f"Too many attempts. Please try again in {retry_after} seconds"),
        )


class VersionConflict(Error):
    def __init__(self, message: Optional[str] = None):
        super().__init__(
            "VERSION_CONFLICT",
            _message(message, "The record was modified by another request. Reload and retry"),
        )


class DeliveryError(Error):
    def __init__(self, message: str):
        super().__init__("DELIVERY_FAILED", message)
