from fastapi import status

from tenantgate.domain.errors import (
    AuthenticationError,
    EmailVerificationRequired,
    Forbidden,
    InvalidSignature,
    NotFound,
    RateLimited,
    ValidationError,
    VersionConflict,
)
from tenantgate.libs.result import Error


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


# Codes that do not follow the default status of their error class
STATUS_BY_CODE = {
    "EMAIL_ALREADY_EXISTS": status.HTTP_409_CONFLICT,
}


def status_for(error: Error):
    """HTTP status of a use-case error, or None for unexpected errors"""
    if error.code in STATUS_BY_CODE:
        return STATUS_BY_CODE[error.code]
    if isinstance(error, RateLimited):
        return status.HTTP_429_TOO_MANY_REQUESTS
    if isinstance(error, VersionConflict):
        return status.HTTP_409_CONFLICT
    if isinstance(error, (Forbidden, EmailVerificationRequired, InvalidSignature)):
        return status.HTTP_403_FORBIDDEN
    if isinstance(error, NotFound):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, AuthenticationError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(error, ValidationError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    return None


def raise_for_error(error: Error):
    """Raise the API exception matching a use-case error"""
    status_code = status_for(error)
    if status_code is None:
        raise ServerError(error)
    raise ClientError(error, status_code=status_code)
