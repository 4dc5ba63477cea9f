"""
Authentication Use Case DTOs (Data Transfer Objects)

All Command and Response classes for auth domain.
Provides type safety and clear contracts between layers.
"""

from typing import Optional

from pydantic import BaseModel

from tenantgate.domain.entities import AuthState, RequestContext, User, UserRole


# ============================================================================
# Command DTOs
# ============================================================================


class RegisterCommand(BaseModel):
    """Registration intent, validated by the API layer"""

    name: str
    email: str
    password: str
    role: UserRole = UserRole.member


class LoginCommand(BaseModel):
    """Password login attempt"""

    email: str
    password: str
    context: RequestContext = RequestContext()


class VerifyTwoFactorCommand(BaseModel):
    """
    Second step of a login.

    Exactly one of code (6-digit TOTP) or recovery_code is expected.
    """

    email: str
    challenge_token: str
    code: Optional[str] = None
    recovery_code: Optional[str] = None
    context: RequestContext = RequestContext()


# ============================================================================
# Response DTOs
# ============================================================================


class UserInfo(BaseModel):
    """User information in authentication responses"""

    id: str
    tenant_id: str
    name: str
    email: str
    role: str
    email_verified: bool
    two_factor_enabled: bool

    @classmethod
    def from_user(cls, user: User) -> "UserInfo":
        return cls(
            id=str(user.id),
            tenant_id=str(user.tenant_id),
            name=user.name,
            email=user.email,
            role=UserRole(user.role).value,
            email_verified=user.has_verified_email(),
            two_factor_enabled=user.has_two_factor_enabled(),
        )


class RegisterResponse(BaseModel):
    """Response for registration use case"""

    message: str
    user: UserInfo


class LoginResponse(BaseModel):
    """
    Outcome of a login step.

    state is ``authenticated`` (access_token set) or ``two_factor_pending``
    (challenge_token set, no session token yet).
    """

    state: AuthState
    message: str
    access_token: Optional[str] = None
    token_type: Optional[str] = None
    expires_in: Optional[int] = None
    challenge_token: Optional[str] = None
    user: Optional[UserInfo] = None


class MessageResponse(BaseModel):
    """Status/message pair for flows without a richer payload"""

    status: str
    message: str


class VerifyEmailResponse(BaseModel):
    """Response for email verification use case"""

    status: str
    message: str


class ResendVerificationResponse(BaseModel):
    """Response for resend verification email use case"""

    status: str
    message: str
