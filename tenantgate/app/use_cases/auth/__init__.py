"""
Authentication Use Cases

All authentication-related business logic.
"""

from .register_use_case import RegisterUseCase
from .login_use_case import LoginUseCase
from .login_completion import LoginCompletion
from .verify_two_factor_use_case import VerifyTwoFactorUseCase
from .send_magic_link_use_case import SendMagicLinkUseCase
from .verify_magic_link_use_case import VerifyMagicLinkUseCase
from .verify_email_use_case import VerifyEmailUseCase
from .resend_verification_use_case import ResendVerificationUseCase
from .refresh_token_use_case import RefreshTokenUseCase
from .logout_use_case import LogoutUseCase
from .get_current_user_use_case import GetCurrentUserUseCase
from .dtos import (
    RegisterCommand,
    LoginCommand,
    VerifyTwoFactorCommand,
    UserInfo,
    RegisterResponse,
    LoginResponse,
    MessageResponse,
    VerifyEmailResponse,
    ResendVerificationResponse,
)

__all__ = [
    # Use Cases
    "RegisterUseCase",
    "LoginUseCase",
    "LoginCompletion",
    "VerifyTwoFactorUseCase",
    "SendMagicLinkUseCase",
    "VerifyMagicLinkUseCase",
    "VerifyEmailUseCase",
    "ResendVerificationUseCase",
    "RefreshTokenUseCase",
    "LogoutUseCase",
    "GetCurrentUserUseCase",
    # DTOs - Commands
    "RegisterCommand",
    "LoginCommand",
    "VerifyTwoFactorCommand",
    # DTOs - Responses
    "RegisterResponse",
    "LoginResponse",
    "MessageResponse",
    "VerifyEmailResponse",
    "ResendVerificationResponse",
    # DTOs - Nested Models
    "UserInfo",
]
