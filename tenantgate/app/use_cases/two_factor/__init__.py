"""
Two-Factor Management Use Cases
"""

from .enable_two_factor_use_case import EnableTwoFactorUseCase
from .confirm_two_factor_use_case import ConfirmTwoFactorUseCase
from .disable_two_factor_use_case import DisableTwoFactorUseCase
from .regenerate_recovery_codes_use_case import RegenerateRecoveryCodesUseCase
from .get_two_factor_status_use_case import GetTwoFactorStatusUseCase
from .dtos import EnableTwoFactorResponse, RecoveryCodesResponse, TwoFactorStatusResponse

__all__ = [
    "EnableTwoFactorUseCase",
    "ConfirmTwoFactorUseCase",
    "DisableTwoFactorUseCase",
    "RegenerateRecoveryCodesUseCase",
    "GetTwoFactorStatusUseCase",
    "EnableTwoFactorResponse",
    "RecoveryCodesResponse",
    "TwoFactorStatusResponse",
]
