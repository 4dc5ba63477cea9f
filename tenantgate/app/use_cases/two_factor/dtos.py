"""
Two-Factor Management DTOs
"""

from typing import List

from pydantic import BaseModel


class EnableTwoFactorResponse(BaseModel):
    """Setup material shown once; 2FA is active only after confirmation"""

    secret: str
    otpauth_uri: str
    recovery_codes: List[str]
    message: str


class RecoveryCodesResponse(BaseModel):
    recovery_codes: List[str]
    message: str


class TwoFactorStatusResponse(BaseModel):
    enabled: bool
    pending_confirmation: bool
    recovery_codes_remaining: int
