"""TOTP helpers (RFC 6238 / 4226) and recovery codes."""

import base64
import hashlib
import hmac
import secrets
import struct
import time
from typing import List, Optional
from urllib.parse import quote, urlencode

DEFAULT_DIGITS = 6
DEFAULT_PERIOD_SECONDS = 30
RECOVERY_CODE_COUNT = 8


def generate_totp_secret(length: int = 32) -> str:
    """Generate a base32 secret for TOTP."""

    # 20 raw bytes -> 32 base32 chars without padding.
    raw = secrets.token_bytes(max(20, length // 2))
    encoded = base64.b32encode(raw).decode("ascii").rstrip("=")
    return encoded[:length]


def _normalize_secret(secret: str) -> bytes:
    candidate = secret.strip().replace(" ", "").upper()
    padding = "=" * ((8 - len(candidate) % 8) % 8)
    return base64.b32decode(candidate + padding, casefold=True)


def _hotp(secret: bytes, counter: int, digits: int = DEFAULT_DIGITS) -> str:
    message = struct.pack(">Q", counter)
    digest = hmac.new(secret, message, hashlib.sha1).digest()
    offset = digest[-1] & 0x0F
    code_int = struct.unpack(">I", digest[offset : offset + 4])[0] & 0x7FFFFFFF
    return str(code_int % (10**digits)).zfill(digits)


def totp_now(
    secret: str,
    timestamp: Optional[float] = None,
    period_seconds: int = DEFAULT_PERIOD_SECONDS,
    digits: int = DEFAULT_DIGITS,
) -> str:
    ts = int(time.time() if timestamp is None else timestamp)
    return _hotp(_normalize_secret(secret), ts // period_seconds, digits=digits)


def verify_totp(
    secret: str,
    code: str,
    timestamp: Optional[float] = None,
    period_seconds: int = DEFAULT_PERIOD_SECONDS,
    digits: int = DEFAULT_DIGITS,
    valid_window: int = 1,
) -> bool:
    """Accept the code of the current step or of +-valid_window neighbouring steps."""
    candidate = "".join(ch for ch in code.strip() if ch.isdigit())
    if len(candidate) != digits:
        return False
    ts = int(time.time() if timestamp is None else timestamp)
    counter = ts // period_seconds
    secret_bytes = _normalize_secret(secret)
    matched = False
    for delta in range(-valid_window, valid_window + 1):
        if hmac.compare_digest(_hotp(secret_bytes, counter + delta, digits=digits), candidate):
            matched = True
    return matched


def provisioning_uri(secret: str, account: str, issuer: str) -> str:
    """otpauth:// URI understood by authenticator apps"""
    label = quote(f"{issuer}:{account}")
    params = urlencode(
        {
            "secret": secret,
            "issuer": issuer,
            "algorithm": "SHA1",
            "digits": DEFAULT_DIGITS,
            "period": DEFAULT_PERIOD_SECONDS,
        }
    )
    return f"otpauth://totp/{label}?{params}"


def generate_recovery_codes(
    count: int = RECOVERY_CODE_COUNT, groups: int = 2, group_len: int = 5
) -> List[str]:
    """Generate user-facing recovery codes like ``K7QXM-2HPRA``."""

    alphabet = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
    codes: List[str] = []
    while len(codes) < count:
        parts = [
            "".join(secrets.choice(alphabet) for _ in range(group_len))
            for _ in range(groups)
        ]
        code = "-".join(parts)
        if code not in codes:
            codes.append(code)
    return codes


def normalize_recovery_code(code: str) -> str:
    return "".join(ch for ch in code.strip().upper() if ch.isalnum())
