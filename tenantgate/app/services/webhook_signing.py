"""
Webhook payload signing.

Receivers recompute ``sha256=<hex HMAC-SHA256(secret, raw body)>`` over the
exact bytes they received and compare it with the X-Webhook-Signature header.
"""

import hashlib
import hmac
import json
from typing import Any, Dict

SIGNATURE_PREFIX = "sha256="


def canonical_json(envelope: Dict[str, Any]) -> bytes:
    """Sorted keys, compact separators, UTF-8"""
    return json.dumps(
        envelope, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str
    ).encode("utf-8")


def sign(body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return SIGNATURE_PREFIX + digest


def verify_signature(body: bytes, signature: str, secret: str) -> bool:
    if not signature:
        return False
    return hmac.compare_digest(sign(body, secret), signature)
