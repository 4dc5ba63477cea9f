"""Encryption of secrets at rest (TOTP secrets, recovery codes)."""

import base64
import hashlib
import json
from typing import Any, Iterable, List

from cryptography.fernet import Fernet, InvalidToken, MultiFernet


def _derive_key(raw: str) -> bytes:
    digest = hashlib.sha256(raw.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


class SecretCodec:
    """
    Single encrypt-on-write / decrypt-on-read seam.

    The first key encrypts; every key (current and previous) decrypts, so
    APP_KEY can be rotated by moving the old value to APP_PREVIOUS_KEYS.
    """

    def __init__(self, key: str, previous_keys: Iterable[str] = ()):
        keys: List[str] = [key, *[k for k in previous_keys if k]]
        self._fernet = MultiFernet([Fernet(_derive_key(k)) for k in keys])

    def encrypt(self, value: str) -> str:
        return self._fernet.encrypt(value.encode("utf-8")).decode("ascii")

    def decrypt(self, value: str) -> str:
        try:
            return self._fernet.decrypt(value.encode("ascii")).decode("utf-8")
        except (InvalidToken, ValueError) as exc:
            raise ValueError("Unable to decrypt secret") from exc

    def encrypt_json(self, value: Any) -> str:
        return self.encrypt(json.dumps(value))

    def decrypt_json(self, value: str) -> Any:
        return json.loads(self.decrypt(value))

    def rotate(self, value: str) -> str:
        """Re-encrypt ciphertext under the current key"""
        return self._fernet.rotate(value.encode("ascii")).decode("ascii")
