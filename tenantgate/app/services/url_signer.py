import hashlib
import hmac
import time
from typing import Callable
from urllib.parse import urlencode

from tenantgate.domain.entities import User
from tenantgate.domain.errors import InvalidSignature
from tenantgate.libs.result import Result, Return


def email_hash(email: str) -> str:
    return hashlib.sha1(email.lower().encode("utf-8")).hexdigest()


class UrlSigner:
    """
    Signed, expiring links.

    The signature covers ``{path}?expires={epoch}`` where path is relative to
    the API root, so the same value is recomputed by the route that receives
    the link.
    """

    def __init__(self, base_url: str, key: str, clock: Callable[[], float] = time.time):
        self.base_url = base_url.rstrip("/")
        self.key = key.encode("utf-8")
        self.clock = clock

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _signature(self, path: str, expires: int) -> str:
        message = f"{path}?expires={expires}".encode("utf-8")
        return hmac.new(self.key, message, hashlib.sha256).hexdigest()

    def sign(self, path: str, expire_minutes: int) -> str:
        expires = int(self.clock()) + expire_minutes * 60
        query = urlencode({"expires": expires, "signature": self._signature(path, expires)})
        return f"{self.url(path)}?{query}"

    def verify(self, path: str, expires: int, signature: str) -> Result[None]:
        if not hmac.compare_digest(self._signature(path, expires), signature):
            return Return.err(InvalidSignature())
        if self.clock() > expires:
            return Return.err(InvalidSignature("Verification link has expired"))
        return Return.ok(None)

    @staticmethod
    def verification_path(user: User) -> str:
        return f"/email/verify/{user.id}/{email_hash(user.email)}"

    def verification_url(self, user: User, expire_minutes: int) -> str:
        return self.sign(self.verification_path(user), expire_minutes)
