"""
Credential Store

Password, email-verification and second-factor state of a tenant user.
Every mutation is persisted through the versioned user repository, so a
concurrent writer surfaces as StaleVersionError.
"""

import hmac
import logging
import time
from datetime import UTC, datetime
from typing import Callable, List, Optional, Tuple

from tenantgate.app.services.password_hasher import PasswordHasher
from tenantgate.app.services.secret_codec import SecretCodec
from tenantgate.app.services.totp import (
    generate_recovery_codes,
    generate_totp_secret,
    normalize_recovery_code,
    verify_totp,
)
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.domain.entities import User
from tenantgate.domain.errors import AlreadyVerified
from tenantgate.libs.result import Result, Return

logger = logging.getLogger(__name__)


class CredentialStore:
    """
    Credential operations on User rows.

    Business Rules:
    - Secrets (TOTP secret, recovery codes) only ever touch the database
      encrypted by SecretCodec
    - A TOTP secret is stored before 2FA is enabled; enabling only flips the flag
    - Recovery codes are single use
    - Legacy password hashes are upgraded on the next successful login

    Must be used inside the caller's ``async with uow`` block; nothing here
    commits.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        codec: SecretCodec,
        hasher: PasswordHasher,
        clock: Callable[[], float] = time.time,
    ):
        self.uow = uow
        self.codec = codec
        self.hasher = hasher
        self.clock = clock

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self.clock(), UTC)

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    def hash_password(self, plaintext: str) -> str:
        return self.hasher.hash(plaintext)

    def verify_password(self, user: Optional[User], plaintext: str) -> bool:
        """Constant-time check; a missing user still costs one hash verification"""
        if user is None:
            self.hasher.verify_dummy(plaintext)
            return False
        return self.hasher.verify(user.password_hash, plaintext)

    async def set_password(self, user: User, plaintext: str) -> User:
        user.password_hash = self.hasher.hash(plaintext)
        return await self.uow.users.update(user)

    # ------------------------------------------------------------------
    # Email verification and login statistics
    # ------------------------------------------------------------------

    async def mark_email_verified(self, user: User) -> Result[User]:
        if user.has_verified_email():
            return Return.err(AlreadyVerified())
        user.email_verified_at = self._now()
        return Return.ok(await self.uow.users.update(user))

    async def record_login(self, user: User, password: Optional[str] = None) -> User:
        """
        Stamp a successful login.

        Args:
            user: Authenticated user
            password: Plaintext that just verified, if any; used to upgrade
                legacy hashes in the same write
        """
        if password is not None and self.hasher.needs_rehash(user.password_hash):
            user.password_hash = self.hasher.hash(password)
            logger.info(f"Upgraded password hash for user {user.id}")
        user.last_login_at = self._now()
        user.login_count = (user.login_count or 0) + 1
        return await self.uow.users.update(user)

    # ------------------------------------------------------------------
    # Two-factor
    # ------------------------------------------------------------------

    def totp_secret(self, user: User) -> Optional[str]:
        if user.totp_secret is None:
            return None
        return self.codec.decrypt(user.totp_secret)

    def recovery_codes(self, user: User) -> List[str]:
        if user.recovery_codes is None:
            return []
        return list(self.codec.decrypt_json(user.recovery_codes))

    async def begin_two_factor(self, user: User) -> Tuple[str, List[str]]:
        """Store a fresh secret and recovery codes; 2FA stays disabled until confirmed"""
        secret = generate_totp_secret()
        codes = generate_recovery_codes()
        user.totp_secret = self.codec.encrypt(secret)
        user.recovery_codes = self.codec.encrypt_json(codes)
        user.totp_enabled = False
        await self.uow.users.update(user)
        return secret, codes

    async def enable_two_factor(self, user: User) -> User:
        if user.totp_secret is None:
            raise ValueError("Cannot enable two-factor authentication without a secret")
        user.totp_enabled = True
        return await self.uow.users.update(user)

    async def disable_two_factor(self, user: User) -> User:
        user.totp_enabled = False
        user.totp_secret = None
        user.recovery_codes = None
        return await self.uow.users.update(user)

    async def replace_recovery_codes(self, user: User) -> List[str]:
        codes = generate_recovery_codes()
        user.recovery_codes = self.codec.encrypt_json(codes)
        await self.uow.users.update(user)
        return codes

    def verify_totp(self, user: User, code: str) -> bool:
        secret = self.totp_secret(user)
        if secret is None:
            return False
        return verify_totp(secret, code, timestamp=self.clock())

    def _find_recovery_code(self, user: User, code: str) -> Optional[str]:
        candidate = normalize_recovery_code(code)
        if not candidate:
            return None
        found = None
        for stored in self.recovery_codes(user):
            if hmac.compare_digest(normalize_recovery_code(stored), candidate):
                found = stored
        return found

    def match_recovery_code(self, user: User, code: str) -> bool:
        return self._find_recovery_code(user, code) is not None

    async def consume_recovery_code(self, user: User, code: str) -> bool:
        """Remove a matching recovery code. Returns False if nothing matched."""
        found = self._find_recovery_code(user, code)
        if found is None:
            return False
        remaining = [c for c in self.recovery_codes(user) if c != found]
        user.recovery_codes = self.codec.encrypt_json(remaining)
        await self.uow.users.update(user)
        logger.info(f"Recovery code used by user {user.id}, {len(remaining)} left")
        return True
