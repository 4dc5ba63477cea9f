import bcrypt
from argon2 import PasswordHasher as Argon2Hasher
from argon2 import Type
from argon2.exceptions import InvalidHash, VerificationError

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


class PasswordHasher:
    """
    Password hashing with argon2id.

    Business Rules:
    - New hashes are always argon2id
    - Legacy bcrypt hashes still verify; needs_rehash() reports them so the
      caller can upgrade on the next successful login
    - verify_dummy() burns comparable time when no account matched
    """

    def __init__(self):
        self._argon2 = Argon2Hasher(type=Type.ID)
        self._dummy_hash = self._argon2.hash("dummy_password")

    def hash(self, password: str) -> str:
        return self._argon2.hash(password)

    def verify(self, password_hash: str, password: str) -> bool:
        if password_hash.startswith(_BCRYPT_PREFIXES):
            # PHP-style $2y$ is the same algorithm as $2b$
            legacy = "$2b$" + password_hash[4:]
            try:
                return bcrypt.checkpw(password.encode(), legacy.encode())
            except ValueError:
                return False
        try:
            return self._argon2.verify(password_hash, password)
        except (InvalidHash, VerificationError):
            return False

    def needs_rehash(self, password_hash: str) -> bool:
        if password_hash.startswith(_BCRYPT_PREFIXES):
            return True
        try:
            return self._argon2.check_needs_rehash(password_hash)
        except InvalidHash:
            return True

    def verify_dummy(self, password: str) -> None:
        self.verify(self._dummy_hash, password)
