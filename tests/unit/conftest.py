from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from tenantgate.adapter.services.memory_cache import InMemoryCacheStore
from tenantgate.app.services.challenge_broker import ChallengeBroker
from tenantgate.app.services.credential_store import CredentialStore
from tenantgate.app.services.password_hasher import PasswordHasher
from tenantgate.app.services.rate_limiter import RateLimiter
from tenantgate.app.services.secret_codec import SecretCodec
from tenantgate.app.services.token_issuer import TokenIssuer
from tenantgate.app.services.url_signer import UrlSigner
from tenantgate.domain.entities import User, UserRole

START_TIME = 1_700_000_000.0


class FakeClock:
    """Deterministic time source for TTLs, windows and TOTP steps"""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def datetime(self) -> datetime:
        return datetime.fromtimestamp(self.now, UTC)


class RecordingQueue:
    """DeliveryQueue that keeps what would have been sent to the worker"""

    def __init__(self):
        self.enqueued = []

    async def enqueue(self, delivery_id, eta=None):
        self.enqueued.append((delivery_id, eta))


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.users = MagicMock()
    uow.users.get_by_email = AsyncMock(return_value=None)
    uow.users.get_by_id = AsyncMock(return_value=None)
    uow.users.create = AsyncMock(side_effect=lambda user: user)
    uow.users.update = AsyncMock(side_effect=lambda user: user)
    uow.users.purge = AsyncMock()
    uow.users.list_by_tenant = AsyncMock(return_value=[])

    uow.login_events = MagicMock()
    uow.login_events.create = AsyncMock(side_effect=lambda event: event)

    uow.webhooks = MagicMock()
    uow.webhooks.get_by_id = AsyncMock(return_value=None)
    uow.webhooks.get_for_tenant = AsyncMock(return_value=None)
    uow.webhooks.list_by_tenant = AsyncMock(return_value=[])
    uow.webhooks.list_subscribed = AsyncMock(return_value=[])
    uow.webhooks.create = AsyncMock(side_effect=lambda webhook: webhook)
    uow.webhooks.update = AsyncMock(side_effect=lambda webhook: webhook)
    uow.webhooks.delete = AsyncMock(return_value=0)

    uow.webhook_deliveries = MagicMock()
    uow.webhook_deliveries.get_by_id = AsyncMock(return_value=None)
    uow.webhook_deliveries.create = AsyncMock(side_effect=lambda delivery: delivery)
    uow.webhook_deliveries.update = AsyncMock(side_effect=lambda delivery: delivery)
    uow.webhook_deliveries.list_by_webhook = AsyncMock(return_value=[])
    uow.webhook_deliveries.count_by_status = AsyncMock(return_value={})
    return uow


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return InMemoryCacheStore(clock=clock)


@pytest.fixture
def limiter(cache, clock):
    return RateLimiter(cache, clock=clock)


@pytest.fixture(scope="session")
def hasher():
    return PasswordHasher()


@pytest.fixture
def codec():
    return SecretCodec("unit-test-app-key")


@pytest.fixture
def credentials(mock_uow, codec, hasher, clock):
    return CredentialStore(mock_uow, codec, hasher, clock=clock)


@pytest.fixture
def tokens(cache, clock):
    return TokenIssuer("unit-test-jwt-secret", cache, clock=clock)


@pytest.fixture
def challenges(cache, limiter, clock):
    return ChallengeBroker(cache, limiter, clock=clock)


@pytest.fixture
def signer(clock):
    return UrlSigner("http://localhost:8000/api", "unit-test-app-key", clock=clock)


@pytest.fixture
def events():
    bus = MagicMock()
    bus.publish = AsyncMock(return_value=[])
    return bus


@pytest.fixture
def notifier():
    mailer = MagicMock()
    mailer.send_magic_link = AsyncMock()
    mailer.send_verification_email = AsyncMock()
    return mailer


@pytest.fixture
def queue():
    return RecordingQueue()


@pytest.fixture
def tenant_id():
    return uuid4()


@pytest.fixture
def make_user(hasher, clock, tenant_id):
    """Build a verified user with a known password"""

    def _make_user(
        email="user@acme.com",
        password="SecurePass123!",
        role=UserRole.member,
        verified=True,
        **fields,
    ):
        return User(
            id=uuid4(),
            tenant_id=fields.pop("tenant_id", tenant_id),
            name=fields.pop("name", "Test User"),
            email=email,
            password_hash=hasher.hash(password),
            role=role,
            email_verified_at=clock.datetime() if verified else None,
            **fields,
        )

    return _make_user


@pytest.fixture
def directory(mock_uow):
    """Users the mocked repository can resolve by id and email"""
    users = {}

    async def get_by_id(tenant_id, user_id, include_deleted=False):
        user = users.get(user_id)
        if user is None or user.tenant_id != tenant_id:
            return None
        if user.is_deleted() and not include_deleted:
            return None
        return user

    async def get_by_email(tenant_id, email):
        for user in users.values():
            if user.tenant_id == tenant_id and user.email == email and not user.is_deleted():
                return user
        return None

    mock_uow.users.get_by_id.side_effect = get_by_id
    mock_uow.users.get_by_email.side_effect = get_by_email
    return users


@pytest.fixture
def add_user(directory, make_user):
    def _add(role=UserRole.member, **fields):
        user = make_user(email=f"{role.value}-{len(directory)}@acme.com", role=role, **fields)
        directory[user.id] = user
        return user

    return _add
