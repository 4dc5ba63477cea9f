from urllib.parse import urlsplit
from uuid import UUID, uuid4

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from tenantgate.adapter.repositories.user_repository import UserRepository
from tenantgate.adapter.services.memory_cache import InMemoryCacheStore
from tenantgate.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from tenantgate.api.app import create_app
from tenantgate.app.services.notifier import Notifier
from tenantgate.depends import (
    get_cache,
    get_delivery_queue,
    get_notifier,
    get_unit_of_work,
)
from tenantgate.domain.entities import UserRole

PASSWORD = "SecurePass123!"


class RecordingNotifier(Notifier):
    """Keeps outgoing mail so tests can follow the links"""

    def __init__(self):
        self.magic_links = []
        self.verification_emails = []

    async def send_magic_link(self, email, url, expires_minutes):
        self.magic_links.append((email, url))

    async def send_verification_email(self, email, name, url):
        self.verification_emails.append((email, url))

    def last_verification_path(self, email):
        return _relative([url for to, url in self.verification_emails if to == email][-1])

    def last_magic_link_path(self, email):
        return _relative([url for to, url in self.magic_links if to == email][-1])


class RecordingQueue:
    def __init__(self):
        self.enqueued = []

    async def enqueue(self, delivery_id, eta=None):
        self.enqueued.append((delivery_id, eta))


def _relative(url):
    parts = urlsplit(url)
    return f"{parts.path}?{parts.query}" if parts.query else parts.path


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def notifier():
    return RecordingNotifier()


@pytest_asyncio.fixture
async def queue():
    return RecordingQueue()


@pytest_asyncio.fixture
async def tenant_id():
    return uuid4()


@pytest_asyncio.fixture
async def app(session_factory, notifier, queue):
    app = create_app(ApplicationConfig)
    cache = InMemoryCacheStore()

    async def override_get_unit_of_work():
        async with session_factory() as session:
            yield SqlAlchemyUnitOfWork(session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_delivery_queue] = lambda: queue
    return app


@pytest_asyncio.fixture
async def client(app, tenant_id):
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-Tenant-ID": str(tenant_id)},
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def set_role(session_factory, tenant_id):
    """Change a user's role directly in the database"""

    async def _set_role(user_id, role: UserRole):
        async with session_factory() as session:
            users = UserRepository(session)
            user = await users.get_by_id(tenant_id, UUID(user_id))
            user.role = role
            await users.update(user)
            await session.commit()

    return _set_role


@pytest_asyncio.fixture
async def verified_user(client, notifier):
    """Register and verify an account; returns the registered user payload"""

    async def _verified_user(email="user@acme.com", name="Test User", password=PASSWORD):
        response = await client.post(
            "/api/auth/register", json={"name": name, "email": email, "password": password}
        )
        assert response.status_code == 201
        verify = await client.get(notifier.last_verification_path(email))
        assert verify.status_code == 200
        return response.json()["user"]

    return _verified_user


@pytest_asyncio.fixture
async def login(client):
    """Password login; returns Authorization headers"""

    async def _login(email="user@acme.com", password=PASSWORD):
        response = await client.post(
            "/api/auth/login", json={"email": email, "password": password}
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login
