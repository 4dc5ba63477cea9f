from uuid import uuid4

import pytest

from tenantgate.adapter.repositories.user_repository import UserRepository
from tenantgate.domain.entities import User
from tenantgate.domain.errors import StaleVersionError


async def _create_user(session_factory, tenant_id):
    async with session_factory() as session:
        user = await UserRepository(session).create(
            User(
                tenant_id=tenant_id,
                name="Jane",
                email="Jane@Acme.com",
                password_hash="$argon2id$placeholder",
            )
        )
        await session.commit()
        return user.id


@pytest.mark.asyncio
async def test_create_normalizes_email(session_factory):
    tenant_id = uuid4()
    user_id = await _create_user(session_factory, tenant_id)

    async with session_factory() as session:
        users = UserRepository(session)
        user = await users.get_by_email(tenant_id, "JANE@acme.com")

    assert user.id == user_id
    assert user.email == "jane@acme.com"
    assert user.version == 1


@pytest.mark.asyncio
async def test_concurrent_writers_conflict(session_factory):
    """Two sessions read version 1; only the first write lands"""
    tenant_id = uuid4()
    user_id = await _create_user(session_factory, tenant_id)

    async with session_factory() as first, session_factory() as second:
        mine = await UserRepository(first).get_by_id(tenant_id, user_id)
        theirs = await UserRepository(second).get_by_id(tenant_id, user_id)

        mine.name = "Jane A."
        await UserRepository(first).update(mine)
        await first.commit()

        theirs.name = "Jane B."
        with pytest.raises(StaleVersionError):
            await UserRepository(second).update(theirs)
        await second.rollback()

    async with session_factory() as session:
        stored = await UserRepository(session).get_by_id(tenant_id, user_id)

    assert stored.name == "Jane A."
    assert stored.version == 2


@pytest.mark.asyncio
async def test_deleted_users_hidden_unless_requested(session_factory):
    tenant_id = uuid4()
    user_id = await _create_user(session_factory, tenant_id)

    async with session_factory() as session:
        users = UserRepository(session)
        user = await users.get_by_id(tenant_id, user_id)
        user.deleted_at = user.created_at
        await users.update(user)
        await session.commit()

    async with session_factory() as session:
        users = UserRepository(session)
        assert await users.get_by_id(tenant_id, user_id) is None
        assert await users.get_by_email(tenant_id, "jane@acme.com") is None
        assert await users.get_by_id(tenant_id, user_id, include_deleted=True) is not None


@pytest.mark.asyncio
async def test_lookups_are_tenant_scoped(session_factory):
    tenant_id = uuid4()
    user_id = await _create_user(session_factory, tenant_id)

    async with session_factory() as session:
        users = UserRepository(session)
        assert await users.get_by_id(uuid4(), user_id) is None
        assert await users.get_by_email(uuid4(), "jane@acme.com") is None
