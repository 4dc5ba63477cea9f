import pytest

from tenantgate.app.use_cases.users import DeleteUserUseCase, PurgeUserUseCase, RestoreUserUseCase
from tenantgate.domain.entities import UserRole
from tenantgate.domain.errors import StaleVersionError


@pytest.fixture
def delete_use_case(mock_uow, events, clock):
    return DeleteUserUseCase(mock_uow, events, clock=clock)


# ============================================================================
# Delete
# ============================================================================


@pytest.mark.asyncio
async def test_admin_deletes_member(delete_use_case, add_user, events, clock, tenant_id):
    admin = add_user(UserRole.admin)
    member = add_user()

    result = await delete_use_case.execute(tenant_id, admin.id, member.id)

    assert result.is_ok()
    assert member.deleted_at == clock.datetime()
    _, event, payload = events.publish.call_args.args
    assert event == "user.deleted"
    assert payload["deleted_by"] == str(admin.id)


@pytest.mark.asyncio
async def test_member_cannot_delete(delete_use_case, add_user, events, tenant_id):
    actor = add_user()
    other = add_user()

    result = await delete_use_case.execute(tenant_id, actor.id, other.id)

    assert result.error.code == "FORBIDDEN"
    assert other.deleted_at is None
    events.publish.assert_not_called()


@pytest.mark.asyncio
async def test_cannot_delete_self(delete_use_case, add_user, tenant_id):
    owner = add_user(UserRole.owner)

    result = await delete_use_case.execute(tenant_id, owner.id, owner.id)

    assert result.error.code == "FORBIDDEN"


@pytest.mark.asyncio
async def test_admin_cannot_delete_owner(delete_use_case, add_user, tenant_id):
    admin = add_user(UserRole.admin)
    owner = add_user(UserRole.owner)

    result = await delete_use_case.execute(tenant_id, admin.id, owner.id)

    assert result.error.code == "FORBIDDEN"


@pytest.mark.asyncio
async def test_delete_unknown_user(delete_use_case, add_user, tenant_id, make_user):
    admin = add_user(UserRole.admin)

    result = await delete_use_case.execute(tenant_id, admin.id, make_user().id)

    assert result.error.code == "NOT_FOUND"


@pytest.mark.asyncio
async def test_delete_version_conflict(delete_use_case, add_user, mock_uow, tenant_id):
    admin = add_user(UserRole.admin)
    member = add_user()
    mock_uow.users.update.side_effect = StaleVersionError("User", member.id, 1)

    result = await delete_use_case.execute(tenant_id, admin.id, member.id)

    assert result.error.code == "VERSION_CONFLICT"


# ============================================================================
# Restore / purge
# ============================================================================


@pytest.mark.asyncio
async def test_restore_deleted_user(mock_uow, events, add_user, clock, tenant_id):
    admin = add_user(UserRole.admin)
    member = add_user(deleted_at=clock.datetime())

    result = await RestoreUserUseCase(mock_uow, events).execute(tenant_id, admin.id, member.id)

    assert result.is_ok()
    assert result.value.id == str(member.id)
    assert member.deleted_at is None
    assert events.publish.call_args.args[2]["restored"] is True


@pytest.mark.asyncio
async def test_restore_live_user(mock_uow, events, add_user, tenant_id):
    admin = add_user(UserRole.admin)
    member = add_user()

    result = await RestoreUserUseCase(mock_uow, events).execute(tenant_id, admin.id, member.id)

    assert result.error.code == "USER_NOT_DELETED"


@pytest.mark.asyncio
async def test_owner_purges_deleted_user(mock_uow, add_user, clock, tenant_id):
    owner = add_user(UserRole.owner)
    member = add_user(deleted_at=clock.datetime())

    result = await PurgeUserUseCase(mock_uow).execute(tenant_id, owner.id, member.id)

    assert result.is_ok()
    mock_uow.users.purge.assert_awaited_once_with(member)
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_admin_cannot_purge(mock_uow, add_user, tenant_id):
    admin = add_user(UserRole.admin)
    member = add_user()

    result = await PurgeUserUseCase(mock_uow).execute(tenant_id, admin.id, member.id)

    assert result.error.code == "FORBIDDEN"
    mock_uow.users.purge.assert_not_called()
