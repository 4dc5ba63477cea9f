import pytest

from tenantgate.app.use_cases.auth import RegisterCommand, RegisterUseCase
from tenantgate.domain.entities import UserRole


@pytest.fixture
def use_case(mock_uow, credentials, signer, notifier, events):
    return RegisterUseCase(mock_uow, credentials, signer, notifier, events)


def _command(**overrides):
    data = {"name": "Jane Doe", "email": "jane@acme.com", "password": "SecurePass123!"}
    data.update(overrides)
    return RegisterCommand(**data)


@pytest.mark.asyncio
async def test_register_success(use_case, mock_uow, notifier, events, hasher, tenant_id):
    """New user is created unverified, mailed a signed link and announced"""
    result = await use_case.execute(tenant_id, _command())

    assert result.is_ok()
    info = result.value.user
    assert info.email == "jane@acme.com"
    assert info.tenant_id == str(tenant_id)
    assert info.role == UserRole.member.value
    assert not info.email_verified
    assert not info.two_factor_enabled

    created = mock_uow.users.create.call_args.args[0]
    assert created.password_hash.startswith("$argon2id$")
    assert hasher.verify(created.password_hash, "SecurePass123!")
    mock_uow.commit.assert_called_once()

    email, name, url = notifier.send_verification_email.call_args.args
    assert (email, name) == ("jane@acme.com", "Jane Doe")
    assert f"/email/verify/{created.id}/" in url
    assert "signature=" in url

    events.publish.assert_awaited_once()
    _, event, payload = events.publish.call_args.args
    assert event == "user.created"
    assert payload["user_id"] == str(created.id)
    assert payload["role"] == "member"


@pytest.mark.asyncio
async def test_register_duplicate_email(use_case, mock_uow, make_user, notifier, events, tenant_id):
    mock_uow.users.get_by_email.return_value = make_user(email="jane@acme.com")

    result = await use_case.execute(tenant_id, _command())

    assert result.is_err()
    assert result.error.code == "EMAIL_ALREADY_EXISTS"
    mock_uow.users.create.assert_not_called()
    notifier.send_verification_email.assert_not_called()
    events.publish.assert_not_called()


@pytest.mark.asyncio
async def test_register_with_role(use_case, tenant_id):
    result = await use_case.execute(tenant_id, _command(role=UserRole.admin))

    assert result.value.user.role == "admin"
