import pytest

from tenantgate.app.services.totp import totp_now
from tenantgate.app.use_cases.two_factor import (
    ConfirmTwoFactorUseCase,
    DisableTwoFactorUseCase,
    EnableTwoFactorUseCase,
    GetTwoFactorStatusUseCase,
    RegenerateRecoveryCodesUseCase,
)

SECRET = "JBSWY3DPEHPK3PXP"


@pytest.fixture
def user(mock_uow, make_user):
    user = make_user()
    mock_uow.users.get_by_id.return_value = user
    return user


@pytest.fixture
def enabled_user(user, codec):
    user.totp_secret = codec.encrypt(SECRET)
    user.recovery_codes = codec.encrypt_json(["AAAAA-BBBBB"])
    user.totp_enabled = True
    return user


# ============================================================================
# Enable / confirm
# ============================================================================


@pytest.mark.asyncio
async def test_enable_stores_encrypted_secret(mock_uow, credentials, user, tenant_id):
    use_case = EnableTwoFactorUseCase(mock_uow, credentials, issuer="Acme")

    result = await use_case.execute(tenant_id, user.id)

    assert result.is_ok()
    response = result.value
    assert len(response.recovery_codes) == 8
    assert response.otpauth_uri.startswith("otpauth://totp/Acme%3Auser%40acme.com?")
    assert user.totp_secret != response.secret
    assert credentials.totp_secret(user) == response.secret
    assert credentials.recovery_codes(user) == response.recovery_codes
    assert not user.has_two_factor_enabled()
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_enable_refused_when_already_enabled(mock_uow, credentials, enabled_user, tenant_id):
    result = await EnableTwoFactorUseCase(mock_uow, credentials).execute(
        tenant_id, enabled_user.id
    )

    assert result.error.code == "TWO_FACTOR_ALREADY_ENABLED"


@pytest.mark.asyncio
async def test_confirm_activates_two_factor(
    mock_uow, credentials, events, user, clock, tenant_id
):
    setup = await EnableTwoFactorUseCase(mock_uow, credentials).execute(tenant_id, user.id)
    code = totp_now(setup.value.secret, timestamp=clock())

    result = await ConfirmTwoFactorUseCase(mock_uow, credentials, events).execute(
        tenant_id, user.id, code
    )

    assert result.is_ok()
    assert user.has_two_factor_enabled()
    assert events.publish.call_args.args[1] == "user.2fa_enabled"


@pytest.mark.asyncio
async def test_confirm_with_wrong_code(mock_uow, credentials, events, user, codec, tenant_id):
    user.totp_secret = codec.encrypt(SECRET)

    result = await ConfirmTwoFactorUseCase(mock_uow, credentials, events).execute(
        tenant_id, user.id, "000000"
    )

    assert result.error.code == "INVALID_CODE"
    assert not user.totp_enabled
    events.publish.assert_not_called()


@pytest.mark.asyncio
async def test_confirm_without_setup(mock_uow, credentials, events, user, tenant_id):
    result = await ConfirmTwoFactorUseCase(mock_uow, credentials, events).execute(
        tenant_id, user.id, "123456"
    )

    assert result.error.code == "TWO_FACTOR_NOT_SETUP"


# ============================================================================
# Disable / recovery codes / status
# ============================================================================


@pytest.mark.asyncio
async def test_disable_erases_secrets(mock_uow, credentials, events, enabled_user, tenant_id):
    result = await DisableTwoFactorUseCase(mock_uow, credentials, events).execute(
        tenant_id, enabled_user.id, "SecurePass123!"
    )

    assert result.is_ok()
    assert enabled_user.totp_secret is None
    assert enabled_user.recovery_codes is None
    assert not enabled_user.totp_enabled
    assert events.publish.call_args.args[1] == "user.2fa_disabled"


@pytest.mark.asyncio
async def test_disable_requires_password(mock_uow, credentials, events, enabled_user, tenant_id):
    result = await DisableTwoFactorUseCase(mock_uow, credentials, events).execute(
        tenant_id, enabled_user.id, "wrong"
    )

    assert result.error.code == "INVALID_PASSWORD"
    assert enabled_user.totp_enabled


@pytest.mark.asyncio
async def test_disable_when_not_enabled(mock_uow, credentials, events, user, tenant_id):
    result = await DisableTwoFactorUseCase(mock_uow, credentials, events).execute(
        tenant_id, user.id, "SecurePass123!"
    )

    assert result.error.code == "TWO_FACTOR_NOT_ENABLED"


@pytest.mark.asyncio
async def test_regenerate_replaces_codes(mock_uow, credentials, enabled_user, tenant_id):
    result = await RegenerateRecoveryCodesUseCase(mock_uow, credentials).execute(
        tenant_id, enabled_user.id, "SecurePass123!"
    )

    assert result.is_ok()
    codes = result.value.recovery_codes
    assert len(codes) == 8
    assert "AAAAA-BBBBB" not in codes
    assert credentials.recovery_codes(enabled_user) == codes


@pytest.mark.asyncio
async def test_status_reports_pending_setup(mock_uow, credentials, user, tenant_id):
    status = GetTwoFactorStatusUseCase(mock_uow, credentials)

    before = await status.execute(tenant_id, user.id)
    await EnableTwoFactorUseCase(mock_uow, credentials).execute(tenant_id, user.id)
    after = await status.execute(tenant_id, user.id)

    assert not before.value.enabled
    assert not before.value.pending_confirmation
    assert before.value.recovery_codes_remaining == 0
    assert not after.value.enabled
    assert after.value.pending_confirmation
    assert after.value.recovery_codes_remaining == 8
