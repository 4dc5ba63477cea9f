from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from config import ApplicationConfig
from tenantgate.api.error import raise_for_error
from tenantgate.app.services.credential_store import CredentialStore
from tenantgate.app.services.event_bus import EventBus
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.use_cases.auth import MessageResponse
from tenantgate.app.use_cases.two_factor import (
    ConfirmTwoFactorUseCase,
    DisableTwoFactorUseCase,
    EnableTwoFactorResponse,
    EnableTwoFactorUseCase,
    GetTwoFactorStatusUseCase,
    RecoveryCodesResponse,
    RegenerateRecoveryCodesUseCase,
    TwoFactorStatusResponse,
)
from tenantgate.depends import (
    AuthenticatedUser,
    get_credential_store,
    get_current_user,
    get_event_bus,
    get_unit_of_work,
)

router = APIRouter(prefix="/2fa", tags=["Two-Factor"])


class ConfirmTwoFactorRequest(BaseModel):
    code: str = Field(..., min_length=6, max_length=6, description="Current TOTP code")


class PasswordConfirmationRequest(BaseModel):
    password: str = Field(..., description="Current password")


@router.post("/enable", status_code=status.HTTP_200_OK, response_model=EnableTwoFactorResponse)
async def enable_two_factor(
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    credentials: CredentialStore = Depends(get_credential_store),
):
    """
    Start Two-Factor Enrollment

    Returns the secret, otpauth URI and recovery codes once. 2FA stays off
    until confirmed.
    """
    use_case = EnableTwoFactorUseCase(uow, credentials, issuer=ApplicationConfig.APP_NAME)
    result = await use_case.execute(current_user.tenant_id, current_user.user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("/confirm", status_code=status.HTTP_200_OK, response_model=MessageResponse)
async def confirm_two_factor(
    request: ConfirmTwoFactorRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    credentials: CredentialStore = Depends(get_credential_store),
    events: EventBus = Depends(get_event_bus),
):
    use_case = ConfirmTwoFactorUseCase(uow, credentials, events)
    result = await use_case.execute(
        current_user.tenant_id, current_user.user_id, request.code
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("/disable", status_code=status.HTTP_200_OK, response_model=MessageResponse)
async def disable_two_factor(
    request: PasswordConfirmationRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    credentials: CredentialStore = Depends(get_credential_store),
    events: EventBus = Depends(get_event_bus),
):
    use_case = DisableTwoFactorUseCase(uow, credentials, events)
    result = await use_case.execute(
        current_user.tenant_id, current_user.user_id, request.password
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/recovery-codes", status_code=status.HTTP_200_OK, response_model=RecoveryCodesResponse
)
async def regenerate_recovery_codes(
    request: PasswordConfirmationRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    credentials: CredentialStore = Depends(get_credential_store),
):
    use_case = RegenerateRecoveryCodesUseCase(uow, credentials)
    result = await use_case.execute(
        current_user.tenant_id, current_user.user_id, request.password
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/status", status_code=status.HTTP_200_OK, response_model=TwoFactorStatusResponse)
async def two_factor_status(
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    credentials: CredentialStore = Depends(get_credential_store),
):
    use_case = GetTwoFactorStatusUseCase(uow, credentials)
    result = await use_case.execute(current_user.tenant_id, current_user.user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
