from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from config import ApplicationConfig
from tenantgate.api.error import raise_for_error
from tenantgate.app.services.credential_store import CredentialStore
from tenantgate.app.services.event_bus import EventBus
from tenantgate.app.services.notifier import Notifier
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.services.url_signer import UrlSigner
from tenantgate.app.use_cases.auth import (
    ResendVerificationResponse,
    ResendVerificationUseCase,
    VerifyEmailResponse,
    VerifyEmailUseCase,
)
from tenantgate.depends import (
    AuthenticatedUser,
    get_credential_store,
    get_current_user,
    get_event_bus,
    get_notifier,
    get_tenant_id,
    get_unit_of_work,
    get_url_signer,
)

router = APIRouter(prefix="/email", tags=["Email Verification"])


@router.get(
    "/verify/{user_id}/{hash_value}",
    status_code=status.HTTP_200_OK,
    response_model=VerifyEmailResponse,
)
async def verify_email(
    user_id: UUID,
    hash_value: str,
    expires: int = Query(...),
    signature: str = Query(...),
    tenant_id: UUID = Depends(get_tenant_id),
    uow: UnitOfWork = Depends(get_unit_of_work),
    credentials: CredentialStore = Depends(get_credential_store),
    signer: UrlSigner = Depends(get_url_signer),
    events: EventBus = Depends(get_event_bus),
):
    """
    Email Verification

    Follows the signed link sent at registration.

    Raises:
        - 403 Forbidden: Bad or expired signature, or hash mismatch
        - 404 Not Found: Unknown user
        - 422 Unprocessable Entity: Email already verified
    """
    use_case = VerifyEmailUseCase(uow, credentials, signer, events)
    result = await use_case.execute(tenant_id, user_id, hash_value, expires, signature)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/verification-notification",
    status_code=status.HTTP_200_OK,
    response_model=ResendVerificationResponse,
)
async def resend_verification(
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    signer: UrlSigner = Depends(get_url_signer),
    notifier: Notifier = Depends(get_notifier),
):
    use_case = ResendVerificationUseCase(
        uow,
        signer,
        notifier,
        verification_expire_minutes=ApplicationConfig.EMAIL_VERIFICATION_EXPIRE_MINUTES,
    )
    result = await use_case.execute(current_user.tenant_id, current_user.user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
