from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field

from config import ApplicationConfig
from tenantgate.api.error import raise_for_error
from tenantgate.app.services.challenge_broker import ChallengeBroker
from tenantgate.app.services.credential_store import CredentialStore
from tenantgate.app.services.event_bus import EventBus
from tenantgate.app.services.notifier import Notifier
from tenantgate.app.services.token_issuer import TokenIssuer
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.services.url_signer import UrlSigner
from tenantgate.app.use_cases.auth import (
    LoginResponse,
    MessageResponse,
    SendMagicLinkUseCase,
    VerifyMagicLinkUseCase,
)
from tenantgate.depends import (
    get_challenge_broker,
    get_credential_store,
    get_event_bus,
    get_notifier,
    get_request_context,
    get_tenant_id,
    get_token_issuer,
    get_unit_of_work,
    get_url_signer,
)
from tenantgate.domain.entities import RequestContext

router = APIRouter(prefix="/auth/magic-link", tags=["Magic Link"])


class MagicLinkRequest(BaseModel):
    email: EmailStr = Field(..., description="Address to send the sign-in link to")


@router.post("", status_code=status.HTTP_200_OK, response_model=MessageResponse)
async def send_magic_link(
    request: MagicLinkRequest,
    tenant_id: UUID = Depends(get_tenant_id),
    context: RequestContext = Depends(get_request_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    challenges: ChallengeBroker = Depends(get_challenge_broker),
    signer: UrlSigner = Depends(get_url_signer),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Request Magic Link

    Unknown addresses get the same response as known ones.

    Raises:
        - 403 Forbidden: Email not verified
        - 429 Too Many Requests: Too many links requested for this email
    """
    use_case = SendMagicLinkUseCase(
        uow,
        challenges,
        signer,
        notifier,
        expire_minutes=ApplicationConfig.MAGIC_LINK_EXPIRE_MINUTES,
    )
    result = await use_case.execute(tenant_id, request.email, context)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/verify/{token}", status_code=status.HTTP_200_OK, response_model=LoginResponse)
async def verify_magic_link(
    token: str,
    tenant_id: UUID = Depends(get_tenant_id),
    context: RequestContext = Depends(get_request_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    credentials: CredentialStore = Depends(get_credential_store),
    tokens: TokenIssuer = Depends(get_token_issuer),
    challenges: ChallengeBroker = Depends(get_challenge_broker),
    events: EventBus = Depends(get_event_bus),
):
    """
    Verify Magic Link

    Signs the user in, or returns a two-factor challenge that keeps the link
    alive until the second factor is verified.

    Raises:
        - 401 Unauthorized: Unknown, used or expired link
    """
    use_case = VerifyMagicLinkUseCase(uow, credentials, tokens, challenges, events)
    result = await use_case.execute(tenant_id, token, context)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
