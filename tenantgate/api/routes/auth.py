from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field

from config import ApplicationConfig
from tenantgate.api.error import raise_for_error
from tenantgate.app.services.challenge_broker import ChallengeBroker
from tenantgate.app.services.credential_store import CredentialStore
from tenantgate.app.services.event_bus import EventBus
from tenantgate.app.services.notifier import Notifier
from tenantgate.app.services.rate_limiter import RateLimiter
from tenantgate.app.services.token_issuer import IssuedToken, TokenIssuer
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.services.url_signer import UrlSigner
from tenantgate.app.use_cases.auth import (
    GetCurrentUserUseCase,
    LoginCommand,
    LoginResponse,
    LoginUseCase,
    LogoutUseCase,
    MessageResponse,
    RefreshTokenUseCase,
    RegisterCommand,
    RegisterResponse,
    RegisterUseCase,
    UserInfo,
    VerifyTwoFactorCommand,
    VerifyTwoFactorUseCase,
)
from tenantgate.depends import (
    AuthenticatedUser,
    get_bearer_token,
    get_challenge_broker,
    get_credential_store,
    get_current_user,
    get_event_bus,
    get_notifier,
    get_rate_limiter,
    get_request_context,
    get_tenant_id,
    get_token_issuer,
    get_unit_of_work,
    get_url_signer,
)
from tenantgate.domain.entities import RequestContext

router = APIRouter(prefix="/auth", tags=["Authentication"])


class RegisterRequest(BaseModel):
    """
    Register HTTP request payload

    Validates incoming HTTP request before converting to RegisterCommand.
    """

    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=8, description="User password (min 8 chars)")


@router.post(
    "/register", status_code=status.HTTP_201_CREATED, response_model=RegisterResponse
)
async def register(
    request: RegisterRequest,
    tenant_id: UUID = Depends(get_tenant_id),
    uow: UnitOfWork = Depends(get_unit_of_work),
    credentials: CredentialStore = Depends(get_credential_store),
    signer: UrlSigner = Depends(get_url_signer),
    notifier: Notifier = Depends(get_notifier),
    events: EventBus = Depends(get_event_bus),
):
    """
    User Registration

    Creates an unverified member account in the tenant and sends the
    signed verification link.

    Raises:
        - 409 Conflict: Email already registered in this tenant
        - 422 Unprocessable Entity: Invalid input
    """
    command = RegisterCommand(
        name=request.name, email=request.email, password=request.password
    )

    use_case = RegisterUseCase(
        uow,
        credentials,
        signer,
        notifier,
        events,
        verification_expire_minutes=ApplicationConfig.EMAIL_VERIFICATION_EXPIRE_MINUTES,
    )
    result = await use_case.execute(tenant_id, command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class LoginRequest(BaseModel):
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")


@router.post("/login", status_code=status.HTTP_200_OK, response_model=LoginResponse)
async def login(
    request: LoginRequest,
    tenant_id: UUID = Depends(get_tenant_id),
    context: RequestContext = Depends(get_request_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    credentials: CredentialStore = Depends(get_credential_store),
    tokens: TokenIssuer = Depends(get_token_issuer),
    challenges: ChallengeBroker = Depends(get_challenge_broker),
    limiter: RateLimiter = Depends(get_rate_limiter),
    events: EventBus = Depends(get_event_bus),
):
    """
    Password Login

    Returns a session token, or a challenge token when the user has
    two-factor authentication enabled.

    Raises:
        - 401 Unauthorized: Invalid credentials
        - 403 Forbidden: Email not verified
        - 429 Too Many Requests: Login attempts exhausted for this IP
    """
    use_case = LoginUseCase(
        uow,
        credentials,
        tokens,
        challenges,
        limiter,
        events,
        max_attempts=ApplicationConfig.LOGIN_MAX_ATTEMPTS,
        decay_minutes=ApplicationConfig.LOGIN_DECAY_MINUTES,
    )
    result = await use_case.execute(
        tenant_id,
        LoginCommand(email=request.email, password=request.password, context=context),
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class VerifyTwoFactorRequest(BaseModel):
    """Second login step; send either code or recovery_code"""

    email: EmailStr
    challenge_token: str
    code: Optional[str] = Field(None, min_length=6, max_length=6)
    recovery_code: Optional[str] = None


@router.post("/2fa/verify", status_code=status.HTTP_200_OK, response_model=LoginResponse)
async def verify_two_factor(
    request: VerifyTwoFactorRequest,
    tenant_id: UUID = Depends(get_tenant_id),
    context: RequestContext = Depends(get_request_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    credentials: CredentialStore = Depends(get_credential_store),
    tokens: TokenIssuer = Depends(get_token_issuer),
    challenges: ChallengeBroker = Depends(get_challenge_broker),
    events: EventBus = Depends(get_event_bus),
):
    """
    Two-Factor Verification

    Resolves a pending challenge with a TOTP code or a recovery code.

    Raises:
        - 401 Unauthorized: Unknown, used or expired challenge
        - 422 Unprocessable Entity: Wrong code
    """
    use_case = VerifyTwoFactorUseCase(uow, credentials, tokens, challenges, events)
    result = await use_case.execute(
        tenant_id,
        VerifyTwoFactorCommand(
            email=request.email,
            challenge_token=request.challenge_token,
            code=request.code,
            recovery_code=request.recovery_code,
            context=context,
        ),
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("/refresh", status_code=status.HTTP_200_OK, response_model=IssuedToken)
async def refresh(
    token: str = Depends(get_bearer_token),
    tenant_id: UUID = Depends(get_tenant_id),
    tokens: TokenIssuer = Depends(get_token_issuer),
):
    """
    Refresh Session Token

    Accepts an expired token while its refresh window is open. The
    presented token is revoked.

    Raises:
        - 401 Unauthorized: Invalid, revoked or unrefreshable token
    """
    use_case = RefreshTokenUseCase(tokens)
    result = await use_case.execute(token, tenant_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("/logout", status_code=status.HTTP_200_OK, response_model=MessageResponse)
async def logout(
    current_user: AuthenticatedUser = Depends(get_current_user),
    tokens: TokenIssuer = Depends(get_token_issuer),
    events: EventBus = Depends(get_event_bus),
):
    use_case = LogoutUseCase(tokens, events)
    result = await use_case.execute(
        current_user.token, current_user.tenant_id, current_user.user_id
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/me", status_code=status.HTTP_200_OK, response_model=UserInfo)
async def me(
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    use_case = GetCurrentUserUseCase(uow)
    result = await use_case.execute(current_user.tenant_id, current_user.user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
