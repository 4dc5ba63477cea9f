import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
from uuid import UUID

from fastapi import Depends, Header, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from tenantgate.adapter.services.cache_factory import create_cache_store
from tenantgate.adapter.services.celery_queue import CeleryDeliveryQueue
from tenantgate.adapter.services.log_notifier import LogNotifier
from tenantgate.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from tenantgate.api.error import ClientError
from tenantgate.app.services.cache import CacheStore
from tenantgate.app.services.challenge_broker import ChallengeBroker
from tenantgate.app.services.credential_store import CredentialStore
from tenantgate.app.services.delivery_engine import DeliveryEngine
from tenantgate.app.services.delivery_queue import DeliveryQueue
from tenantgate.app.services.event_bus import EventBus
from tenantgate.app.services.notifier import Notifier
from tenantgate.app.services.password_hasher import PasswordHasher
from tenantgate.app.services.rate_limiter import RateLimiter
from tenantgate.app.services.secret_codec import SecretCodec
from tenantgate.app.services.token_issuer import TokenIssuer
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.services.url_signer import UrlSigner
from tenantgate.domain.entities import RequestContext
from tenantgate.domain.errors import TokenInvalid, ValidationError

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer(auto_error=False)

_cache_store: Optional[CacheStore] = None
_password_hasher: Optional[PasswordHasher] = None


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_clock() -> Callable[[], float]:
    return time.time


def get_cache() -> CacheStore:
    global _cache_store
    if _cache_store is None:
        _cache_store = create_cache_store(ApplicationConfig)
    return _cache_store


def get_password_hasher() -> PasswordHasher:
    global _password_hasher
    if _password_hasher is None:
        _password_hasher = PasswordHasher()
    return _password_hasher


def get_secret_codec() -> SecretCodec:
    return SecretCodec(ApplicationConfig.APP_KEY, ApplicationConfig.APP_PREVIOUS_KEYS)


def get_notifier() -> Notifier:
    return LogNotifier()


def get_delivery_queue() -> DeliveryQueue:
    # Imported here so the API does not configure Celery at import time
    from tenantgate.worker import deliver_webhook

    return CeleryDeliveryQueue(deliver_webhook)


def get_rate_limiter(
    cache: CacheStore = Depends(get_cache),
    clock: Callable[[], float] = Depends(get_clock),
) -> RateLimiter:
    return RateLimiter(cache, clock=clock)


def get_token_issuer(
    cache: CacheStore = Depends(get_cache),
    clock: Callable[[], float] = Depends(get_clock),
) -> TokenIssuer:
    return TokenIssuer(
        ApplicationConfig.JWT_SECRET,
        cache,
        ttl_minutes=ApplicationConfig.JWT_TTL_MINUTES,
        refresh_ttl_minutes=ApplicationConfig.JWT_REFRESH_TTL_MINUTES,
        clock=clock,
    )


def get_challenge_broker(
    cache: CacheStore = Depends(get_cache),
    limiter: RateLimiter = Depends(get_rate_limiter),
    clock: Callable[[], float] = Depends(get_clock),
) -> ChallengeBroker:
    return ChallengeBroker(
        cache,
        limiter,
        challenge_ttl_minutes=ApplicationConfig.TWO_FACTOR_CHALLENGE_MINUTES,
        magic_link_ttl_minutes=ApplicationConfig.MAGIC_LINK_EXPIRE_MINUTES,
        magic_link_max_attempts=ApplicationConfig.MAGIC_LINK_MAX_ATTEMPTS,
        magic_link_decay_minutes=ApplicationConfig.MAGIC_LINK_DECAY_MINUTES,
        clock=clock,
    )


def get_url_signer(clock: Callable[[], float] = Depends(get_clock)) -> UrlSigner:
    base_url = ApplicationConfig.APP_URL.rstrip("/") + ApplicationConfig.API_PREFIX
    return UrlSigner(base_url, ApplicationConfig.APP_KEY, clock=clock)


def get_credential_store(
    uow: UnitOfWork = Depends(get_unit_of_work),
    codec: SecretCodec = Depends(get_secret_codec),
    hasher: PasswordHasher = Depends(get_password_hasher),
    clock: Callable[[], float] = Depends(get_clock),
) -> CredentialStore:
    return CredentialStore(uow, codec, hasher, clock=clock)


def get_delivery_engine(
    uow: UnitOfWork = Depends(get_unit_of_work),
    queue: DeliveryQueue = Depends(get_delivery_queue),
    cache: CacheStore = Depends(get_cache),
) -> DeliveryEngine:
    return DeliveryEngine(
        uow, queue, cache, timeout_seconds=ApplicationConfig.WEBHOOK_TIMEOUT_SECONDS
    )


def get_event_bus(engine: DeliveryEngine = Depends(get_delivery_engine)) -> EventBus:
    return EventBus(engine)


def get_tenant_id(x_tenant_id: Optional[str] = Header(None)) -> UUID:
    """Tenant of the request, from the X-Tenant-ID header"""
    if not x_tenant_id:
        raise ClientError(
            ValidationError("X-Tenant-ID header is required", code="TENANT_REQUIRED"),
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    try:
        return UUID(x_tenant_id)
    except ValueError:
        raise ClientError(
            ValidationError("X-Tenant-ID must be a UUID", code="TENANT_INVALID"),
            status_code=status.HTTP_400_BAD_REQUEST,
        )


def get_request_context(request: Request) -> RequestContext:
    return RequestContext(
        ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


@dataclass
class AuthenticatedUser:
    user_id: UUID
    tenant_id: UUID
    token: str
    claims: Dict[str, Any]


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """Raw bearer token; refresh accepts tokens past exp so nothing is checked here"""
    if credentials is None:
        raise ClientError(
            TokenInvalid("Authentication required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_bearer_token),
    tenant_id: UUID = Depends(get_tenant_id),
    tokens: TokenIssuer = Depends(get_token_issuer),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> AuthenticatedUser:
    """
    Dependency to verify the bearer token of the request.

    The token must belong to the tenant named in X-Tenant-ID and its user
    must still exist.

    Raises:
        ClientError: 401 if the token is missing, invalid, expired or revoked
    """
    result = await tokens.validate(token, tenant_id)
    if result.is_err():
        raise ClientError(result.error, status_code=status.HTTP_401_UNAUTHORIZED)

    claims = result.value
    user_id = UUID(claims["sub"])
    async with uow:
        user = await uow.users.get_by_id(tenant_id, user_id)
        exists = user is not None

    if not exists:
        raise ClientError(
            TokenInvalid("User no longer exists"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    return AuthenticatedUser(user_id=user_id, tenant_id=tenant_id, token=token, claims=claims)
