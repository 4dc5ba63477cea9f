from typing import Optional

from tenantgate.app.services.credential_store import CredentialStore
from tenantgate.app.services.event_bus import EventBus
from tenantgate.app.services.token_issuer import TokenIssuer
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.domain.entities import (
    AuthState,
    LoginEvent,
    LoginMethod,
    RequestContext,
    User,
)
from .dtos import LoginResponse, UserInfo


class LoginCompletion:
    """
    Final step shared by password, 2FA and magic-link logins.

    Must run inside the caller's ``async with uow`` block. Records login
    statistics and the login event, commits, issues the session token and
    publishes ``user.login``. Raises StaleVersionError if the user row changed
    concurrently.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        credentials: CredentialStore,
        tokens: TokenIssuer,
        events: EventBus,
    ):
        self.uow = uow
        self.credentials = credentials
        self.tokens = tokens
        self.events = events

    async def complete(
        self,
        user: User,
        method: LoginMethod,
        context: RequestContext,
        password: Optional[str] = None,
    ) -> LoginResponse:
        await self.credentials.record_login(user, password=password)
        await self.uow.login_events.create(
            LoginEvent(
                tenant_id=user.tenant_id,
                user_id=user.id,
                email=user.email,
                ip_address=context.ip,
                user_agent=context.user_agent,
                login_method=method,
                successful=True,
            )
        )
        await self.uow.commit()

        issued = self.tokens.issue(user)
        response = LoginResponse(
            state=AuthState.authenticated,
            message="Authentication successful",
            access_token=issued.access_token,
            token_type=issued.token_type,
            expires_in=issued.expires_in,
            user=UserInfo.from_user(user),
        )

        await self.events.publish(
            user.tenant_id,
            "user.login",
            {
                "user_id": str(user.id),
                "email": user.email,
                "login_method": method.value,
                "ip_address": context.ip,
            },
        )
        return response
