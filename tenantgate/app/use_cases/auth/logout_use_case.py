from uuid import UUID

from tenantgate.app.services.event_bus import EventBus
from tenantgate.app.services.token_issuer import TokenIssuer
from tenantgate.libs.result import Result, Return
from .dtos import MessageResponse


class LogoutUseCase:
    """Revoke the presented session token and publish user.logout"""

    def __init__(self, tokens: TokenIssuer, events: EventBus):
        self.tokens = tokens
        self.events = events

    async def execute(
        self, token: str, tenant_id: UUID, user_id: UUID
    ) -> Result[MessageResponse]:
        revoked = await self.tokens.revoke(token)
        if revoked.is_err():
            return revoked

        await self.events.publish(tenant_id, "user.logout", {"user_id": str(user_id)})
        return Return.ok(MessageResponse(status="logged_out", message="Successfully logged out"))
