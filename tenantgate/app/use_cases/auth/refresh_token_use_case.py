from uuid import UUID

from tenantgate.app.services.token_issuer import IssuedToken, TokenIssuer
from tenantgate.libs.result import Result


class RefreshTokenUseCase:
    """
    Use case for refreshing a session token.

    Business Rules:
    - Allowed until refresh_exp even when the token itself expired
    - The new token keeps the original refresh_exp
    - The presented token is revoked; presenting it again fails
    """

    def __init__(self, tokens: TokenIssuer):
        self.tokens = tokens

    async def execute(self, token: str, tenant_id: UUID) -> Result[IssuedToken]:
        return await self.tokens.refresh(token, tenant_id)
