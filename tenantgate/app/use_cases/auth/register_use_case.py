"""
Register Use Case

Creates a tenant user and sends the signed email-verification link.
"""

import logging
from uuid import UUID

from tenantgate.app.services.credential_store import CredentialStore
from tenantgate.app.services.event_bus import EventBus
from tenantgate.app.services.notifier import Notifier
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.services.url_signer import UrlSigner
from tenantgate.domain.entities import User
from tenantgate.domain.errors import ValidationError
from tenantgate.libs.result import Result, Return
from .dtos import RegisterCommand, RegisterResponse, UserInfo

logger = logging.getLogger(__name__)


class RegisterUseCase:
    """
    Use case for user registration.

    Business Rules:
    - Email is unique within the tenant
    - Password hashed with argon2id
    - Email starts unverified; a signed verification link is sent
    - Publishes user.created after commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        credentials: CredentialStore,
        signer: UrlSigner,
        notifier: Notifier,
        events: EventBus,
        verification_expire_minutes: int = 60,
    ):
        self.uow = uow
        self.credentials = credentials
        self.signer = signer
        self.notifier = notifier
        self.events = events
        self.verification_expire_minutes = verification_expire_minutes

    async def execute(self, tenant_id: UUID, command: RegisterCommand) -> Result[RegisterResponse]:
        """
        Execute registration use case.

        Args:
            tenant_id: Tenant the user registers in
            command: RegisterCommand with validated name, email, password

        Returns:
            Result[RegisterResponse], or ValidationError(EMAIL_ALREADY_EXISTS)
        """
        async with self.uow:
            existing = await self.uow.users.get_by_email(tenant_id, command.email)
            if existing is not None:
                return Return.err(
                    ValidationError(
                        "The email has already been taken", code="EMAIL_ALREADY_EXISTS"
                    )
                )

            user = await self.uow.users.create(
                User(
                    tenant_id=tenant_id,
                    name=command.name,
                    email=command.email,
                    password_hash=self.credentials.hash_password(command.password),
                    role=command.role,
                )
            )
            await self.uow.commit()

            url = self.signer.verification_url(user, self.verification_expire_minutes)
            await self.notifier.send_verification_email(user.email, user.name, url)
            logger.info(f"Registered user {user.id} in tenant {tenant_id}")

            response = RegisterResponse(
                message="Registration successful. Please verify your email address.",
                user=UserInfo.from_user(user),
            )

            await self.events.publish(
                tenant_id,
                "user.created",
                {
                    "user_id": str(user.id),
                    "name": user.name,
                    "email": user.email,
                    "role": response.user.role,
                },
            )
            return Return.ok(response)
