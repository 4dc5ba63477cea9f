"""
Update User Use Case

Versioned partial update of a tenant user's profile and role.
"""

import logging
from uuid import UUID

from tenantgate.app.services.authorization import has_permission
from tenantgate.app.services.event_bus import EventBus
from tenantgate.app.services.notifier import Notifier
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.services.url_signer import UrlSigner
from tenantgate.app.use_cases.guards import authorize_actor
from tenantgate.domain.entities import UserRole
from tenantgate.domain.errors import (
    Forbidden,
    NotFound,
    StaleVersionError,
    ValidationError,
    VersionConflict,
)
from tenantgate.libs.result import Result, Return
from .dtos import UpdateUserCommand, UpdateUserResponse, UserDetail

logger = logging.getLogger(__name__)


class UpdateUserUseCase:
    """
    Use case for updating a user.

    Business Rules:
    - Allowed on oneself or with users.update
    - command.version must equal the stored version, otherwise VERSION_CONFLICT
      and nothing is written; a concurrent writer between read and write
      fails the same way
    - Email stays unique per tenant; a new email is unverified until the new
      verification link is followed
    - Nobody changes their own role; only owners grant or revoke owner
    - An update that changes nothing writes nothing and publishes nothing
    - Publishes user.updated with the changed field names
    """

    def __init__(
        self,
        uow: UnitOfWork,
        signer: UrlSigner,
        notifier: Notifier,
        events: EventBus,
        verification_expire_minutes: int = 60,
    ):
        self.uow = uow
        self.signer = signer
        self.notifier = notifier
        self.events = events
        self.verification_expire_minutes = verification_expire_minutes

    async def execute(
        self, tenant_id: UUID, actor_id: UUID, user_id: UUID, command: UpdateUserCommand
    ) -> Result[UpdateUserResponse]:
        """
        Execute user update.

        Args:
            tenant_id: Tenant selected by the request
            actor_id: Authenticated user performing the update
            user_id: User being updated
            command: Fields to change plus the version the caller read

        Returns:
            Result[UpdateUserResponse], or NotFound / Forbidden /
            ValidationError / VersionConflict
        """
        if command.name is not None and not command.name.strip():
            return Return.err(ValidationError("The name field is required"))

        async with self.uow:
            target = await self.uow.users.get_by_id(tenant_id, user_id)
            if target is None:
                return Return.err(NotFound("User"))

            authorized = await authorize_actor(
                self.uow, tenant_id, actor_id, "users.update", target
            )
            if authorized.is_err():
                return authorized
            actor = authorized.value

            if command.version != target.version:
                return Return.err(VersionConflict())

            changed = []

            if command.name is not None and command.name.strip() != target.name:
                target.name = command.name.strip()
                changed.append("name")

            if command.email is not None and command.email.lower() != target.email:
                email = command.email.lower()
                existing = await self.uow.users.get_by_email(tenant_id, email)
                if existing is not None:
                    return Return.err(
                        ValidationError(
                            "The email has already been taken", code="EMAIL_ALREADY_EXISTS"
                        )
                    )
                target.email = email
                target.email_verified_at = None
                changed.append("email")

            if command.role is not None and command.role != target.role:
                if actor.id == target.id or not has_permission(actor.role, "users.update"):
                    return Return.err(Forbidden("You cannot change this user's role"))
                if UserRole.owner in (command.role, target.role) and actor.role != UserRole.owner:
                    return Return.err(Forbidden("Only owners can grant or revoke the owner role"))
                target.role = command.role
                changed.append("role")

            if not changed:
                return Return.ok(
                    UpdateUserResponse(
                        message="Nothing to update", changed=[], user=UserDetail.from_user(target)
                    )
                )

            try:
                await self.uow.users.update(target)
                await self.uow.commit()
            except StaleVersionError:
                return Return.err(VersionConflict())

            logger.info(f"User {user_id} updated by {actor_id}: {', '.join(changed)}")

            if "email" in changed:
                url = self.signer.verification_url(target, self.verification_expire_minutes)
                await self.notifier.send_verification_email(target.email, target.name, url)

            response = UpdateUserResponse(
                message="User updated successfully",
                changed=changed,
                user=UserDetail.from_user(target),
            )
            await self.events.publish(
                tenant_id,
                "user.updated",
                {"user_id": str(target.id), "email": target.email, "changed": changed},
            )
            return Return.ok(response)
