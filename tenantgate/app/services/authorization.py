"""
Authorization

Static role -> permission table plus resource rules for actions on users.
"""

from typing import Any, Dict, FrozenSet, Optional

from tenantgate.domain.entities import User, UserRole

ROLE_PERMISSIONS: Dict[UserRole, FrozenSet[str]] = {
    UserRole.owner: frozenset(
        {
            "users.read",
            "users.create",
            "users.update",
            "users.delete",
            "users.invite",
            "users.restore",
            "analytics.read",
            "system.manage",
            "tenants.manage",
            "api.manage",
            "webhooks.manage",
            "gdpr.manage",
        }
    ),
    UserRole.admin: frozenset(
        {
            "users.read",
            "users.create",
            "users.update",
            "users.delete",
            "users.invite",
            "analytics.read",
            "api.manage",
            "webhooks.manage",
        }
    ),
    UserRole.member: frozenset({"users.read"}),
    UserRole.auditor: frozenset({"users.read", "analytics.read"}),
}


def has_permission(role: UserRole, permission: str) -> bool:
    return permission in ROLE_PERMISSIONS.get(UserRole(role), frozenset())


def authorize(subject: User, action: str, resource: Optional[Any] = None) -> bool:
    """
    Decide whether subject may perform action.

    Business Rules:
    - Nothing crosses tenants: a resource carrying another tenant_id is denied
    - users.view / users.update: always allowed on oneself
    - users.delete: never oneself; only owners may delete owners
    - users.restore: requires users.delete
    - users.purge (hard delete): owners only, never oneself
    - any other action is a plain permission lookup
    """
    resource_tenant = getattr(resource, "tenant_id", None)
    if resource_tenant is not None and resource_tenant != subject.tenant_id:
        return False

    if isinstance(resource, User):
        is_self = resource.id == subject.id

        if action == "users.view":
            return is_self or has_permission(subject.role, "users.read")
        if action == "users.update":
            return is_self or has_permission(subject.role, "users.update")
        if action == "users.delete":
            if is_self:
                return False
            if resource.role == UserRole.owner and subject.role != UserRole.owner:
                return False
            return has_permission(subject.role, "users.delete")
        if action == "users.restore":
            return has_permission(subject.role, "users.delete")
        if action == "users.purge":
            return (
                not is_self
                and subject.role == UserRole.owner
                and has_permission(subject.role, "users.delete")
            )

    return has_permission(subject.role, action)
