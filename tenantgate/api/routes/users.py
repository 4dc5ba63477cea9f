from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, EmailStr, Field

from config import ApplicationConfig
from tenantgate.api.error import raise_for_error
from tenantgate.app.services.event_bus import EventBus
from tenantgate.app.services.notifier import Notifier
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.services.url_signer import UrlSigner
from tenantgate.app.use_cases.auth import MessageResponse, UserInfo
from tenantgate.app.use_cases.users import (
    DeleteUserUseCase,
    GetUserUseCase,
    ListUsersUseCase,
    PurgeUserUseCase,
    RestoreUserUseCase,
    UpdateUserCommand,
    UpdateUserResponse,
    UpdateUserUseCase,
    UserDetail,
    UserListResponse,
)
from tenantgate.depends import (
    AuthenticatedUser,
    get_clock,
    get_current_user,
    get_event_bus,
    get_notifier,
    get_unit_of_work,
    get_url_signer,
)
from tenantgate.domain.entities import UserRole

router = APIRouter(prefix="/users", tags=["Users"])


class UpdateUserRequest(BaseModel):
    """Fields left out stay unchanged; version is the one returned by GET /users/{id}"""

    version: int = Field(..., ge=1)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None


@router.get("", status_code=status.HTTP_200_OK, response_model=UserListResponse)
async def list_users(
    search: Optional[str] = Query(None, max_length=255),
    role: Optional[UserRole] = Query(None),
    email_verified: Optional[bool] = Query(None),
    limit: int = Query(15),
    offset: int = Query(0),
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    List Users

    Raises:
        - 403 Forbidden: Actor lacks users.read
        - 422 Unprocessable Entity: limit outside 1..100 or negative offset
    """
    use_case = ListUsersUseCase(uow)
    result = await use_case.execute(
        current_user.tenant_id,
        current_user.user_id,
        search=search,
        role=role,
        email_verified=email_verified,
        limit=limit,
        offset=offset,
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/{user_id}", status_code=status.HTTP_200_OK, response_model=UserDetail)
async def get_user(
    user_id: UUID,
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    use_case = GetUserUseCase(uow)
    result = await use_case.execute(current_user.tenant_id, current_user.user_id, user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.put("/{user_id}", status_code=status.HTTP_200_OK, response_model=UpdateUserResponse)
async def update_user(
    user_id: UUID,
    request: UpdateUserRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    signer: UrlSigner = Depends(get_url_signer),
    notifier: Notifier = Depends(get_notifier),
    events: EventBus = Depends(get_event_bus),
):
    """
    Update User

    Send the version read from GET /users/{id}; the response carries the
    new one.

    Raises:
        - 403 Forbidden: Actor may not update this user or change this role
        - 404 Not Found: Unknown user in this tenant
        - 409 Conflict: Stale version (VERSION_CONFLICT) or email taken
    """
    use_case = UpdateUserUseCase(
        uow,
        signer,
        notifier,
        events,
        verification_expire_minutes=ApplicationConfig.EMAIL_VERIFICATION_EXPIRE_MINUTES,
    )
    result = await use_case.execute(
        current_user.tenant_id,
        current_user.user_id,
        user_id,
        UpdateUserCommand(**request.model_dump()),
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.delete("/{user_id}", status_code=status.HTTP_200_OK, response_model=MessageResponse)
async def delete_user(
    user_id: UUID,
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    events: EventBus = Depends(get_event_bus),
    clock=Depends(get_clock),
):
    """
    Soft Delete User

    Raises:
        - 403 Forbidden: Actor lacks users.delete, or targets themselves
        - 404 Not Found: Unknown user in this tenant
    """
    use_case = DeleteUserUseCase(uow, events, clock=clock)
    result = await use_case.execute(current_user.tenant_id, current_user.user_id, user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("/{user_id}/restore", status_code=status.HTTP_200_OK, response_model=UserInfo)
async def restore_user(
    user_id: UUID,
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    events: EventBus = Depends(get_event_bus),
):
    use_case = RestoreUserUseCase(uow, events)
    result = await use_case.execute(current_user.tenant_id, current_user.user_id, user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.delete(
    "/{user_id}/purge", status_code=status.HTTP_200_OK, response_model=MessageResponse
)
async def purge_user(
    user_id: UUID,
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Permanently Delete User

    Owner only. Works on soft-deleted users too.
    """
    use_case = PurgeUserUseCase(uow)
    result = await use_case.execute(current_user.tenant_id, current_user.user_id, user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
