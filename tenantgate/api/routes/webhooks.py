from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from tenantgate.api.error import raise_for_error
from tenantgate.app.services.delivery_engine import DeliveryEngine
from tenantgate.app.services.unit_of_work import UnitOfWork
from tenantgate.app.use_cases.webhooks import (
    DeleteWebhookUseCase,
    DeliveryInfo,
    GetWebhookUseCase,
    ListDeliveriesUseCase,
    ListWebhooksUseCase,
    RegenerateWebhookSecretUseCase,
    RegisterWebhookCommand,
    RegisterWebhookUseCase,
    SendTestEventUseCase,
    UpdateWebhookCommand,
    UpdateWebhookUseCase,
    WebhookCreatedResponse,
    WebhookDeletedResponse,
    WebhookDetailResponse,
    WebhookInfo,
    WebhookSecretResponse,
)
from tenantgate.depends import (
    AuthenticatedUser,
    get_clock,
    get_current_user,
    get_delivery_engine,
    get_unit_of_work,
)
from tenantgate.domain.entities import AVAILABLE_EVENTS

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


class RegisterWebhookRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., max_length=2048)
    events: List[str] = Field(..., min_length=1)
    secret: Optional[str] = Field(None, min_length=16, max_length=255)
    active: bool = True
    headers: Optional[Dict[str, str]] = None
    max_retries: int = 3
    retry_delay: int = 60


class UpdateWebhookRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    url: Optional[str] = Field(None, max_length=2048)
    events: Optional[List[str]] = None
    active: Optional[bool] = None
    headers: Optional[Dict[str, str]] = None
    max_retries: Optional[int] = None
    retry_delay: Optional[int] = None


@router.get("/events", status_code=status.HTTP_200_OK)
async def list_events(current_user: AuthenticatedUser = Depends(get_current_user)):
    """Event types a webhook can subscribe to, with descriptions"""
    return {"events": AVAILABLE_EVENTS}


@router.get("", status_code=status.HTTP_200_OK, response_model=List[WebhookInfo])
async def list_webhooks(
    active: Optional[bool] = Query(None),
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    use_case = ListWebhooksUseCase(uow)
    result = await use_case.execute(current_user.tenant_id, current_user.user_id, active=active)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("", status_code=status.HTTP_201_CREATED, response_model=WebhookCreatedResponse)
async def register_webhook(
    request: RegisterWebhookRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Register Webhook

    The signing secret is generated when omitted and returned only here and
    on regenerate-secret.

    Raises:
        - 403 Forbidden: Actor lacks webhooks.manage
        - 422 Unprocessable Entity: Bad URL, unknown events or retry policy
    """
    command = RegisterWebhookCommand(**request.model_dump())

    use_case = RegisterWebhookUseCase(uow)
    result = await use_case.execute(current_user.tenant_id, current_user.user_id, command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/{webhook_id}", status_code=status.HTTP_200_OK, response_model=WebhookDetailResponse)
async def get_webhook(
    webhook_id: UUID,
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    use_case = GetWebhookUseCase(uow)
    result = await use_case.execute(current_user.tenant_id, current_user.user_id, webhook_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.put("/{webhook_id}", status_code=status.HTTP_200_OK, response_model=WebhookInfo)
async def update_webhook(
    webhook_id: UUID,
    request: UpdateWebhookRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock=Depends(get_clock),
):
    command = UpdateWebhookCommand(**request.model_dump())

    use_case = UpdateWebhookUseCase(uow, clock=clock)
    result = await use_case.execute(
        current_user.tenant_id, current_user.user_id, webhook_id, command
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.delete(
    "/{webhook_id}", status_code=status.HTTP_200_OK, response_model=WebhookDeletedResponse
)
async def delete_webhook(
    webhook_id: UUID,
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    use_case = DeleteWebhookUseCase(uow)
    result = await use_case.execute(current_user.tenant_id, current_user.user_id, webhook_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/{webhook_id}/regenerate-secret",
    status_code=status.HTTP_200_OK,
    response_model=WebhookSecretResponse,
)
async def regenerate_secret(
    webhook_id: UUID,
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    use_case = RegenerateWebhookSecretUseCase(uow)
    result = await use_case.execute(current_user.tenant_id, current_user.user_id, webhook_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/{webhook_id}/test", status_code=status.HTTP_202_ACCEPTED, response_model=DeliveryInfo
)
async def test_webhook(
    webhook_id: UUID,
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    engine: DeliveryEngine = Depends(get_delivery_engine),
    clock=Depends(get_clock),
):
    """
    Send Test Event

    Queues a webhook.test delivery, even if the webhook does not subscribe
    to it.
    """
    use_case = SendTestEventUseCase(uow, engine, clock=clock)
    result = await use_case.execute(current_user.tenant_id, current_user.user_id, webhook_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get(
    "/{webhook_id}/deliveries", status_code=status.HTTP_200_OK, response_model=List[DeliveryInfo]
)
async def list_deliveries(
    webhook_id: UUID,
    limit: int = Query(50, ge=1, le=200),
    current_user: AuthenticatedUser = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    use_case = ListDeliveriesUseCase(uow)
    result = await use_case.execute(
        current_user.tenant_id, current_user.user_id, webhook_id, limit=limit
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value
