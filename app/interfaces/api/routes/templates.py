"""Endpoints to manage notification templates and send from them."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status

from app.application.use_cases.notifications import (
    NoChannelsAllowedError,
    NotificationValidationError,
    TemplateNotFoundError,
)
from app.application.use_cases.notifications.service import NotificationService
from app.domain.entities import NotificationTemplate
from app.interfaces.api.dependencies import get_notification_service
from app.interfaces.api.routes_helpers import to_http_exception
from app.interfaces.api.schemas import (
    NotificationRead,
    NotificationTemplateRead,
    NotificationTemplateSendRequest,
    NotificationTemplateStatusUpdate,
)

router = APIRouter(prefix="/notification-templates", tags=["notification templates"])


def _template_to_schema(template: NotificationTemplate) -> NotificationTemplateRead:
    return NotificationTemplateRead.model_validate(template, from_attributes=True)


@router.get("/", response_model=list[NotificationTemplateRead])
async def list_templates(
    active_only: bool = Query(default=False),
    service: NotificationService = Depends(get_notification_service),
) -> list[NotificationTemplateRead]:
    templates = await service.list_templates(active_only=active_only)
    return [_template_to_schema(template) for template in templates]


@router.post("/", response_model=NotificationTemplateRead, status_code=status.HTTP_201_CREATED)
async def create_template(
    payload: dict[str, Any] = Body(...),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationTemplateRead:
    try:
        template = await service.create_template(payload)
    except NotificationValidationError as exc:
        raise to_http_exception(exc) from exc
    return _template_to_schema(template)


@router.patch("/{template_id}/status", response_model=NotificationTemplateRead)
async def update_template_status(
    template_id: str,
    payload: NotificationTemplateStatusUpdate,
    service: NotificationService = Depends(get_notification_service),
) -> NotificationTemplateRead:
    """Activate or deactivate a template."""

    try:
        template = await service.set_template_active(template_id, payload.active)
    except TemplateNotFoundError as exc:
        raise to_http_exception(exc) from exc
    return _template_to_schema(template)


@router.post(
    "/{template_id}/send",
    response_model=NotificationRead,
    status_code=status.HTTP_201_CREATED,
)
async def send_from_template(
    template_id: str,
    payload: NotificationTemplateSendRequest,
    service: NotificationService = Depends(get_notification_service),
) -> NotificationRead:
    try:
        notification = await service.send_from_template(
            template_id, payload.user_id, payload.data, overrides=payload.overrides
        )
    except (TemplateNotFoundError, NotificationValidationError, NoChannelsAllowedError) as exc:
        raise to_http_exception(exc) from exc
    return NotificationRead.model_validate(notification, from_attributes=True)
