"""Endpoints and websocket handler for notifications."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import (
    APIRouter,
    Body,
    Depends,
    HTTPException,
    Query,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)

from app.application.use_cases.notifications import (
    NoChannelsAllowedError,
    NotificationNotFoundError,
    NotificationValidationError,
)
from app.application.use_cases.notifications.service import NotificationService
from app.domain.entities import BulkResult, Notification, NotificationCategory
from app.infrastructure.notifications import notification_manager, serialize_notification
from app.interfaces.api.dependencies import get_current_user_id, get_notification_service
from app.interfaces.api.routes_helpers import to_http_exception
from app.interfaces.api.schemas import (
    BroadcastRequest,
    BulkResultRead,
    BulkSendRequest,
    MarkAllReadResponse,
    NotificationPageRead,
    NotificationRead,
    UnreadCountRead,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead.model_validate(notification, from_attributes=True)


def _bulk_to_schema(result: BulkResult) -> BulkResultRead:
    return BulkResultRead.model_validate(result, from_attributes=True)


@router.get("/", response_model=NotificationPageRead)
async def list_notifications(
    is_read: bool | None = Query(default=None),
    category: NotificationCategory | None = Query(default=None),
    tenant_id: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationPageRead:
    """Return the caller's notifications, newest first."""

    result = await service.list_notifications(
        user_id,
        tenant_id=tenant_id,
        is_read=is_read,
        category=category,
        page=page,
        per_page=per_page,
    )
    return NotificationPageRead(
        items=[_notification_to_schema(item) for item in result.items],
        total=result.total,
        unread_count=result.unread_count,
        page=result.page,
        per_page=result.per_page,
    )


@router.post("/", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
async def send_notification(
    payload: dict[str, Any] = Body(...),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationRead:
    """Create a notification and start its delivery."""

    try:
        notification = await service.send(payload)
    except (NotificationValidationError, NoChannelsAllowedError) as exc:
        raise to_http_exception(exc) from exc
    return _notification_to_schema(notification)


@router.get("/unread-count", response_model=UnreadCountRead)
async def unread_count(
    tenant_id: str | None = Query(default=None),
    user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> UnreadCountRead:
    count = await service.get_unread_count(user_id, tenant_id=tenant_id)
    return UnreadCountRead(count=count)


@router.post("/bulk", response_model=BulkResultRead)
async def send_bulk(
    payload: BulkSendRequest,
    service: NotificationService = Depends(get_notification_service),
) -> BulkResultRead:
    """Send one payload to many users in batches."""

    try:
        result = await service.send_bulk(
            payload.user_ids,
            payload.notification,
            batch_size=payload.batch_size,
            delay_ms=payload.delay_ms,
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return _bulk_to_schema(result)


@router.post("/broadcast", response_model=BulkResultRead)
async def broadcast(
    payload: BroadcastRequest,
    service: NotificationService = Depends(get_notification_service),
) -> BulkResultRead:
    try:
        result = await service.broadcast(payload.notification, tenant_id=payload.tenant_id)
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return _bulk_to_schema(result)


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(
    tenant_id: str | None = Query(default=None),
    user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> MarkAllReadResponse:
    updated = await service.mark_all_as_read(user_id, tenant_id=tenant_id)
    return MarkAllReadResponse(updated=updated)


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_read(
    notification_id: str,
    user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationRead:
    try:
        notification = await service.mark_as_read(notification_id, user_id=user_id)
    except NotificationNotFoundError as exc:
        raise to_http_exception(exc) from exc
    return _notification_to_schema(notification)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: str,
    user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> Response:
    try:
        await service.delete(notification_id, user_id=user_id)
    except NotificationNotFoundError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notifications to the connected user."""

    user_id = (websocket.query_params.get("user_id") or "").strip()
    service: NotificationService | None = getattr(
        websocket.app.state, "notification_service", None
    )
    if not user_id or service is None:
        await websocket.close(code=1008)
        return

    try:
        pending = await service.list_notifications(user_id, is_read=False, per_page=100)
    except Exception:  # pragma: no cover - store unavailable
        logger.exception("Unable to load unread notifications for user %s", user_id)
        await websocket.close(code=1011)
        return

    async with notification_manager.connection(user_id, websocket):
        if pending.items:
            await websocket.send_json(
                {"type": "init", "data": [serialize_notification(n) for n in pending.items]}
            )
        try:
            while True:
                try:
                    message = await websocket.receive_json()
                except ValueError:
                    continue
                if isinstance(message, dict):
                    await _handle_socket_message(service, user_id, websocket, message)
        except WebSocketDisconnect:
            logger.debug("Notification socket closed for user %s", user_id)


async def _handle_socket_message(
    service: NotificationService, user_id: str, websocket: WebSocket, message: dict
) -> None:
    message_type = message.get("type")
    if message_type == "ping":
        await websocket.send_json({"type": "pong"})
    elif message_type == "ack":
        ids = message.get("ids", [])
        if not isinstance(ids, list):
            return
        for notification_id in ids:
            try:
                await service.mark_as_read(str(notification_id), user_id=user_id)
            except NotificationNotFoundError:
                continue
