"""Forward notification lifecycle events to websocket subscribers."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from app.domain.entities import (
    Notification,
    NotificationCreated,
    NotificationDelivered,
    NotificationRead,
)
from app.utils import isoformat_or_none

from .events import NotificationEventBus
from .manager import NotificationConnectionManager, notification_manager


class NotificationPublisher:
    """Serialize notifications and push them to the owning user's sockets."""

    def __init__(self, manager: NotificationConnectionManager) -> None:
        self._manager = manager

    def attach(self, bus: NotificationEventBus) -> Callable[[], None]:
        """Subscribe to ``bus`` and return a callable that detaches again."""

        unsubscribers = [
            bus.subscribe(NotificationCreated, self._on_created),
            bus.subscribe(NotificationRead, self._on_read),
            bus.subscribe(NotificationDelivered, self._on_delivered),
        ]

        def _detach() -> None:
            for unsubscribe in unsubscribers:
                unsubscribe()

        return _detach

    async def _on_created(self, event: NotificationCreated) -> None:
        await self._push("notification", event.notification)

    async def _on_read(self, event: NotificationRead) -> None:
        await self._push("notification.read", event.notification)

    async def _on_delivered(self, event: NotificationDelivered) -> None:
        await self._push(
            "notification.delivered", event.notification, channel=event.channel.value
        )

    async def _push(self, message_type: str, notification: Notification, **extra: Any) -> None:
        message: dict[str, Any] = {
            "type": message_type,
            "data": serialize_notification(notification),
        }
        message.update(extra)
        await self._manager.send_to_user(notification.user_id, message)


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the JSON representation shared by websockets and webhooks."""

    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "tenant_id": notification.tenant_id,
        "type": notification.type.value,
        "category": notification.category.value,
        "priority": notification.priority.value,
        "title": notification.title,
        "message": notification.message,
        "action_url": notification.action_url,
        "channels": [channel.value for channel in notification.channels],
        "status": notification.status.value,
        "delivery_status": {
            channel.value: {
                "status": delivery.status.value,
                "attempts": delivery.attempts,
                "last_attempt": isoformat_or_none(delivery.last_attempt),
                "error": delivery.error,
            }
            for channel, delivery in notification.delivery_status.items()
        },
        "metadata": notification.metadata or {},
        "attachments": [
            {"url": item.url, "name": item.name, "type": item.type}
            for item in notification.attachments
        ],
        "actions": [
            {"label": item.label, "url": item.url, "type": item.type}
            for item in notification.actions
        ],
        "template_id": notification.template_id,
        "is_read": notification.is_read,
        "read_at": isoformat_or_none(notification.read_at),
        "expires_at": isoformat_or_none(notification.expires_at),
        "scheduled_for": isoformat_or_none(notification.scheduled_for),
        "sent_at": isoformat_or_none(notification.sent_at),
        "delivered_at": isoformat_or_none(notification.delivered_at),
        "created_at": isoformat_or_none(notification.created_at),
    }


notification_publisher = NotificationPublisher(notification_manager)


__all__ = [
    "NotificationPublisher",
    "notification_publisher",
    "serialize_notification",
]
