"""Notification delivery infrastructure: channels, scheduling and live updates."""

from .events import NotificationEventBus
from .manager import NotificationConnectionManager, notification_manager
from .publisher import (
    NotificationPublisher,
    notification_publisher,
    serialize_notification,
)

__all__ = [
    "NotificationConnectionManager",
    "NotificationEventBus",
    "NotificationPublisher",
    "notification_manager",
    "notification_publisher",
    "serialize_notification",
]
