"""Lifecycle events emitted while notifications move through delivery."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .notification import Notification, NotificationChannel


@dataclass(frozen=True)
class NotificationCreated:
    """A notification record was persisted."""

    notification: Notification


@dataclass(frozen=True)
class NotificationSent:
    """Dispatch of a notification to its channels started."""

    notification: Notification


@dataclass(frozen=True)
class NotificationDelivered:
    notification: Notification
    channel: NotificationChannel


@dataclass(frozen=True)
class NotificationRead:
    notification: Notification


@dataclass(frozen=True)
class NotificationFailed:
    """A channel exhausted every delivery attempt."""

    notification: Notification
    channel: NotificationChannel
    error: str
    attempts: int


NotificationEvent = Union[
    NotificationCreated,
    NotificationSent,
    NotificationDelivered,
    NotificationRead,
    NotificationFailed,
]

NOTIFICATION_EVENT_TYPES: tuple[type, ...] = (
    NotificationCreated,
    NotificationSent,
    NotificationDelivered,
    NotificationRead,
    NotificationFailed,
)


__all__ = [
    "NOTIFICATION_EVENT_TYPES",
    "NotificationCreated",
    "NotificationDelivered",
    "NotificationEvent",
    "NotificationFailed",
    "NotificationRead",
    "NotificationSent",
]
