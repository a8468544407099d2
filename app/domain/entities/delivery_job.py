"""Domain entity representing a delayed delivery job."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .notification import NotificationChannel


class DeliveryJobKind(str, Enum):
    DISPATCH = "dispatch"
    RETRY = "retry"


@dataclass
class DeliveryJob:
    """Work item that must run at ``due_at`` even across process restarts."""

    key: str
    notification_id: str
    kind: DeliveryJobKind
    due_at: datetime
    channel: NotificationChannel | None = None
    attempt: int = 0

    @staticmethod
    def dispatch_key(notification_id: str) -> str:
        return f"dispatch:{notification_id}"

    @staticmethod
    def retry_key(notification_id: str, channel: NotificationChannel) -> str:
        return f"retry:{notification_id}:{channel.value}"

    @classmethod
    def dispatch(cls, notification_id: str, due_at: datetime) -> "DeliveryJob":
        return cls(
            key=cls.dispatch_key(notification_id),
            notification_id=notification_id,
            kind=DeliveryJobKind.DISPATCH,
            due_at=due_at,
        )

    @classmethod
    def retry(
        cls,
        notification_id: str,
        channel: NotificationChannel,
        due_at: datetime,
        attempt: int,
    ) -> "DeliveryJob":
        return cls(
            key=cls.retry_key(notification_id, channel),
            notification_id=notification_id,
            kind=DeliveryJobKind.RETRY,
            due_at=due_at,
            channel=channel,
            attempt=attempt,
        )


__all__ = ["DeliveryJob", "DeliveryJobKind"]
