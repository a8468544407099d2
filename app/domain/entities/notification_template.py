"""Domain entity representing a reusable notification template."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .notification import (
    NotificationCategory,
    NotificationChannel,
    NotificationPriority,
    NotificationType,
)


@dataclass
class NotificationTemplate:
    """Named content generator with ``{{variable}}`` placeholders."""

    id: str | None
    name: str
    type: NotificationType
    title_template: str
    message_template: str
    channels: list[NotificationChannel] = field(
        default_factory=lambda: [NotificationChannel.IN_APP]
    )
    priority: NotificationPriority = NotificationPriority.MEDIUM
    category: NotificationCategory = NotificationCategory.SYSTEM
    variables: list[str] = field(default_factory=list)
    active: bool = True
    created_at: datetime | None = None


__all__ = ["NotificationTemplate"]
