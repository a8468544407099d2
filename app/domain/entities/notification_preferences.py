"""Domain entity describing how a user wants to be notified."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time

from .notification import NotificationCategory, NotificationChannel, NotificationPriority


def _all_categories_enabled() -> dict[NotificationCategory, bool]:
    return {category: True for category in NotificationCategory}


@dataclass
class QuietHours:
    """Local time window during which non-critical delivery is deferred."""

    start: time
    end: time
    enabled: bool = False
    timezone: str = "UTC"


@dataclass
class DigestSettings:
    enabled: bool = False
    frequency: str = "daily"
    delivery_time: time = time(9, 0)


@dataclass
class NotificationPreferences:
    """Channel, category and priority settings for a single user."""

    user_id: str
    email_enabled: bool = True
    push_enabled: bool = True
    sms_enabled: bool = False
    webhook_enabled: bool = False
    slack_enabled: bool = False
    categories: dict[NotificationCategory, bool] = field(
        default_factory=_all_categories_enabled
    )
    quiet_hours: QuietHours | None = None
    digest: DigestSettings | None = None
    priority_threshold: NotificationPriority = NotificationPriority.LOW
    updated_at: datetime | None = None

    def channel_enabled(self, channel: NotificationChannel) -> bool:
        """Return whether the user opted into ``channel``; in-app is always on."""

        if channel == NotificationChannel.IN_APP:
            return True
        if channel == NotificationChannel.EMAIL:
            return self.email_enabled
        if channel == NotificationChannel.SMS:
            return self.sms_enabled
        if channel == NotificationChannel.PUSH:
            return self.push_enabled
        if channel == NotificationChannel.WEBHOOK:
            return self.webhook_enabled
        if channel == NotificationChannel.SLACK:
            return self.slack_enabled
        raise ValueError(f"Unknown notification channel: {channel!r}")

    def category_enabled(self, category: NotificationCategory) -> bool:
        return self.categories.get(category, True)


__all__ = ["DigestSettings", "NotificationPreferences", "QuietHours"]
