"""Errors raised by the notification delivery engine."""

from __future__ import annotations

from app.domain.entities import NotificationChannel


class NotificationError(Exception):
    """Base class for notification engine failures."""


class NotificationValidationError(NotificationError, ValueError):
    """A notification request was rejected before any record was created."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class NoChannelsAllowedError(NotificationError):
    """Preference filtering left no channel to deliver the notification on."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"No notification channels enabled for user {user_id}")
        self.user_id = user_id


class ChannelDeliveryError(NotificationError):
    """A single channel attempt failed; the retry controller decides what follows."""

    def __init__(self, channel: NotificationChannel, reason: str) -> None:
        super().__init__(f"{channel.value} delivery failed: {reason}")
        self.channel = channel
        self.reason = reason


class TerminalChannelFailure(ChannelDeliveryError):
    """Every attempt on a channel failed. Recorded and published, never raised."""

    def __init__(self, channel: NotificationChannel, reason: str, attempts: int) -> None:
        super().__init__(channel, reason)
        self.attempts = attempts


class NotificationNotFoundError(NotificationError, LookupError):
    def __init__(self, notification_id: str) -> None:
        super().__init__(f"Notification {notification_id} not found")
        self.notification_id = notification_id


class TemplateNotFoundError(NotificationError, LookupError):
    def __init__(self, template_id: str) -> None:
        super().__init__(f"Notification template {template_id} not found")
        self.template_id = template_id


__all__ = [
    "ChannelDeliveryError",
    "NoChannelsAllowedError",
    "NotificationError",
    "NotificationNotFoundError",
    "NotificationValidationError",
    "TemplateNotFoundError",
    "TerminalChannelFailure",
]
