"""Domain entities exposed by the application."""

from .bulk_result import BulkError, BulkResult
from .delivery_job import DeliveryJob, DeliveryJobKind
from .notification import (
    ChannelDelivery,
    DeliveryState,
    Notification,
    NotificationAction,
    NotificationAttachment,
    NotificationCategory,
    NotificationChannel,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
)
from .notification_event import (
    NOTIFICATION_EVENT_TYPES,
    NotificationCreated,
    NotificationDelivered,
    NotificationEvent,
    NotificationFailed,
    NotificationRead,
    NotificationSent,
)
from .notification_preferences import DigestSettings, NotificationPreferences, QuietHours
from .notification_template import NotificationTemplate
from .recipient import Recipient

__all__ = [
    "BulkError",
    "BulkResult",
    "ChannelDelivery",
    "DeliveryJob",
    "DeliveryJobKind",
    "DeliveryState",
    "DigestSettings",
    "NOTIFICATION_EVENT_TYPES",
    "Notification",
    "NotificationAction",
    "NotificationAttachment",
    "NotificationCategory",
    "NotificationChannel",
    "NotificationCreated",
    "NotificationDelivered",
    "NotificationEvent",
    "NotificationFailed",
    "NotificationPreferences",
    "NotificationPriority",
    "NotificationRead",
    "NotificationSent",
    "NotificationStatus",
    "NotificationTemplate",
    "NotificationType",
    "QuietHours",
    "Recipient",
]
