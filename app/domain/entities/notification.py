"""Domain entity representing a notification and its per-channel delivery state."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class NotificationType(str, Enum):
    """Domain event kinds that produce notifications."""

    ASSIGNMENT_DUE = "assignment_due"
    GRADE_POSTED = "grade_posted"
    MESSAGE = "message"
    SYSTEM = "system"
    ANNOUNCEMENT = "announcement"
    REMINDER = "reminder"
    COURSE_UPDATE = "course_update"
    PAYMENT = "payment"
    ATTENDANCE = "attendance"
    ACHIEVEMENT = "achievement"
    ALERT = "alert"
    INVITATION = "invitation"
    DEADLINE = "deadline"
    APPROVAL_REQUIRED = "approval_required"
    STATUS_CHANGE = "status_change"


class NotificationCategory(str, Enum):
    ACADEMIC = "academic"
    SYSTEM = "system"
    SOCIAL = "social"
    FINANCE = "finance"
    ANNOUNCEMENT = "announcement"
    ALERT = "alert"
    REMINDER = "reminder"


class NotificationPriority(str, Enum):
    """Priority levels, declared from lowest to highest."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        return _PRIORITY_ORDER.index(self)

    @property
    def bypasses_quiet_hours(self) -> bool:
        return self in (NotificationPriority.CRITICAL, NotificationPriority.URGENT)


_PRIORITY_ORDER = tuple(NotificationPriority)


class NotificationChannel(str, Enum):
    IN_APP = "in_app"
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"
    WEBHOOK = "webhook"
    SLACK = "slack"


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    FAILED = "failed"
    EXPIRED = "expired"


class DeliveryState(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"


@dataclass
class ChannelDelivery:
    """Delivery progress of a notification on a single channel."""

    status: DeliveryState = DeliveryState.PENDING
    attempts: int = 0
    last_attempt: datetime | None = None
    error: str | None = None
    # Targets (webhook URLs) that already accepted this notification.
    completed_targets: list[str] = field(default_factory=list)


@dataclass
class NotificationAttachment:
    url: str
    name: str
    type: str


@dataclass
class NotificationAction:
    label: str
    url: str
    type: str = "primary"


@dataclass
class Notification:
    """Information message delivered to a specific user over one or more channels."""

    id: str | None
    user_id: str
    title: str
    message: str
    type: NotificationType
    category: NotificationCategory = NotificationCategory.SYSTEM
    priority: NotificationPriority = NotificationPriority.MEDIUM
    channels: list[NotificationChannel] = field(
        default_factory=lambda: [NotificationChannel.IN_APP]
    )
    delivery_status: dict[NotificationChannel, ChannelDelivery] = field(default_factory=dict)
    status: NotificationStatus = NotificationStatus.PENDING
    tenant_id: str | None = None
    action_url: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    attachments: list[NotificationAttachment] = field(default_factory=list)
    actions: list[NotificationAction] = field(default_factory=list)
    template_id: str | None = None
    is_read: bool = False
    read_at: datetime | None = None
    expires_at: datetime | None = None
    scheduled_for: datetime | None = None
    sent_at: datetime | None = None
    delivered_at: datetime | None = None
    created_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        """Return ``True`` when ``expires_at`` is set and not after ``now``."""

        return self.expires_at is not None and self.expires_at <= now

    def refresh_status(self) -> NotificationStatus:
        """Recompute the overall status from the read flag and channel states.

        ``read`` always wins, ``expired`` is sticky, ``delivered`` needs at least
        one delivered channel and ``failed`` needs every channel to be failed.
        """

        states = [delivery.status for delivery in self.delivery_status.values()]
        if self.is_read:
            self.status = NotificationStatus.READ
        elif self.status == NotificationStatus.EXPIRED:
            pass
        elif DeliveryState.DELIVERED in states:
            self.status = NotificationStatus.DELIVERED
        elif states and all(state == DeliveryState.FAILED for state in states):
            self.status = NotificationStatus.FAILED
        elif self.sent_at is not None:
            self.status = NotificationStatus.SENT
        else:
            self.status = NotificationStatus.PENDING
        return self.status


__all__ = [
    "ChannelDelivery",
    "DeliveryState",
    "Notification",
    "NotificationAction",
    "NotificationAttachment",
    "NotificationCategory",
    "NotificationChannel",
    "NotificationPriority",
    "NotificationStatus",
    "NotificationType",
]
