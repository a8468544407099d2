"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.domain.entities import (
    DeliveryState,
    NotificationCategory,
    NotificationChannel,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
)


class _ReadModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ChannelDeliveryRead(_ReadModel):
    status: DeliveryState
    attempts: int
    last_attempt: datetime | None = None
    error: str | None = None


class NotificationAttachmentRead(_ReadModel):
    url: str
    name: str
    type: str


class NotificationActionRead(_ReadModel):
    label: str
    url: str
    type: str


class NotificationRead(_ReadModel):
    """Representation of a notification delivered to the client."""

    id: str
    user_id: str
    tenant_id: str | None = None
    type: NotificationType
    category: NotificationCategory
    priority: NotificationPriority
    title: str
    message: str
    action_url: str | None = None
    channels: list[NotificationChannel]
    delivery_status: dict[NotificationChannel, ChannelDeliveryRead] = Field(default_factory=dict)
    status: NotificationStatus
    metadata: dict[str, Any] = Field(default_factory=dict)
    attachments: list[NotificationAttachmentRead] = Field(default_factory=list)
    actions: list[NotificationActionRead] = Field(default_factory=list)
    template_id: str | None = None
    is_read: bool
    read_at: datetime | None = None
    expires_at: datetime | None = None
    scheduled_for: datetime | None = None
    sent_at: datetime | None = None
    delivered_at: datetime | None = None
    created_at: datetime | None = None


class NotificationPageRead(BaseModel):
    items: list[NotificationRead]
    total: int
    unread_count: int
    page: int
    per_page: int


class UnreadCountRead(BaseModel):
    count: int


class MarkAllReadResponse(BaseModel):
    updated: int


class BulkSendRequest(BaseModel):
    """Send one notification payload to many users."""

    user_ids: list[str] = Field(..., min_length=1)
    notification: dict[str, Any]
    batch_size: int | None = Field(default=None, gt=0)
    delay_ms: int | None = Field(default=None, ge=0)


class BroadcastRequest(BaseModel):
    notification: dict[str, Any]
    tenant_id: str | None = None


class BulkErrorRead(_ReadModel):
    user_id: str
    error: str


class BulkResultRead(_ReadModel):
    total: int
    success: int
    failed: int
    pending: int
    errors: list[BulkErrorRead] = Field(default_factory=list)
    job_id: str | None = None


__all__ = [
    "BroadcastRequest",
    "BulkErrorRead",
    "BulkResultRead",
    "BulkSendRequest",
    "ChannelDeliveryRead",
    "MarkAllReadResponse",
    "NotificationActionRead",
    "NotificationAttachmentRead",
    "NotificationPageRead",
    "NotificationRead",
    "UnreadCountRead",
]
