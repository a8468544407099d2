"""Schemas for notification template endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.domain.entities import (
    NotificationCategory,
    NotificationChannel,
    NotificationPriority,
    NotificationType,
)


class NotificationTemplateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    type: NotificationType
    title_template: str
    message_template: str
    channels: list[NotificationChannel]
    priority: NotificationPriority
    category: NotificationCategory
    variables: list[str] = Field(default_factory=list)
    active: bool
    created_at: datetime | None = None


class NotificationTemplateStatusUpdate(BaseModel):
    active: bool


class NotificationTemplateSendRequest(BaseModel):
    """Render a template for one user; ``overrides`` accepts send-request keys."""

    user_id: str = Field(..., min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)
    overrides: dict[str, Any] | None = None


__all__ = [
    "NotificationTemplateRead",
    "NotificationTemplateSendRequest",
    "NotificationTemplateStatusUpdate",
]
