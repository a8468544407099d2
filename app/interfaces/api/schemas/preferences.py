"""Schemas for notification preference endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from app.domain.entities import NotificationCategory, NotificationPriority


class QuietHoursRead(BaseModel):
    enabled: bool
    start: str
    end: str
    timezone: str


class DigestRead(BaseModel):
    enabled: bool
    frequency: str
    time: str


class PreferencesRead(BaseModel):
    """Stored preferences of the calling user."""

    user_id: str
    email_enabled: bool
    push_enabled: bool
    sms_enabled: bool
    webhook_enabled: bool
    slack_enabled: bool
    categories: dict[NotificationCategory, bool]
    quiet_hours: QuietHoursRead | None = None
    digest: DigestRead | None = None
    priority_threshold: NotificationPriority
    updated_at: datetime | None = None


__all__ = ["DigestRead", "PreferencesRead", "QuietHoursRead"]
