"""Async collaborator interfaces consumed by the notification engine."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from app.domain.entities import (
    DeliveryJob,
    Notification,
    NotificationCategory,
    NotificationPreferences,
    NotificationStatus,
    NotificationTemplate,
    Recipient,
)


@dataclass(frozen=True)
class NotificationFilter:
    """Equality predicates used when querying stored notifications."""

    user_id: str | None = None
    tenant_id: str | None = None
    is_read: bool | None = None
    category: NotificationCategory | None = None
    status: NotificationStatus | None = None


class NotificationStore(Protocol):
    async def create(self, notification: Notification) -> Notification: ...

    async def get(self, notification_id: str) -> Notification | None: ...

    async def update(self, notification: Notification) -> Notification: ...

    async def delete(self, notification_id: str) -> bool: ...

    async def query(
        self, filters: NotificationFilter, *, offset: int = 0, limit: int | None = 50
    ) -> Sequence[Notification]: ...

    async def count(self, filters: NotificationFilter) -> int: ...


class PreferencesStore(Protocol):
    async def get(self, user_id: str) -> NotificationPreferences | None: ...

    async def save(self, preferences: NotificationPreferences) -> NotificationPreferences: ...


class TemplateStore(Protocol):
    async def get(self, template_id: str) -> NotificationTemplate | None: ...

    async def create(self, template: NotificationTemplate) -> NotificationTemplate: ...

    async def save(self, template: NotificationTemplate) -> NotificationTemplate: ...

    async def list(self, *, active_only: bool = False) -> Sequence[NotificationTemplate]: ...


class RecipientDirectory(Protocol):
    async def get(self, user_id: str) -> Recipient | None: ...

    async def list_user_ids(self, *, tenant_id: str | None = None) -> Sequence[str]: ...

    async def list_webhook_urls(self, user_id: str) -> Sequence[str]: ...


class DeliveryJobStore(Protocol):
    async def save(self, job: DeliveryJob) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def list_all(self) -> Sequence[DeliveryJob]: ...


__all__ = [
    "DeliveryJobStore",
    "NotificationFilter",
    "NotificationStore",
    "PreferencesStore",
    "RecipientDirectory",
    "TemplateStore",
]
