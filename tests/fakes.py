"""In-memory stores and recording senders used by the engine tests."""

from __future__ import annotations

import asyncio
import copy
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from app.application.use_cases.notifications.ports import NotificationFilter
from app.domain.entities import (
    DeliveryJob,
    Notification,
    NotificationPreferences,
    NotificationTemplate,
    Recipient,
)
from app.infrastructure.notifications.channels import ChannelSenders


class InMemoryNotificationStore:
    """Store that hands out copies, like a database would."""

    def __init__(self) -> None:
        self.records: dict[str, Notification] = {}
        self.update_calls = 0
        self.failing_updates = 0

    async def create(self, notification: Notification) -> Notification:
        stored = copy.deepcopy(notification)
        if stored.id is None:
            stored.id = uuid4().hex
        self.records[stored.id] = stored
        return copy.deepcopy(stored)

    async def get(self, notification_id: str) -> Notification | None:
        stored = self.records.get(notification_id)
        return copy.deepcopy(stored) if stored else None

    async def update(self, notification: Notification) -> Notification:
        if notification.id not in self.records:
            raise ValueError(f"Notification with id {notification.id} not found")
        if self.failing_updates:
            self.failing_updates -= 1
            raise RuntimeError("database went away")
        self.update_calls += 1
        self.records[notification.id] = copy.deepcopy(notification)
        return copy.deepcopy(notification)

    async def delete(self, notification_id: str) -> bool:
        return self.records.pop(notification_id, None) is not None

    async def query(
        self, filters: NotificationFilter, *, offset: int = 0, limit: int | None = 50
    ) -> Sequence[Notification]:
        matches = [n for n in self.records.values() if _matches(n, filters)]
        matches.sort(key=lambda n: (n.created_at or datetime.min, n.id or ""), reverse=True)
        end = None if limit is None else offset + limit
        return [copy.deepcopy(n) for n in matches[offset:end]]

    async def count(self, filters: NotificationFilter) -> int:
        return sum(1 for n in self.records.values() if _matches(n, filters))


def _matches(notification: Notification, filters: NotificationFilter) -> bool:
    if filters.user_id is not None and notification.user_id != filters.user_id:
        return False
    if filters.tenant_id is not None and notification.tenant_id != filters.tenant_id:
        return False
    if filters.is_read is not None and notification.is_read != filters.is_read:
        return False
    if filters.category is not None and notification.category != filters.category:
        return False
    if filters.status is not None and notification.status != filters.status:
        return False
    return True


class InMemoryPreferencesStore:
    def __init__(self) -> None:
        self.records: dict[str, NotificationPreferences] = {}
        self.saves: list[str] = []

    async def get(self, user_id: str) -> NotificationPreferences | None:
        await asyncio.sleep(0)
        stored = self.records.get(user_id)
        return copy.deepcopy(stored) if stored else None

    async def save(self, preferences: NotificationPreferences) -> NotificationPreferences:
        self.saves.append(preferences.user_id)
        self.records[preferences.user_id] = copy.deepcopy(preferences)
        return copy.deepcopy(preferences)


class InMemoryTemplateStore:
    def __init__(self) -> None:
        self.records: dict[str, NotificationTemplate] = {}

    async def get(self, template_id: str) -> NotificationTemplate | None:
        stored = self.records.get(template_id)
        return copy.deepcopy(stored) if stored else None

    async def create(self, template: NotificationTemplate) -> NotificationTemplate:
        stored = copy.deepcopy(template)
        if stored.id is None:
            stored.id = uuid4().hex
        self.records[stored.id] = stored
        return copy.deepcopy(stored)

    async def save(self, template: NotificationTemplate) -> NotificationTemplate:
        self.records[template.id] = copy.deepcopy(template)
        return copy.deepcopy(template)

    async def list(self, *, active_only: bool = False) -> Sequence[NotificationTemplate]:
        items = [t for t in self.records.values() if t.active or not active_only]
        return [copy.deepcopy(t) for t in sorted(items, key=lambda t: t.name)]


class InMemoryRecipientDirectory:
    def __init__(self, recipients: Sequence[Recipient] = ()) -> None:
        self.recipients: dict[str, Recipient] = {r.id: r for r in recipients}
        self.webhooks: dict[str, list[str]] = {}

    def add(self, recipient: Recipient, *webhook_urls: str) -> None:
        self.recipients[recipient.id] = recipient
        if webhook_urls:
            self.webhooks.setdefault(recipient.id, []).extend(webhook_urls)

    async def get(self, user_id: str) -> Recipient | None:
        return self.recipients.get(user_id)

    async def list_user_ids(self, *, tenant_id: str | None = None) -> Sequence[str]:
        return sorted(
            r.id
            for r in self.recipients.values()
            if r.is_active and (tenant_id is None or r.tenant_id == tenant_id)
        )

    async def list_webhook_urls(self, user_id: str) -> Sequence[str]:
        return list(self.webhooks.get(user_id, []))


class InMemoryDeliveryJobStore:
    def __init__(self) -> None:
        self.jobs: dict[str, DeliveryJob] = {}

    async def save(self, job: DeliveryJob) -> None:
        self.jobs[job.key] = copy.deepcopy(job)

    async def delete(self, key: str) -> None:
        self.jobs.pop(key, None)

    async def list_all(self) -> Sequence[DeliveryJob]:
        return sorted((copy.deepcopy(j) for j in self.jobs.values()), key=lambda j: j.due_at)


@dataclass
class RecordingSender:
    """Async callable that records its arguments and can fail a number of times."""

    fail_times: int = 0
    error: Exception | None = None
    calls: list[tuple[Any, ...]] = field(default_factory=list)

    async def __call__(self, *args: Any) -> None:
        self.calls.append(args)
        if len(self.calls) <= self.fail_times:
            raise self.error or RuntimeError("transport unavailable")


def recording_senders(**overrides: RecordingSender) -> ChannelSenders:
    senders = {
        "email": RecordingSender(),
        "sms": RecordingSender(),
        "push": RecordingSender(),
        "webhook": RecordingSender(),
        "chat": RecordingSender(),
    }
    senders.update(overrides)
    return ChannelSenders(**senders)
