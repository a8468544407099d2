"""Shared fixtures for the notification engine tests."""

from __future__ import annotations

import pytest

from app.application.use_cases.notifications.service import NotificationService
from app.domain.entities import Recipient
from app.infrastructure.notifications.channels import ChannelSenders
from app.infrastructure.notifications.retry import RetryPolicy

from tests.fakes import (
    InMemoryDeliveryJobStore,
    InMemoryNotificationStore,
    InMemoryPreferencesStore,
    InMemoryRecipientDirectory,
    InMemoryTemplateStore,
    recording_senders,
)

FAST_RETRY = RetryPolicy(max_attempts=3, base_delay=0.01, max_delay=0.05, multiplier=2.0)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def notification_store() -> InMemoryNotificationStore:
    return InMemoryNotificationStore()


@pytest.fixture
def preferences_store() -> InMemoryPreferencesStore:
    return InMemoryPreferencesStore()


@pytest.fixture
def template_store() -> InMemoryTemplateStore:
    return InMemoryTemplateStore()


@pytest.fixture
def job_store() -> InMemoryDeliveryJobStore:
    return InMemoryDeliveryJobStore()


@pytest.fixture
def directory() -> InMemoryRecipientDirectory:
    return InMemoryRecipientDirectory(
        [
            Recipient(id="u1", name="Ana", email="ana@example.com", phone="+15550001", tenant_id="t1"),
            Recipient(id="u2", name="Luis", email="luis@example.com", phone="+15550002", tenant_id="t1"),
            Recipient(id="u3", name="Marta", email="marta@example.com", tenant_id="t2"),
        ]
    )


@pytest.fixture
def senders() -> ChannelSenders:
    return recording_senders()


@pytest.fixture
def make_service(
    notification_store,
    preferences_store,
    template_store,
    job_store,
    directory,
    senders,
):
    """Build a :class:`NotificationService` over the in-memory doubles."""

    def _build(**overrides) -> NotificationService:
        options = {
            "notifications": notification_store,
            "preferences": preferences_store,
            "templates": template_store,
            "directory": directory,
            "jobs": job_store,
            "senders": senders,
            "retry_policy": FAST_RETRY,
            "app_url": "https://school.example.com",
            "slack_webhook_url": "https://hooks.slack.test/T000",
            "bulk_delay_ms": 0,
        }
        options.update(overrides)
        return NotificationService(**options)

    return _build
