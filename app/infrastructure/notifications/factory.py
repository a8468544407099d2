"""Wire a :class:`NotificationService` from application settings."""

from __future__ import annotations

import httpx
from sqlalchemy.orm import Session, sessionmaker

from app.application.use_cases.notifications.service import NotificationService
from app.config import Settings

from .channels import build_channel_senders
from .events import NotificationEventBus
from .retry import RetryPolicy
from .stores import (
    SqlDeliveryJobStore,
    SqlNotificationStore,
    SqlPreferencesStore,
    SqlRecipientDirectory,
    SqlTemplateStore,
)


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.webhook_timeout_seconds)


def build_notification_service(
    settings: Settings,
    session_factory: sessionmaker[Session],
    *,
    http_client: httpx.AsyncClient,
    bus: NotificationEventBus | None = None,
) -> NotificationService:
    """Return a service backed by the SQL stores and the configured senders."""

    directory = SqlRecipientDirectory(session_factory)
    senders = build_channel_senders(
        settings, http_client=http_client, token_lookup=directory.push_token
    )
    return NotificationService(
        notifications=SqlNotificationStore(session_factory),
        preferences=SqlPreferencesStore(session_factory),
        templates=SqlTemplateStore(session_factory),
        directory=directory,
        jobs=SqlDeliveryJobStore(session_factory),
        senders=senders,
        bus=bus,
        retry_policy=RetryPolicy.from_settings(settings),
        app_url=settings.app_url,
        slack_webhook_url=settings.slack_webhook_url,
        bulk_batch_size=settings.notification_bulk_batch_size,
        bulk_delay_ms=settings.notification_bulk_delay_ms,
    )


__all__ = ["build_http_client", "build_notification_service"]
