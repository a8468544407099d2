"""Async store adapters running the SQLAlchemy repositories in worker threads."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeVar

from anyio import to_thread
from sqlalchemy.orm import Session, sessionmaker

from app.application.use_cases.notifications.ports import NotificationFilter
from app.domain.entities import (
    DeliveryJob,
    Notification,
    NotificationPreferences,
    NotificationTemplate,
    Recipient,
)
from app.infrastructure.repositories import (
    DeliveryJobRepository,
    NotificationPreferencesRepository,
    NotificationRepository,
    NotificationTemplateRepository,
    RecipientRepository,
)

T = TypeVar("T")


class _SessionRunner:
    """Open a short-lived session per call and run it off the event loop."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    async def _run(self, work: Callable[[Session], T]) -> T:
        def _call() -> T:
            with self._session_factory() as session:
                return work(session)

        return await to_thread.run_sync(_call)


class SqlNotificationStore(_SessionRunner):
    async def create(self, notification: Notification) -> Notification:
        return await self._run(lambda session: NotificationRepository(session).create(notification))

    async def get(self, notification_id: str) -> Notification | None:
        return await self._run(lambda session: NotificationRepository(session).get(notification_id))

    async def update(self, notification: Notification) -> Notification:
        return await self._run(lambda session: NotificationRepository(session).update(notification))

    async def delete(self, notification_id: str) -> bool:
        return await self._run(
            lambda session: NotificationRepository(session).delete(notification_id)
        )

    async def query(
        self, filters: NotificationFilter, *, offset: int = 0, limit: int | None = 50
    ) -> Sequence[Notification]:
        return await self._run(
            lambda session: NotificationRepository(session).query(
                filters, offset=offset, limit=limit
            )
        )

    async def count(self, filters: NotificationFilter) -> int:
        return await self._run(lambda session: NotificationRepository(session).count(filters))


class SqlPreferencesStore(_SessionRunner):
    async def get(self, user_id: str) -> NotificationPreferences | None:
        return await self._run(
            lambda session: NotificationPreferencesRepository(session).get(user_id)
        )

    async def save(self, preferences: NotificationPreferences) -> NotificationPreferences:
        return await self._run(
            lambda session: NotificationPreferencesRepository(session).save(preferences)
        )


class SqlTemplateStore(_SessionRunner):
    async def get(self, template_id: str) -> NotificationTemplate | None:
        return await self._run(
            lambda session: NotificationTemplateRepository(session).get(template_id)
        )

    async def create(self, template: NotificationTemplate) -> NotificationTemplate:
        return await self._run(
            lambda session: NotificationTemplateRepository(session).create(template)
        )

    async def save(self, template: NotificationTemplate) -> NotificationTemplate:
        return await self._run(
            lambda session: NotificationTemplateRepository(session).save(template)
        )

    async def list(self, *, active_only: bool = False) -> Sequence[NotificationTemplate]:
        return await self._run(
            lambda session: NotificationTemplateRepository(session).list(active_only=active_only)
        )


class SqlRecipientDirectory(_SessionRunner):
    async def get(self, user_id: str) -> Recipient | None:
        return await self._run(lambda session: RecipientRepository(session).get(user_id))

    async def list_user_ids(self, *, tenant_id: str | None = None) -> Sequence[str]:
        return await self._run(
            lambda session: RecipientRepository(session).list_user_ids(tenant_id=tenant_id)
        )

    async def list_webhook_urls(self, user_id: str) -> Sequence[str]:
        return await self._run(
            lambda session: RecipientRepository(session).list_webhook_urls(user_id)
        )

    async def push_token(self, user_id: str) -> str | None:
        recipient = await self.get(user_id)
        if recipient is None or not recipient.is_active:
            return None
        return recipient.push_token


class SqlDeliveryJobStore(_SessionRunner):
    async def save(self, job: DeliveryJob) -> None:
        await self._run(lambda session: DeliveryJobRepository(session).save(job))

    async def delete(self, key: str) -> None:
        await self._run(lambda session: DeliveryJobRepository(session).delete(key))

    async def list_all(self) -> Sequence[DeliveryJob]:
        return await self._run(lambda session: DeliveryJobRepository(session).list_all())


__all__ = [
    "SqlDeliveryJobStore",
    "SqlNotificationStore",
    "SqlPreferencesStore",
    "SqlRecipientDirectory",
    "SqlTemplateStore",
]
