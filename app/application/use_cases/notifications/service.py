"""Public facade of the notification delivery engine."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import datetime
from functools import partial
from typing import Any

from app.domain.entities import (
    BulkResult,
    ChannelDelivery,
    DeliveryJobKind,
    DeliveryState,
    Notification,
    NotificationAction,
    NotificationAttachment,
    NotificationCategory,
    NotificationCreated,
    NotificationPreferences,
    NotificationRead,
    NotificationTemplate,
)
from app.infrastructure.notifications.channels import ChannelSenders
from app.infrastructure.notifications.dispatcher import ChannelDispatcher
from app.infrastructure.notifications.events import NotificationEventBus
from app.infrastructure.notifications.retry import RetryController, RetryPolicy
from app.infrastructure.notifications.scheduler import DelayedJobRunner, DeliveryScheduler
from app.infrastructure.notifications.status import DeliveryStatusRecorder
from app.utils import ensure_app_timezone, now_in_app_timezone

from .bulk import BulkNotificationSender
from .errors import (
    NoChannelsAllowedError,
    NotificationNotFoundError,
    NotificationValidationError,
    TemplateNotFoundError,
)
from .ports import (
    DeliveryJobStore,
    NotificationFilter,
    NotificationStore,
    PreferencesStore,
    RecipientDirectory,
    TemplateStore,
)
from .preferences import PreferenceResolver
from .templates import build_template_request, extract_variables
from .validators import (
    NotificationRequest,
    PreferencesUpdate,
    TemplateDefinition,
    validate_notification_request,
    validate_preferences_update,
    validate_template_definition,
)

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


@dataclass
class NotificationPage:
    items: list[Notification]
    total: int
    unread_count: int
    page: int
    per_page: int


class NotificationService:
    """Create, deliver and track notifications for application users.

    The service owns the delivery pipeline: validation, preference filtering,
    quiet-hours deferral, durable scheduling, concurrent channel dispatch with
    per-channel retries and lifecycle events on :attr:`bus`.
    """

    def __init__(
        self,
        *,
        notifications: NotificationStore,
        preferences: PreferencesStore,
        templates: TemplateStore,
        directory: RecipientDirectory,
        jobs: DeliveryJobStore,
        senders: ChannelSenders,
        bus: NotificationEventBus | None = None,
        retry_policy: RetryPolicy | None = None,
        app_url: str = "",
        slack_webhook_url: str | None = None,
        bulk_batch_size: int = 50,
        bulk_delay_ms: int = 100,
        clock: Callable[[], datetime] = now_in_app_timezone,
    ) -> None:
        self.bus = bus or NotificationEventBus()
        self._notifications = notifications
        self._templates = templates
        self._directory = directory
        self._clock = clock

        self._recorder = DeliveryStatusRecorder(notifications, clock=clock)
        self._runner = DelayedJobRunner(jobs, clock=clock)
        self._retry = RetryController(
            retry_policy or RetryPolicy(),
            self._runner,
            self._recorder,
            self.bus,
            clock=clock,
        )
        self._dispatcher = ChannelDispatcher(
            senders,
            directory,
            self._recorder,
            self.bus,
            self._retry,
            app_url=app_url,
            slack_webhook_url=slack_webhook_url,
        )
        self._scheduler = DeliveryScheduler(self._runner, self._dispatch_by_id, clock=clock)
        self._resolver = PreferenceResolver(preferences, clock=clock)
        self._bulk = BulkNotificationSender(
            self.send, batch_size=bulk_batch_size, delay_ms=bulk_delay_ms
        )

    # Sending

    async def send(self, raw: Mapping[str, Any] | NotificationRequest) -> Notification:
        """Validate ``raw``, persist the notification and start its delivery."""

        request = validate_notification_request(raw)
        now = self._clock()
        if request.expires_at is not None and request.expires_at <= now:
            raise NotificationValidationError("expiresAt", "Expiration must be in the future")

        plan = await self._resolver.plan(
            request.user_id,
            requested=request.channels,
            category=request.category,
            priority=request.priority,
            scheduled_for=request.scheduled_for,
        )
        if not plan.channels:
            raise NoChannelsAllowedError(request.user_id)

        metadata = dict(request.metadata)
        if request.template_data is not None:
            metadata.setdefault("template_data", request.template_data)

        notification = Notification(
            id=None,
            user_id=request.user_id,
            tenant_id=request.tenant_id,
            title=request.title,
            message=request.message,
            type=request.type,
            category=request.category,
            priority=request.priority,
            channels=list(plan.channels),
            delivery_status={channel: ChannelDelivery() for channel in plan.channels},
            action_url=request.action_url,
            metadata=metadata,
            attachments=[
                NotificationAttachment(url=str(item.url), name=item.name, type=item.type)
                for item in request.attachments
            ],
            actions=[
                NotificationAction(label=item.label, url=item.url, type=item.type)
                for item in request.actions
            ],
            template_id=request.template_id,
            expires_at=request.expires_at,
            scheduled_for=plan.scheduled_for,
            created_at=now,
        )
        created = await self._notifications.create(notification)
        if plan.deferred_for_quiet_hours:
            logger.info(
                "Notification %s for user %s deferred by quiet hours until %s",
                created.id,
                created.user_id,
                plan.scheduled_for.isoformat() if plan.scheduled_for else None,
            )
        self.bus.publish(NotificationCreated(notification=created))
        await self._scheduler.schedule(created)
        return created

    async def send_from_template(
        self,
        template_id: str,
        user_id: str,
        data: Mapping[str, Any] | None = None,
        *,
        overrides: Mapping[str, Any] | None = None,
    ) -> Notification:
        """Render ``template_id`` with ``data`` and send it to ``user_id``."""

        template = await self._templates.get(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        if not template.active:
            raise NotificationValidationError("templateId", f"Template {template_id} is inactive")

        request = build_template_request(template, user_id=user_id, data=data or {})
        if overrides:
            request.update(overrides)
            request["userId"] = user_id
        return await self.send(request)

    async def send_bulk(
        self,
        user_ids: Sequence[str],
        request: Mapping[str, Any] | NotificationRequest,
        *,
        batch_size: int | None = None,
        delay_ms: int | None = None,
    ) -> BulkResult:
        return await self._bulk.send(user_ids, request, batch_size=batch_size, delay_ms=delay_ms)

    async def broadcast(
        self,
        request: Mapping[str, Any] | NotificationRequest,
        *,
        tenant_id: str | None = None,
    ) -> BulkResult:
        """Send ``request`` to every active recipient, optionally within one tenant."""

        tenant = tenant_id if tenant_id is not None else _tenant_of(request)
        user_ids = await self._directory.list_user_ids(tenant_id=tenant)
        logger.info("Broadcasting notification to %s recipients", len(user_ids))
        return await self.send_bulk(user_ids, request)

    # Read state and queries

    async def get_notification(self, notification_id: str, *, user_id: str | None = None) -> Notification:
        notification = await self._notifications.get(notification_id)
        if notification is None or (user_id is not None and notification.user_id != user_id):
            raise NotificationNotFoundError(notification_id)
        return notification

    async def mark_as_read(self, notification_id: str, *, user_id: str | None = None) -> Notification:
        """Mark a notification read. Repeated calls are no-ops and publish nothing."""

        existing = await self.get_notification(notification_id, user_id=user_id)
        if existing.is_read:
            return existing

        read_at = self._clock()
        changed = False

        def _change(notification: Notification) -> None:
            nonlocal changed
            if notification.is_read:
                return
            notification.is_read = True
            notification.read_at = read_at
            changed = True

        updated = await self._recorder.mutate(notification_id, _change)
        if updated is None:
            raise NotificationNotFoundError(notification_id)
        if changed:
            self.bus.publish(NotificationRead(notification=updated))
        return updated

    async def mark_all_as_read(self, user_id: str, *, tenant_id: str | None = None) -> int:
        unread = await self._notifications.query(
            NotificationFilter(user_id=user_id, tenant_id=tenant_id, is_read=False), limit=None
        )
        count = 0
        for notification in unread:
            if notification.id is None:
                continue
            try:
                await self.mark_as_read(notification.id)
            except NotificationNotFoundError:
                continue
            count += 1
        return count

    async def get_unread_count(self, user_id: str, *, tenant_id: str | None = None) -> int:
        return await self._notifications.count(
            NotificationFilter(user_id=user_id, tenant_id=tenant_id, is_read=False)
        )

    async def list_notifications(
        self,
        user_id: str,
        *,
        tenant_id: str | None = None,
        is_read: bool | None = None,
        category: NotificationCategory | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> NotificationPage:
        """Return one page of the user's notifications, newest first."""

        if page < 1:
            raise NotificationValidationError("page", "Page must be at least 1")
        if not 1 <= per_page <= MAX_PAGE_SIZE:
            raise NotificationValidationError(
                "perPage", f"Page size must be between 1 and {MAX_PAGE_SIZE}"
            )

        filters = NotificationFilter(
            user_id=user_id, tenant_id=tenant_id, is_read=is_read, category=category
        )
        items = await self._notifications.query(
            filters, offset=(page - 1) * per_page, limit=per_page
        )
        total = await self._notifications.count(filters)
        unread = await self.get_unread_count(user_id, tenant_id=tenant_id)
        return NotificationPage(
            items=list(items), total=total, unread_count=unread, page=page, per_page=per_page
        )

    # Lifecycle management

    async def delete(self, notification_id: str, *, user_id: str | None = None) -> None:
        """Delete a notification and cancel its pending dispatch and retries."""

        await self.get_notification(notification_id, user_id=user_id)
        cancelled = await self._runner.cancel_for_notification(notification_id)
        await self._notifications.delete(notification_id)
        logger.info(
            "Notification %s deleted (%s pending jobs cancelled)", notification_id, cancelled
        )

    async def clear_all(self, user_id: str, *, tenant_id: str | None = None) -> int:
        notifications = await self._notifications.query(
            NotificationFilter(user_id=user_id, tenant_id=tenant_id), limit=None
        )
        removed = 0
        for notification in notifications:
            if notification.id is None:
                continue
            await self._runner.cancel_for_notification(notification.id)
            if await self._notifications.delete(notification.id):
                removed += 1
        logger.info("Cleared %s notifications for user %s", removed, user_id)
        return removed

    async def reschedule(
        self, notification_id: str, when: datetime, *, user_id: str | None = None
    ) -> Notification:
        """Move a not-yet-sent notification to ``when``."""

        existing = await self.get_notification(notification_id, user_id=user_id)
        if existing.sent_at is not None:
            raise NotificationValidationError(
                "scheduledFor", f"Notification {notification_id} was already sent"
            )

        scheduled_for = ensure_app_timezone(when)

        def _change(notification: Notification) -> None:
            notification.scheduled_for = scheduled_for

        updated = await self._recorder.mutate(notification_id, _change)
        if updated is None:
            raise NotificationNotFoundError(notification_id)
        await self._scheduler.reschedule(notification_id, scheduled_for)
        return updated

    def subscribe(
        self,
        callback: Callable[[Notification], Any],
        user_id: str | None = None,
    ) -> Callable[[], None]:
        """Call ``callback`` for every new notification, optionally for one user only."""

        def _handler(event: NotificationCreated) -> Any:
            if user_id is not None and event.notification.user_id != user_id:
                return None
            return callback(event.notification)

        return self.bus.subscribe(NotificationCreated, _handler)

    # Preferences

    async def get_preferences(self, user_id: str) -> NotificationPreferences:
        return await self._resolver.load(user_id)

    async def update_preferences(
        self, user_id: str, raw: Mapping[str, Any] | PreferencesUpdate
    ) -> NotificationPreferences:
        update = validate_preferences_update(raw)
        preferences = await self._resolver.update(user_id, update)
        logger.info("Notification preferences updated for user %s", user_id)
        return preferences

    # Templates

    async def create_template(
        self, raw: Mapping[str, Any] | TemplateDefinition
    ) -> NotificationTemplate:
        definition = validate_template_definition(raw)
        variables = definition.variables
        if variables is None:
            variables = extract_variables(definition.title_template, definition.message_template)
        template = NotificationTemplate(
            id=None,
            name=definition.name,
            type=definition.type,
            title_template=definition.title_template,
            message_template=definition.message_template,
            channels=list(definition.channels),
            priority=definition.priority,
            category=definition.category,
            variables=list(variables),
            active=definition.active,
            created_at=self._clock(),
        )
        return await self._templates.create(template)

    async def get_template(self, template_id: str) -> NotificationTemplate:
        template = await self._templates.get(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        return template

    async def list_templates(self, *, active_only: bool = False) -> list[NotificationTemplate]:
        return list(await self._templates.list(active_only=active_only))

    async def set_template_active(self, template_id: str, active: bool) -> NotificationTemplate:
        template = await self.get_template(template_id)
        if template.active == active:
            return template
        return await self._templates.save(replace(template, active=active))

    # Runtime

    async def resume_pending_jobs(self) -> int:
        """Re-arm every persisted dispatch and retry job. Returns how many were resumed."""

        jobs = await self._runner.list_persisted()
        for job in jobs:
            if job.kind == DeliveryJobKind.DISPATCH:
                await self._scheduler.resume(job)
            elif job.channel is not None:
                await self._runner.schedule(
                    job,
                    partial(self._dispatcher.attempt_by_id, job.notification_id, job.channel),
                    persist=False,
                )
        if jobs:
            logger.info("Resumed %s pending delivery jobs", len(jobs))
        return len(jobs)

    def is_scheduled(self, notification_id: str) -> bool:
        return self._scheduler.is_scheduled(notification_id)

    async def drain(self) -> None:
        """Wait for in-flight dispatches, armed retries and async event handlers.

        Deferred dispatches that are not due yet are left armed.
        """

        while True:
            await self._scheduler.wait_idle()
            await self._runner.wait(DeliveryJobKind.DISPATCH, due_by=self._clock())
            await self._runner.wait(DeliveryJobKind.RETRY)
            await self.bus.wait_idle()
            if not (
                self._scheduler.busy
                or self._runner.pending(DeliveryJobKind.DISPATCH, due_by=self._clock())
                or self._runner.pending(DeliveryJobKind.RETRY)
                or self.bus.busy
            ):
                return

    async def shutdown(self) -> None:
        """Finish immediate dispatches, then stop timers; persisted jobs survive."""

        await self._scheduler.wait_idle()
        await self._runner.shutdown()
        await self.bus.wait_idle()

    async def _dispatch_by_id(self, notification_id: str) -> None:
        notification = await self._recorder.get(notification_id)
        if notification is None:
            logger.info("Notification %s no longer exists; skipping dispatch", notification_id)
            return
        if notification.is_expired(self._clock()):
            await self._recorder.mark_expired(notification_id)
            logger.info("Notification %s expired before dispatch", notification_id)
            return

        channels = [
            channel
            for channel in notification.channels
            if notification.delivery_status.get(channel, ChannelDelivery()).status
            not in (DeliveryState.DELIVERED, DeliveryState.FAILED)
        ]
        if not channels:
            return
        await self._dispatcher.deliver(notification, channels)


def _tenant_of(request: Mapping[str, Any] | NotificationRequest) -> str | None:
    if isinstance(request, NotificationRequest):
        return request.tenant_id
    return request.get("tenantId") or request.get("tenant_id")


__all__ = ["MAX_PAGE_SIZE", "NotificationPage", "NotificationService"]
