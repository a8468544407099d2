"""Fan a notification out to its channels and record every outcome."""

from __future__ import annotations

import asyncio
import html
import logging
from collections.abc import Awaitable, Callable, Iterable
from functools import partial
from typing import TypeVar

from app.application.use_cases.notifications.errors import ChannelDeliveryError
from app.application.use_cases.notifications.ports import RecipientDirectory
from app.domain.entities import (
    ChannelDelivery,
    DeliveryState,
    Notification,
    NotificationChannel,
    NotificationDelivered,
    NotificationSent,
    Recipient,
)

from .channels import ChannelSenders
from .events import NotificationEventBus
from .publisher import serialize_notification
from .retry import RetryController
from .status import DeliveryStatusRecorder

logger = logging.getLogger(__name__)

ChannelHandler = Callable[[Notification], Awaitable[None]]
S = TypeVar("S")


def render_email_html(notification: Notification, app_url: str) -> str:
    """Return the HTML body used for the email channel."""

    body = f"<p>{html.escape(notification.message)}</p>"
    if notification.action_url:
        link = html.escape(f"{app_url.rstrip('/')}{notification.action_url}", quote=True)
        body += f'<p><a href="{link}">View</a></p>'
    return body


class ChannelDispatcher:
    """Run one attempt per channel and hand failures to the retry controller.

    Channel handling is a closed mapping over :class:`NotificationChannel`;
    construction fails when a channel has no handler.
    """

    def __init__(
        self,
        senders: ChannelSenders,
        directory: RecipientDirectory,
        recorder: DeliveryStatusRecorder,
        bus: NotificationEventBus,
        retry: RetryController,
        *,
        app_url: str = "",
        slack_webhook_url: str | None = None,
    ) -> None:
        self._senders = senders
        self._directory = directory
        self._recorder = recorder
        self._bus = bus
        self._retry = retry
        self._app_url = app_url
        self._slack_webhook_url = slack_webhook_url
        self._handlers: dict[NotificationChannel, ChannelHandler] = {
            NotificationChannel.IN_APP: self._deliver_in_app,
            NotificationChannel.EMAIL: self._deliver_email,
            NotificationChannel.SMS: self._deliver_sms,
            NotificationChannel.PUSH: self._deliver_push,
            NotificationChannel.WEBHOOK: self._deliver_webhook,
            NotificationChannel.SLACK: self._deliver_slack,
        }
        missing = [channel.value for channel in NotificationChannel if channel not in self._handlers]
        if missing:
            raise RuntimeError(f"No delivery handler for channels: {', '.join(missing)}")

    async def deliver(
        self,
        notification: Notification,
        channels: Iterable[NotificationChannel] | None = None,
    ) -> Notification | None:
        """Mark ``notification`` sent and attempt every channel concurrently."""

        if notification.id is None:
            raise ValueError("Notification must be persisted before it is delivered")

        targets = list(channels if channels is not None else notification.channels)
        sent = await self._recorder.mark_sent(notification.id)
        if sent is None:
            logger.info("Notification %s was deleted before delivery", notification.id)
            return None

        logger.info(
            "Sending notification %s to user %s via %s",
            sent.id,
            sent.user_id,
            ", ".join(channel.value for channel in targets),
        )
        self._bus.publish(NotificationSent(notification=sent))
        await asyncio.gather(*(self.attempt(sent, channel) for channel in targets))
        return await self._recorder.get(notification.id)

    async def attempt(self, notification: Notification, channel: NotificationChannel) -> None:
        """Run a single attempt on ``channel``; never raises delivery errors."""

        if notification.id is None:
            raise ValueError("Notification must be persisted before it is delivered")
        handler = self._handlers[channel]
        try:
            await handler(notification)
        except ChannelDeliveryError as exc:
            error = exc
        except Exception as exc:
            logger.exception(
                "Unexpected error delivering notification %s via %s", notification.id, channel.value
            )
            error = ChannelDeliveryError(channel, str(exc) or exc.__class__.__name__)
        else:
            updated = await self._recorder.record_attempt(
                notification.id, channel, DeliveryState.DELIVERED
            )
            if updated is None:
                return
            logger.info("Notification %s delivered via %s", notification.id, channel.value)
            self._bus.publish(NotificationDelivered(notification=updated, channel=channel))
            return

        await self._retry.handle_failure(
            notification,
            channel,
            error,
            partial(self.attempt_by_id, notification.id, channel),
        )

    async def attempt_by_id(self, notification_id: str, channel: NotificationChannel) -> None:
        """Reload the notification and retry ``channel`` unless it already settled."""

        notification = await self._recorder.get(notification_id)
        if notification is None:
            logger.info("Notification %s was deleted; skipping %s retry", notification_id, channel.value)
            return
        delivery = notification.delivery_status.get(channel)
        if delivery is not None and delivery.status in (DeliveryState.DELIVERED, DeliveryState.FAILED):
            return
        await self.attempt(notification, channel)

    async def _deliver_in_app(self, notification: Notification) -> None:
        return None

    async def _deliver_email(self, notification: Notification) -> None:
        sender = self._require(self._senders.email, NotificationChannel.EMAIL)
        recipient = await self._recipient(notification, NotificationChannel.EMAIL)
        if not recipient.email:
            raise ChannelDeliveryError(NotificationChannel.EMAIL, "Recipient has no email address")
        await sender(
            recipient.email, notification.title, render_email_html(notification, self._app_url)
        )

    async def _deliver_sms(self, notification: Notification) -> None:
        sender = self._require(self._senders.sms, NotificationChannel.SMS)
        recipient = await self._recipient(notification, NotificationChannel.SMS)
        if not recipient.phone:
            raise ChannelDeliveryError(NotificationChannel.SMS, "Recipient has no phone number")
        await sender(recipient.phone, f"{notification.title}: {notification.message}")

    async def _deliver_push(self, notification: Notification) -> None:
        sender = self._require(self._senders.push, NotificationChannel.PUSH)
        await sender(
            notification.user_id, notification.title, notification.message, notification.action_url
        )

    async def _deliver_webhook(self, notification: Notification) -> None:
        """POST to every active webhook; on a retry, skip URLs that already accepted it."""

        sender = self._require(self._senders.webhook, NotificationChannel.WEBHOOK)
        urls = list(await self._directory.list_webhook_urls(notification.user_id))
        if not urls:
            raise ChannelDeliveryError(
                NotificationChannel.WEBHOOK, f"No active webhooks for user {notification.user_id}"
            )
        done = notification.delivery_status.get(NotificationChannel.WEBHOOK, ChannelDelivery())
        remaining = [url for url in urls if url not in done.completed_targets]
        payload = {"event": "notification", "data": serialize_notification(notification)}
        results = await asyncio.gather(
            *(sender(url, payload) for url in remaining), return_exceptions=True
        )

        failures = [
            (url, result) for url, result in zip(remaining, results) if isinstance(result, Exception)
        ]
        if not failures:
            return
        succeeded = [
            url for url, result in zip(remaining, results) if not isinstance(result, BaseException)
        ]
        if succeeded and notification.id is not None:
            await self._recorder.add_completed_targets(
                notification.id, NotificationChannel.WEBHOOK, succeeded
            )
        raise ChannelDeliveryError(
            NotificationChannel.WEBHOOK,
            "; ".join(
                f"{url}: {error.reason if isinstance(error, ChannelDeliveryError) else error}"
                for url, error in failures
            ),
        )

    async def _deliver_slack(self, notification: Notification) -> None:
        sender = self._require(self._senders.chat, NotificationChannel.SLACK)
        if not self._slack_webhook_url:
            raise ChannelDeliveryError(NotificationChannel.SLACK, "Slack webhook URL is not configured")
        await sender(self._slack_webhook_url, f"*{notification.title}*\n{notification.message}")

    async def _recipient(self, notification: Notification, channel: NotificationChannel) -> Recipient:
        recipient = await self._directory.get(notification.user_id)
        if recipient is None or not recipient.is_active:
            raise ChannelDeliveryError(channel, f"Recipient {notification.user_id} not found")
        return recipient

    @staticmethod
    def _require(sender: S | None, channel: NotificationChannel) -> S:
        if sender is None:
            raise ChannelDeliveryError(channel, f"No {channel.value} sender configured")
        return sender


__all__ = ["ChannelDispatcher", "render_email_html"]
