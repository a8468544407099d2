"""Per-channel retry with exponential backoff."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from app.application.use_cases.notifications.errors import (
    ChannelDeliveryError,
    TerminalChannelFailure,
)
from app.config import Settings
from app.domain.entities import (
    ChannelDelivery,
    DeliveryJob,
    DeliveryState,
    Notification,
    NotificationChannel,
    NotificationFailed,
)
from app.utils import now_in_app_timezone

from .events import NotificationEventBus
from .scheduler import DelayedJobRunner, JobCallback
from .status import DeliveryStatusRecorder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff.

    Delay after the n-th failed attempt: ``min(base_delay * multiplier ** (n - 1), max_delay)``.
    With the defaults that is 1s, 2s, 4s... capped at 30s.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.notification_retry_max_attempts,
            base_delay=settings.notification_retry_base_delay_seconds,
            max_delay=settings.notification_retry_max_delay_seconds,
            multiplier=settings.notification_retry_multiplier,
        )

    def should_retry(self, attempts: int) -> bool:
        return attempts < self.max_attempts

    def delay_for(self, failed_attempts: int) -> float:
        exponent = max(failed_attempts - 1, 0)
        return min(self.base_delay * self.multiplier**exponent, self.max_delay)


class RetryController:
    """Decide whether a failed channel attempt is retried or becomes terminal."""

    def __init__(
        self,
        policy: RetryPolicy,
        runner: DelayedJobRunner,
        recorder: DeliveryStatusRecorder,
        bus: NotificationEventBus,
        *,
        clock: Callable[[], datetime] = now_in_app_timezone,
    ) -> None:
        self.policy = policy
        self._runner = runner
        self._recorder = recorder
        self._bus = bus
        self._clock = clock

    async def handle_failure(
        self,
        notification: Notification,
        channel: NotificationChannel,
        error: ChannelDeliveryError,
        retry: JobCallback,
    ) -> None:
        """Record the failed attempt, then arm ``retry`` or finalize the channel.

        The retry job is persisted before the attempt is recorded, so a restart
        between the two still finds the job.
        """

        notification_id = notification.id
        if notification_id is None:
            raise ValueError("Cannot retry a notification that was never persisted")

        current = await self._recorder.get(notification_id)
        if current is None:
            logger.info(
                "Notification %s disappeared; dropping %s retries", notification_id, channel.value
            )
            return

        attempts = current.delivery_status.get(channel, ChannelDelivery()).attempts + 1
        if self.policy.should_retry(attempts):
            await self._schedule_retry(notification_id, channel, error, attempts, retry)
            return

        failure = TerminalChannelFailure(channel, error.reason, attempts)
        final = await self._recorder.record_attempt(
            notification_id, channel, DeliveryState.FAILED, error=failure.reason
        )
        if final is None:
            return
        logger.error(
            "Delivery of notification %s via %s failed after %s attempts: %s",
            notification_id,
            channel.value,
            attempts,
            failure.reason,
        )
        self._bus.publish(
            NotificationFailed(
                notification=final,
                channel=channel,
                error=failure.reason,
                attempts=failure.attempts,
            )
        )

    async def _schedule_retry(
        self,
        notification_id: str,
        channel: NotificationChannel,
        error: ChannelDeliveryError,
        attempts: int,
        retry: JobCallback,
    ) -> None:
        delay = self.policy.delay_for(attempts)
        job = DeliveryJob.retry(
            notification_id, channel, self._clock() + timedelta(seconds=delay), attempts
        )
        await self._runner.persist(job)
        updated = await self._recorder.record_attempt(
            notification_id, channel, DeliveryState.PENDING, error=error.reason
        )
        if updated is None:
            await self._runner.cancel(job.key)
            logger.info(
                "Notification %s disappeared; dropping %s retries", notification_id, channel.value
            )
            return

        await self._runner.schedule(job, retry, persist=False)
        logger.warning(
            "Delivery of notification %s via %s failed (attempt %s/%s): %s; retrying in %.2fs",
            notification_id,
            channel.value,
            attempts,
            self.policy.max_attempts,
            error.reason,
            delay,
        )


__all__ = ["RetryController", "RetryPolicy"]
