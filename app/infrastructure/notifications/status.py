"""Serialized read-modify-write of notification delivery state."""

from __future__ import annotations

import asyncio
import weakref
from collections.abc import Callable
from datetime import datetime

from app.application.use_cases.notifications.ports import NotificationStore
from app.domain.entities import (
    ChannelDelivery,
    DeliveryState,
    Notification,
    NotificationChannel,
    NotificationStatus,
)
from app.utils import now_in_app_timezone


class DeliveryStatusRecorder:
    """Single writer of notification state transitions.

    Every change goes through :meth:`mutate`, which holds a per-notification
    lock around the load/update pair so concurrent channel outcomes and read
    events never overwrite each other.
    """

    def __init__(
        self,
        store: NotificationStore,
        *,
        clock: Callable[[], datetime] = now_in_app_timezone,
    ) -> None:
        self._store = store
        self._clock = clock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    async def get(self, notification_id: str) -> Notification | None:
        return await self._store.get(notification_id)

    async def mutate(
        self, notification_id: str, change: Callable[[Notification], None]
    ) -> Notification | None:
        """Apply ``change`` to the stored notification and persist the result.

        Returns ``None`` when the notification no longer exists.
        """

        lock = self._lock_for(notification_id)
        async with lock:
            notification = await self._store.get(notification_id)
            if notification is None:
                return None
            change(notification)
            notification.refresh_status()
            return await self._store.update(notification)

    async def mark_sent(self, notification_id: str) -> Notification | None:
        now = self._clock()

        def _change(notification: Notification) -> None:
            if notification.sent_at is None:
                notification.sent_at = now

        return await self.mutate(notification_id, _change)

    async def mark_expired(self, notification_id: str) -> Notification | None:
        def _change(notification: Notification) -> None:
            notification.status = NotificationStatus.EXPIRED

        return await self.mutate(notification_id, _change)

    async def record_attempt(
        self,
        notification_id: str,
        channel: NotificationChannel,
        state: DeliveryState,
        *,
        error: str | None = None,
    ) -> Notification | None:
        """Count one attempt on ``channel`` and store its outcome."""

        now = self._clock()

        def _change(notification: Notification) -> None:
            delivery = notification.delivery_status.setdefault(channel, ChannelDelivery())
            delivery.attempts += 1
            delivery.last_attempt = now
            delivery.status = state
            delivery.error = error
            if state == DeliveryState.DELIVERED and notification.delivered_at is None:
                notification.delivered_at = now

        return await self.mutate(notification_id, _change)

    async def add_completed_targets(
        self, notification_id: str, channel: NotificationChannel, targets: list[str]
    ) -> Notification | None:
        """Remember ``targets`` of ``channel`` that accepted the notification."""

        def _change(notification: Notification) -> None:
            delivery = notification.delivery_status.setdefault(channel, ChannelDelivery())
            for target in targets:
                if target not in delivery.completed_targets:
                    delivery.completed_targets.append(target)

        return await self.mutate(notification_id, _change)

    def _lock_for(self, notification_id: str) -> asyncio.Lock:
        lock = self._locks.get(notification_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[notification_id] = lock
        return lock


__all__ = ["DeliveryStatusRecorder"]
