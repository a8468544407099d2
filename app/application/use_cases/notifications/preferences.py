"""Preference resolution: effective channels, quiet hours and partial updates."""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta

from app.domain.entities import (
    DigestSettings,
    NotificationCategory,
    NotificationChannel,
    NotificationPreferences,
    NotificationPriority,
    QuietHours,
)
from app.utils import (
    ensure_app_timezone,
    now_in_app_timezone,
    parse_clock_time,
    resolve_timezone,
)

from .ports import PreferencesStore
from .validators import PreferencesUpdate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryPlan:
    """Where and when a notification should go once preferences are applied."""

    channels: list[NotificationChannel]
    scheduled_for: datetime | None
    deferred_for_quiet_hours: bool = False


def filter_channels(
    preferences: NotificationPreferences,
    requested: Iterable[NotificationChannel],
    *,
    category: NotificationCategory,
    priority: NotificationPriority,
) -> list[NotificationChannel]:
    """Narrow ``requested`` to the channels the user accepts.

    In-app is always part of the result. Any other channel needs its own
    opt-in flag, the category switched on and a priority at or above the
    user's threshold.
    """

    effective = [NotificationChannel.IN_APP]
    if priority.rank < preferences.priority_threshold.rank:
        return effective
    if not preferences.category_enabled(category):
        return effective

    for channel in requested:
        if channel in effective:
            continue
        if preferences.channel_enabled(channel):
            effective.append(channel)
    return effective


def is_in_quiet_hours(quiet_hours: QuietHours | None, now: datetime) -> bool:
    """Return whether ``now`` falls inside the user's quiet-hours window.

    Windows whose start is after their end wrap around midnight. A window with
    identical start and end is empty.
    """

    if quiet_hours is None or not quiet_hours.enabled:
        return False

    local_now = now.astimezone(resolve_timezone(quiet_hours.timezone))
    current = local_now.hour * 60 + local_now.minute
    start = quiet_hours.start.hour * 60 + quiet_hours.start.minute
    end = quiet_hours.end.hour * 60 + quiet_hours.end.minute

    if start == end:
        return False
    if start < end:
        return start <= current < end
    return current >= start or current < end


def next_quiet_hours_end(quiet_hours: QuietHours, now: datetime) -> datetime:
    """Return the next local occurrence of the window end strictly after ``now``."""

    tz = resolve_timezone(quiet_hours.timezone)
    local_now = now.astimezone(tz)
    candidate = _at_local_time(local_now.date(), quiet_hours, tz)
    if candidate <= local_now:
        candidate = _at_local_time(local_now.date() + timedelta(days=1), quiet_hours, tz)
    return ensure_app_timezone(candidate)


def _at_local_time(day: date, quiet_hours: QuietHours, tz) -> datetime:
    return datetime.combine(day, quiet_hours.end, tzinfo=tz)


def plan_delivery(
    preferences: NotificationPreferences,
    *,
    requested: Iterable[NotificationChannel],
    category: NotificationCategory,
    priority: NotificationPriority,
    scheduled_for: datetime | None,
    now: datetime,
) -> DeliveryPlan:
    """Combine channel filtering with the quiet-hours deferral rule."""

    channels = filter_channels(
        preferences, requested, category=category, priority=priority
    )
    if priority.bypasses_quiet_hours or not is_in_quiet_hours(preferences.quiet_hours, now):
        return DeliveryPlan(channels=channels, scheduled_for=scheduled_for)

    quiet_end = next_quiet_hours_end(preferences.quiet_hours, now)
    if scheduled_for is not None and scheduled_for > quiet_end:
        return DeliveryPlan(channels=channels, scheduled_for=scheduled_for)
    return DeliveryPlan(
        channels=channels, scheduled_for=quiet_end, deferred_for_quiet_hours=True
    )


def default_preferences(user_id: str) -> NotificationPreferences:
    return NotificationPreferences(user_id=user_id)


def apply_preferences_update(
    preferences: NotificationPreferences,
    update: PreferencesUpdate,
    *,
    now: datetime,
) -> NotificationPreferences:
    """Return a copy of ``preferences`` with the fields present in ``update``."""

    changes: dict[str, object] = {}
    provided = update.model_fields_set

    for flag in ("email_enabled", "push_enabled", "sms_enabled", "webhook_enabled", "slack_enabled"):
        value = getattr(update, flag)
        if flag in provided and value is not None:
            changes[flag] = value

    if "categories" in provided and update.categories is not None:
        categories = dict(preferences.categories)
        categories.update(update.categories)
        changes["categories"] = categories

    if "quiet_hours" in provided:
        quiet = update.quiet_hours
        changes["quiet_hours"] = (
            None
            if quiet is None
            else QuietHours(
                enabled=quiet.enabled,
                start=parse_clock_time(quiet.start),
                end=parse_clock_time(quiet.end),
                timezone=quiet.timezone,
            )
        )

    if "digest" in provided:
        digest = update.digest
        changes["digest"] = (
            None
            if digest is None
            else DigestSettings(
                enabled=digest.enabled,
                frequency=digest.frequency,
                delivery_time=parse_clock_time(digest.time),
            )
        )

    if "priority_threshold" in provided and update.priority_threshold is not None:
        changes["priority_threshold"] = update.priority_threshold

    return replace(preferences, updated_at=now, **changes)


class PreferenceResolver:
    """Load preferences lazily and compute effective delivery plans."""

    def __init__(
        self,
        store: PreferencesStore,
        *,
        clock: Callable[[], datetime] = now_in_app_timezone,
    ) -> None:
        self._store = store
        self._clock = clock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    async def load(self, user_id: str) -> NotificationPreferences:
        """Return stored preferences, persisting defaults on first lookup."""

        preferences = await self._store.get(user_id)
        if preferences is not None:
            return preferences
        async with self._lock_for(user_id):
            return await self._load_or_create(user_id)

    async def _load_or_create(self, user_id: str) -> NotificationPreferences:
        preferences = await self._store.get(user_id)
        if preferences is not None:
            return preferences

        logger.info("Creating default notification preferences for user %s", user_id)
        return await self._store.save(
            replace(default_preferences(user_id), updated_at=self._clock())
        )

    async def resolve_channels(
        self,
        user_id: str,
        requested: Iterable[NotificationChannel],
        category: NotificationCategory,
        priority: NotificationPriority,
    ) -> list[NotificationChannel]:
        preferences = await self.load(user_id)
        return filter_channels(preferences, requested, category=category, priority=priority)

    async def plan(
        self,
        user_id: str,
        *,
        requested: Iterable[NotificationChannel],
        category: NotificationCategory,
        priority: NotificationPriority,
        scheduled_for: datetime | None,
    ) -> DeliveryPlan:
        preferences = await self.load(user_id)
        return plan_delivery(
            preferences,
            requested=requested,
            category=category,
            priority=priority,
            scheduled_for=scheduled_for,
            now=self._clock(),
        )

    async def update(self, user_id: str, update: PreferencesUpdate) -> NotificationPreferences:
        async with self._lock_for(user_id):
            current = await self._load_or_create(user_id)
            updated = apply_preferences_update(current, update, now=self._clock())
            return await self._store.save(updated)

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock


__all__ = [
    "DeliveryPlan",
    "PreferenceResolver",
    "apply_preferences_update",
    "default_preferences",
    "filter_channels",
    "is_in_quiet_hours",
    "next_quiet_hours_end",
    "plan_delivery",
]
