"""Tests for preference filtering, quiet hours and partial updates."""

import asyncio
from dataclasses import replace
from datetime import datetime, time, timezone

import pytest

from app.application.use_cases.notifications import (
    PreferenceResolver,
    filter_channels,
    is_in_quiet_hours,
    next_quiet_hours_end,
    validate_preferences_update,
)
from app.application.use_cases.notifications.preferences import plan_delivery
from app.domain.entities import (
    NotificationCategory,
    NotificationChannel,
    NotificationPreferences,
    NotificationPriority,
    QuietHours,
)
from tests.fakes import InMemoryPreferencesStore

NIGHT = QuietHours(start=time(22, 0), end=time(7, 0), enabled=True, timezone="UTC")


def _at(hour: int, minute: int = 0, day: int = 10) -> datetime:
    return datetime(2030, 3, day, hour, minute, tzinfo=timezone.utc)


def test_in_app_is_always_kept_and_disabled_channels_dropped():
    preferences = NotificationPreferences(user_id="u1", email_enabled=False)

    channels = filter_channels(
        preferences,
        [NotificationChannel.EMAIL, NotificationChannel.PUSH],
        category=NotificationCategory.ACADEMIC,
        priority=NotificationPriority.MEDIUM,
    )

    assert channels == [NotificationChannel.IN_APP, NotificationChannel.PUSH]


def test_disabled_category_limits_delivery_to_in_app():
    preferences = NotificationPreferences(user_id="u1")
    preferences.categories[NotificationCategory.SOCIAL] = False

    channels = filter_channels(
        preferences,
        [NotificationChannel.EMAIL],
        category=NotificationCategory.SOCIAL,
        priority=NotificationPriority.HIGH,
    )

    assert channels == [NotificationChannel.IN_APP]


def test_priority_below_threshold_limits_delivery_to_in_app():
    preferences = NotificationPreferences(
        user_id="u1", priority_threshold=NotificationPriority.HIGH
    )

    low = filter_channels(
        preferences,
        [NotificationChannel.EMAIL],
        category=NotificationCategory.SYSTEM,
        priority=NotificationPriority.MEDIUM,
    )
    high = filter_channels(
        preferences,
        [NotificationChannel.EMAIL],
        category=NotificationCategory.SYSTEM,
        priority=NotificationPriority.HIGH,
    )

    assert low == [NotificationChannel.IN_APP]
    assert high == [NotificationChannel.IN_APP, NotificationChannel.EMAIL]


@pytest.mark.parametrize(
    "moment, expected",
    [
        (_at(23, 30), True),
        (_at(3, 0), True),
        (_at(7, 0), False),
        (_at(12, 0), False),
        (_at(22, 0), True),
    ],
)
def test_overnight_window_wraps_midnight(moment, expected):
    assert is_in_quiet_hours(NIGHT, moment) is expected


def test_same_day_window():
    lunch = QuietHours(start=time(12, 0), end=time(13, 0), enabled=True)

    assert is_in_quiet_hours(lunch, _at(12, 30)) is True
    assert is_in_quiet_hours(lunch, _at(13, 0)) is False


def test_window_with_equal_bounds_is_empty():
    empty = QuietHours(start=time(8, 0), end=time(8, 0), enabled=True)

    assert is_in_quiet_hours(empty, _at(8, 0)) is False


def test_disabled_window_is_never_quiet():
    assert is_in_quiet_hours(replace(NIGHT, enabled=False), _at(23, 30)) is False
    assert is_in_quiet_hours(None, _at(23, 30)) is False


def test_window_is_evaluated_in_the_user_timezone():
    """22:00-07:00 in Lima is 03:00-12:00 UTC."""

    lima = replace(NIGHT, timezone="America/Lima")

    assert is_in_quiet_hours(lima, _at(4, 0)) is True
    assert is_in_quiet_hours(lima, _at(23, 30)) is False


def test_next_end_after_midnight_rolls_to_next_day():
    assert next_quiet_hours_end(NIGHT, _at(23, 30)) == _at(7, 0, day=11)


def test_next_end_before_morning_is_same_day():
    assert next_quiet_hours_end(NIGHT, _at(3, 0)) == _at(7, 0)


def test_plan_defers_medium_priority_during_quiet_hours():
    preferences = NotificationPreferences(user_id="u1", quiet_hours=NIGHT)

    plan = plan_delivery(
        preferences,
        requested=[NotificationChannel.IN_APP],
        category=NotificationCategory.SYSTEM,
        priority=NotificationPriority.MEDIUM,
        scheduled_for=None,
        now=_at(23, 30),
    )

    assert plan.deferred_for_quiet_hours is True
    assert plan.scheduled_for == _at(7, 0, day=11)


@pytest.mark.parametrize("priority", [NotificationPriority.CRITICAL, NotificationPriority.URGENT])
def test_plan_never_defers_critical_or_urgent(priority):
    preferences = NotificationPreferences(user_id="u1", quiet_hours=NIGHT)

    plan = plan_delivery(
        preferences,
        requested=[NotificationChannel.IN_APP],
        category=NotificationCategory.ALERT,
        priority=priority,
        scheduled_for=None,
        now=_at(23, 30),
    )

    assert plan.deferred_for_quiet_hours is False
    assert plan.scheduled_for is None


def test_plan_keeps_a_schedule_later_than_the_window_end():
    preferences = NotificationPreferences(user_id="u1", quiet_hours=NIGHT)
    requested = _at(9, 0, day=11)

    plan = plan_delivery(
        preferences,
        requested=[NotificationChannel.IN_APP],
        category=NotificationCategory.SYSTEM,
        priority=NotificationPriority.LOW,
        scheduled_for=requested,
        now=_at(23, 30),
    )

    assert plan.scheduled_for == requested
    assert plan.deferred_for_quiet_hours is False


@pytest.mark.anyio
async def test_resolver_persists_defaults_on_first_lookup():
    store = InMemoryPreferencesStore()
    resolver = PreferenceResolver(store, clock=lambda: _at(12, 0))

    preferences = await resolver.load("u1")

    assert preferences.email_enabled is True
    assert preferences.sms_enabled is False
    assert preferences.updated_at == _at(12, 0)
    assert "u1" in store.records


@pytest.mark.anyio
async def test_concurrent_first_lookups_create_defaults_once():
    store = InMemoryPreferencesStore()
    resolver = PreferenceResolver(store, clock=lambda: _at(12, 0))

    loaded = await asyncio.gather(*(resolver.load("u1") for _ in range(5)))

    assert store.saves == ["u1"]
    assert all(preferences.user_id == "u1" for preferences in loaded)


@pytest.mark.anyio
async def test_partial_update_keeps_absent_fields():
    store = InMemoryPreferencesStore()
    resolver = PreferenceResolver(store, clock=lambda: _at(12, 0))
    await resolver.load("u1")

    updated = await resolver.update(
        "u1",
        validate_preferences_update(
            {
                "smsEnabled": True,
                "categories": {"social": False},
                "quietHours": {"enabled": True, "start": "22:00", "end": "07:00"},
            }
        ),
    )

    assert updated.sms_enabled is True
    assert updated.email_enabled is True
    assert updated.categories[NotificationCategory.SOCIAL] is False
    assert updated.categories[NotificationCategory.ACADEMIC] is True
    assert updated.quiet_hours == QuietHours(
        start=time(22, 0), end=time(7, 0), enabled=True, timezone="UTC"
    )
    assert store.records["u1"].sms_enabled is True
