"""Endpoints for the caller's notification preferences."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from app.application.use_cases.notifications import NotificationValidationError
from app.application.use_cases.notifications.service import NotificationService
from app.domain.entities import NotificationPreferences
from app.interfaces.api.dependencies import get_current_user_id, get_notification_service
from app.interfaces.api.routes_helpers import to_http_exception
from app.interfaces.api.schemas import DigestRead, PreferencesRead, QuietHoursRead
from app.utils import format_clock_time

router = APIRouter(prefix="/notifications/preferences", tags=["notification preferences"])


def _preferences_to_schema(preferences: NotificationPreferences) -> PreferencesRead:
    quiet_hours = None
    if preferences.quiet_hours is not None:
        quiet_hours = QuietHoursRead(
            enabled=preferences.quiet_hours.enabled,
            start=format_clock_time(preferences.quiet_hours.start),
            end=format_clock_time(preferences.quiet_hours.end),
            timezone=preferences.quiet_hours.timezone,
        )
    digest = None
    if preferences.digest is not None:
        digest = DigestRead(
            enabled=preferences.digest.enabled,
            frequency=preferences.digest.frequency,
            time=format_clock_time(preferences.digest.delivery_time),
        )
    return PreferencesRead(
        user_id=preferences.user_id,
        email_enabled=preferences.email_enabled,
        push_enabled=preferences.push_enabled,
        sms_enabled=preferences.sms_enabled,
        webhook_enabled=preferences.webhook_enabled,
        slack_enabled=preferences.slack_enabled,
        categories=dict(preferences.categories),
        quiet_hours=quiet_hours,
        digest=digest,
        priority_threshold=preferences.priority_threshold,
        updated_at=preferences.updated_at,
    )


@router.get("", response_model=PreferencesRead)
async def get_preferences(
    user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> PreferencesRead:
    preferences = await service.get_preferences(user_id)
    return _preferences_to_schema(preferences)


@router.put("", response_model=PreferencesRead)
async def update_preferences(
    payload: dict[str, Any] = Body(...),
    user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> PreferencesRead:
    """Apply a partial update; keys that are absent keep their value."""

    try:
        preferences = await service.update_preferences(user_id, payload)
    except NotificationValidationError as exc:
        raise to_http_exception(exc) from exc
    return _preferences_to_schema(preferences)
