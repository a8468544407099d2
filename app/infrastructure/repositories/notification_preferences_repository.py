"""Persistence helpers for notification preferences."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.domain.entities import (
    DigestSettings,
    NotificationCategory,
    NotificationPreferences,
    NotificationPriority,
    QuietHours,
)
from app.infrastructure.models import NotificationPreferencesModel
from app.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    format_clock_time,
    now_in_app_timezone,
    parse_clock_time,
)


class NotificationPreferencesRepository:
    """Load and upsert :class:`NotificationPreferences` rows."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> NotificationPreferences | None:
        model = self.session.get(NotificationPreferencesModel, user_id)
        return self._to_entity(model) if model else None

    def save(self, preferences: NotificationPreferences) -> NotificationPreferences:
        """Insert or update the row of ``preferences.user_id``.

        When another session inserts the same user first, the insert is rolled
        back and the values are applied to the row that won.
        """

        if preferences.updated_at is None:
            preferences.updated_at = now_in_app_timezone()
        model = self.session.get(NotificationPreferencesModel, preferences.user_id)
        if model is None:
            model = NotificationPreferencesModel(user_id=preferences.user_id)
            self._apply_entity_to_model(model, preferences)
            self.session.add(model)
            try:
                self.session.commit()
            except IntegrityError:
                self.session.rollback()
                model = self.session.get(NotificationPreferencesModel, preferences.user_id)
                if model is None:
                    raise
            else:
                self.session.refresh(model)
                return self._to_entity(model)

        self._apply_entity_to_model(model, preferences)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationPreferencesModel, preferences: NotificationPreferences
    ) -> None:
        model.email_enabled = preferences.email_enabled
        model.push_enabled = preferences.push_enabled
        model.sms_enabled = preferences.sms_enabled
        model.webhook_enabled = preferences.webhook_enabled
        model.slack_enabled = preferences.slack_enabled
        model.categories = {
            category.value: enabled for category, enabled in preferences.categories.items()
        }
        model.priority_threshold = preferences.priority_threshold.value
        model.updated_at = ensure_app_naive_datetime(preferences.updated_at)

        quiet_hours = preferences.quiet_hours
        if quiet_hours is None:
            model.quiet_hours_enabled = False
            model.quiet_hours_start = None
            model.quiet_hours_end = None
            model.quiet_hours_timezone = None
        else:
            model.quiet_hours_enabled = quiet_hours.enabled
            model.quiet_hours_start = format_clock_time(quiet_hours.start)
            model.quiet_hours_end = format_clock_time(quiet_hours.end)
            model.quiet_hours_timezone = quiet_hours.timezone

        digest = preferences.digest
        if digest is None:
            model.digest_enabled = False
            model.digest_frequency = None
            model.digest_time = None
        else:
            model.digest_enabled = digest.enabled
            model.digest_frequency = digest.frequency
            model.digest_time = format_clock_time(digest.delivery_time)

    @staticmethod
    def _to_entity(model: NotificationPreferencesModel) -> NotificationPreferences:
        categories = {category: True for category in NotificationCategory}
        for key, enabled in (model.categories or {}).items():
            try:
                categories[NotificationCategory(key)] = bool(enabled)
            except ValueError:
                continue

        quiet_hours = None
        if model.quiet_hours_start and model.quiet_hours_end:
            quiet_hours = QuietHours(
                start=parse_clock_time(model.quiet_hours_start),
                end=parse_clock_time(model.quiet_hours_end),
                enabled=bool(model.quiet_hours_enabled),
                timezone=model.quiet_hours_timezone or "UTC",
            )

        digest = None
        if model.digest_frequency:
            digest = DigestSettings(
                enabled=bool(model.digest_enabled),
                frequency=model.digest_frequency,
                delivery_time=parse_clock_time(model.digest_time or "09:00"),
            )

        return NotificationPreferences(
            user_id=model.user_id,
            email_enabled=bool(model.email_enabled),
            push_enabled=bool(model.push_enabled),
            sms_enabled=bool(model.sms_enabled),
            webhook_enabled=bool(model.webhook_enabled),
            slack_enabled=bool(model.slack_enabled),
            categories=categories,
            quiet_hours=quiet_hours,
            digest=digest,
            priority_threshold=NotificationPriority(model.priority_threshold),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["NotificationPreferencesRepository"]
