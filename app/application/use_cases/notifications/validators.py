"""Validation and defaulting of inbound notification requests."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from app.domain.entities import (
    NotificationCategory,
    NotificationChannel,
    NotificationPriority,
    NotificationType,
)
from app.utils import ensure_app_timezone

from .errors import NotificationValidationError

TITLE_MAX_LENGTH = 200
MESSAGE_MAX_LENGTH = 2000
CLOCK_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"


def _dedupe_channels(channels: list[NotificationChannel]) -> list[NotificationChannel]:
    unique: list[NotificationChannel] = []
    for channel in channels:
        if channel not in unique:
            unique.append(channel)
    return unique


class _RequestModel(BaseModel):
    """Accept both camelCase and snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class AttachmentInput(_RequestModel):
    url: HttpUrl
    name: str = Field(min_length=1)
    type: str = Field(min_length=1)


class ActionInput(_RequestModel):
    label: str = Field(min_length=1)
    url: str = Field(min_length=1)
    type: Literal["primary", "secondary", "danger"] = "primary"


class NotificationRequest(_RequestModel):
    """Normalized ``send`` request with every default applied."""

    user_id: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    message: str = Field(min_length=1, max_length=MESSAGE_MAX_LENGTH)
    type: NotificationType
    action_url: str | None = None
    priority: NotificationPriority = NotificationPriority.MEDIUM
    channels: list[NotificationChannel] = Field(
        default_factory=lambda: [NotificationChannel.IN_APP], min_length=1
    )
    category: NotificationCategory = NotificationCategory.SYSTEM
    metadata: dict[str, Any] = Field(default_factory=dict)
    tenant_id: str | None = None
    expires_at: datetime | None = None
    scheduled_for: datetime | None = None
    template_id: str | None = None
    template_data: dict[str, Any] | None = None
    attachments: list[AttachmentInput] = Field(default_factory=list)
    actions: list[ActionInput] = Field(default_factory=list)

    @field_validator("channels")
    @classmethod
    def _unique_channels(cls, value: list[NotificationChannel]) -> list[NotificationChannel]:
        return _dedupe_channels(value)

    @field_validator("expires_at", "scheduled_for")
    @classmethod
    def _localize(cls, value: datetime | None) -> datetime | None:
        return ensure_app_timezone(value)


class TemplateDefinition(_RequestModel):
    """Payload used to register a reusable notification template."""

    name: str = Field(min_length=1, max_length=120)
    type: NotificationType
    title_template: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    message_template: str = Field(min_length=1, max_length=MESSAGE_MAX_LENGTH)
    channels: list[NotificationChannel] = Field(
        default_factory=lambda: [NotificationChannel.IN_APP], min_length=1
    )
    priority: NotificationPriority = NotificationPriority.MEDIUM
    category: NotificationCategory = NotificationCategory.SYSTEM
    variables: list[str] | None = None
    active: bool = True

    @field_validator("channels")
    @classmethod
    def _unique_channels(cls, value: list[NotificationChannel]) -> list[NotificationChannel]:
        return _dedupe_channels(value)


class QuietHoursInput(_RequestModel):
    enabled: bool = False
    start: str = Field(pattern=CLOCK_PATTERN)
    end: str = Field(pattern=CLOCK_PATTERN)
    timezone: str = Field(default="UTC", min_length=1)


class DigestInput(_RequestModel):
    enabled: bool = False
    frequency: Literal["daily", "weekly", "monthly"] = "daily"
    time: str = Field(default="09:00", pattern=CLOCK_PATTERN)


class PreferencesUpdate(_RequestModel):
    """Partial preference update; only the keys present in the payload apply."""

    email_enabled: bool | None = None
    push_enabled: bool | None = None
    sms_enabled: bool | None = None
    webhook_enabled: bool | None = None
    slack_enabled: bool | None = None
    categories: dict[NotificationCategory, bool] | None = None
    quiet_hours: QuietHoursInput | None = None
    digest: DigestInput | None = None
    priority_threshold: NotificationPriority | None = None


def validate_notification_request(
    raw: Mapping[str, Any] | NotificationRequest,
    *,
    user_id: str | None = None,
) -> NotificationRequest:
    """Return a validated :class:`NotificationRequest` or raise.

    ``user_id`` overrides whatever recipient the payload names, which lets a
    single bulk payload be validated once per recipient.
    """

    if isinstance(raw, NotificationRequest):
        if user_id is None:
            return raw
        payload: dict[str, Any] = raw.model_dump(mode="json", by_alias=True)
    else:
        payload = dict(raw)

    if user_id is not None:
        payload.pop("user_id", None)
        payload["userId"] = user_id

    try:
        return NotificationRequest.model_validate(payload)
    except ValidationError as exc:
        raise _first_error(exc) from exc


def validate_template_definition(raw: Mapping[str, Any] | TemplateDefinition) -> TemplateDefinition:
    if isinstance(raw, TemplateDefinition):
        return raw
    try:
        return TemplateDefinition.model_validate(dict(raw))
    except ValidationError as exc:
        raise _first_error(exc) from exc


def validate_preferences_update(raw: Mapping[str, Any] | PreferencesUpdate) -> PreferencesUpdate:
    """Validate a partial preferences payload."""

    if isinstance(raw, PreferencesUpdate):
        return raw
    try:
        return PreferencesUpdate.model_validate(dict(raw))
    except ValidationError as exc:
        raise _first_error(exc) from exc


def _first_error(exc: ValidationError) -> NotificationValidationError:
    errors = exc.errors()
    if not errors:  # pragma: no cover - pydantic always reports at least one error
        return NotificationValidationError("request", str(exc))
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "request"
    return NotificationValidationError(field, first.get("msg", "Invalid value"))


__all__ = [
    "ActionInput",
    "AttachmentInput",
    "DigestInput",
    "MESSAGE_MAX_LENGTH",
    "NotificationRequest",
    "PreferencesUpdate",
    "QuietHoursInput",
    "TITLE_MAX_LENGTH",
    "TemplateDefinition",
    "validate_notification_request",
    "validate_preferences_update",
    "validate_template_definition",
]
