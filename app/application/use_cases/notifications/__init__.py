"""Notification delivery use cases.

The engine facade lives in :mod:`app.application.use_cases.notifications.service`.
"""

from .bulk import BulkNotificationSender
from .errors import (
    ChannelDeliveryError,
    NoChannelsAllowedError,
    NotificationError,
    NotificationNotFoundError,
    NotificationValidationError,
    TemplateNotFoundError,
    TerminalChannelFailure,
)
from .ports import NotificationFilter
from .preferences import (
    DeliveryPlan,
    PreferenceResolver,
    filter_channels,
    is_in_quiet_hours,
    next_quiet_hours_end,
)
from .templates import render_template
from .validators import (
    NotificationRequest,
    PreferencesUpdate,
    TemplateDefinition,
    validate_notification_request,
    validate_preferences_update,
    validate_template_definition,
)

__all__ = [
    "BulkNotificationSender",
    "ChannelDeliveryError",
    "DeliveryPlan",
    "NoChannelsAllowedError",
    "NotificationError",
    "NotificationFilter",
    "NotificationNotFoundError",
    "NotificationRequest",
    "NotificationValidationError",
    "PreferenceResolver",
    "PreferencesUpdate",
    "TemplateDefinition",
    "TemplateNotFoundError",
    "TerminalChannelFailure",
    "filter_channels",
    "is_in_quiet_hours",
    "next_quiet_hours_end",
    "render_template",
    "validate_notification_request",
    "validate_preferences_update",
    "validate_template_definition",
]
