"""Repository implementations for infrastructure layer."""

from .delivery_job_repository import DeliveryJobRepository
from .notification_preferences_repository import NotificationPreferencesRepository
from .notification_repository import NotificationRepository
from .notification_template_repository import NotificationTemplateRepository
from .recipient_repository import RecipientRepository

__all__ = [
    "DeliveryJobRepository",
    "NotificationPreferencesRepository",
    "NotificationRepository",
    "NotificationTemplateRepository",
    "RecipientRepository",
]
