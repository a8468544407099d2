"""ORM models used by the application infrastructure."""

from .delivery_job import DeliveryJobModel
from .notification import NotificationModel
from .notification_preferences import NotificationPreferencesModel
from .notification_template import NotificationTemplateModel
from .recipient import RecipientModel, WebhookSubscriptionModel

__all__ = [
    "DeliveryJobModel",
    "NotificationModel",
    "NotificationPreferencesModel",
    "NotificationTemplateModel",
    "RecipientModel",
    "WebhookSubscriptionModel",
]
