from .notification import (
    BroadcastRequest,
    BulkErrorRead,
    BulkResultRead,
    BulkSendRequest,
    ChannelDeliveryRead,
    MarkAllReadResponse,
    NotificationActionRead,
    NotificationAttachmentRead,
    NotificationPageRead,
    NotificationRead,
    UnreadCountRead,
)
from .notification_template import (
    NotificationTemplateRead,
    NotificationTemplateSendRequest,
    NotificationTemplateStatusUpdate,
)
from .preferences import DigestRead, PreferencesRead, QuietHoursRead

__all__ = [
    "BroadcastRequest",
    "BulkErrorRead",
    "BulkResultRead",
    "BulkSendRequest",
    "ChannelDeliveryRead",
    "DigestRead",
    "MarkAllReadResponse",
    "NotificationActionRead",
    "NotificationAttachmentRead",
    "NotificationPageRead",
    "NotificationRead",
    "NotificationTemplateRead",
    "NotificationTemplateSendRequest",
    "NotificationTemplateStatusUpdate",
    "PreferencesRead",
    "QuietHoursRead",
    "UnreadCountRead",
]
