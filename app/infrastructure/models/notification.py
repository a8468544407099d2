"""SQLAlchemy model for persisted notifications."""

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, String, Text

from app.infrastructure.database import Base


class NotificationModel(Base):
    """Database representation for user notifications."""

    __tablename__ = "notification"
    __table_args__ = (Index("ix_notification_user_created", "user_id", "created_at"),)

    id = Column(String(32), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    tenant_id = Column(String(64), nullable=True, index=True)
    type = Column(String(40), nullable=False)
    category = Column(String(40), nullable=False)
    priority = Column(String(20), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    action_url = Column(String(500), nullable=True)
    channels = Column(JSON, nullable=False, default=list)
    delivery_status = Column(JSON, nullable=False, default=dict)
    status = Column(String(20), nullable=False, index=True)
    # ``metadata`` is reserved on declarative classes.
    meta = Column("metadata", JSON, nullable=False, default=dict)
    attachments = Column(JSON, nullable=False, default=list)
    actions = Column(JSON, nullable=False, default=list)
    template_id = Column(String(32), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False, index=True)
    read_at = Column(DateTime(), nullable=True)
    expires_at = Column(DateTime(), nullable=True)
    scheduled_for = Column(DateTime(), nullable=True)
    sent_at = Column(DateTime(), nullable=True)
    delivered_at = Column(DateTime(), nullable=True)
    created_at = Column(DateTime(), nullable=False)


__all__ = ["NotificationModel"]
