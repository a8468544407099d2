"""SQLAlchemy model for per-user notification preferences."""

from sqlalchemy import JSON, Boolean, Column, DateTime, String

from app.infrastructure.database import Base


class NotificationPreferencesModel(Base):
    """One row per user; missing rows mean default preferences."""

    __tablename__ = "notification_preferences"

    user_id = Column(String(64), primary_key=True)
    email_enabled = Column(Boolean, nullable=False, default=True)
    push_enabled = Column(Boolean, nullable=False, default=True)
    sms_enabled = Column(Boolean, nullable=False, default=False)
    webhook_enabled = Column(Boolean, nullable=False, default=False)
    slack_enabled = Column(Boolean, nullable=False, default=False)
    categories = Column(JSON, nullable=False, default=dict)
    quiet_hours_enabled = Column(Boolean, nullable=False, default=False)
    quiet_hours_start = Column(String(5), nullable=True)
    quiet_hours_end = Column(String(5), nullable=True)
    quiet_hours_timezone = Column(String(64), nullable=True)
    digest_enabled = Column(Boolean, nullable=False, default=False)
    digest_frequency = Column(String(10), nullable=True)
    digest_time = Column(String(5), nullable=True)
    priority_threshold = Column(String(20), nullable=False, default="low")
    updated_at = Column(DateTime(), nullable=True)


__all__ = ["NotificationPreferencesModel"]
