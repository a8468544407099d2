"""SQLAlchemy model for notification templates."""

from sqlalchemy import JSON, Boolean, Column, DateTime, String, Text

from app.infrastructure.database import Base


class NotificationTemplateModel(Base):
    __tablename__ = "notification_template"

    id = Column(String(32), primary_key=True)
    name = Column(String(120), nullable=False, unique=True)
    type = Column(String(40), nullable=False)
    title_template = Column(String(200), nullable=False)
    message_template = Column(Text, nullable=False)
    channels = Column(JSON, nullable=False, default=list)
    priority = Column(String(20), nullable=False)
    category = Column(String(40), nullable=False)
    variables = Column(JSON, nullable=False, default=list)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(), nullable=False)


__all__ = ["NotificationTemplateModel"]
