"""SQLAlchemy models for notification recipients and their webhooks."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.infrastructure.database import Base


class RecipientModel(Base):
    """Contact data of a user that can be notified."""

    __tablename__ = "recipient"

    id = Column(String(64), primary_key=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    push_token = Column(String(255), nullable=True)
    tenant_id = Column(String(64), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)

    webhooks = relationship(
        "WebhookSubscriptionModel",
        back_populates="recipient",
        cascade="all, delete-orphan",
    )


class WebhookSubscriptionModel(Base):
    """Endpoint that receives a POST for every webhook-channel notification."""

    __tablename__ = "webhook_subscription"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), ForeignKey("recipient.id"), nullable=False, index=True)
    url = Column(String(500), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(), nullable=True)

    recipient = relationship("RecipientModel", back_populates="webhooks")


__all__ = ["RecipientModel", "WebhookSubscriptionModel"]
