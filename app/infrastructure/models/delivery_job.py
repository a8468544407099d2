"""SQLAlchemy model for durable delayed delivery jobs."""

from sqlalchemy import Column, DateTime, Integer, String

from app.infrastructure.database import Base


class DeliveryJobModel(Base):
    __tablename__ = "delivery_job"

    key = Column(String(160), primary_key=True)
    notification_id = Column(String(32), nullable=False, index=True)
    kind = Column(String(20), nullable=False)
    channel = Column(String(20), nullable=True)
    attempt = Column(Integer, nullable=False, default=0)
    due_at = Column(DateTime(), nullable=False)


__all__ = ["DeliveryJobModel"]
