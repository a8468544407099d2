"""Persistence helpers for delayed delivery jobs."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from app.domain.entities import DeliveryJob, DeliveryJobKind, NotificationChannel
from app.infrastructure.models import DeliveryJobModel
from app.utils import ensure_app_naive_datetime, ensure_app_timezone


class DeliveryJobRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def save(self, job: DeliveryJob) -> None:
        model = self.session.get(DeliveryJobModel, job.key)
        if model is None:
            model = DeliveryJobModel(key=job.key)
        model.notification_id = job.notification_id
        model.kind = job.kind.value
        model.channel = job.channel.value if job.channel else None
        model.attempt = job.attempt
        model.due_at = ensure_app_naive_datetime(job.due_at)
        self.session.add(model)
        self.session.commit()

    def delete(self, key: str) -> None:
        self.session.query(DeliveryJobModel).filter(DeliveryJobModel.key == key).delete(
            synchronize_session=False
        )
        self.session.commit()

    def list_all(self) -> Sequence[DeliveryJob]:
        query = self.session.query(DeliveryJobModel).order_by(
            DeliveryJobModel.due_at.asc(), DeliveryJobModel.key.asc()
        )
        return [self._to_entity(model) for model in query.all()]

    @staticmethod
    def _to_entity(model: DeliveryJobModel) -> DeliveryJob:
        return DeliveryJob(
            key=model.key,
            notification_id=model.notification_id,
            kind=DeliveryJobKind(model.kind),
            due_at=ensure_app_timezone(model.due_at),
            channel=NotificationChannel(model.channel) if model.channel else None,
            attempt=model.attempt or 0,
        )


__all__ = ["DeliveryJobRepository"]
