"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy.orm import Query, Session

from app.application.use_cases.notifications.ports import NotificationFilter
from app.domain.entities import (
    ChannelDelivery,
    DeliveryState,
    Notification,
    NotificationAction,
    NotificationAttachment,
    NotificationCategory,
    NotificationChannel,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
)
from app.infrastructure.models import NotificationModel
from app.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    isoformat_or_none,
    now_in_app_timezone,
)


class NotificationRepository:
    """Provide CRUD operations for :class:`Notification` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, notification_id: str) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model else None

    def query(
        self,
        filters: NotificationFilter,
        *,
        offset: int = 0,
        limit: int | None = 50,
    ) -> Sequence[Notification]:
        query = self._filtered(filters).order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def count(self, filters: NotificationFilter) -> int:
        return self._filtered(filters).count()

    def create(self, notification: Notification) -> Notification:
        if notification.id is None:
            notification.id = uuid4().hex
        model = NotificationModel(id=notification.id)
        self._apply_entity_to_model(model, notification, include_creation_fields=True)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, notification: Notification) -> Notification:
        if notification.id is None:
            raise ValueError("Notification id is required for updates")
        model = self.session.get(NotificationModel, notification.id)
        if model is None:
            msg = f"Notification with id {notification.id} not found"
            raise ValueError(msg)
        self._apply_entity_to_model(model, notification, include_creation_fields=False)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def delete(self, notification_id: str) -> bool:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            return False
        self.session.delete(model)
        self.session.commit()
        return True

    def _filtered(self, filters: NotificationFilter) -> Query:
        query = self.session.query(NotificationModel)
        if filters.user_id is not None:
            query = query.filter(NotificationModel.user_id == filters.user_id)
        if filters.tenant_id is not None:
            query = query.filter(NotificationModel.tenant_id == filters.tenant_id)
        if filters.is_read is not None:
            query = query.filter(NotificationModel.is_read == filters.is_read)
        if filters.category is not None:
            query = query.filter(NotificationModel.category == filters.category.value)
        if filters.status is not None:
            query = query.filter(NotificationModel.status == filters.status.value)
        return query

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationModel,
        notification: Notification,
        *,
        include_creation_fields: bool,
    ) -> None:
        if include_creation_fields:
            model.created_at = (
                ensure_app_naive_datetime(notification.created_at)
                or ensure_app_naive_datetime(now_in_app_timezone())
            )
            model.user_id = notification.user_id
            model.tenant_id = notification.tenant_id
        model.type = notification.type.value
        model.category = notification.category.value
        model.priority = notification.priority.value
        model.title = notification.title
        model.message = notification.message
        model.action_url = notification.action_url
        model.channels = [channel.value for channel in notification.channels]
        model.delivery_status = {
            channel.value: _delivery_to_json(delivery)
            for channel, delivery in notification.delivery_status.items()
        }
        model.status = notification.status.value
        model.meta = dict(notification.metadata or {})
        model.attachments = [
            {"url": item.url, "name": item.name, "type": item.type}
            for item in notification.attachments
        ]
        model.actions = [
            {"label": item.label, "url": item.url, "type": item.type}
            for item in notification.actions
        ]
        model.template_id = notification.template_id
        model.is_read = notification.is_read
        model.read_at = ensure_app_naive_datetime(notification.read_at)
        model.expires_at = ensure_app_naive_datetime(notification.expires_at)
        model.scheduled_for = ensure_app_naive_datetime(notification.scheduled_for)
        model.sent_at = ensure_app_naive_datetime(notification.sent_at)
        model.delivered_at = ensure_app_naive_datetime(notification.delivered_at)

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            user_id=model.user_id,
            tenant_id=model.tenant_id,
            type=NotificationType(model.type),
            category=NotificationCategory(model.category),
            priority=NotificationPriority(model.priority),
            title=model.title,
            message=model.message,
            action_url=model.action_url,
            channels=[NotificationChannel(value) for value in model.channels or []],
            delivery_status={
                NotificationChannel(channel): _delivery_from_json(data)
                for channel, data in (model.delivery_status or {}).items()
            },
            status=NotificationStatus(model.status),
            metadata=dict(model.meta or {}),
            attachments=[NotificationAttachment(**item) for item in model.attachments or []],
            actions=[NotificationAction(**item) for item in model.actions or []],
            template_id=model.template_id,
            is_read=bool(model.is_read),
            read_at=ensure_app_timezone(model.read_at),
            expires_at=ensure_app_timezone(model.expires_at),
            scheduled_for=ensure_app_timezone(model.scheduled_for),
            sent_at=ensure_app_timezone(model.sent_at),
            delivered_at=ensure_app_timezone(model.delivered_at),
            created_at=ensure_app_timezone(model.created_at),
        )


def _delivery_to_json(delivery: ChannelDelivery) -> dict[str, Any]:
    return {
        "status": delivery.status.value,
        "attempts": delivery.attempts,
        "last_attempt": isoformat_or_none(delivery.last_attempt),
        "error": delivery.error,
        "completed_targets": list(delivery.completed_targets),
    }


def _delivery_from_json(data: dict[str, Any]) -> ChannelDelivery:
    last_attempt = data.get("last_attempt")
    return ChannelDelivery(
        status=DeliveryState(data.get("status", DeliveryState.PENDING.value)),
        attempts=int(data.get("attempts", 0)),
        last_attempt=ensure_app_timezone(datetime.fromisoformat(last_attempt))
        if last_attempt
        else None,
        error=data.get("error"),
        completed_targets=list(data.get("completed_targets") or []),
    )


__all__ = ["NotificationRepository"]
