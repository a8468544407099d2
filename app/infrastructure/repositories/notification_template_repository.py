"""Persistence layer for notification templates."""

from __future__ import annotations

from collections.abc import Sequence
from uuid import uuid4

from sqlalchemy.orm import Session

from app.domain.entities import (
    NotificationCategory,
    NotificationChannel,
    NotificationPriority,
    NotificationTemplate,
    NotificationType,
)
from app.infrastructure.models import NotificationTemplateModel
from app.utils import ensure_app_naive_datetime, ensure_app_timezone, now_in_app_timezone


class NotificationTemplateRepository:
    """Provide CRUD operations for notification templates."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, *, active_only: bool = False) -> Sequence[NotificationTemplate]:
        query = self.session.query(NotificationTemplateModel)
        if active_only:
            query = query.filter(NotificationTemplateModel.active.is_(True))
        query = query.order_by(NotificationTemplateModel.name.asc())
        return [self._to_entity(model) for model in query.all()]

    def get(self, template_id: str) -> NotificationTemplate | None:
        model = self.session.get(NotificationTemplateModel, template_id)
        return self._to_entity(model) if model else None

    def create(self, template: NotificationTemplate) -> NotificationTemplate:
        if template.id is None:
            template.id = uuid4().hex
        if template.created_at is None:
            template.created_at = now_in_app_timezone()
        model = NotificationTemplateModel(id=template.id)
        self._apply_entity_to_model(model, template)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def save(self, template: NotificationTemplate) -> NotificationTemplate:
        if template.id is None:
            raise ValueError("Template id is required for updates")
        model = self.session.get(NotificationTemplateModel, template.id)
        if model is None:
            raise ValueError(f"Template with id {template.id} not found")
        self._apply_entity_to_model(model, template)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationTemplateModel, template: NotificationTemplate
    ) -> None:
        model.name = template.name
        model.type = template.type.value
        model.title_template = template.title_template
        model.message_template = template.message_template
        model.channels = [channel.value for channel in template.channels]
        model.priority = template.priority.value
        model.category = template.category.value
        model.variables = list(template.variables)
        model.active = template.active
        model.created_at = ensure_app_naive_datetime(template.created_at)

    @staticmethod
    def _to_entity(model: NotificationTemplateModel) -> NotificationTemplate:
        return NotificationTemplate(
            id=model.id,
            name=model.name,
            type=NotificationType(model.type),
            title_template=model.title_template,
            message_template=model.message_template,
            channels=[NotificationChannel(value) for value in model.channels or []],
            priority=NotificationPriority(model.priority),
            category=NotificationCategory(model.category),
            variables=list(model.variables or []),
            active=bool(model.active),
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["NotificationTemplateRepository"]
