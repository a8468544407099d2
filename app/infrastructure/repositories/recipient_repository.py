"""Persistence helpers for recipients and their webhook subscriptions."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from app.domain.entities import Recipient
from app.infrastructure.models import RecipientModel, WebhookSubscriptionModel
from app.utils import ensure_app_naive_datetime, now_in_app_timezone


class RecipientRepository:
    """Look up contact data used by the rich delivery channels."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> Recipient | None:
        model = self.session.get(RecipientModel, user_id)
        return self._to_entity(model) if model else None

    def list_user_ids(self, *, tenant_id: str | None = None) -> Sequence[str]:
        query = self.session.query(RecipientModel.id).filter(RecipientModel.is_active.is_(True))
        if tenant_id is not None:
            query = query.filter(RecipientModel.tenant_id == tenant_id)
        return [row.id for row in query.order_by(RecipientModel.id.asc()).all()]

    def list_webhook_urls(self, user_id: str) -> Sequence[str]:
        query = (
            self.session.query(WebhookSubscriptionModel.url)
            .filter(WebhookSubscriptionModel.user_id == user_id)
            .filter(WebhookSubscriptionModel.active.is_(True))
            .order_by(WebhookSubscriptionModel.id.asc())
        )
        return [row.url for row in query.all()]

    def save(self, recipient: Recipient) -> Recipient:
        model = self.session.get(RecipientModel, recipient.id)
        if model is None:
            model = RecipientModel(id=recipient.id)
        model.name = recipient.name
        model.email = recipient.email
        model.phone = recipient.phone
        model.push_token = recipient.push_token
        model.tenant_id = recipient.tenant_id
        model.is_active = recipient.is_active
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def add_webhook(self, user_id: str, url: str) -> None:
        if self.session.get(RecipientModel, user_id) is None:
            raise ValueError(f"Recipient with id {user_id} not found")
        self.session.add(
            WebhookSubscriptionModel(
                user_id=user_id,
                url=url,
                active=True,
                created_at=ensure_app_naive_datetime(now_in_app_timezone()),
            )
        )
        self.session.commit()

    @staticmethod
    def _to_entity(model: RecipientModel) -> Recipient:
        return Recipient(
            id=model.id,
            name=model.name,
            email=model.email,
            phone=model.phone,
            push_token=model.push_token,
            tenant_id=model.tenant_id,
            is_active=bool(model.is_active),
        )


__all__ = ["RecipientRepository"]
