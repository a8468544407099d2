"""Sender interfaces used by the channel dispatcher."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


class EmailSender(Protocol):
    async def __call__(self, to: str, subject: str, html: str) -> None: ...


class SmsSender(Protocol):
    async def __call__(self, to: str, text: str) -> None: ...


class PushSender(Protocol):
    async def __call__(self, user_id: str, title: str, body: str, url: str | None) -> None: ...


class WebhookSender(Protocol):
    async def __call__(self, url: str, payload: dict[str, Any]) -> None: ...


class ChatSender(Protocol):
    async def __call__(self, webhook_url: str, text: str) -> None: ...


@dataclass
class ChannelSenders:
    """Transport adapters available to the dispatcher; ``None`` means unconfigured."""

    email: EmailSender | None = None
    sms: SmsSender | None = None
    push: PushSender | None = None
    webhook: WebhookSender | None = None
    chat: ChatSender | None = None


__all__ = [
    "ChannelSenders",
    "ChatSender",
    "EmailSender",
    "PushSender",
    "SmsSender",
    "WebhookSender",
]
