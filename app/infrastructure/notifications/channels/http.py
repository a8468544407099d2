"""Outgoing HTTP deliveries: user webhooks and Slack incoming webhooks."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.application.use_cases.notifications.errors import ChannelDeliveryError
from app.domain.entities import NotificationChannel

logger = logging.getLogger(__name__)


async def _post_json(
    client: httpx.AsyncClient,
    channel: NotificationChannel,
    url: str,
    payload: dict[str, Any],
) -> None:
    try:
        response = await client.post(url, json=payload)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise ChannelDeliveryError(
            channel, f"{url} responded with status {exc.response.status_code}"
        ) from exc
    except httpx.HTTPError as exc:
        raise ChannelDeliveryError(channel, f"{url} request failed: {exc}") from exc
    logger.debug("%s delivery to %s answered %s", channel.value, url, response.status_code)


class HttpWebhookSender:
    """POST notification payloads to subscriber endpoints."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def __call__(self, url: str, payload: dict[str, Any]) -> None:
        await _post_json(self._client, NotificationChannel.WEBHOOK, url, payload)


class SlackChatSender:
    """Post plain text messages to a Slack incoming webhook."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def __call__(self, webhook_url: str, text: str) -> None:
        await _post_json(self._client, NotificationChannel.SLACK, webhook_url, {"text": text})


__all__ = ["HttpWebhookSender", "SlackChatSender"]
