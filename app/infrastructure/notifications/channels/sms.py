"""SMS delivery through Twilio."""

from __future__ import annotations

import logging

from anyio import to_thread
from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from app.application.use_cases.notifications.errors import ChannelDeliveryError
from app.domain.entities import NotificationChannel

logger = logging.getLogger(__name__)


class TwilioSmsSender:
    """Send text messages from a single Twilio number."""

    def __init__(self, account_sid: str, auth_token: str, from_number: str) -> None:
        self._client = Client(account_sid, auth_token)
        self._from_number = from_number

    async def __call__(self, to: str, text: str) -> None:
        await to_thread.run_sync(self._send, to, text)

    def _send(self, to: str, text: str) -> None:
        try:
            message = self._client.messages.create(body=text, from_=self._from_number, to=to)
        except TwilioException as exc:
            raise ChannelDeliveryError(NotificationChannel.SMS, str(exc)) from exc
        logger.debug("SMS %s queued for %s", message.sid, to)


__all__ = ["TwilioSmsSender"]
