"""Push delivery through Firebase Cloud Messaging."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

import firebase_admin
from anyio import to_thread
from firebase_admin import credentials, messaging
from firebase_admin.exceptions import FirebaseError

from app.application.use_cases.notifications.errors import ChannelDeliveryError
from app.domain.entities import NotificationChannel

logger = logging.getLogger(__name__)

TokenLookup = Callable[[str], Awaitable[str | None]]


def initialize_firebase(credentials_path: str | None) -> firebase_admin.App:
    """Return the default Firebase app, creating it on first use."""

    try:
        return firebase_admin.get_app()
    except ValueError:
        pass
    if credentials_path:
        return firebase_admin.initialize_app(credentials.Certificate(credentials_path))
    return firebase_admin.initialize_app()


class FirebasePushSender:
    """Send a push message to the device token registered for a user."""

    def __init__(self, token_lookup: TokenLookup, app: firebase_admin.App | None = None) -> None:
        self._token_lookup = token_lookup
        self._app = app

    async def __call__(self, user_id: str, title: str, body: str, url: str | None) -> None:
        token = await self._token_lookup(user_id)
        if not token:
            raise ChannelDeliveryError(
                NotificationChannel.PUSH, f"No push token registered for user {user_id}"
            )

        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            data={"url": url or ""},
            token=token,
        )
        try:
            message_id = await to_thread.run_sync(self._send, message)
        except (FirebaseError, ValueError) as exc:
            raise ChannelDeliveryError(NotificationChannel.PUSH, str(exc)) from exc
        logger.debug("Push message %s sent to user %s", message_id, user_id)

    def _send(self, message: messaging.Message) -> str:
        return messaging.send(message, app=self._app)


__all__ = ["FirebasePushSender", "TokenLookup", "initialize_firebase"]
