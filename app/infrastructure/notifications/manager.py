"""Registry of live notification websockets keyed by user id."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, DefaultDict, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class NotificationConnectionManager:
    """Track the open sockets of each user and fan messages out to them.

    A user may hold several sockets at once (one per browser tab or device);
    every lifecycle push goes to all of them.
    """

    def __init__(self) -> None:
        self._sockets: DefaultDict[str, Set[WebSocket]] = defaultdict(set)

    @asynccontextmanager
    async def connection(self, user_id: str, websocket: WebSocket) -> AsyncIterator[WebSocket]:
        """Accept ``websocket`` for ``user_id`` and unregister it on exit."""

        await websocket.accept()
        self._sockets[user_id].add(websocket)
        logger.debug("User %s opened a notification socket (%d open)", user_id, self.connection_count(user_id))
        try:
            yield websocket
        finally:
            self._release(user_id, websocket)

    def _release(self, user_id: str, websocket: WebSocket) -> None:
        sockets = self._sockets.get(user_id)
        if not sockets:
            return
        sockets.discard(websocket)
        if not sockets:
            del self._sockets[user_id]

    def connection_count(self, user_id: str | None = None) -> int:
        if user_id is not None:
            return len(self._sockets.get(user_id, ()))
        return sum(len(sockets) for sockets in self._sockets.values())

    async def send_to_user(self, user_id: str, message: dict[str, Any]) -> int:
        """Send ``message`` to every socket of ``user_id``; return how many received it."""

        delivered = 0
        for websocket in list(self._sockets.get(user_id, ())):
            try:
                await websocket.send_json(message)
            except Exception:  # pragma: no cover - socket closed under us
                logger.debug("Dropping stale notification socket for user %s", user_id)
                self._release(user_id, websocket)
                continue
            delivered += 1
        return delivered

    async def close_all(self, code: int = 1001) -> None:
        """Close every registered socket, used when the service shuts down."""

        for user_id, sockets in list(self._sockets.items()):
            for websocket in list(sockets):
                try:
                    await websocket.close(code=code)
                except Exception:  # pragma: no cover - already closed by the peer
                    logger.debug("Notification socket for user %s was already closed", user_id)
        self._sockets.clear()


notification_manager = NotificationConnectionManager()


__all__ = ["NotificationConnectionManager", "notification_manager"]
