"""Typed in-process publish/subscribe for notification lifecycle events."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, DefaultDict, TypeVar

from app.domain.entities import NOTIFICATION_EVENT_TYPES, NotificationEvent

logger = logging.getLogger(__name__)

E = TypeVar("E")
EventHandler = Callable[[E], Any]


class NotificationEventBus:
    """Fan lifecycle events out to subscribers without waiting on them.

    Only the event classes in :data:`NOTIFICATION_EVENT_TYPES` can be
    subscribed to or published. Coroutine handlers are scheduled as tasks on
    the running loop. Handler failures are logged and never reach publishers.
    """

    def __init__(self) -> None:
        self._handlers: DefaultDict[type, list[Callable[[Any], Any]]] = defaultdict(list)
        self._tasks: set[asyncio.Task[Any]] = set()

    def subscribe(self, event_type: type[E], handler: EventHandler[E]) -> Callable[[], None]:
        """Register ``handler`` for ``event_type`` and return an unsubscribe callable."""

        self._ensure_known(event_type)
        self._handlers[event_type].append(handler)

        def _unsubscribe() -> None:
            handlers = self._handlers.get(event_type)
            if handlers and handler in handlers:
                handlers.remove(handler)

        return _unsubscribe

    def publish(self, event: NotificationEvent) -> None:
        """Deliver ``event`` to every handler registered for its type."""

        event_type = type(event)
        self._ensure_known(event_type)
        for handler in list(self._handlers.get(event_type, ())):
            try:
                result = handler(event)
            except Exception:
                logger.exception("Notification event handler failed for %s", event_type.__name__)
                continue
            if inspect.isawaitable(result):
                self._spawn(result, event_type.__name__)

    @property
    def busy(self) -> bool:
        return bool(self._tasks)

    async def wait_idle(self) -> None:
        """Wait until every scheduled async handler finished."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, awaitable: Awaitable[Any], event_name: str) -> None:
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)

        def _done(finished: asyncio.Task[Any]) -> None:
            self._tasks.discard(finished)
            if finished.cancelled():
                return
            error = finished.exception()
            if error is not None:
                logger.error(
                    "Async notification event handler failed for %s: %s", event_name, error
                )

        task.add_done_callback(_done)

    @staticmethod
    def _ensure_known(event_type: type) -> None:
        if event_type not in NOTIFICATION_EVENT_TYPES:
            raise TypeError(f"{event_type.__name__} is not a notification lifecycle event")


__all__ = ["EventHandler", "NotificationEventBus"]
