"""Batched fan-out of one notification request to many recipients."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any
from uuid import uuid4

from app.domain.entities import BulkError, BulkResult, Notification

from .validators import NotificationRequest, validate_notification_request

logger = logging.getLogger(__name__)

SendFunction = Callable[[NotificationRequest], Awaitable[Notification]]


class BulkNotificationSender:
    """Send a shared request to ``user_ids`` in fixed-size concurrent batches.

    The request is validated once before anything is sent, so malformed
    payloads and invalid batch settings raise instead of producing a result.
    Failures for individual users are collected in the :class:`BulkResult`.
    """

    def __init__(self, send: SendFunction, *, batch_size: int = 50, delay_ms: int = 100) -> None:
        self._send = send
        self.batch_size = batch_size
        self.delay_ms = delay_ms

    async def send(
        self,
        user_ids: Sequence[str],
        request: Mapping[str, Any] | NotificationRequest,
        *,
        batch_size: int | None = None,
        delay_ms: int | None = None,
    ) -> BulkResult:
        size = self.batch_size if batch_size is None else batch_size
        delay = self.delay_ms if delay_ms is None else delay_ms
        if size <= 0:
            raise ValueError("batch_size must be a positive integer")
        if delay < 0:
            raise ValueError("delay_ms must not be negative")

        recipients = list(user_ids)
        result = BulkResult(total=len(recipients), pending=len(recipients), job_id=f"bulk-{uuid4().hex}")
        if not recipients:
            return result

        template = validate_notification_request(request, user_id=recipients[0])
        logger.info(
            "Starting bulk job %s for %s recipients in batches of %s",
            result.job_id,
            result.total,
            size,
        )

        for start in range(0, len(recipients), size):
            batch = recipients[start : start + size]
            outcomes = await asyncio.gather(
                *(self._send(template.model_copy(update={"user_id": user_id})) for user_id in batch),
                return_exceptions=True,
            )
            for user_id, outcome in zip(batch, outcomes):
                result.pending -= 1
                if isinstance(outcome, BaseException):
                    if not isinstance(outcome, Exception):
                        raise outcome
                    result.failed += 1
                    result.errors.append(BulkError(user_id=user_id, error=str(outcome)))
                else:
                    result.success += 1

            if start + size < len(recipients) and delay > 0:
                await asyncio.sleep(delay / 1000)

        logger.info(
            "Bulk job %s finished: %s sent, %s failed",
            result.job_id,
            result.success,
            result.failed,
        )
        return result


__all__ = ["BulkNotificationSender", "SendFunction"]
