"""Immediate and deferred dispatch of notifications backed by durable jobs."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from functools import partial
from typing import Any

from app.application.use_cases.notifications.ports import DeliveryJobStore
from app.domain.entities import DeliveryJob, DeliveryJobKind, Notification
from app.utils import now_in_app_timezone

logger = logging.getLogger(__name__)

JobCallback = Callable[[], Awaitable[None]]


class DelayedJobRunner:
    """Arm in-process timers for jobs that are also persisted in a job store.

    The store is the source of truth: a job is written before its timer is
    armed and removed only once its callback has finished or the job is
    cancelled, so :meth:`list_persisted` after a restart returns every piece
    of work that may not have completed. A job interrupted mid-callback runs
    again, which makes delivery at-least-once.
    """

    def __init__(
        self,
        store: DeliveryJobStore,
        *,
        clock: Callable[[], datetime] = now_in_app_timezone,
    ) -> None:
        self._store = store
        self._clock = clock
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._jobs: dict[str, DeliveryJob] = {}

    async def schedule(
        self, job: DeliveryJob, callback: JobCallback, *, persist: bool = True
    ) -> None:
        """Run ``callback`` once ``job.due_at`` is reached, replacing any job with the same key."""

        self._discard(job.key)
        if persist:
            await self._store.save(job)
        self._jobs[job.key] = job
        self._tasks[job.key] = asyncio.create_task(self._run(job, callback), name=job.key)

    async def persist(self, job: DeliveryJob) -> None:
        """Write ``job`` without arming a timer; pair with :meth:`release` or :meth:`schedule`."""

        await self._store.save(job)

    async def release(self, key: str) -> None:
        """Drop the persisted job under ``key`` unless a timer has been armed for it."""

        if key not in self._tasks:
            await self._store.delete(key)

    async def cancel(self, key: str) -> bool:
        """Cancel the job stored under ``key``; return whether a timer was armed."""

        armed = self._discard(key)
        await self._store.delete(key)
        return armed

    async def cancel_for_notification(self, notification_id: str) -> int:
        """Cancel every armed or persisted job that belongs to ``notification_id``."""

        keys = {key for key, job in self._jobs.items() if job.notification_id == notification_id}
        keys.update(
            job.key
            for job in await self._store.list_all()
            if job.notification_id == notification_id
        )
        for key in keys:
            await self.cancel(key)
        return len(keys)

    def pending(
        self, kind: DeliveryJobKind | None = None, *, due_by: datetime | None = None
    ) -> list[DeliveryJob]:
        return [
            job
            for job in self._jobs.values()
            if (kind is None or job.kind == kind) and (due_by is None or job.due_at <= due_by)
        ]

    def get(self, key: str) -> DeliveryJob | None:
        return self._jobs.get(key)

    async def list_persisted(self) -> list[DeliveryJob]:
        return list(await self._store.list_all())

    async def wait(
        self, kind: DeliveryJobKind | None = None, *, due_by: datetime | None = None
    ) -> None:
        """Wait for the armed jobs of ``kind`` due by ``due_by`` (and jobs they arm) to finish."""

        while True:
            tasks = [
                self._tasks[job.key]
                for job in self.pending(kind, due_by=due_by)
                if job.key in self._tasks
            ]
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)

    async def shutdown(self) -> None:
        """Stop every timer while keeping the persisted jobs for the next start."""

        tasks = list(self._tasks.values())
        self._tasks.clear()
        self._jobs.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, job: DeliveryJob, callback: JobCallback) -> None:
        delay = (job.due_at - self._clock()).total_seconds()
        if delay > 0:
            await asyncio.sleep(delay)

        try:
            await callback()
        except Exception:
            logger.exception("Delayed delivery job %s failed", job.key)

        # The callback may have re-armed the same key; that job owns the row now.
        if self._tasks.get(job.key) is asyncio.current_task():
            self._tasks.pop(job.key, None)
            self._jobs.pop(job.key, None)
            await self._store.delete(job.key)

    def _discard(self, key: str) -> bool:
        self._jobs.pop(key, None)
        task = self._tasks.pop(key, None)
        if task is None:
            return False
        if task is not asyncio.current_task():
            task.cancel()
        return True


class DeliveryScheduler:
    """Decide between immediate and deferred dispatch of a notification."""

    def __init__(
        self,
        runner: DelayedJobRunner,
        dispatch: Callable[[str], Awaitable[None]],
        *,
        clock: Callable[[], datetime] = now_in_app_timezone,
    ) -> None:
        self._runner = runner
        self._dispatch = dispatch
        self._clock = clock
        self._background: set[asyncio.Task[Any]] = set()

    async def schedule(self, notification: Notification) -> bool:
        """Dispatch now or arm a deferred job. Return ``True`` when deferred."""

        if notification.id is None:
            raise ValueError("Notification must be persisted before it is scheduled")

        scheduled_for = notification.scheduled_for
        if scheduled_for is None or scheduled_for <= self._clock():
            await self.dispatch_now(notification.id)
            return False

        await self._runner.schedule(
            DeliveryJob.dispatch(notification.id, scheduled_for),
            partial(self._dispatch, notification.id),
        )
        logger.info(
            "Notification %s scheduled for %s", notification.id, scheduled_for.isoformat()
        )
        return True

    async def dispatch_now(self, notification_id: str) -> None:
        """Persist a due-now dispatch job, then dispatch in the background."""

        await self._runner.persist(DeliveryJob.dispatch(notification_id, self._clock()))
        task = asyncio.create_task(self._run_dispatch(notification_id))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def reschedule(self, notification_id: str, when: datetime) -> bool:
        """Replace the dispatch job of ``notification_id``; dispatch now when ``when`` has passed.

        Returns ``True`` when the notification stays deferred.
        """

        if when <= self._clock():
            await self.cancel(notification_id)
            await self.dispatch_now(notification_id)
            logger.info("Notification %s rescheduled for immediate dispatch", notification_id)
            return False

        await self._runner.schedule(
            DeliveryJob.dispatch(notification_id, when),
            partial(self._dispatch, notification_id),
        )
        logger.info("Notification %s rescheduled for %s", notification_id, when.isoformat())
        return True

    async def cancel(self, notification_id: str) -> bool:
        return await self._runner.cancel(DeliveryJob.dispatch_key(notification_id))

    def is_scheduled(self, notification_id: str) -> bool:
        return self._runner.get(DeliveryJob.dispatch_key(notification_id)) is not None

    async def resume(self, job: DeliveryJob) -> None:
        """Re-arm a persisted dispatch job after a restart."""

        await self._runner.schedule(
            job, partial(self._dispatch, job.notification_id), persist=False
        )

    @property
    def busy(self) -> bool:
        return bool(self._background)

    async def wait_idle(self) -> None:
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def _run_dispatch(self, notification_id: str) -> None:
        try:
            await self._dispatch(notification_id)
        except Exception:
            logger.exception(
                "Immediate dispatch of notification %s failed; kept for the next start",
                notification_id,
            )
            return
        await self._runner.release(DeliveryJob.dispatch_key(notification_id))


__all__ = ["DelayedJobRunner", "DeliveryScheduler", "JobCallback"]
