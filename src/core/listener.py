"""Notification listener bridging store pub/sub events to announcements.

The listener owns a bounded inbox fed by the subscription adapter. Its loop
waits for either the next notification or the idle timeout:

- a valid notification is resolved through the repository on the worker pool,
  and a resolved Code is published on the announcement queue;
- an idle timeout starts one non-blocking keepalive ping on the subscription.

Resolution never blocks receipt of the next notification, so announcements may
complete out of order.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from core.models import Code, Notification
from core.ports import CodeRepositoryPort, SubscriptionPort
from core.workers import WorkerPool, cancel_and_wait

LOGGER = logging.getLogger(__name__)

CODEFALL_CHANNEL = "codefall"
KEEPALIVE_SECONDS = 90.0


class NotificationListener:
    """Long-lived consumer of codefall notifications."""

    def __init__(
        self,
        repository: CodeRepositoryPort,
        subscription: SubscriptionPort,
        announcements: "asyncio.Queue[Code]",
        pool: WorkerPool,
        channel: str = CODEFALL_CHANNEL,
        idle_timeout: float = KEEPALIVE_SECONDS,
        inbox_size: int = 100,
    ) -> None:
        self._repository = repository
        self._subscription = subscription
        self._announcements = announcements
        self._pool = pool
        self._channel = channel
        self._idle_timeout = idle_timeout
        self._inbox: "asyncio.Queue[Notification]" = asyncio.Queue(maxsize=inbox_size)
        self._task: Optional[asyncio.Task] = None
        self._ping_task: Optional[asyncio.Task] = None

    @property
    def channel(self) -> str:
        return self._channel

    def submit(self, notification: Notification) -> None:
        """Entry point for the transport; never blocks."""

        try:
            self._inbox.put_nowait(notification)
        except asyncio.QueueFull:
            LOGGER.warning(
                "Notification inbox full, dropping notification on %s",
                notification.channel,
            )

    def start(self) -> asyncio.Task:
        """Start the listening loop (and the worker pool it feeds)."""

        if self._task is not None and not self._task.done():
            return self._task
        self._pool.start()
        self._task = asyncio.create_task(self.run(), name="codefall-listener")
        return self._task

    async def stop(self) -> None:
        """Cancel the loop, any in-flight ping and all pending resolutions."""

        for task in (self._task, self._ping_task):
            try:
                await cancel_and_wait(task)
            except Exception:
                LOGGER.exception("Listener task failed during shutdown")
        self._task = None
        self._ping_task = None
        await self._pool.stop()
        LOGGER.info("Notification listener stopped")

    async def run(self) -> None:
        LOGGER.info("Listening for notifications on %s", self._channel)
        while True:
            try:
                async with asyncio.timeout(self._idle_timeout):
                    notification = await self._inbox.get()
            except TimeoutError:
                self._keepalive()
                continue
            self.handle(notification)

    def handle(self, notification: Notification) -> bool:
        """Validate one notification and schedule its resolution."""

        if notification.channel != self._channel or not notification.payload:
            LOGGER.debug("Discarding notification on %s", notification.channel)
            return False

        LOGGER.info("Got notification on %s: %s", notification.channel, notification.payload)
        key = notification.payload

        async def job() -> None:
            await self._resolve(key)

        return self._pool.submit(job)

    async def _resolve(self, key: str) -> None:
        code = await self._repository.fetch_by_key(key)
        if code is None:
            return
        await self._announcements.put(code)

    def _keepalive(self) -> None:
        # One ping per idle window; a slow ping is not stacked up.
        if self._ping_task is not None and not self._ping_task.done():
            return
        self._ping_task = asyncio.create_task(self._ping(), name="codefall-keepalive")

    async def _ping(self) -> None:
        try:
            await self._subscription.ping()
        except Exception:
            LOGGER.exception("Keepalive ping on %s failed", self._channel)
