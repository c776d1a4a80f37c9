"""Bounded worker pool shared by the command router and the listener.

A fixed number of worker tasks drain a bounded job queue. Submitting never
blocks the caller: when the queue is full the job is dropped and logged, so a
burst of chat commands or notifications cannot exhaust resources.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

LOGGER = logging.getLogger(__name__)

Job = Callable[[], Awaitable[None]]


async def cancel_and_wait(task: Optional[asyncio.Task]) -> None:
    """Cancel ``task`` and wait until it has finished.

    The task's own cancellation is absorbed; a cancellation aimed at the
    caller while it waits is propagated.
    """

    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        current = asyncio.current_task()
        if current is not None and current.cancelling():
            raise


class WorkerPool:
    """Fixed-size pool of asyncio workers fed by a bounded queue."""

    def __init__(self, name: str, workers: int = 4, queue_size: int = 100) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self._name = name
        self._size = workers
        self._queue: "asyncio.Queue[Job]" = asyncio.Queue(maxsize=queue_size)
        self._workers: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return bool(self._workers)

    def start(self) -> None:
        """Spawn the worker tasks; calling it twice is harmless."""

        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._work(), name=f"{self._name}-worker-{index}")
            for index in range(self._size)
        ]
        LOGGER.debug("Started %s with %s workers", self._name, self._size)

    def submit(self, job: Job) -> bool:
        """Queue a job without waiting. Returns False if it had to be dropped."""

        try:
            self._queue.put_nowait(job)
        except asyncio.QueueFull:
            LOGGER.warning("%s is saturated, dropping job", self._name)
            return False
        return True

    async def join(self) -> None:
        """Wait until every queued job has been processed."""

        await self._queue.join()

    async def stop(self) -> None:
        """Cancel running jobs and discard queued ones."""

        workers, self._workers = self._workers, []
        for task in workers:
            task.cancel()
        if workers:
            await asyncio.gather(*workers, return_exceptions=True)

        discarded = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
            discarded += 1
        if discarded:
            LOGGER.info("%s discarded %s queued jobs on shutdown", self._name, discarded)

    async def _work(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                await job()
            except asyncio.CancelledError:
                raise
            except Exception:
                LOGGER.exception("Unhandled error in %s job", self._name)
            finally:
                self._queue.task_done()
