"""PostgreSQL LISTEN/NOTIFY subscription adapter.

LISTEN needs a dedicated connection, separate from the query pool. This adapter
owns that connection, forwards every notification to a sink (the core
listener's ``submit``) and satisfies the SubscriptionPort keepalive contract.

Lost connections are re-established in the background with a retry interval
doubling from ``min_interval`` up to ``max_interval``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

import asyncpg

from core.models import Notification
from core.workers import cancel_and_wait

LOGGER = logging.getLogger(__name__)

MIN_RECONNECT_INTERVAL = 1.0
MAX_RECONNECT_INTERVAL = 60.0

CONNECTION_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


def next_interval(current: float, max_interval: float = MAX_RECONNECT_INTERVAL) -> float:
    return min(current * 2, max_interval)


class PostgresSubscription:
    """Keeps one LISTEN connection alive and forwards its notifications."""

    def __init__(
        self,
        dsn: str,
        channel: str,
        sink: Callable[[Notification], None],
        min_interval: float = MIN_RECONNECT_INTERVAL,
        max_interval: float = MAX_RECONNECT_INTERVAL,
    ) -> None:
        self._dsn = dsn
        self._channel = channel
        self._sink = sink
        self._min_interval = min_interval
        self._max_interval = max_interval
        self._conn: Optional[asyncpg.Connection] = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._closing = False

    @property
    def connected(self) -> bool:
        return self._conn is not None and not self._conn.is_closed()

    async def start(self) -> None:
        """Open the connection and LISTEN; failures fall back to reconnecting."""

        self._closing = False
        try:
            await self._listen()
        except CONNECTION_ERRORS as e:
            LOGGER.error("Cannot listen on %s channel: %s", self._channel, e)
            self._schedule_reconnect()

    async def close(self) -> None:
        self._closing = True
        task, self._reconnect_task = self._reconnect_task, None
        await cancel_and_wait(task)
        conn, self._conn = self._conn, None
        if conn is not None and not conn.is_closed():
            try:
                await conn.close()
            except CONNECTION_ERRORS as e:
                LOGGER.warning("Error while closing %s listener: %s", self._channel, e)

    async def ping(self) -> None:
        """Keepalive: a trivial round trip that surfaces dead connections."""

        if not self.connected:
            self._schedule_reconnect()
            return
        try:
            await self._conn.execute("SELECT 1")
        except CONNECTION_ERRORS as e:
            LOGGER.warning("Detected error on %s listener: %s", self._channel, e)
            self._schedule_reconnect()

    async def _listen(self) -> None:
        conn = await asyncpg.connect(self._dsn)
        try:
            await conn.add_listener(self._channel, self._on_notification)
        except BaseException:
            await conn.close()
            raise
        conn.add_termination_listener(self._on_termination)
        self._conn = conn
        LOGGER.info("Listening on %s channel", self._channel)

    def _on_notification(self, connection, pid: int, channel: str, payload: str) -> None:
        self._sink(Notification(channel=channel, payload=payload or ""))

    def _on_termination(self, connection) -> None:
        if self._closing:
            return
        LOGGER.warning("Detected error on %s listener: connection terminated", self._channel)
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._closing:
            return
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return
        self._reconnect_task = asyncio.create_task(
            self._reconnect(), name=f"{self._channel}-reconnect"
        )

    async def _reconnect(self) -> None:
        old, self._conn = self._conn, None
        if old is not None and not old.is_closed():
            old.terminate()

        interval = self._min_interval
        while not self._closing:
            await asyncio.sleep(interval)
            try:
                await self._listen()
            except CONNECTION_ERRORS as e:
                LOGGER.warning(
                    "Reconnecting %s listener failed, retrying in %.0fs: %s",
                    self._channel,
                    next_interval(interval, self._max_interval),
                    e,
                )
                interval = next_interval(interval, self._max_interval)
                continue
            LOGGER.info("Reconnected %s listener", self._channel)
            return
