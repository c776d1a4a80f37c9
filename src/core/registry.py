"""Registry of the chat channels the bot currently occupies."""

from __future__ import annotations

import asyncio
import logging

LOGGER = logging.getLogger(__name__)


class ChannelRegistry:
    """Append-only, concurrency-safe list of joined channels.

    Writers serialize on a lock and publish a fresh tuple on every change, so
    readers always get a consistent snapshot without taking the lock.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._channels: tuple[str, ...] = ()

    async def add(self, channel: str) -> bool:
        """Record a join event. Returns False if the channel was already known."""

        async with self._lock:
            if channel in self._channels:
                return False
            self._channels = self._channels + (channel,)
        LOGGER.info("Joined channel %s (%s total)", channel, len(self._channels))
        return True

    def snapshot(self) -> tuple[str, ...]:
        return self._channels

    def __len__(self) -> int:
        return len(self._channels)

    def __contains__(self, channel: object) -> bool:
        return channel in self._channels
