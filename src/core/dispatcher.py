"""Announcement dispatcher.

Consumes resolved codes from the announcement queue and broadcasts one line
per code to every joined channel.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from core.formatting import format_announcement
from core.models import Code
from core.ports import ChatPort
from core.registry import ChannelRegistry
from core.workers import cancel_and_wait

LOGGER = logging.getLogger(__name__)


class AnnouncementDispatcher:
    """Sends codefall announcements to all channels in the registry."""

    def __init__(
        self,
        chat: ChatPort,
        registry: ChannelRegistry,
        announcements: "asyncio.Queue[Code]",
        base_url: str,
    ) -> None:
        self._chat = chat
        self._registry = registry
        self._announcements = announcements
        self._base_url = base_url
        self._task: Optional[asyncio.Task] = None

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="codefall-dispatcher")
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        await cancel_and_wait(task)

    async def run(self) -> None:
        while True:
            code = await self._announcements.get()
            try:
                await self.announce(code)
            finally:
                self._announcements.task_done()

    async def announce(self, code: Code) -> int:
        """Broadcast one code. Returns the number of channels it was sent to."""

        channels = self._registry.snapshot()
        if not channels or not self._chat.is_connected:
            LOGGER.debug("Skipping announcement of %s, no channel to send to", code.key)
            return 0

        message = format_announcement(code, self._base_url)
        results = await asyncio.gather(
            *(self._chat.send(channel, message) for channel in channels),
            return_exceptions=True,
        )

        delivered = 0
        for channel, result in zip(channels, results):
            if isinstance(result, BaseException):
                LOGGER.warning("Failed to announce codefall in %s: %s", channel, result)
                continue
            delivered += 1
        LOGGER.info("Announced %s in %s channels", code.key, delivered)
        return delivered
