"""Command routing for incoming chat lines.

This module is integration-agnostic. The routing order is strict:
1) Ignore anything that is not a public channel message
2) Require one of the configured trigger prefixes and strip it
3) Match the remainder against the command table, first match wins
4) Hand the matched handler to the worker pool and return immediately
"""

from __future__ import annotations

import logging
from typing import Iterable

from core.commands import Command, match_command, strip_trigger
from core.models import ChatContext, ChatLine
from core.ports import ChatPort
from core.workers import WorkerPool

LOGGER = logging.getLogger(__name__)


class CommandRouter:
    """Turns chat lines into command invocations."""

    def __init__(
        self,
        commands: Iterable[Command],
        triggers: Iterable[str],
        pool: WorkerPool,
    ) -> None:
        self._commands = tuple(commands)
        self._triggers = tuple(trigger for trigger in triggers if trigger)
        self._pool = pool

    @property
    def commands(self) -> tuple[Command, ...]:
        return self._commands

    def route(self, line: ChatLine, chat: ChatPort) -> bool:
        """Dispatch one chat line. Returns True if a command was scheduled."""

        # Whispers and other private lines are never commands.
        if not line.public:
            return False

        command_text = strip_trigger(line.text, self._triggers)
        if command_text is None:
            return False

        found = match_command(command_text, self._commands)
        if found is None:
            return False

        LOGGER.info(
            "Got command '%s' from %s in %s",
            command_text,
            line.display_name or line.nick,
            line.channel,
        )

        context = ChatContext(chat=chat, source=line.nick, target=line.channel)
        handler, args = found.command.handler, found.args

        async def job() -> None:
            await handler(context, args)

        return self._pool.submit(job)
