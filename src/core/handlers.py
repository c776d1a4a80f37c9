"""Handlers for the chat commands understood by the bot.

Every handler produces exactly one reply or none. Bad arguments are clamped or
ignored, never reported back to chat.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import List

from core.commands import (
    BINGO_PATTERN,
    CODEFALL_PATTERN,
    HELP_PATTERN,
    MULTIPLES_PATTERN,
    Command,
    build_command,
)
from core.config import CommandConfig
from core.formatting import (
    format_bingo,
    format_codes_reply,
    format_help,
    format_multiples,
    format_no_codes,
)
from core.models import ChatContext
from core.ports import CodeRepositoryPort

LOGGER = logging.getLogger(__name__)

MAX_CODEFALL_LIMIT = 3
DEFAULT_CODEFALL_LIMIT = 1
MAX_MULTIPLES_AMOUNT = Decimal(1000)


def parse_codefall_limit(raw: str) -> int:
    """Clamp the requested number of entries; anything invalid becomes 1."""

    try:
        limit = int(raw)
    except ValueError:
        return DEFAULT_CODEFALL_LIMIT
    if limit <= 0 or limit > MAX_CODEFALL_LIMIT:
        return DEFAULT_CODEFALL_LIMIT
    return limit


def parse_amount(raw: str) -> Decimal | None:
    try:
        amount = Decimal(raw)
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount > MAX_MULTIPLES_AMOUNT:
        return None
    return amount


class CommandHandlers:
    """Binds the command table to a repository and the configured URLs."""

    def __init__(self, repository: CodeRepositoryPort, config: CommandConfig) -> None:
        self._repository = repository
        self._config = config

    def commands(self) -> list[Command]:
        """Ordered command table; earlier entries take precedence."""

        return [
            build_command("codefall", CODEFALL_PATTERN, self.codefall),
            build_command("multiples", MULTIPLES_PATTERN, self.multiples),
            build_command("help", HELP_PATTERN, self.help),
            build_command("bingo", BINGO_PATTERN, self.bingo),
        ]

    async def codefall(self, context: ChatContext, args: List[str]) -> None:
        limit = parse_codefall_limit(args[0] if args else "")
        codes = await self._repository.fetch_random(context.source, limit)
        if not codes:
            await context.chat.send(context.target, format_no_codes(self._config.codefall_url))
            return
        await context.chat.send(context.target, format_codes_reply(codes, self._config.codefall_url))

    async def multiples(self, context: ChatContext, args: List[str]) -> None:
        amount = parse_amount(args[0]) if args else None
        if amount is None:
            LOGGER.debug("Ignoring mult request with invalid amount %r", args)
            return
        await context.chat.send(context.target, format_multiples(amount))

    async def help(self, context: ChatContext, args: List[str]) -> None:
        await context.chat.send(context.target, format_help(self._config.help_url))

    async def bingo(self, context: ChatContext, args: List[str]) -> None:
        await context.chat.send(context.target, format_bingo(self._config.bingo_url))
