"""Command table and pattern matching (core domain)."""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Awaitable, Callable, Iterable, List, Optional

from core.models import ChatContext

Handler = Callable[[ChatContext, List[str]], Awaitable[None]]

CODEFALL_PATTERN = r"^codefall(?: (\S+))?$"
MULTIPLES_PATTERN = r"^mult(?:i(?:pl(?:y|es?)?)?)? \$?([0-9]+(?:\.[0-9]{1,2})?)$"
HELP_PATTERN = r"^help$"
BINGO_PATTERN = r"^bingo$"


@dataclass(frozen=True)
class Command:
    """Compiled command: an anchored pattern plus the handler it feeds."""

    name: str
    pattern: re.Pattern
    handler: Handler

    def __post_init__(self) -> None:
        if self.pattern.groups > 1:
            raise ValueError(
                f"Command '{self.name}' may capture at most one argument group, "
                f"got {self.pattern.groups}"
            )


@dataclass(frozen=True)
class CommandMatch:
    """A matched command together with its raw arguments."""

    command: Command
    args: List[str]


def build_command(name: str, pattern: str, handler: Handler) -> Command:
    return Command(name=name, pattern=re.compile(pattern), handler=handler)


def strip_trigger(raw: str, triggers: Iterable[str]) -> Optional[str]:
    """Return ``raw`` without its trigger prefix, or None if it has none."""

    for trigger in triggers:
        if trigger and raw.startswith(trigger):
            return raw[len(trigger):]
    return None


def match_command(text: str, commands: Iterable[Command]) -> Optional[CommandMatch]:
    """Return the first declared command whose pattern matches all of ``text``.

    Matching is case-sensitive. Unmatched optional groups are passed on as
    empty strings so handlers always receive one entry per capture group.
    """

    for command in commands:
        found = command.pattern.fullmatch(text)
        if found is None:
            continue
        args = [group or "" for group in found.groups()]
        return CommandMatch(command=command, args=args)
    return None
