"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping, Optional

if TYPE_CHECKING:
    from core.ports import ChatPort


class MalformedRowError(ValueError):
    """Raised when a store row cannot be mapped onto a Code."""


@dataclass(frozen=True)
class Code:
    """One unclaimed codefall entry, as observed in the store."""

    description: str
    code_type: str
    key: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Code":
        """Build a Code from a store row, rejecting missing or non-text columns."""

        values = []
        for column in ("description", "code_type", "key"):
            try:
                value = row[column]
            except (KeyError, IndexError) as e:
                raise MalformedRowError(f"missing column '{column}'") from e
            if not isinstance(value, str):
                raise MalformedRowError(
                    f"column '{column}' must be text, got {type(value).__name__}"
                )
            values.append(value)
        return cls(*values)


@dataclass(frozen=True)
class Notification:
    """A pub/sub event delivered by the store."""

    channel: str
    payload: str


@dataclass(frozen=True)
class ChatLine:
    """Transport-neutral chat message as seen by the command router."""

    text: str
    nick: str
    channel: str
    display_name: Optional[str] = None
    public: bool = True


@dataclass(frozen=True)
class ChatContext:
    """Per-command context handed to handlers.

    ``chat`` is the connection used to reply, ``source`` the invoking nick and
    ``target`` the channel the command came from.
    """

    chat: "ChatPort"
    source: str
    target: str
