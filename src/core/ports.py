"""Ports (interfaces) used by the core.

Ports define the minimal contracts for the store, the chat network and the
pub/sub subscription so the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Optional, Protocol

from core.models import Code


class CodeRepositoryPort(Protocol):
    """Read-only store operations required by the core."""

    async def fetch_by_key(self, key: str) -> Optional[Code]:
        ...

    async def fetch_random(self, owner: str, limit: int) -> list[Code]:
        ...


class ChatPort(Protocol):
    """Chat operations required by handlers and the announcement dispatcher."""

    @property
    def is_connected(self) -> bool:
        ...

    async def send(self, channel: str, text: str) -> None:
        ...


class SubscriptionPort(Protocol):
    """Keepalive hook of the live pub/sub subscription."""

    async def ping(self) -> None:
        ...
