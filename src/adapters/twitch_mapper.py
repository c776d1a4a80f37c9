"""Twitch-to-core message mapping adapter.

This keeps twitchio-specific details out of the command router.
"""

from __future__ import annotations

from typing import Any, Optional

from core.models import ChatLine


def _login(user: Any) -> str:
    name = getattr(user, "name", None) or getattr(user, "login", None)
    return str(name or "").lower()


def _display_name(user: Any) -> Optional[str]:
    display_name = getattr(user, "display_name", None)
    if isinstance(display_name, str) and display_name:
        return display_name
    return None


def build_chat_line(message: Any, public: bool = True) -> ChatLine:
    """Build a core ChatLine from a twitchio ChatMessage payload.

    Channel chat messages are always public; whispers arrive through a
    different event and are mapped with ``public=False`` if at all.
    """

    chatter = getattr(message, "chatter", None)
    broadcaster = getattr(message, "broadcaster", None)
    return ChatLine(
        text=getattr(message, "text", None) or "",
        nick=_login(chatter),
        channel=_login(broadcaster),
        display_name=_display_name(chatter),
        public=public,
    )
