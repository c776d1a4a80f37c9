"""Twitch client factory for the codefall golem.

We explicitly manage the client's lifecycle (start/close) from app.py so it is
obvious when the chat session is created and when it ends.
"""

from __future__ import annotations

import logging

from adapters.twitch_chat import TwitchChat
from core.config import Settings
from core.registry import ChannelRegistry
from core.router import CommandRouter


def build_client(settings: Settings, router: CommandRouter, registry: ChannelRegistry) -> TwitchChat:
    """Create the twitchio chat client from validated settings."""

    logging.getLogger(__name__).info(
        "Initializing Twitch client for %s channels", len(settings.twitch.channels)
    )

    return TwitchChat(
        config=settings.twitch,
        router=router,
        registry=registry,
        triggers=settings.command.triggers,
    )
