"""Twitch chat adapter.

Wraps a twitchio bot so it satisfies the core ChatPort contract, feeds channel
messages into the command router and reports join events to the channel
registry. Joining a channel means subscribing to its chat messages over
EventSub; every successful subscription is one join event.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

import twitchio
from twitchio import eventsub
from twitchio.ext import commands

from adapters.twitch_mapper import build_chat_line
from core.config import TwitchConfig
from core.registry import ChannelRegistry
from core.router import CommandRouter

LOGGER = logging.getLogger(__name__)


class TwitchChat(commands.Bot):
    """twitchio bot acting as the golem's chat connection."""

    def __init__(
        self,
        config: TwitchConfig,
        router: CommandRouter,
        registry: ChannelRegistry,
        triggers: Iterable[str],
    ) -> None:
        super().__init__(
            client_id=config.client_id,
            client_secret=config.client_secret,
            bot_id=config.bot_id,
            prefix=list(triggers),
            fetch_client_user=False,
        )
        self._config = config
        self._router = router
        self._registry = registry
        self._broadcasters: dict[str, twitchio.PartialUser] = {}
        self._ready = False
        self._closed = False

    @property
    def is_connected(self) -> bool:
        # twitchio re-establishes dropped EventSub sockets itself; while none
        # carries a live subscription there is nobody to talk to.
        return self._ready and not self._closed and bool(self.websocket_subscriptions())

    async def load_tokens(self, path: Optional[str] = None) -> None:
        # Tokens come from the environment instead of a token file.
        await self.add_token(self._config.token, self._config.refresh_token)

    async def save_tokens(self, path: Optional[str] = None) -> None:
        return None

    async def setup_hook(self) -> None:
        LOGGER.info("Joining channels...")
        try:
            users = await self.fetch_users(logins=list(self._config.channels))
        except Exception:
            LOGGER.exception("Could not resolve channels %s", ", ".join(self._config.channels))
            return

        for user in users:
            await self._join(user)

    async def _join(self, user: twitchio.PartialUser) -> None:
        login = str(user.name).lower()
        payload = eventsub.ChatMessageSubscription(
            broadcaster_user_id=str(user.id),
            user_id=str(self.bot_id),
        )
        try:
            await self.subscribe_websocket(payload=payload, as_bot=True)
        except Exception:
            LOGGER.exception("Failed to join channel %s", login)
            return
        self._broadcasters[login] = user
        await self._registry.add(login)

    async def event_ready(self) -> None:
        self._ready = True
        LOGGER.info("Connection established as %s", self.bot_id)

    async def event_message(self, payload: twitchio.ChatMessage) -> None:
        # Ignore our own replies and announcements.
        if str(getattr(payload.chatter, "id", "")) == str(self.bot_id):
            return
        self._router.route(build_chat_line(payload), self)

    async def send(self, channel: str, text: str) -> None:
        broadcaster = self._broadcasters.get(channel)
        if broadcaster is None:
            LOGGER.warning("Not joined to %s, dropping message", channel)
            return
        await broadcaster.send_message(text, sender=self.bot_id, token_for=self.bot_id)

    async def close(self, **options) -> None:
        if self._closed:
            return
        self._closed = True
        self._ready = False
        LOGGER.info("Closing connection...")
        await super().close(**options)
