"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEFAULT_CODEFALL_URL = "https://pump19.eu/codefall"
DEFAULT_HELP_URL = "https://pump19.eu/commands"
DEFAULT_BINGO_URL = "https://pump19.eu/bingo"


@dataclass(frozen=True)
class TwitchConfig:
    """Credentials and channels for the chat connection."""

    client_id: str
    client_secret: str
    bot_id: str
    token: str
    refresh_token: str
    channels: tuple[str, ...]


@dataclass(frozen=True)
class StoreConfig:
    """PostgreSQL connection settings."""

    dsn: str
    min_pool_size: int = 1
    max_pool_size: int = 5


@dataclass(frozen=True)
class CommandConfig:
    """Trigger prefixes and the URLs quoted in replies."""

    triggers: tuple[str, ...]
    codefall_url: str = DEFAULT_CODEFALL_URL
    help_url: str = DEFAULT_HELP_URL
    bingo_url: str = DEFAULT_BINGO_URL


@dataclass(frozen=True)
class WorkerConfig:
    """Sizing of the bounded worker pools."""

    workers: int = 4
    queue_size: int = 100


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    file_path: Optional[str] = None
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 5


@dataclass(frozen=True)
class Settings:
    """Fully validated configuration, assembled once at startup."""

    twitch: TwitchConfig
    store: StoreConfig
    command: CommandConfig
    workers: WorkerConfig
    logging: LoggingConfig

    def secrets(self) -> list[str]:
        """Values that must never show up in log output."""

        values = [
            self.twitch.client_secret,
            self.twitch.token,
            self.twitch.refresh_token,
            self.store.dsn,
        ]
        return [value for value in values if value]
