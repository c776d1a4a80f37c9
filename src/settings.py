"""Environment configuration for the codefall golem.

All settings come from ``PUMP19_*`` environment variables (optionally via a
local ``.env`` file) and are assembled once into an immutable Settings tree.
Every missing or unparsable variable is collected and reported on its own.
"""

from __future__ import annotations

import logging
import os
from typing import Callable, Mapping, Optional, TypeVar

from dotenv import load_dotenv

from core.config import (
    DEFAULT_BINGO_URL,
    DEFAULT_CODEFALL_URL,
    DEFAULT_HELP_URL,
    CommandConfig,
    LoggingConfig,
    Settings,
    StoreConfig,
    TwitchConfig,
    WorkerConfig,
)

LOGGER = logging.getLogger(__name__)

PREFIX = "PUMP19_"

T = TypeVar("T")


class SettingError(Exception):
    """One problem with one environment variable."""

    def __init__(self, variable: str, what: str) -> None:
        super().__init__(f"Environment variable {variable} {what}")
        self.variable = variable
        self.what = what


class MissingSettingError(SettingError):
    def __init__(self, variable: str) -> None:
        super().__init__(variable, "is not set")


class InvalidSettingError(SettingError):
    def __init__(self, variable: str, reason: str = "cannot be parsed") -> None:
        super().__init__(variable, reason)


class ConfigValidationError(Exception):
    """Raised when config validation fails; holds every individual error."""

    def __init__(self, errors: list[SettingError]) -> None:
        super().__init__(f"Config validation failed with {len(errors)} error(s)")
        self.errors = errors


class _Reader:
    """Collects errors while reading variables so all of them get reported."""

    def __init__(self, environ: Mapping[str, str]) -> None:
        self._environ = environ
        self.errors: list[SettingError] = []

    def required(self, name: str) -> str:
        variable = PREFIX + name
        value = self._environ.get(variable)
        if value is None or not value.strip():
            self.errors.append(MissingSettingError(variable))
            return ""
        return value.strip()

    def optional(self, name: str, default: Optional[str] = None) -> Optional[str]:
        value = self._environ.get(PREFIX + name)
        if value is None or not value.strip():
            return default
        return value.strip()

    def parsed(self, name: str, default: T, parse: Callable[[str], T]) -> T:
        raw = self.optional(name)
        if raw is None:
            return default
        try:
            return parse(raw)
        except ValueError:
            self.errors.append(InvalidSettingError(PREFIX + name))
            return default


def _positive_int(raw: str) -> int:
    value = int(raw)
    if value < 1:
        raise ValueError(f"{value} is not positive")
    return value


def _channels(raw: str) -> tuple[str, ...]:
    channels = tuple(part.strip().lstrip("#").lower() for part in raw.split(",") if part.strip())
    if not channels:
        raise ValueError("no channels")
    return channels


def _numeric_id(raw: str) -> str:
    if not raw.isdigit():
        raise ValueError(f"{raw} is not a numeric user id")
    return raw


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read, validate and assemble the configuration.

    Raises ConfigValidationError listing every problem found.
    """

    if environ is None:
        load_dotenv()
        environ = os.environ

    reader = _Reader(environ)

    bot_id = reader.required("TWITCH_BOT_ID")
    if bot_id:
        try:
            bot_id = _numeric_id(bot_id)
        except ValueError:
            reader.errors.append(InvalidSettingError(PREFIX + "TWITCH_BOT_ID"))

    channels: tuple[str, ...] = ()
    raw_channels = reader.required("TWITCH_CHANNELS")
    if raw_channels:
        try:
            channels = _channels(raw_channels)
        except ValueError:
            reader.errors.append(InvalidSettingError(PREFIX + "TWITCH_CHANNELS"))

    twitch = TwitchConfig(
        client_id=reader.required("TWITCH_CLIENT_ID"),
        client_secret=reader.required("TWITCH_CLIENT_SECRET"),
        bot_id=bot_id,
        token=reader.required("TWITCH_TOKEN"),
        refresh_token=reader.required("TWITCH_REFRESH_TOKEN"),
        channels=channels,
    )

    # Every character of the trigger string is a trigger of its own.
    triggers = tuple(reader.required("CMD_TRIGGER"))
    command = CommandConfig(
        triggers=triggers,
        codefall_url=reader.optional("CODEFALL_URL", DEFAULT_CODEFALL_URL).rstrip("/"),
        help_url=reader.optional("HELP_URL", DEFAULT_HELP_URL),
        bingo_url=reader.optional("BINGO_URL", DEFAULT_BINGO_URL),
    )

    store = StoreConfig(
        dsn=reader.required("DATABASE_DSN"),
        min_pool_size=reader.parsed("DATABASE_POOL_MIN", 1, _positive_int),
        max_pool_size=reader.parsed("DATABASE_POOL_MAX", 5, _positive_int),
    )
    if store.min_pool_size > store.max_pool_size:
        reader.errors.append(
            InvalidSettingError(PREFIX + "DATABASE_POOL_MIN", "exceeds PUMP19_DATABASE_POOL_MAX")
        )

    workers = WorkerConfig(
        workers=reader.parsed("WORKERS", 4, _positive_int),
        queue_size=reader.parsed("QUEUE_SIZE", 100, _positive_int),
    )

    level = reader.optional("LOG_LEVEL", "INFO").upper()
    if not isinstance(logging.getLevelName(level), int):
        reader.errors.append(InvalidSettingError(PREFIX + "LOG_LEVEL", f"has unknown level {level}"))
        level = "INFO"
    log_config = LoggingConfig(level=level, file_path=reader.optional("LOG_FILE"))

    if reader.errors:
        raise ConfigValidationError(reader.errors)

    return Settings(
        twitch=twitch,
        store=store,
        command=command,
        workers=workers,
        logging=log_config,
    )


def report_errors(error: ConfigValidationError) -> None:
    """Log each configuration problem on its own line."""

    LOGGER.error("=" * 70)
    LOGGER.error("CONFIG VALIDATION FAILED")
    LOGGER.error("=" * 70)
    for index, item in enumerate(error.errors, 1):
        LOGGER.error("[%d] %s", index, item)
    LOGGER.error("=" * 70)
