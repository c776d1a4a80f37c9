"""Application entry point for the codefall golem."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Optional
from urllib.parse import urlsplit

from art import tprint

import settings as settings_loader
from adapters.postgres_repository import PostgresCodeRepository, StoreUnavailableError
from adapters.postgres_subscription import PostgresSubscription
from client import build_client
from core.config import LoggingConfig, Settings
from core.dispatcher import AnnouncementDispatcher
from core.handlers import CommandHandlers
from core.listener import CODEFALL_CHANNEL, NotificationListener
from core.models import Code, Notification
from core.registry import ChannelRegistry
from core.router import CommandRouter
from core.workers import WorkerPool

NAME = "GOLEM"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(settings: Settings) -> list[str]:
    values = settings.secrets()
    password = urlsplit(settings.store.dsn).password
    if password:
        values.append(password)
    # Longest first so a DSN is masked whole before its password is.
    return sorted(set(values), key=len, reverse=True)


def _configure_logging(config: LoggingConfig, secrets: list[str]) -> None:
    level = getattr(logging, config.level.upper(), logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [console_handler]

    if config.file_path:
        path = config.file_path
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        file_handler = RotatingFileHandler(
            path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)


def _load_settings() -> Settings:
    logger = logging.getLogger(__name__)
    logger.info("Loading configuration...")
    try:
        loaded = settings_loader.load_settings()
    except settings_loader.ConfigValidationError as e:
        settings_loader.report_errors(e)
        sys.exit(1)
    _configure_logging(loaded.logging, _collect_redaction_values(loaded))
    return loaded


def _install_sigterm(stopping: asyncio.Event) -> bool:
    """Set ``stopping`` on SIGTERM. Returns False where the loop cannot do that."""

    try:
        asyncio.get_running_loop().add_signal_handler(signal.SIGTERM, stopping.set)
    except (NotImplementedError, RuntimeError):
        logging.getLogger(__name__).warning("SIGTERM handling is not available here")
        return False
    return True


def _remove_sigterm() -> None:
    asyncio.get_running_loop().remove_signal_handler(signal.SIGTERM)


async def _serve(client: Any, stopping: asyncio.Event) -> None:
    """Run the chat client until it ends by itself or ``stopping`` is set."""

    logger = logging.getLogger(__name__)
    bot = asyncio.create_task(client.start(with_adapter=False), name="twitch-client")
    stop = asyncio.create_task(stopping.wait(), name="golem-stop")
    try:
        done, _ = await asyncio.wait({bot, stop}, return_when=asyncio.FIRST_COMPLETED)
        if bot in done:
            bot.result()
        else:
            logger.info("Received termination signal")
    finally:
        for task in (stop, bot):
            task.cancel()
        await asyncio.gather(stop, bot, return_exceptions=True)


async def _run_golem(settings: Settings) -> None:
    logger = logging.getLogger(__name__)

    repository = PostgresCodeRepository(settings.store)
    try:
        await repository.connect()
    except StoreUnavailableError as e:
        logger.error("%s", e)
        sys.exit(1)

    registry = ChannelRegistry()
    announcements: "asyncio.Queue[Code]" = asyncio.Queue(maxsize=settings.workers.queue_size)

    command_pool = WorkerPool(
        "command-pool",
        workers=settings.workers.workers,
        queue_size=settings.workers.queue_size,
    )
    handlers = CommandHandlers(repository, settings.command)
    router = CommandRouter(handlers.commands(), settings.command.triggers, command_pool)
    logger.info("%s commands are loaded", len(router.commands))

    logger.info("Building go-lem...")
    client = build_client(settings, router, registry)

    def forward(notification: Notification) -> None:
        listener.submit(notification)

    subscription = PostgresSubscription(settings.store.dsn, CODEFALL_CHANNEL, forward)
    listener = NotificationListener(
        repository=repository,
        subscription=subscription,
        announcements=announcements,
        pool=WorkerPool(
            "codefall-pool",
            workers=settings.workers.workers,
            queue_size=settings.workers.queue_size,
        ),
        inbox_size=settings.workers.queue_size,
    )
    dispatcher = AnnouncementDispatcher(
        chat=client,
        registry=registry,
        announcements=announcements,
        base_url=settings.command.codefall_url,
    )

    command_pool.start()
    listener.start()
    dispatcher.start()
    await subscription.start()

    stopping = asyncio.Event()
    handles_sigterm = _install_sigterm(stopping)

    logger.info("Starting go-lem...")
    try:
        await _serve(client, stopping)
    finally:
        logger.info("Shutting down...")
        if handles_sigterm:
            _remove_sigterm()
        await client.close()
        await subscription.close()
        await listener.stop()
        await dispatcher.stop()
        await command_pool.stop()
        await repository.close()
        logger.info("Exiting...")


async def _check_store(settings: Settings) -> bool:
    repository = PostgresCodeRepository(settings.store)
    try:
        await repository.connect()
    except StoreUnavailableError as e:
        logging.getLogger(__name__).error("%s", e)
        return False
    await repository.close()
    return True


def _run() -> None:
    _print_banner()
    _configure_logging(LoggingConfig(), [])
    settings = _load_settings()
    try:
        asyncio.run(_run_golem(settings))
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("Interrupted")


def _check() -> None:
    _configure_logging(LoggingConfig(), [])
    settings = _load_settings()
    logger = logging.getLogger(__name__)
    logger.info(
        "Configuration is valid: %s channels, triggers %s",
        len(settings.twitch.channels),
        " ".join(settings.command.triggers),
    )
    if not asyncio.run(_check_store(settings)):
        sys.exit(1)
    logger.info("Store is reachable")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="golem")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the bot")
    subparsers.add_parser("check", help="Validate the configuration and store connectivity")

    args = parser.parse_args(argv)
    if args.command == "check":
        _check()
        return
    _run()


if __name__ == "__main__":
    main()
