"""PostgreSQL repository adapter.

Implements the core CodeRepositoryPort on top of an asyncpg connection pool.
Query failures are logged and reported to callers as empty results.
"""

from __future__ import annotations

import logging
from typing import Optional

import asyncpg

from core.config import StoreConfig
from core.models import Code, MalformedRowError

LOGGER = logging.getLogger(__name__)

FETCH_BY_KEY = """
    SELECT description, code_type, key
        FROM codefall_unclaimed
        WHERE key = $1
        LIMIT 1
"""

FETCH_RANDOM = """
    SELECT description, code_type, key
        FROM codefall_unclaimed
        WHERE user_name = $1
        ORDER BY random()
        LIMIT $2
"""

QUERY_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


class StoreUnavailableError(RuntimeError):
    """Raised when the store cannot be reached at startup."""


class PostgresCodeRepository:
    """Thin asyncpg wrapper that satisfies the CodeRepositoryPort contract."""

    def __init__(self, config: StoreConfig, pool: Optional[asyncpg.Pool] = None) -> None:
        self._config = config
        self._pool = pool

    async def connect(self) -> None:
        """Create the pool and make sure the store answers."""

        if self._pool is not None:
            return
        try:
            self._pool = await asyncpg.create_pool(
                self._config.dsn,
                min_size=self._config.min_pool_size,
                max_size=self._config.max_pool_size,
            )
            await self._pool.fetchval("SELECT 1")
        except QUERY_ERRORS as e:
            await self.close()
            raise StoreUnavailableError(f"Cannot open database: {e}") from e
        LOGGER.info("Connected to the codefall store")

    async def close(self) -> None:
        if self._pool is not None:
            pool, self._pool = self._pool, None
            await pool.close()

    def _require_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise StoreUnavailableError("Repository is not connected")
        return self._pool

    async def fetch_by_key(self, key: str) -> Optional[Code]:
        """Return the unclaimed code for a secret key, if it still exists."""

        try:
            row = await self._require_pool().fetchrow(FETCH_BY_KEY, key)
        except (StoreUnavailableError, *QUERY_ERRORS) as e:
            LOGGER.warning("Could not query unclaimed code for secret %s: %s", key, e)
            return None

        if row is None:
            LOGGER.info("No unclaimed code for secret %s", key)
            return None
        try:
            return Code.from_row(row)
        except MalformedRowError as e:
            LOGGER.warning("Failed to parse code for secret %s: %s", key, e)
            return None

    async def fetch_random(self, owner: str, limit: int) -> list[Code]:
        """Return up to ``limit`` random unclaimed codes owned by ``owner``."""

        try:
            rows = await self._require_pool().fetch(FETCH_RANDOM, owner, limit)
        except (StoreUnavailableError, *QUERY_ERRORS) as e:
            LOGGER.warning("Could not query unclaimed codes for %s: %s", owner, e)
            return []

        codes: list[Code] = []
        for row in rows:
            try:
                codes.append(Code.from_row(row))
            except MalformedRowError as e:
                LOGGER.warning("Failed to parse result line: %s", e)
        return codes
