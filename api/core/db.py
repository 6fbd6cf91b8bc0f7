"""
Async database access helpers (raw SQL) using asyncpg.

`Database` owns the connection pool. The app factory builds one per app and
the lifespan connects/closes it (see `api/main.py`). Repositories receive the
instance as an argument instead of importing a module-level pool.

If the pool cannot be created (datastore down, DATABASE_URL unset) the service
keeps running: `connect()` returns False and later queries retry pool creation
at most once per `db_retry_interval` seconds; in between they fail fast with
`InternalError`.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from .config import Settings
from .errors import InternalError

logger = logging.getLogger(__name__)

# Failures that mean "datastore unreachable" rather than a programming error.
_CONNECT_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    ValueError,
)


MESSAGES_DDL = """
CREATE TABLE IF NOT EXISTS messages (
  id              SERIAL PRIMARY KEY,
  sender_name     VARCHAR(255) NOT NULL,
  recipient_name  VARCHAR(255) NOT NULL,
  body            TEXT         NOT NULL,
  is_printed      BOOLEAN      NOT NULL DEFAULT FALSE,
  printed_at      TIMESTAMPTZ,
  created_at      TIMESTAMPTZ  NOT NULL DEFAULT now(),
  status          VARCHAR(50)  NOT NULL DEFAULT 'active'
);
CREATE INDEX IF NOT EXISTS messages_status_created_at_idx
  ON messages (status, created_at DESC);
CREATE INDEX IF NOT EXISTS messages_is_printed_idx
  ON messages (is_printed);
"""


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


class Database:
    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._pool: asyncpg.Pool | None = None
        self._lock = asyncio.Lock()
        self._retry_at = 0.0
        self._warned_unconfigured = False

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> bool:
        """
        Create the pool and bootstrap the schema. Returns False instead of
        raising when the datastore is unreachable.
        """
        if self._pool is not None:
            return True
        if time.monotonic() < self._retry_at:
            return False

        async with self._lock:
            if self._pool is not None:
                return True
            if time.monotonic() < self._retry_at:
                return False

            url = self._settings.database_url.strip()
            if not url:
                if not self._warned_unconfigured:
                    logger.warning("database_unconfigured reason=DATABASE_URL is not set")
                    self._warned_unconfigured = True
                return False

            try:
                pool = await asyncpg.create_pool(
                    dsn=_sanitize_database_url(url),
                    min_size=self._settings.db_pool_min,
                    max_size=self._settings.db_pool_max,
                    command_timeout=self._settings.db_command_timeout,
                    timeout=self._settings.db_connect_timeout,
                )
            except _CONNECT_ERRORS as exc:
                self._retry_at = time.monotonic() + self._settings.db_retry_interval
                logger.error(
                    "database_connect_failed error=%s retry_in_s=%s",
                    exc,
                    self._settings.db_retry_interval,
                )
                return False

            self._pool = pool

        logger.info("database_connected")
        await self.create_tables()
        return True

    async def close(self) -> None:
        if self._pool is None:
            return None
        await self._pool.close()
        self._pool = None

    async def create_tables(self) -> None:
        try:
            await self.execute(MESSAGES_DDL)
        except asyncpg.PostgresError as exc:
            logger.error("create_tables_failed error=%s", exc)
            return None
        logger.info("create_tables_ok table=messages")

    async def ping(self) -> bool:
        """
        Liveness check used by /api/health.
        """
        if not await self.connect():
            return False
        try:
            await self._get_pool().fetchval("SELECT 1")
        except _CONNECT_ERRORS as exc:
            logger.warning("database_ping_failed error=%s", exc)
            return False
        return True

    def _get_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise InternalError("Database is not connected.")
        return self._pool

    async def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            await self.connect()
        return self._get_pool()

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        """
        Run a query and return a single row as a dict (or None).
        """
        row = await (await self.pool()).fetchrow(sql, *args)
        return _record_to_dict(row) if row is not None else None

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        """
        Run a query and return all rows as a list of dicts.
        """
        rows = await (await self.pool()).fetch(sql, *args)
        return [_record_to_dict(r) for r in rows]

    async def fetch_val(self, sql: str, *args: Any) -> Any:
        """
        Run a query and return the first column of the first row.
        """
        return await (await self.pool()).fetchval(sql, *args)

    async def execute(self, sql: str, *args: Any) -> str:
        """
        Run a statement (INSERT/UPDATE/DDL). Returns asyncpg's status tag.
        """
        return await (await self.pool()).execute(sql, *args)
