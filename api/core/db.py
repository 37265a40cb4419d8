"""
Async database access (raw SQL) using asyncpg.

`ConnectionCache` owns the connection pool. The app creates one instance in
its lifespan (see `api/main.py`) and hands it to routes through
`core.dependencies.get_pool`. The pool itself is opened lazily on the first
`acquire()` and then reused for the life of the process.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Awaitable, Callable
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from . import settings

DEFAULT_MAX_POOL_SIZE = 10
DEFAULT_COMMAND_TIMEOUT_S = 30

logger = logging.getLogger(__name__)

Connector = Callable[..., Awaitable[asyncpg.Pool]]
Setup = Callable[[asyncpg.Pool], Awaitable[None]]


class ConfigurationMissing(RuntimeError):
    pass


class ConnectionFailed(RuntimeError):
    pass


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    url = settings.env_str("DATABASE_URL")
    if not url:
        raise ConfigurationMissing("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


def max_pool_size() -> int:
    raw = settings.env_str("DB_MAX_POOL_SIZE")
    if not raw:
        return DEFAULT_MAX_POOL_SIZE
    try:
        size = int(raw)
    except ValueError as exc:
        raise ConfigurationMissing(f"DB_MAX_POOL_SIZE must be an integer, got {raw!r}.") from exc
    if size < 1:
        raise ConfigurationMissing("DB_MAX_POOL_SIZE must be at least 1.")
    return size


def _redact(dsn: str) -> str:
    parts = urlsplit(dsn)
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return urlunsplit((parts.scheme, host, parts.path, "", ""))


def _consume_result(task: asyncio.Task) -> None:
    # Marks a failure as retrieved when every waiter was cancelled.
    if not task.cancelled():
        task.exception()


class ConnectionCache:
    """
    Lazily opens one asyncpg pool and shares it with every caller.

    Concurrent `acquire()` calls made while the pool is being opened all wait
    on the same attempt. A failed attempt is forgotten so the next call can
    retry; a successful one is kept until `close()`.
    """

    def __init__(
        self,
        dsn: str,
        *,
        max_pool_size: int = DEFAULT_MAX_POOL_SIZE,
        connector: Connector | None = None,
        setup: Setup | None = None,
    ) -> None:
        if not dsn:
            raise ConfigurationMissing("Database DSN is empty.")
        self._dsn = dsn
        self._max_pool_size = max_pool_size
        self._connector = connector or asyncpg.create_pool
        self._setup = setup
        self._pool: asyncpg.Pool | None = None
        self._pending: asyncio.Task | None = None

    @classmethod
    def from_env(cls, **kwargs: Any) -> "ConnectionCache":
        return cls(database_url(), max_pool_size=max_pool_size(), **kwargs)

    @property
    def pool(self) -> asyncpg.Pool | None:
        return self._pool

    @property
    def connected(self) -> bool:
        return self._pool is not None

    async def acquire(self) -> asyncpg.Pool:
        if self._pool is not None:
            return self._pool

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._connect())
            self._pending.add_done_callback(_consume_result)

        # Shielded so one cancelled waiter does not abort the shared attempt.
        return await asyncio.shield(self._pending)

    async def _connect(self) -> asyncpg.Pool:
        logger.info("db_connect_start target=%s max_pool_size=%s", _redact(self._dsn), self._max_pool_size)
        try:
            pool = await self._connector(
                dsn=self._dsn,
                min_size=1,
                max_size=self._max_pool_size,
                command_timeout=DEFAULT_COMMAND_TIMEOUT_S,
            )
        except Exception as exc:
            self._pending = None
            logger.warning("db_connect_failed target=%s error=%r", _redact(self._dsn), exc)
            raise ConnectionFailed(f"Failed to connect to database: {exc}") from exc

        if self._setup is not None:
            try:
                await self._setup(pool)
            except Exception as exc:
                self._pending = None
                logger.warning("db_setup_failed target=%s error=%r", _redact(self._dsn), exc)
                await pool.close()
                raise ConnectionFailed(f"Database setup failed: {exc}") from exc

        self._pool = pool
        self._pending = None
        logger.info("db_connect_ok target=%s", _redact(self._dsn))
        return pool

    async def close(self) -> None:
        pending, self._pending = self._pending, None
        if pending is not None:
            # Let an in-flight attempt settle so its pool is closed below.
            with contextlib.suppress(ConnectionFailed):
                await pending

        pool, self._pool = self._pool, None
        if pool is None:
            return None
        await pool.close()
        logger.info("db_pool_closed")


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


async def fetch_one(pool: asyncpg.Pool, sql: str, *args: Any) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    row = await pool.fetchrow(sql, *args)
    return _record_to_dict(row) if row is not None else None


async def fetch_all(pool: asyncpg.Pool, sql: str, *args: Any) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    rows = await pool.fetch(sql, *args)
    return [_record_to_dict(r) for r in rows]


async def execute(pool: asyncpg.Pool, sql: str, *args: Any) -> None:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL). No result returned.
    """
    await pool.execute(sql, *args)
