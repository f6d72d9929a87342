"""
Async database access helpers (raw SQL) using asyncpg.

`Database` owns the connection pool. The app lifespan constructs it, stores it
on `app.state.db` and closes it on shutdown (see `api/main.py`); handlers get
it through the `get_database` dependency instead of a module-level global.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, TypeVar

import asyncpg
from fastapi import Request

from .errors import ConfigurationError, QueryFailed

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONNECT_RETRY_DELAY_S = 2.0
CONNECT_TIMEOUT_S = 10.0


class Database:
    def __init__(
        self,
        dsn: str,
        *,
        min_size: int = 1,
        max_size: int = 15,
        command_timeout: float = 30.0,
    ) -> None:
        self._dsn = dsn
        self._min_size = min_size
        self._max_size = max_size
        self._command_timeout = command_timeout
        self._pool: asyncpg.Pool | None = None

    async def connect(self, *, attempts: int = 3, ping_timeout: float = 20.0) -> None:
        if self._pool is not None:
            return None

        last_error: BaseException | None = None
        for attempt in range(1, attempts + 1):
            try:
                pool = await asyncpg.create_pool(
                    dsn=self._dsn,
                    min_size=self._min_size,
                    max_size=self._max_size,
                    command_timeout=self._command_timeout,
                    timeout=CONNECT_TIMEOUT_S,
                    # Transaction poolers (pgbouncer, Supabase) break named statements.
                    statement_cache_size=0,
                )
                await pool.fetchval("SELECT 1", timeout=ping_timeout)
            except (OSError, asyncio.TimeoutError, asyncpg.PostgresError) as exc:
                last_error = exc
                logger.warning("database ping attempt %s/%s failed: %s", attempt, attempts, exc)
                if attempt < attempts:
                    await asyncio.sleep(CONNECT_RETRY_DELAY_S)
                continue
            self._pool = pool
            return None

        raise ConfigurationError("database connection failed") from last_error

    async def close(self) -> None:
        if self._pool is None:
            return None
        await self._pool.close()
        self._pool = None

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("DB pool is not initialized. Call connect() on startup.")
        return self._pool

    async def fetch_one(self, sql: str, *args: Any, timeout: float | None = None) -> dict[str, Any] | None:
        """
        Run a query and return a single row as a dict (or None).
        """
        row = await self.pool.fetchrow(sql, *args, timeout=timeout)
        return dict(row) if row is not None else None

    async def fetch_all(self, sql: str, *args: Any, timeout: float | None = None) -> list[dict[str, Any]]:
        """
        Run a query and return all rows as a list of dicts.
        """
        rows = await self.pool.fetch(sql, *args, timeout=timeout)
        return [dict(r) for r in rows]

    async def fetch_value(self, sql: str, *args: Any, timeout: float | None = None) -> Any:
        """
        Run a query and return the first column of the first row (or None).
        """
        return await self.pool.fetchval(sql, *args, timeout=timeout)

    async def execute(self, sql: str, *args: Any, timeout: float | None = None) -> None:
        """
        Run a statement (INSERT/UPDATE/DELETE/DDL). No result returned.
        """
        await self.pool.execute(sql, *args, timeout=timeout)

    async def ping(self, *, timeout: float) -> bool:
        try:
            await self.pool.fetchval("SELECT 1", timeout=timeout)
        except (OSError, asyncio.TimeoutError, asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
            logger.warning("database ping failed: %s", exc)
            return False
        return True


def get_database(request: Request) -> Database:
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise ConfigurationError("database is not configured")
    return db


async def within_deadline(awaitable: Awaitable[T], seconds: float) -> T:
    """
    Bound all database work of one request. Expiry cancels the in-flight query.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as exc:
        logger.error("request deadline of %ss exceeded", seconds)
        raise QueryFailed("request timed out") from exc
