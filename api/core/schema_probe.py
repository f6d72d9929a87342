"""
Request-time schema checks against `information_schema` (schema `public`).

Absent tables or columns are a normal answer (`False`); only connectivity or
catalog errors raise.
"""

from __future__ import annotations

import logging
from typing import Sequence

from .db import Database
from .errors import ConfigurationError, NoCompatibleTable

logger = logging.getLogger(__name__)


async def table_exists(db: Database, name: str, *, timeout: float | None = None) -> bool:
    exists = await db.fetch_value(
        """
        SELECT EXISTS (
            SELECT 1
            FROM information_schema.tables
            WHERE table_schema = 'public'
              AND table_name = $1
        )
        """,
        name,
        timeout=timeout,
    )
    return bool(exists)


async def column_exists(db: Database, table: str, column: str, *, timeout: float | None = None) -> bool:
    exists = await db.fetch_value(
        """
        SELECT EXISTS (
            SELECT 1
            FROM information_schema.columns
            WHERE table_schema = 'public'
              AND table_name = $1
              AND column_name = $2
        )
        """,
        table,
        column,
        timeout=timeout,
    )
    return bool(exists)


async def resolve_preferred_table(
    db: Database,
    candidates: Sequence[str],
    *,
    timeout: float | None = None,
) -> str:
    """
    Return the first candidate table that exists, preferring earlier entries.
    """
    if not candidates:
        raise ConfigurationError("no candidate tables given")

    for name in candidates:
        if await table_exists(db, name, timeout=timeout):
            return name
    logger.error("none of the candidate tables exist: %s", ", ".join(candidates))
    raise NoCompatibleTable()
