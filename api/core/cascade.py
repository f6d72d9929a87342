"""
Cascading query fallback.

Deployments of this service run against databases whose tables drifted over
time (renamed or missing columns, legacy table names). Read endpoints keep an
ordered list of equivalent queries and use the first one the current schema
accepts.

Only read-only queries go through here; writes are never retried.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Sequence, TypeVar

import asyncpg

from .errors import ConfigurationError, QueryFailed

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def first_successful(
    candidates: Sequence[str],
    run: Callable[[str], Awaitable[T]],
    *,
    label: str,
    failure_message: str | None = None,
) -> T:
    """
    Await `run(sql)` for each candidate in order and return the first result.

    Later candidates are never executed once one succeeds. If every candidate
    fails, the last database error is logged and surfaced as `QueryFailed`.
    """
    if not candidates:
        raise ConfigurationError(f"no query candidates configured for {label}")

    last_error: asyncpg.PostgresError | None = None
    for index, sql in enumerate(candidates, start=1):
        try:
            return await run(sql)
        except asyncpg.PostgresError as exc:
            last_error = exc
            logger.debug("%s candidate %s/%s failed: %s", label, index, len(candidates), exc)

    logger.error("%s query failed on all %s candidates: %s", label, len(candidates), last_error)
    raise QueryFailed(failure_message or f"failed to fetch {label}") from last_error
