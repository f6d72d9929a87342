"""
Generic admin persistence (raw SQL over any registered table).

Every mutation is a single statement wrapped in a CTE that returns the touched
row as `to_jsonb`, so the response always reflects what was written.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence

import asyncpg

from core import cascade
from core.db import Database
from core.errors import InvalidValue, QueryFailed

from .registry import DEFAULT_ORDER_BY, TableAccessDescriptor

logger = logging.getLogger(__name__)


def quote_identifier(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def quote_table_name(value: str) -> str:
    return ".".join(quote_identifier(part.strip()) for part in value.split("."))


def list_query(table: str, order_by: str) -> str:
    return (
        f"SELECT COALESCE(json_agg(to_jsonb(t) ORDER BY {order_by}), '[]'::json) "
        f"FROM {quote_table_name(table)} t"
    )


def list_query_candidates(descriptor: TableAccessDescriptor) -> list[str]:
    order_by = descriptor.order_by.strip() or DEFAULT_ORDER_BY
    candidates = [list_query(descriptor.table, order_by)]
    if order_by != DEFAULT_ORDER_BY:
        # Ordering columns may be missing in older deployments.
        candidates.append(list_query(descriptor.table, DEFAULT_ORDER_BY))
    return candidates


def fetch_one_query(table: str) -> str:
    return f"SELECT to_jsonb(t) FROM {quote_table_name(table)} t WHERE t.id = $1"


def insert_query(table: str, column_names: Sequence[str]) -> str:
    quoted_table = quote_table_name(table)
    if not column_names:
        return f"WITH ins AS (INSERT INTO {quoted_table} DEFAULT VALUES RETURNING *) SELECT to_jsonb(ins) FROM ins"

    cols = ", ".join(quote_identifier(name) for name in column_names)
    placeholders = ", ".join(f"${idx}" for idx in range(1, len(column_names) + 1))
    return (
        f"WITH ins AS (INSERT INTO {quoted_table} ({cols}) VALUES ({placeholders}) RETURNING *) "
        "SELECT to_jsonb(ins) FROM ins"
    )


def update_query(table: str, column_names: Sequence[str], *, touch_updated_at: bool) -> str:
    set_clauses = [f"{quote_identifier(name)} = ${idx}" for idx, name in enumerate(column_names, start=1)]
    if touch_updated_at:
        set_clauses.append("updated_at = NOW()")
    if not set_clauses:
        raise ValueError("update needs at least one column")

    return (
        f"WITH upd AS (UPDATE {quote_table_name(table)} SET {', '.join(set_clauses)} "
        f"WHERE id = ${len(column_names) + 1} RETURNING *) "
        "SELECT to_jsonb(upd) FROM upd"
    )


def delete_query(table: str) -> str:
    return (
        f"WITH del AS (DELETE FROM {quote_table_name(table)} WHERE id = $1 RETURNING *) "
        "SELECT to_jsonb(del) FROM del"
    )


def _decode(raw: Any) -> Any:
    if raw is None or not isinstance(raw, (str, bytes)):
        return raw
    return json.loads(raw)


async def _fetch_json(
    db: Database,
    sql: str,
    *args: Any,
    table: str,
    action: str,
    failure_message: str,
    timeout: float | None,
) -> Any:
    try:
        raw = await db.fetch_value(sql, *args, timeout=timeout)
    except asyncpg.exceptions.DataError as exc:
        # asyncpg refuses to encode a Python value for the column's type.
        logger.warning("admin %s %s rejected a value: %s", action, table, exc)
        raise InvalidValue("invalid value for one of the fields") from exc
    except asyncpg.PostgresError as exc:
        logger.error("admin %s %s failed: %s", action, table, exc)
        raise QueryFailed(failure_message) from exc
    return _decode(raw)


async def list_rows(db: Database, descriptor: TableAccessDescriptor, *, timeout: float | None = None) -> list[Any]:
    raw = await cascade.first_successful(
        list_query_candidates(descriptor),
        lambda sql: db.fetch_value(sql, timeout=timeout),
        label=f"admin list {descriptor.table}",
        failure_message="failed to fetch data",
    )
    data = _decode(raw)
    return data if isinstance(data, list) else []


async def fetch_row(
    db: Database, descriptor: TableAccessDescriptor, record_id: int, *, timeout: float | None = None
) -> dict[str, Any] | None:
    return await _fetch_json(
        db,
        fetch_one_query(descriptor.table),
        record_id,
        table=descriptor.table,
        action="fetch one",
        failure_message="failed to fetch data",
        timeout=timeout,
    )


async def insert_row(
    db: Database,
    descriptor: TableAccessDescriptor,
    values: Sequence[tuple[str, Any]],
    *,
    timeout: float | None = None,
) -> dict[str, Any] | None:
    return await _fetch_json(
        db,
        insert_query(descriptor.table, [name for name, _ in values]),
        *[value for _, value in values],
        table=descriptor.table,
        action="create",
        failure_message="failed to create record",
        timeout=timeout,
    )


async def update_row(
    db: Database,
    descriptor: TableAccessDescriptor,
    record_id: int,
    values: Sequence[tuple[str, Any]],
    *,
    timeout: float | None = None,
) -> dict[str, Any] | None:
    return await _fetch_json(
        db,
        update_query(
            descriptor.table,
            [name for name, _ in values],
            touch_updated_at=descriptor.touch_updated_at,
        ),
        *[value for _, value in values],
        record_id,
        table=descriptor.table,
        action="update",
        failure_message="failed to update record",
        timeout=timeout,
    )


async def delete_row(
    db: Database, descriptor: TableAccessDescriptor, record_id: int, *, timeout: float | None = None
) -> dict[str, Any] | None:
    return await _fetch_json(
        db,
        delete_query(descriptor.table),
        record_id,
        table=descriptor.table,
        action="delete",
        failure_message="failed to delete record",
        timeout=timeout,
    )
