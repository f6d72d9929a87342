"""
Generic admin CRUD logic.

One set of operations serves every table in `registry.DESCRIPTORS`; nothing
here knows about a particular table.

Flow per request:
1) Parse the record id (query `?id=` or trailing path segment)
2) List / fetch one / create / update / delete
3) Return the row(s) as stored, server-generated columns included
"""

from __future__ import annotations

import re
from typing import Any, Mapping

from core.coercion import coerce_value
from core.db import Database
from core.errors import EmptyPayload, InvalidIdentifier, NotFound, ValidationFailed

from . import registry, repository
from .registry import TableAccessDescriptor

_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
_BIGINT_MIN = -(2**63)
_BIGINT_MAX = 2**63 - 1


def _parse_int64(raw: str) -> int:
    if not _ID_PATTERN.fullmatch(raw):
        raise InvalidIdentifier()
    value = int(raw)
    if not _BIGINT_MIN <= value <= _BIGINT_MAX:
        raise InvalidIdentifier()
    return value


def parse_resource_id(base_path: str, request_path: str, query_id: str | None = None) -> int | None:
    """
    Return the record id addressed by the request, or None for the collection.

    A non-empty `?id=` wins over the path. Only a single trailing segment after
    `base_path` is accepted.
    """
    id_param = (query_id or "").strip()
    if id_param:
        return _parse_int64(id_param)

    base = base_path.rstrip("/")
    path = request_path.strip().rstrip("/")
    if path == base or not path.startswith(base + "/"):
        return None

    id_part = path[len(base) + 1 :]
    if not id_part:
        return None
    if "/" in id_part:
        raise InvalidIdentifier()
    return _parse_int64(id_part)


def _coerced_values(descriptor: TableAccessDescriptor, payload: Mapping[str, Any]) -> list[tuple[str, Any]]:
    # Sorted so identical payloads always produce identical SQL.
    return [
        (key, coerce_value(key, payload[key], descriptor.json_columns))
        for key in sorted(payload)
    ]


async def list_records(db: Database, descriptor: TableAccessDescriptor, *, timeout: float | None = None) -> list[Any]:
    return await repository.list_rows(db, descriptor, timeout=timeout)


async def fetch_record(
    db: Database, descriptor: TableAccessDescriptor, record_id: int, *, timeout: float | None = None
) -> dict[str, Any]:
    row = await repository.fetch_row(db, descriptor, record_id, timeout=timeout)
    if row is None:
        raise NotFound()
    return row


async def create_record(
    db: Database,
    descriptor: TableAccessDescriptor,
    payload: Mapping[str, Any],
    *,
    timeout: float | None = None,
) -> dict[str, Any]:
    errors = registry.validate_create_payload(descriptor, payload)
    if errors:
        raise ValidationFailed(errors=errors)

    values = _coerced_values(descriptor, payload)
    row = await repository.insert_row(db, descriptor, values, timeout=timeout)
    if row is None:
        raise RuntimeError(f"insert into {descriptor.table} returned no row")
    return row


async def update_record(
    db: Database,
    descriptor: TableAccessDescriptor,
    record_id: int,
    payload: Mapping[str, Any],
    *,
    timeout: float | None = None,
) -> dict[str, Any]:
    errors = registry.validate_update_payload(descriptor, payload)
    if errors:
        raise ValidationFailed(errors=errors)
    if not payload and not descriptor.touch_updated_at:
        raise EmptyPayload()

    values = _coerced_values(descriptor, payload)
    row = await repository.update_row(db, descriptor, record_id, values, timeout=timeout)
    if row is None:
        raise NotFound()
    return row


async def delete_record(
    db: Database, descriptor: TableAccessDescriptor, record_id: int, *, timeout: float | None = None
) -> dict[str, Any]:
    row = await repository.delete_row(db, descriptor, record_id, timeout=timeout)
    if row is None:
        raise NotFound()
    return row
