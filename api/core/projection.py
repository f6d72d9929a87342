"""
Helpers that shape nullable row values into the public JSON contract.

jsonb columns arrive from asyncpg as JSON text (no codec is registered), so the
list parsers accept `str | bytes | None`.
"""

from __future__ import annotations

import json
from typing import Any, Iterable

PERFORMED_WORK_KEYS = ("step", "title", "name", "text", "description")


def nullable_text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def text_or_empty(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def first_non_blank(*values: str | None) -> str:
    for value in values:
        if value is not None and value.strip():
            return value
    return ""


def unique_non_blank(values: Iterable[str | None]) -> list[str]:
    """
    Trim, drop blanks and keep the first occurrence of each value.
    """
    result: list[str] = []
    seen: set[str] = set()
    for value in values:
        clean = (value or "").strip()
        if not clean or clean in seen:
            continue
        seen.add(clean)
        result.append(clean)
    return result


def _load_json(raw: str | bytes | None) -> Any:
    if raw is None or len(raw) == 0:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def parse_string_array(raw: str | bytes | None) -> list[str]:
    """
    Parse a JSON array of strings.

    Also accepts a JSON string that itself holds an encoded array (older rows
    stored the array as text inside jsonb). Anything else yields `[]`.
    """
    data = _load_json(raw)
    if isinstance(data, str):
        data = _load_json(data)
    if not _is_string_list(data):
        return []
    return unique_non_blank(data)


def parse_performed_works(raw: str | bytes | None) -> list[str]:
    """
    Parse a work list stored either as `["a", "b"]` or as
    `[{"step": "a"}, {"title": "b"}, "c"]`. Malformed input yields `[]`.
    """
    data = _load_json(raw)
    if not isinstance(data, list):
        return []
    if _is_string_list(data):
        return unique_non_blank(data)

    works: list[str] = []
    for item in data:
        if isinstance(item, str):
            works.append(item)
        elif isinstance(item, dict):
            for key in PERFORMED_WORK_KEYS:
                text = item.get(key)
                if isinstance(text, str) and text.strip():
                    works.append(text)
                    break
    return unique_non_blank(works)
