"""
Turn JSON-decoded payload values into what asyncpg should bind for a column.
"""

from __future__ import annotations

import json
from typing import Any, Collection

from .errors import InvalidValue


def coerce_value(column: str, value: Any, json_columns: Collection[str]) -> Any:
    # jsonb columns take JSON text; the pool registers no jsonb codec.
    if column in json_columns:
        try:
            return json.dumps(value, ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise InvalidValue(f"invalid JSON value for {column}") from exc

    # bool is an int subclass; leave it alone.
    if isinstance(value, float) and value.is_integer():
        return int(value)

    return value
