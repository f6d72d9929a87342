"""
Request body helpers.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import Request

from .errors import InvalidBody

MAX_JSON_BODY_BYTES = 1 << 20


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


_decoder = json.JSONDecoder(parse_constant=_reject_constant)


def decode_json_object(raw: bytes) -> dict[str, Any]:
    """
    Decode exactly one JSON object. `null` counts as an empty object.
    """
    try:
        text = raw.decode("utf-8").strip()
        payload, end = _decoder.raw_decode(text)
    except ValueError as exc:
        raise InvalidBody("invalid JSON body") from exc

    if text[end:].strip():
        raise InvalidBody("expected a single JSON object")
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise InvalidBody("invalid JSON body")
    return payload


async def read_json_object(request: Request, *, max_bytes: int = MAX_JSON_BODY_BYTES) -> dict[str, Any]:
    raw = await request.body()
    if len(raw) > max_bytes:
        raise InvalidBody("invalid JSON body")
    return decode_json_object(raw)
