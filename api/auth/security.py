"""
Admin token helpers.
"""

from __future__ import annotations

import hmac


def extract_admin_token(*, admin_header: str | None, authorization: str | None) -> str:
    """
    Prefer `X-Admin-Token`; fall back to `Authorization: Bearer <token>`.
    """
    provided = (admin_header or "").strip()
    if provided:
        return provided

    raw = (authorization or "").strip()
    parts = raw.split(" ", 1)
    if len(parts) != 2 or parts[0].strip().lower() != "bearer":
        return ""
    return parts[1].strip()


def token_matches(provided: str, expected: str) -> bool:
    # Constant time regardless of where the strings differ.
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))
