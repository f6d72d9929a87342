"""
Auth dependencies for admin FastAPI routes.
"""

from __future__ import annotations

from fastapi import Header

from core import settings
from core.errors import Unauthorized

from . import security


async def require_admin_token(
    x_admin_token: str | None = Header(default=None),
    authorization: str | None = Header(default=None),
) -> None:
    """
    Reject the request unless it carries the configured `ADMIN_TOKEN`.

    An unset `ADMIN_TOKEN` disables the check.
    """
    expected = settings.admin_token()
    if not expected:
        return None

    provided = security.extract_admin_token(admin_header=x_admin_token, authorization=authorization)
    if not security.token_matches(provided, expected):
        raise Unauthorized()
    return None
