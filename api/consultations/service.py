"""
Consultation lead business logic.

Flow for a new lead:
1) Validate fields (required, lengths, phone format)
2) Insert with status `new`
3) Notify the admin webhook after the response is sent (best effort)
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any

import httpx
from pydantic import ValidationError

from core import settings
from core.db import Database
from core.errors import InvalidBody, ValidationFailed

from . import repository, schemas

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"\+?[0-9]{7,15}")
NOTIFY_TIMEOUT_S = 3.0

# field -> (required, max length)
FIELD_RULES: dict[str, tuple[bool, int]] = {
    "first_name": (True, 100),
    "last_name": (True, 100),
    "service_type": (True, 80),
    "car_model": (False, 120),
    "preferred_call_time": (False, 120),
    "comments": (False, 2000),
}


def parse_request(payload: dict[str, Any]) -> schemas.ConsultationCreateRequest:
    try:
        return schemas.ConsultationCreateRequest.model_validate(payload)
    except ValidationError as exc:
        raise InvalidBody("invalid JSON", errors={"body": "unexpected or malformed fields"}) from exc


def validate_request(request: schemas.ConsultationCreateRequest) -> dict[str, str]:
    errors: dict[str, str] = {}
    for field, (required, max_length) in FIELD_RULES.items():
        value = getattr(request, field).strip()
        if required and not value:
            errors[field] = "field is required"
        elif len(value) > max_length:
            errors[field] = f"maximum {max_length} characters"

    phone = request.phone.strip()
    if not phone:
        errors["phone"] = "field is required"
    elif not PHONE_PATTERN.fullmatch(phone):
        errors["phone"] = "invalid phone format"
    return errors


def _optional(value: str) -> str | None:
    return value.strip() or None


def _rfc3339_utc(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


async def create_consultation(
    db: Database,
    request: schemas.ConsultationCreateRequest,
    *,
    timeout: float | None = None,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Store a lead. Returns the response data and the webhook notification.
    """
    errors = validate_request(request)
    if errors:
        raise ValidationFailed(errors=errors)

    fields = {
        "first_name": request.first_name.strip(),
        "last_name": request.last_name.strip(),
        "phone": request.phone.strip(),
        "service_type": request.service_type.strip(),
        "car_model": _optional(request.car_model),
        "preferred_call_time": _optional(request.preferred_call_time),
        "comments": _optional(request.comments),
    }
    row = await repository.insert_consultation(db, **fields, timeout=timeout)
    created_at = _rfc3339_utc(row["created_at"])

    notification = {"id": int(row["id"]), **fields, "status": "new", "created_at": created_at}
    return {"id": int(row["id"]), "created_at": created_at}, notification


async def list_consultations(db: Database, *, status: str = "", timeout: float | None = None) -> list[dict]:
    rows = await repository.list_consultations(db, status=status.strip(), timeout=timeout)
    return [
        {
            "id": int(row["id"]),
            "first_name": str(row["first_name"]),
            "last_name": str(row["last_name"]),
            "phone": str(row["phone"]),
            "service_type": str(row["service_type"]),
            "car_model": row["car_model"],
            "preferred_call_time": row["preferred_call_time"],
            "comments": row["comments"],
            "status": str(row["status"]),
            "created_at": row["created_at"],
        }
        for row in rows
    ]


async def notify_admin_background(notification: dict[str, Any]) -> None:
    """
    BackgroundTasks entrypoint.

    This should never raise to the request path; failures are only logged.
    """
    webhook_url = settings.notify_webhook_url()
    if not webhook_url:
        return None

    try:
        async with httpx.AsyncClient(timeout=NOTIFY_TIMEOUT_S) as client:
            resp = await client.post(webhook_url, json=notification)
    except httpx.HTTPError as exc:
        logger.warning("consultation_notify_failed id=%s error=%s", notification.get("id"), exc)
        return None

    if resp.status_code < 200 or resp.status_code >= 300:
        logger.warning(
            "consultation_notify_non_2xx id=%s status=%s",
            notification.get("id"),
            resp.status_code,
        )
    return None
