"""
Consultation lead endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from fastapi.responses import JSONResponse

from auth import dependencies as auth_dependencies
from core import responses, settings
from core.db import Database, get_database, within_deadline
from core.errors import InvalidBody
from core.requests import read_json_object

from . import service

router = APIRouter()


@router.post("/api/consultations")
async def create_consultation(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Database = Depends(get_database),
) -> JSONResponse:
    try:
        payload = await read_json_object(request)
    except InvalidBody as exc:
        raise InvalidBody("invalid JSON", errors={"body": exc.message}) from exc
    lead = service.parse_request(payload)
    data, notification = await within_deadline(
        service.create_consultation(db, lead),
        settings.write_timeout_s(),
    )

    # Webhook runs after the response is sent.
    background_tasks.add_task(service.notify_admin_background, notification)
    return responses.success(data, status_code=201, message="request created")


@router.get("/api/consultations", dependencies=[Depends(auth_dependencies.require_admin_token)])
async def list_consultations(
    status: str = Query(default="", max_length=50),
    db: Database = Depends(get_database),
) -> JSONResponse:
    rows = await within_deadline(
        service.list_consultations(db, status=status),
        settings.read_timeout_s(),
    )
    return responses.success(rows)
