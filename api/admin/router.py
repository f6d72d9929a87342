"""
Generic admin CRUD endpoints: `/admin/<resource>[/<id>]`.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from auth import dependencies as auth_dependencies
from core import responses, settings
from core.db import Database, get_database, within_deadline
from core.errors import InvalidIdentifier
from core.requests import read_json_object

from . import registry, service

router = APIRouter(dependencies=[Depends(auth_dependencies.require_admin_token)])

METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


@router.api_route("/admin/{resource}", methods=METHODS)
@router.api_route("/admin/{resource}/{record_path:path}", methods=METHODS)
async def admin_resource(
    request: Request,
    resource: str,
    db: Database = Depends(get_database),
) -> JSONResponse:
    descriptor = registry.lookup(f"/admin/{resource}")
    record_id = service.parse_resource_id(
        descriptor.path,
        request.url.path,
        request.query_params.get("id"),
    )
    method = request.method

    if method == "GET":
        if record_id is None:
            rows = await within_deadline(service.list_records(db, descriptor), settings.read_timeout_s())
            return responses.success(rows)
        row = await within_deadline(service.fetch_record(db, descriptor, record_id), settings.read_timeout_s())
        return responses.success(row)

    if method == "POST":
        payload = await read_json_object(request)
        row = await within_deadline(service.create_record(db, descriptor, payload), settings.write_timeout_s())
        return responses.success(row, status_code=201)

    if record_id is None:
        raise InvalidIdentifier("id is required")

    if method == "DELETE":
        row = await within_deadline(service.delete_record(db, descriptor, record_id), settings.write_timeout_s())
        return responses.success(row)

    payload = await read_json_object(request)
    row = await within_deadline(
        service.update_record(db, descriptor, record_id, payload),
        settings.write_timeout_s(),
    )
    return responses.success(row)
