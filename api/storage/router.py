"""
FastAPI router for admin media storage endpoints.

Included before the generic `/admin/{resource}` router so `/admin/storage/*`
never resolves to a table.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import JSONResponse

from auth import dependencies as auth_dependencies
from core import responses, settings
from core.errors import InvalidValue, StorageError

from . import client, service

router = APIRouter(prefix="/admin/storage", dependencies=[Depends(auth_dependencies.require_admin_token)])


def _parse_int(raw: str, default: int, message: str) -> int:
    raw = (raw or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise InvalidValue(message) from exc


@router.post("/upload")
async def upload_file(
    file: UploadFile | None = File(default=None),
    bucket: str = Form(default=""),
    filename: str = Form(default=""),
    folder: str = Form(default=""),
    upsert: str = Form(default=""),
) -> JSONResponse:
    """
    Upload one file (form-data key `file`) into a bucket, optionally under `folder`.
    """
    config = settings.storage_config()
    if file is None:
        raise InvalidValue("file is required (form-data key: file)")

    bucket_name = service.clean_bucket(bucket.strip() or config.default_bucket)
    name = service.sanitize_filename(filename.strip() or file.filename) or service.fallback_filename()
    object_path = service.object_path(service.clean_optional_path(folder), name)
    content_type = (file.content_type or "").strip() or "application/octet-stream"
    overwrite = service.parse_upsert(upsert)

    content = await service.read_upload_bytes(file, service.MAX_UPLOAD_BYTES)
    reply = await client.upload_object(
        config,
        bucket_name,
        object_path,
        content,
        content_type=content_type,
        upsert=overwrite,
        timeout_s=settings.storage_timeout_s(),
    )

    return responses.success(
        {
            "bucket": bucket_name,
            "path": object_path,
            "mime_type": content_type,
            "size": len(content),
            "upsert": overwrite,
            "storage_url": service.object_url(config.base_url, bucket_name, object_path),
            "public_url": service.public_url(config.base_url, bucket_name, object_path),
            "storage_reply": reply,
        },
        status_code=201,
    )


@router.get("/files")
async def list_files(
    bucket: str = Query(default=""),
    prefix: str = Query(default=""),
    limit: str = Query(default=""),
    offset: str = Query(default=""),
    sort_column: str = Query(default=""),
    sort_order: str = Query(default=""),
    search: str = Query(default=""),
    all_buckets: str = Query(default="", alias="all"),
) -> JSONResponse:
    """
    List objects in one bucket, or in every bucket when `all` is truthy.
    """
    config = settings.storage_config()
    clean_prefix = service.clean_optional_path(prefix)

    page_size = service.clamp_limit(_parse_int(limit, service.DEFAULT_LIST_LIMIT, "limit must be an integer"))
    start = _parse_int(offset, 0, "offset must be a non-negative integer")
    if start < 0:
        raise InvalidValue("offset must be a non-negative integer")

    options = service.ListOptions(
        prefix=clean_prefix,
        limit=page_size,
        offset=start,
        sort_column=sort_column.strip() or service.DEFAULT_SORT_COLUMN,
        sort_order=service.normalize_sort_order(sort_order),
        search=search.strip(),
    )
    timeout_s = settings.read_timeout_s()

    if service.is_truthy(all_buckets):
        buckets = await client.list_buckets(config, timeout_s=timeout_s)
        items: dict = {}
        for name in buckets:
            try:
                items[name] = await client.list_objects(config, name, options, timeout_s=timeout_s)
            except StorageError as exc:
                # One broken bucket does not fail the whole listing.
                items[name] = {"status": "error", "message": exc.details or exc.message}
        return responses.success(
            items,
            meta={
                "all": True,
                "bucket_count": len(buckets),
                "per_bucket_max": options.limit,
                "prefix": options.prefix,
            },
        )

    bucket_name = service.clean_bucket(bucket.strip() or config.default_bucket)
    data = await client.list_objects(config, bucket_name, options, timeout_s=timeout_s)
    return responses.success(
        data,
        meta={"bucket": bucket_name, "prefix": clean_prefix, "limit": page_size, "offset": start},
    )


@router.delete("/file")
async def delete_file(
    bucket: str = Query(default=""),
    path: str = Query(default=""),
) -> JSONResponse:
    config = settings.storage_config()
    bucket_name = service.clean_bucket(bucket.strip() or config.default_bucket)
    try:
        object_path = service.clean_path(path)
    except InvalidValue as exc:
        raise InvalidValue("query param path is required") from exc

    await client.delete_object(config, bucket_name, object_path, timeout_s=settings.write_timeout_s())
    return responses.success({"bucket": bucket_name, "path": object_path})
