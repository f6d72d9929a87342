"""
Object-storage HTTP client helpers (Supabase-compatible storage API).

Used endpoints:
- GET    /storage/v1/bucket                      -> [{"name": "..."}, ...]
- POST   /storage/v1/object/list/<bucket>        -> [{"name": "...", ...}, ...]
- POST   /storage/v1/object/<bucket>/<path>      (upload, raw body)
- DELETE /storage/v1/object/<bucket>/<path>
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from core.errors import StorageError
from core.settings import StorageConfig

from . import service

logger = logging.getLogger(__name__)

# Storage replies are echoed back to the admin panel; keep them short.
MAX_REPLY_CHARS = 500


def _headers(config: StorageConfig) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {config.service_role}",
        "apikey": config.service_role,
    }


def _client(config: StorageConfig, timeout_s: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=config.base_url, headers=_headers(config), timeout=timeout_s)


def _reply_text(resp: httpx.Response) -> str:
    return resp.text[:MAX_REPLY_CHARS].strip()


def _is_success(resp: httpx.Response) -> bool:
    return 200 <= resp.status_code < 300


async def list_buckets(config: StorageConfig, *, timeout_s: float = 20.0) -> list[str]:
    """
    Return bucket names, sorted.
    """
    try:
        async with _client(config, timeout_s) as client:
            resp = await client.get("/storage/v1/bucket")
    except httpx.HTTPError as exc:
        raise StorageError("failed to fetch buckets", details=f"buckets request failed: {exc}") from exc

    if not _is_success(resp):
        raise StorageError(
            "failed to fetch buckets",
            details=f"buckets request status {resp.status_code}: {_reply_text(resp)}",
        )

    try:
        payload = resp.json()
    except ValueError as exc:
        raise StorageError("failed to fetch buckets", details="decode buckets response failed") from exc

    names = []
    for bucket in payload if isinstance(payload, list) else []:
        name = bucket.get("name") if isinstance(bucket, dict) else None
        if isinstance(name, str) and name.strip():
            names.append(name.strip())
    return sorted(names)


async def list_objects(
    config: StorageConfig,
    bucket: str,
    options: service.ListOptions,
    *,
    timeout_s: float = 20.0,
) -> Any:
    """
    List objects in `bucket`. Returns the storage API's JSON as-is.
    """
    path = f"/storage/v1/object/list/{service.encode_path(bucket)}"
    try:
        async with _client(config, timeout_s) as client:
            resp = await client.post(path, json=options.payload())
    except httpx.HTTPError as exc:
        raise StorageError("storage list failed", details=f"list request failed: {exc}") from exc

    if not _is_success(resp):
        raise StorageError(
            "storage list failed",
            details=f"list request status {resp.status_code}: {_reply_text(resp)}",
        )

    if not resp.content:
        return []
    try:
        return json.loads(resp.content)
    except ValueError as exc:
        raise StorageError("storage list failed", details="decode list response failed") from exc


async def upload_object(
    config: StorageConfig,
    bucket: str,
    object_path: str,
    content: bytes,
    *,
    content_type: str,
    upsert: bool,
    timeout_s: float = 60.0,
) -> str:
    """
    Upload raw bytes. Returns the storage API's reply text.
    """
    url = service.object_url(config.base_url, bucket, object_path)
    headers = {"x-upsert": "true" if upsert else "false", "Content-Type": content_type}
    try:
        async with _client(config, timeout_s) as client:
            resp = await client.post(url, content=content, headers=headers)
    except httpx.HTTPError as exc:
        logger.warning("storage_upload_transport_error bucket=%s path=%s error=%s", bucket, object_path, exc)
        raise StorageError("storage upload request failed") from exc

    reply = _reply_text(resp)
    if not _is_success(resp):
        raise StorageError("storage upload failed", details=reply)
    return reply


async def delete_object(config: StorageConfig, bucket: str, object_path: str, *, timeout_s: float = 20.0) -> None:
    url = service.object_url(config.base_url, bucket, object_path)
    try:
        async with _client(config, timeout_s) as client:
            resp = await client.delete(url)
    except httpx.HTTPError as exc:
        logger.warning("storage_delete_transport_error bucket=%s path=%s error=%s", bucket, object_path, exc)
        raise StorageError("storage delete request failed") from exc

    if not _is_success(resp):
        raise StorageError("storage delete failed", details=_reply_text(resp))
    return None
