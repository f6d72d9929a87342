"""
Storage "service layer".

Pure helpers shared by the storage router:
- Clean bucket names and object paths coming from the admin panel
- Sanitize uploaded filenames
- Build object / public URLs for the storage API
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from urllib.parse import quote

from fastapi import UploadFile

from core.errors import InvalidValue, PayloadTooLarge

MAX_UPLOAD_BYTES = 25 * 1024 * 1024  # 25 MiB
DEFAULT_LIST_LIMIT = 50
MAX_LIST_LIMIT = 500
DEFAULT_SORT_COLUMN = "name"

_TRUTHY = {"1", "true", "yes", "on"}
_UPSERT_VALUES = {"", "1", "true", "yes"}


@dataclass(frozen=True)
class ListOptions:
    prefix: str = ""
    limit: int = DEFAULT_LIST_LIMIT
    offset: int = 0
    sort_column: str = DEFAULT_SORT_COLUMN
    sort_order: str = "asc"
    search: str = ""

    def payload(self) -> dict:
        body: dict = {
            "prefix": self.prefix,
            "limit": self.limit,
            "offset": self.offset,
            "sortBy": {"column": self.sort_column, "order": self.sort_order},
        }
        if self.search:
            body["search"] = self.search
        return body


def clean_bucket(value: str | None) -> str:
    bucket = (value or "").strip()
    if not bucket:
        raise InvalidValue("bucket is required")
    if "/" in bucket or "\\" in bucket or ".." in bucket:
        raise InvalidValue("invalid bucket")
    return bucket


def clean_path(value: str | None) -> str:
    """
    Normalise an object path: backslashes become `/`, empty segments are
    dropped and `.`/`..` segments are rejected.
    """
    candidate = (value or "").replace("\\", "/").strip().strip("/")
    parts = []
    for part in candidate.split("/"):
        part = part.strip()
        if not part:
            continue
        if part in (".", ".."):
            raise InvalidValue("invalid path")
        parts.append(part)
    if not parts:
        raise InvalidValue("path is required")
    return "/".join(parts)


def clean_optional_path(value: str | None) -> str:
    if not (value or "").strip():
        return ""
    return clean_path(value)


def sanitize_filename(value: str | None) -> str:
    name = (value or "").replace("\\", "/").strip()
    if not name:
        return ""
    base = name.split("/")[-1].strip().strip(".")
    return base


def fallback_filename() -> str:
    return f"upload_{time.time_ns()}.bin"


def object_path(folder: str, filename: str) -> str:
    return f"{folder}/{filename}" if folder else filename


def is_truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in _TRUTHY


def parse_upsert(value: str | None) -> bool:
    # Uploads overwrite unless the form explicitly says otherwise.
    return (value or "").strip().lower() in _UPSERT_VALUES


def clamp_limit(limit: int) -> int:
    return max(1, min(limit, MAX_LIST_LIMIT))


def normalize_sort_order(value: str | None) -> str:
    return "desc" if (value or "").strip().lower() == "desc" else "asc"


def encode_path(path: str) -> str:
    return "/".join(quote(part, safe="") for part in path.split("/"))


def object_url(base_url: str, bucket: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/storage/v1/object/{quote(bucket, safe='')}/{encode_path(path)}"


def public_url(base_url: str, bucket: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/storage/v1/object/public/{quote(bucket, safe='')}/{encode_path(path)}"


async def read_upload_bytes(file: UploadFile, max_bytes: int = MAX_UPLOAD_BYTES) -> bytes:
    """
    Read the upload into memory, enforcing a maximum size.
    """
    chunk_size = 1024 * 1024  # 1 MiB
    buf = bytearray()

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise PayloadTooLarge(f"file too large, max is {max_bytes} bytes")

    return bytes(buf)
