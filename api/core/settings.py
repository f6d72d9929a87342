"""
Environment-backed settings.

Every setting is read lazily through a small accessor so tests can patch the
environment without reloading modules.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .errors import ConfigurationError

DEFAULT_STORAGE_BUCKET = "cars"


def _env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def normalize_database_url(url: str) -> str:
    """
    Add `sslmode=require` when the DSN does not pick a mode itself.
    """
    parts = urlsplit(url)
    params = parse_qsl(parts.query, keep_blank_values=True)
    if any(k == "sslmode" and v.strip() for (k, v) in params):
        return url

    params = [(k, v) for (k, v) in params if k != "sslmode"]
    params.append(("sslmode", "require"))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(params), parts.fragment))


def database_url() -> str:
    url = _env_str("DATABASE_URL") or _env_str("POSTGRES_DSN")
    if not url:
        raise ConfigurationError("DATABASE_URL or POSTGRES_DSN must be set.")
    return normalize_database_url(url)


def pool_min_size() -> int:
    return max(1, _env_int("DB_POOL_MIN_SIZE", 1))


def pool_max_size() -> int:
    return max(pool_min_size(), _env_int("DB_POOL_MAX_SIZE", 15))


def connect_attempts() -> int:
    return max(1, _env_int("DB_CONNECT_ATTEMPTS", 3))


def health_timeout_s() -> float:
    return _env_float("HEALTH_TIMEOUT_S", 5.0)


def read_timeout_s() -> float:
    return _env_float("READ_TIMEOUT_S", 10.0)


def write_timeout_s() -> float:
    return _env_float("WRITE_TIMEOUT_S", 12.0)


def storage_timeout_s() -> float:
    return _env_float("STORAGE_TIMEOUT_S", 60.0)


def admin_token() -> str:
    return _env_str("ADMIN_TOKEN")


def notify_webhook_url() -> str:
    return _env_str("ADMIN_NOTIFY_WEBHOOK_URL")


def cors_allow_origins() -> list[str]:
    raw = _env_str("CORS_ALLOW_ORIGINS", "*")
    origins = [item.strip() for item in raw.split(",") if item.strip()]
    return origins or ["*"]


def log_level() -> str:
    return _env_str("LOG_LEVEL", "INFO").upper()


def port() -> int:
    return _env_int("PORT", 8080)


@dataclass(frozen=True)
class StorageConfig:
    base_url: str
    service_role: str
    default_bucket: str


def storage_config() -> StorageConfig:
    base_url = _env_str("SUPABASE_URL").rstrip("/")
    service_role = _env_str("SUPABASE_SERVICE_ROLE_KEY")
    if not base_url:
        raise ConfigurationError("SUPABASE_URL is not set")
    if not service_role:
        raise ConfigurationError("SUPABASE_SERVICE_ROLE_KEY is not set")
    return StorageConfig(
        base_url=base_url,
        service_role=service_role,
        default_bucket=_env_str("STORAGE_BUCKET", DEFAULT_STORAGE_BUCKET),
    )
