"""
Error kinds raised by services and translated to JSON by `main.py`.

Each error carries the HTTP status and a message that is safe to show to the
client. Internal detail (SQL, driver errors) is chained with `from exc` and
logged, never placed in `message`.
"""

from __future__ import annotations


class ApiError(RuntimeError):
    status_code = 500
    default_message = "internal server error"

    def __init__(self, message: str | None = None, *, errors: dict[str, str] | None = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class InvalidIdentifier(ApiError):
    status_code = 400
    default_message = "invalid id"


class InvalidBody(ApiError):
    status_code = 400
    default_message = "invalid JSON body"


class EmptyPayload(ApiError):
    status_code = 400
    default_message = "empty payload"


class InvalidValue(ApiError):
    status_code = 400
    default_message = "invalid value"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "unauthorized"


class PayloadTooLarge(ApiError):
    status_code = 413
    default_message = "file too large"


class NotRegistered(ApiError):
    status_code = 404
    default_message = "resource not found"


class NotFound(ApiError):
    status_code = 404
    default_message = "record not found"


class ValidationFailed(ApiError):
    status_code = 422
    default_message = "validation error"


class QueryFailed(ApiError):
    status_code = 500
    default_message = "failed to fetch data"


class NoCompatibleTable(QueryFailed):
    default_message = "table not found"


class ConfigurationError(ApiError):
    status_code = 500
    default_message = "server is misconfigured"


class StorageError(ApiError):
    status_code = 502
    default_message = "storage request failed"

    def __init__(self, message: str | None = None, *, details: str = ""):
        super().__init__(message)
        self.details = details
