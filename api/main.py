import logging
import time
from contextlib import asynccontextmanager

import asyncpg
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from admin import router as admin_router
from consultations import router as consultations_router
from content import router as content_router
from core import responses, settings
from core.db import Database
from core.errors import ApiError, StorageError
from storage import router as storage_router

load_dotenv()

logger = logging.getLogger(__name__)

SERVICE_NAME = "carbon-api"


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_database() -> Database:
    return Database(
        settings.database_url(),
        min_size=settings.pool_min_size(),
        max_size=settings.pool_max_size(),
    )


async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc.__cause__ or exc)
    extra = {}
    if isinstance(exc, StorageError) and exc.details:
        extra["details"] = exc.details
    return responses.error(exc.message, status_code=exc.status_code, errors=exc.errors, **extra)


async def handle_http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        message = "not found"
    elif exc.status_code == 405:
        message = "method not allowed"
    else:
        message = str(exc.detail)
    return responses.error(message, status_code=exc.status_code)


async def handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = {}
    for item in exc.errors():
        field = ".".join(str(part) for part in item.get("loc", ()) if part not in ("body", "query", "header"))
        errors[field or "body"] = str(item.get("msg", "invalid value"))
    return responses.error("validation error", status_code=422, errors=errors)


async def handle_database_error(request: Request, exc: asyncpg.PostgresError) -> JSONResponse:
    # SQL and driver detail stays in the log.
    logger.error("%s %s database error: %s", request.method, request.url.path, exc, exc_info=exc)
    return responses.error("failed to fetch data", status_code=500)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s unhandled error", request.method, request.url.path, exc_info=exc)
    return responses.error("internal server error", status_code=500)


def create_app(database: Database | None = None) -> FastAPI:
    """
    Build the application. Tests pass their own `database`; otherwise one is
    created from the environment at start-up.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # One pool per process.
        db = database if database is not None else build_database()
        await db.connect(attempts=settings.connect_attempts())
        app.state.db = db
        try:
            yield
        finally:
            await db.close()

    app = FastAPI(title=SERVICE_NAME, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins(),
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, duration_ms)
        return response

    app.add_exception_handler(ApiError, handle_api_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(asyncpg.PostgresError, handle_database_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    # Storage first: `/admin/storage/*` must not match `/admin/{resource}`.
    app.include_router(storage_router.router, tags=["storage"])
    app.include_router(admin_router.router, tags=["admin"])
    app.include_router(content_router.router, tags=["content"])
    app.include_router(consultations_router.router, tags=["consultations"])

    @app.get("/")
    def root() -> dict:
        return {
            "status": "ok",
            "service": SERVICE_NAME,
            "routes": sorted(app.openapi()["paths"]),
        }

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/healthz")
    async def healthz(request: Request) -> JSONResponse:
        db: Database = request.app.state.db
        if not await db.ping(timeout=settings.health_timeout_s()):
            return JSONResponse(status_code=503, content={"status": "error", "db": False})
        return JSONResponse(status_code=200, content={"status": "ok", "db": True})

    return app


configure_logging()
app = create_app()


def run() -> None:
    uvicorn.run(app, host="0.0.0.0", port=settings.port(), log_level=settings.log_level().lower())


if __name__ == "__main__":
    run()
