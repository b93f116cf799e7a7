from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from saferoutes import __version__
from saferoutes.api.v1.router import api_router
from saferoutes.core.config import Settings, get_settings
from saferoutes.core.exceptions import AppError, ValidationAppError
from saferoutes.core.logging import configure_logging
from saferoutes.core.middleware import RequestIDMiddleware
from saferoutes.core.responses import app_error_json, error_response, success_response
from saferoutes.integrations.redis import close_redis, get_redis
from saferoutes.schemas.session import SessionPreferences
from saferoutes.services.backend_client import SafeRoutesApiClient
from saferoutes.services.bookmarks import BookmarkStore
from saferoutes.services.planning import RoutePlanningSession
from saferoutes.services.storage import FileStorageBackend, RedisStorageBackend, StorageBackend
from saferoutes.services.trips import TripHistoryClient

logger = logging.getLogger(__name__)

_HTTP_ERROR_CODES = {404: "not_found", 405: "method_not_allowed"}


def _sanitize_json(value):
    if isinstance(value, dict):
        return {key: _sanitize_json(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_sanitize_json(item) for item in value]
    if isinstance(value, tuple):
        return tuple(_sanitize_json(item) for item in value)
    if isinstance(value, Exception):
        return str(value)
    return value


def _bookmark_backend(settings: Settings) -> StorageBackend:
    if settings.bookmarks_backend == "redis":
        return RedisStorageBackend(get_redis(settings.redis_url))
    return FileStorageBackend(settings.bookmarks_dir)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)

    api_client = SafeRoutesApiClient(settings.backend_url, settings.backend_timeout_sec)
    trip_history = TripHistoryClient(api_client)
    bookmark_store = BookmarkStore(
        _bookmark_backend(settings),
        namespace=settings.bookmarks_namespace,
        limit=settings.bookmarks_limit,
    )
    await bookmark_store.load()

    app.state.api_client = api_client
    app.state.trip_history = trip_history
    app.state.bookmark_store = bookmark_store
    app.state.planning_session = RoutePlanningSession.from_settings(
        api_client,
        trip_history,
        settings,
        preferences=SessionPreferences(),
    )
    logger.info(
        "SafeRoutes client started",
        extra={
            "backend_url": settings.backend_url,
            "bookmarks_backend": settings.bookmarks_backend,
            "bookmarks_loaded": len(bookmark_store.items()),
        },
    )
    yield
    await close_redis()
    logger.info("SafeRoutes client stopped")


settings = get_settings()
app = FastAPI(
    title=settings.project_name,
    version=__version__,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Session", "description": "Point selection, route planning and trip logging"},
        {"name": "Trips", "description": "Trip history and summary"},
        {"name": "Bookmarks", "description": "Saved origin/destination pairs"},
        {"name": "Safety", "description": "Alerts, reports, SOS, companions, sharing and guardians"},
    ],
)

app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.frontend_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get("/healthz", tags=["Health"])
async def healthz(request: Request):
    return success_response(data={"status": "ok", "version": __version__}, request=request)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.warning("Request failed upstream", extra={"path": request.url.path, "code": exc.code})
    return app_error_json(exc, request)


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    code = _HTTP_ERROR_CODES.get(exc.status_code, "http_error")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(code, str(exc.detail), request=request),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    error = ValidationAppError("Request validation failed", details={"errors": _sanitize_json(exc.errors())})
    return app_error_json(error, request)


@app.exception_handler(Exception)
async def unknown_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error", extra={"path": request.url.path}, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=error_response("internal_error", "Internal server error", request=request),
    )
