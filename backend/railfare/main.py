from contextlib import asynccontextmanager
import logging
import time

from uuid import uuid4

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from railfare.api.endpoints.health import router as health_router
from railfare.api.routes import api_router
from railfare.core.config import Settings, get_settings
from railfare.core.telemetry import (
    configure_opentelemetry,
    instrument_fastapi,
    instrument_httpx,
)
from railfare.jobs.stations_refresh import StationsRefreshScheduler
from railfare.services.cache import TTLCache
from railfare.services.fare_comparison import FareComparisonEngine
from railfare.services.geocoder import PostcodeGeocoder
from railfare.services.station_directory import StationDirectory
from railfare.services.stations_mirror import StationsMirror
from railfare.services.upstream_client import UpstreamClient, build_http_client

logger = logging.getLogger(__name__)
REQUEST_ID_HEADER = "X-Request-Id"
REQUEST_LOGGER_NAME = "railfare.requests"

SILENT_LEVEL = logging.CRITICAL + 1
_LOG_LEVELS = {"info": logging.INFO, "debug": logging.DEBUG}


def _configure_logging(log_level: str) -> None:
    """
    Apply LOG_LEVEL to the application's logger tree.

    'silent' raises the ``railfare`` threshold above CRITICAL, which also mutes
    the per-request log lines. Third-party loggers are left alone.
    """
    app_logger = logging.getLogger("railfare")
    if log_level == "silent":
        app_logger.setLevel(SILENT_LEVEL)
        return

    app_logger.setLevel(_LOG_LEVELS.get(log_level, logging.INFO))
    if not logging.getLogger().handlers and not app_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        app_logger.addHandler(handler)


def _install_request_id_middleware(app: FastAPI) -> None:
    """Ensure each response includes a stable X-Request-Id header."""

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER, str(uuid4()))
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def _install_request_logging_middleware(app: FastAPI) -> None:
    """Log ``METHOD /path?query status - Nms`` for every request."""
    request_logger = logging.getLogger(REQUEST_LOGGER_NAME)

    @app.middleware("http")
    async def log_request(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start) * 1000)
        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        request_logger.info(
            "%s %s %s - %dms",
            request.method,
            target,
            response.status_code,
            duration_ms,
        )
        return response


def _build_services(
    app: FastAPI, settings: Settings, http_client: httpx.AsyncClient
) -> None:
    """Wire the shared cache, clients and engines onto ``app.state``."""
    cache = TTLCache(max_entries=settings.cache_max_entries)
    directory = StationDirectory()
    upstream_client = UpstreamClient(http_client, cache, settings)
    mirror = StationsMirror(upstream_client, directory, settings.stations_fallback_path)

    app.state.settings = settings
    app.state.http_client = http_client
    app.state.cache = cache
    app.state.upstream_client = upstream_client
    app.state.stations_mirror = mirror
    app.state.geocoder = PostcodeGeocoder(http_client, cache, settings)
    app.state.comparison_engine = FareComparisonEngine(upstream_client, directory)
    app.state.refresh_scheduler = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    settings: Settings = app.state.settings

    configure_opentelemetry(
        service_name=settings.otel_service_name,
        service_version=settings.otel_service_version,
        otlp_endpoint=settings.otel_exporter_otlp_endpoint,
        otlp_headers=settings.otel_exporter_otlp_headers,
        enabled=settings.otel_enabled,
    )
    instrument_httpx(enabled=settings.otel_enabled)

    scheduler = None
    if settings.stations_refresh_enabled:
        scheduler = StationsRefreshScheduler(
            app.state.stations_mirror, settings.stations_refresh_seconds
        )
        await scheduler.start()
    app.state.refresh_scheduler = scheduler

    try:
        yield
    finally:
        if scheduler is not None:
            await scheduler.stop()
        await app.state.http_client.aclose()


def create_app(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Application factory for FastAPI."""
    settings = settings or get_settings()
    app = FastAPI(
        title="Rail Fare Finder API",
        description="Find stations near a UK postcode and compare the cheapest fares.",
        version="0.1.0",
        lifespan=lifespan,
    )

    _configure_logging(settings.log_level)
    _build_services(app, settings, http_client or build_http_client(settings))

    instrument_fastapi(app, enabled=settings.otel_enabled)
    _install_request_logging_middleware(app)
    _install_request_id_middleware(app)

    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_credentials=False,
            allow_methods=["GET"],
            allow_headers=["*"],
        )

    app.include_router(health_router, tags=["meta"])
    app.include_router(api_router, prefix="/api")

    return app


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level="critical" if settings.log_level == "silent" else settings.log_level,
        access_log=False,
    )


if __name__ == "__main__":
    run()
