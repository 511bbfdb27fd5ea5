"""Tests for FastAPI app lifecycle helpers."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from railfare import main


@pytest.fixture()
def railfare_logger():
    logger = logging.getLogger("railfare")
    level, handlers = logger.level, list(logger.handlers)
    yield logger
    logger.setLevel(level)
    logger.handlers[:] = handlers


def test_configure_logging_levels(railfare_logger):
    main._configure_logging("debug")
    assert railfare_logger.level == logging.DEBUG

    main._configure_logging("info")
    assert railfare_logger.level == logging.INFO


def test_silent_log_level_mutes_request_logs(railfare_logger, caplog):
    main._configure_logging("silent")

    with caplog.at_level(logging.NOTSET):
        logging.getLogger(main.REQUEST_LOGGER_NAME).critical("should not appear")

    assert railfare_logger.level == main.SILENT_LEVEL
    assert "should not appear" not in caplog.text


def test_request_id_middleware_respects_existing_header(monkeypatch):
    app = FastAPI()
    main._install_request_id_middleware(app)

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    client = TestClient(app)
    response = client.get("/ping", headers={main.REQUEST_ID_HEADER: "external-id"})
    assert response.headers[main.REQUEST_ID_HEADER] == "external-id"

    monkeypatch.setattr(main, "uuid4", lambda: "generated-id")
    response = client.get("/ping")
    assert response.headers[main.REQUEST_ID_HEADER] == "generated-id"


def test_request_logging_middleware_logs_method_path_and_status(caplog):
    app = FastAPI()
    main._install_request_logging_middleware(app)

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    with caplog.at_level(logging.INFO, logger=main.REQUEST_LOGGER_NAME):
        TestClient(app).get("/ping?x=1")

    assert any(
        record.getMessage().startswith("GET /ping?x=1 200 - ")
        and record.getMessage().endswith("ms")
        for record in caplog.records
    )


@pytest.mark.asyncio
async def test_lifespan_configures_telemetry_and_closes_client(monkeypatch, settings):
    configure_calls = {}

    def fake_configure(**kwargs):
        configure_calls.update(kwargs)

    httpx_calls = {}

    def fake_instrument_httpx(*, enabled: bool):
        httpx_calls["enabled"] = enabled

    http_client = MagicMock()
    http_client.aclose = AsyncMock()
    app = FastAPI()
    app.state.settings = settings
    app.state.http_client = http_client
    app.state.stations_mirror = MagicMock()

    monkeypatch.setattr(main, "configure_opentelemetry", fake_configure)
    monkeypatch.setattr(main, "instrument_httpx", fake_instrument_httpx)

    async with main.lifespan(app):
        assert configure_calls["service_name"] == settings.otel_service_name
        assert configure_calls["enabled"] is False
        assert httpx_calls["enabled"] is False
        assert app.state.refresh_scheduler is None

    http_client.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_lifespan_starts_and_stops_refresh_scheduler(monkeypatch, settings):
    scheduler = MagicMock()
    scheduler.start = AsyncMock()
    scheduler.stop = AsyncMock()
    scheduler_cls = MagicMock(return_value=scheduler)

    monkeypatch.setattr(main, "configure_opentelemetry", lambda **kwargs: None)
    monkeypatch.setattr(main, "instrument_httpx", lambda **kwargs: None)
    monkeypatch.setattr(main, "StationsRefreshScheduler", scheduler_cls)

    app = FastAPI()
    app.state.settings = settings.model_copy(
        update={"stations_refresh_enabled": True, "stations_refresh_ms": 5000}
    )
    app.state.http_client = MagicMock(aclose=AsyncMock())
    app.state.stations_mirror = mirror = MagicMock()

    async with main.lifespan(app):
        scheduler_cls.assert_called_once_with(mirror, 5.0)
        scheduler.start.assert_awaited_once()

    scheduler.stop.assert_awaited_once()


def test_create_app_passes_otel_flag_to_fastapi(monkeypatch, settings, http_client):
    fastapi_call = {}

    def fake_instrument_fastapi(app: FastAPI, *, enabled: bool):
        fastapi_call["enabled"] = enabled

    monkeypatch.setattr(main, "instrument_fastapi", fake_instrument_fastapi)

    app = main.create_app(settings, http_client=http_client)

    assert fastapi_call["enabled"] is False
    assert app.state.upstream_client is not None
    assert app.state.comparison_engine is not None


def test_create_app_enables_cors_for_configured_origins(settings, http_client):
    configured = settings.model_copy(
        update={"cors_allow_origins": ["http://localhost:5173"]}
    )
    app = main.create_app(configured, http_client=http_client)

    with TestClient(app) as client:
        response = client.get("/healthz", headers={"Origin": "http://localhost:5173"})

    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
