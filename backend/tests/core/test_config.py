"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from railfare.core.config import DEFAULT_STATIONS_SOURCE_URL, Settings


def test_defaults_match_deployed_values(monkeypatch):
    for name in ("PORT", "LOG_LEVEL", "CACHE_TTL_FARES_MS", "STATIONS_FALLBACK_PATH"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.port == 3000
    assert settings.log_level == "info"
    assert settings.cache_ttl_stations_ms == 86_400_000
    assert settings.cache_ttl_fares_ms == 600_000
    assert settings.cache_ttl_search_ms == 3_600_000
    assert settings.stations_refresh_ms == 86_400_000
    assert settings.stations_fallback_path == "data/stations.json"
    assert settings.stations_source_url == DEFAULT_STATIONS_SOURCE_URL
    assert settings.cache_max_entries == 10_000


def test_ttls_are_exposed_in_seconds():
    settings = Settings(
        _env_file=None,
        CACHE_TTL_STATIONS_MS=1500,
        CACHE_TTL_FARES_MS=250,
        CACHE_TTL_SEARCH_MS=60_000,
        STATIONS_REFRESH_MS=2000,
    )

    assert settings.stations_ttl_seconds == 1.5
    assert settings.fares_ttl_seconds == 0.25
    assert settings.search_ttl_seconds == 60
    assert settings.stations_refresh_seconds == 2


def test_values_are_read_from_environment(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("CACHE_TTL_FARES_MS", "1000")

    settings = Settings(_env_file=None)

    assert settings.port == 8080
    assert settings.log_level == "debug"
    assert settings.cache_ttl_fares_ms == 1000


def test_unknown_log_level_is_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, LOG_LEVEL="verbose")


def test_non_positive_ttl_is_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, CACHE_TTL_SEARCH_MS=0)


def test_cors_origins_parse_comma_separated_list():
    settings = Settings(
        _env_file=None,
        CORS_ALLOW_ORIGINS="http://localhost:3000, https://fares.example.com",
    )

    assert settings.cors_allow_origins == [
        "http://localhost:3000",
        "https://fares.example.com",
    ]


def test_cors_wildcard_is_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, CORS_ALLOW_ORIGINS="*")
