"""Application configuration.

Environment variables are loaded from .env file and can be overridden.
All settings have sensible defaults for local development. Cache TTLs and the
stations refresh interval are expressed in milliseconds to stay compatible
with existing deployments.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

LogLevel = Literal["info", "debug", "silent"]

_DAY_MS = 24 * 60 * 60 * 1000

DEFAULT_STATIONS_SOURCE_URL = (
    "https://raw.githubusercontent.com/davwheat/uk-railway-stations/main/stations.json"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ==========================================================================
    # Server
    # ==========================================================================

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT", ge=1, le=65535)
    log_level: LogLevel = Field(
        default="info",
        alias="LOG_LEVEL",
        description="Log verbosity: 'info', 'debug' or 'silent'.",
    )

    # ==========================================================================
    # Cache TTLs (milliseconds)
    # ==========================================================================

    cache_ttl_stations_ms: int = Field(
        default=_DAY_MS, alias="CACHE_TTL_STATIONS_MS", ge=1
    )
    cache_ttl_fares_ms: int = Field(
        default=10 * 60 * 1000, alias="CACHE_TTL_FARES_MS", ge=1
    )
    cache_ttl_search_ms: int = Field(
        default=60 * 60 * 1000, alias="CACHE_TTL_SEARCH_MS", ge=1
    )
    cache_max_entries: int = Field(default=10_000, alias="CACHE_MAX_ENTRIES", ge=1)

    # ==========================================================================
    # Stations mirror
    # ==========================================================================

    stations_refresh_ms: int = Field(default=_DAY_MS, alias="STATIONS_REFRESH_MS", ge=1)
    stations_refresh_enabled: bool = Field(
        default=True, alias="STATIONS_REFRESH_ENABLED"
    )
    stations_fallback_path: str = Field(
        default="data/stations.json", alias="STATIONS_FALLBACK_PATH"
    )

    # ==========================================================================
    # Upstream services
    # ==========================================================================

    stations_source_url: str = Field(
        default=DEFAULT_STATIONS_SOURCE_URL, alias="STATIONS_SOURCE_URL"
    )
    brfares_base_url: str = Field(
        default="https://gw.brfares.com", alias="BRFARES_BASE_URL"
    )
    postcodes_base_url: str = Field(
        default="https://api.postcodes.io", alias="POSTCODES_BASE_URL"
    )
    upstream_timeout_seconds: float = Field(
        default=10.0, alias="UPSTREAM_TIMEOUT_SECONDS", gt=0.0
    )

    # ==========================================================================
    # CORS
    # ==========================================================================

    cors_allow_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=list, alias="CORS_ALLOW_ORIGINS"
    )

    # ==========================================================================
    # OpenTelemetry (optional)
    # ==========================================================================

    otel_enabled: bool = Field(default=False, alias="OTEL_ENABLED")
    otel_service_name: str = Field(default="railfare-backend", alias="OTEL_SERVICE_NAME")
    otel_service_version: str = Field(default="0.1.0", alias="OTEL_SERVICE_VERSION")
    otel_exporter_otlp_endpoint: str = Field(
        default="http://jaeger:4317", alias="OTEL_EXPORTER_OTLP_ENDPOINT"
    )
    otel_exporter_otlp_headers: str | None = Field(
        default=None, alias="OTEL_EXPORTER_OTLP_HEADERS"
    )

    # ==========================================================================
    # Pydantic Settings Config
    # ==========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ==========================================================================
    # Validators
    # ==========================================================================

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: Any) -> Any:
        """Accept LOG_LEVEL in any case."""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, value: Any) -> list[str]:
        """Parse comma-separated CORS origins, rejecting wildcard '*'."""
        if isinstance(value, str):
            if not value:
                return []
            parsed = [item.strip() for item in value.split(",") if item.strip()]
        else:
            parsed = list(value) if value is not None else []

        if "*" in parsed:
            raise ValueError(
                "Wildcard CORS origin '*' is not allowed. "
                "Specify explicit origins like 'http://localhost:3000'."
            )
        return parsed

    # ==========================================================================
    # Derived values (seconds)
    # ==========================================================================

    @property
    def stations_ttl_seconds(self) -> float:
        return self.cache_ttl_stations_ms / 1000

    @property
    def fares_ttl_seconds(self) -> float:
        return self.cache_ttl_fares_ms / 1000

    @property
    def search_ttl_seconds(self) -> float:
        return self.cache_ttl_search_ms / 1000

    @property
    def stations_refresh_seconds(self) -> float:
        return self.stations_refresh_ms / 1000


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
