from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import quote, urlencode

import httpx

from railfare.core.config import Settings
from railfare.core.metrics import observe_upstream_request
from railfare.services import cache_keys
from railfare.services.cache import TTLCache
from railfare.services.dto import FareQuery
from railfare.services.errors import UpstreamError

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Accept": "application/json"}


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """Create the shared outbound client with an explicit per-call timeout."""
    return httpx.AsyncClient(
        timeout=settings.upstream_timeout_seconds,
        headers={"User-Agent": "railfare/0.1"},
        follow_redirects=True,
    )


class UpstreamClient:
    """Cached async access to the stations source and the legacy fare endpoints.

    Responses are returned exactly as the upstream sent them; callers that
    need structured data go through ``railfare.services.fare_mapping``.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        cache: TTLCache,
        settings: Settings,
    ) -> None:
        self._http = http_client
        self._cache = cache
        self._settings = settings

    # ------------------------------------------------------------------
    # URL builders
    # ------------------------------------------------------------------

    def _legacy_url(self, path: str, params: dict[str, str]) -> str:
        base = self._settings.brfares_base_url.rstrip("/")
        return f"{base}/{path}?{urlencode(params, quote_via=quote)}"

    def locations_url(self, term: str) -> str:
        return self._legacy_url("legacy_ac_loc", {"term": term})

    def railcards_url(self, term: str) -> str:
        return self._legacy_url("legacy_ac_rlc", {"term": term})

    def fares_url(self, query: FareQuery) -> str:
        return self._legacy_url("legacy_querysimple", query.to_params())

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    async def fetch_stations(self) -> Any:
        """Fetch the canonical stations list (cached for the stations TTL)."""
        return await self.get_json(
            self._settings.stations_source_url,
            cache_keys.STATIONS,
            self._settings.stations_ttl_seconds,
        )

    async def search_locations(self, term: str) -> Any:
        """Proxy the legacy location search. An empty term yields [] locally."""
        term = term.strip()
        if not term:
            return []
        return await self.get_json(
            self.locations_url(term),
            cache_keys.LOCATIONS,
            self._settings.search_ttl_seconds,
        )

    async def search_railcards(self, term: str) -> Any:
        """Proxy the legacy railcard search. An empty term yields [] locally."""
        term = term.strip()
        if not term:
            return []
        return await self.get_json(
            self.railcards_url(term),
            cache_keys.RAILCARDS,
            self._settings.search_ttl_seconds,
        )

    async def query_fares(self, query: FareQuery) -> Any:
        """Proxy the legacy fare query for one origin/destination pair."""
        return await self.get_json(
            self.fares_url(query),
            cache_keys.FARES,
            self._settings.fares_ttl_seconds,
        )

    async def get_json(self, url: str, resource: str, ttl_seconds: float) -> Any:
        """Read-through fetch keyed by the namespaced upstream URL."""
        key = cache_keys.upstream_cache_key(resource, url)
        return await self._cache.get_or_fetch(
            key, lambda: self._request_json(url, resource), ttl_seconds
        )

    async def _request_json(self, url: str, resource: str) -> Any:
        start = time.perf_counter()
        try:
            response = await self._http.get(url, headers=JSON_HEADERS)
        except httpx.HTTPError as exc:
            observe_upstream_request(resource, "error", time.perf_counter() - start)
            raise UpstreamError(f"Upstream request failed: {exc!r}") from exc

        duration = time.perf_counter() - start
        if not response.is_success:
            observe_upstream_request(resource, "bad_status", duration)
            raise UpstreamError.from_status(response.status_code, response.text)

        try:
            payload = response.json()
        except ValueError as exc:
            observe_upstream_request(resource, "invalid_json", duration)
            raise UpstreamError(
                "Upstream returned invalid JSON",
                body_snippet=response.text,
            ) from exc

        observe_upstream_request(resource, "success", duration)
        logger.debug("Fetched %s (%s) in %.3fs", url, resource, duration)
        return payload


__all__ = ["UpstreamClient", "build_http_client", "JSON_HEADERS"]
