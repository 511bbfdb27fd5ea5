"""Postcode geocoding backed by postcodes.io."""

from __future__ import annotations

import logging
import re
import time
from urllib.parse import quote

import httpx

from railfare.core.config import Settings
from railfare.core.metrics import observe_upstream_request
from railfare.services import cache_keys
from railfare.services.cache import MISS, TTLCache
from railfare.services.dto import Coordinates
from railfare.services.errors import InvalidPostcodeError, UpstreamError

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_postcode(postcode: str) -> str:
    """Trim, upper-case and strip internal whitespace (``"sw1a 1aa"`` -> ``"SW1A1AA"``)."""
    return _WHITESPACE.sub("", postcode.strip().upper())


class PostcodeGeocoder:
    """Resolve UK postcodes to coordinates."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        cache: TTLCache,
        settings: Settings,
    ) -> None:
        self._http = http_client
        self._cache = cache
        self._settings = settings

    async def resolve(self, postcode: str) -> Coordinates:
        """Return the coordinates of ``postcode``.

        Raises:
            InvalidPostcodeError: The postcode is empty or the service rejected it.
            UpstreamError: The service could not be reached or sent unreadable data.
        """
        normalized = normalize_postcode(postcode or "")
        if not normalized:
            raise InvalidPostcodeError("Invalid postcode")

        key = cache_keys.postcode_cache_key(normalized)
        cached = self._cache.get(key)
        if cached is not MISS:
            return cached

        coordinates = await self._lookup(normalized)
        self._cache.put(key, coordinates, self._settings.search_ttl_seconds)
        return coordinates

    async def _lookup(self, normalized: str) -> Coordinates:
        base = self._settings.postcodes_base_url.rstrip("/")
        url = f"{base}/postcodes/{quote(normalized)}"

        start = time.perf_counter()
        try:
            response = await self._http.get(url, headers={"Accept": "application/json"})
        except httpx.HTTPError as exc:
            observe_upstream_request(
                cache_keys.POSTCODES, "error", time.perf_counter() - start
            )
            raise UpstreamError(f"Postcode lookup failed: {exc!r}") from exc
        duration = time.perf_counter() - start

        # postcodes.io answers unknown postcodes with a 404 and a JSON body.
        try:
            data = response.json()
        except ValueError as exc:
            observe_upstream_request(cache_keys.POSTCODES, "invalid_json", duration)
            raise UpstreamError.from_status(response.status_code, response.text) from exc

        if not isinstance(data, dict) or data.get("status") != 200:
            observe_upstream_request(cache_keys.POSTCODES, "not_found", duration)
            message = data.get("error") if isinstance(data, dict) else None
            raise InvalidPostcodeError(message or "Invalid postcode")

        result = data.get("result") or {}
        try:
            coordinates = Coordinates(
                lat=float(result["latitude"]), lon=float(result["longitude"])
            )
        except (KeyError, TypeError, ValueError) as exc:
            # Terminated or non-geographic postcodes carry null coordinates.
            observe_upstream_request(cache_keys.POSTCODES, "not_found", duration)
            raise InvalidPostcodeError("Postcode has no known location") from exc

        observe_upstream_request(cache_keys.POSTCODES, "success", duration)
        logger.debug("Resolved postcode %s to %s", normalized, coordinates)
        return coordinates


__all__ = ["PostcodeGeocoder", "normalize_postcode"]
