"""Cheapest-fare comparison across several origin stations."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence

from railfare.services.dto import (
    ComparisonRow,
    JourneyOptions,
    LocationOption,
    RailcardOption,
    Station,
)
from railfare.services.errors import UpstreamError
from railfare.services.fare_mapping import (
    cheapest_fare,
    map_locations,
    map_railcards,
    normalize_code,
    parse_bracketed_code,
)
from railfare.services.station_directory import StationDirectory
from railfare.services.upstream_client import UpstreamClient

logger = logging.getLogger(__name__)

LOCAL_SUGGESTION_LIMIT = 10
DESTINATION_SUGGESTION_LIMIT = 12
MIN_DESTINATION_QUERY = 2


def unique_codes(codes: Iterable[str]) -> list[str]:
    """Normalize origin codes, dropping blanks and repeats but keeping order."""
    result: list[str] = []
    seen: set[str] = set()
    for raw in codes:
        code = (raw or "").strip().upper()
        if code and code not in seen:
            seen.add(code)
            result.append(code)
    return result


class FareComparisonEngine:
    """Queries one fare per origin and ranks the results by price."""

    def __init__(self, client: UpstreamClient, directory: StationDirectory) -> None:
        self._client = client
        self._directory = directory

    async def compare(
        self,
        dest_code: str,
        origin_codes: Sequence[str],
        options: JourneyOptions | None = None,
        dest_name: str | None = None,
    ) -> list[ComparisonRow]:
        """Return one row per origin that priced, cheapest first.

        A failing or unpriced origin is skipped; it never aborts the others.
        An empty list is a valid outcome.
        """
        options = options or JourneyOptions()
        dest_code = dest_code.strip().upper()
        if dest_name is None:
            station = self._directory.get(dest_code)
            dest_name = station.name if station else dest_code

        if options.is_return and (options.return_date or options.return_time):
            logger.debug(
                "Return date/time are not supported by the fare query; sending return flag only"
            )

        origins = unique_codes(origin_codes)
        results = await asyncio.gather(
            *(self._compare_one(origin, dest_code, dest_name, options) for origin in origins),
            return_exceptions=True,
        )

        rows: list[ComparisonRow] = []
        for origin, result in zip(origins, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning("Fare fetch error for %s -> %s: %s", origin, dest_code, result)
                continue
            if result is not None:
                rows.append(result)

        rows.sort(key=lambda row: row.price_minor_units)
        return rows

    async def _compare_one(
        self,
        origin: str,
        dest_code: str,
        dest_name: str,
        options: JourneyOptions,
    ) -> ComparisonRow | None:
        document = await self._client.query_fares(options.fare_query(origin, dest_code))
        quote = cheapest_fare(document)
        if quote is None:
            logger.debug("No priced fares for %s -> %s", origin, dest_code)
            return None

        station = self._directory.get(origin)
        return ComparisonRow(
            origin_code=origin,
            origin_name=station.name if station else origin,
            dest_code=dest_code,
            dest_name=dest_name,
            ticket_code=quote.ticket_code,
            ticket_name=quote.ticket_name,
            price_minor_units=quote.price_minor_units,
        )

    async def suggest_destinations(self, query: str) -> list[LocationOption]:
        """Merge local station matches with the remote location search."""
        query = (query or "").strip()
        if len(query) < MIN_DESTINATION_QUERY:
            return []

        local = [
            LocationOption(name=station.name, code=station.code)
            for station in self._directory.search(query, LOCAL_SUGGESTION_LIMIT)
        ]
        try:
            remote = map_locations(await self._client.search_locations(query))
        except UpstreamError as exc:
            logger.info("Location search unavailable, using local matches: %s", exc)
            remote = []

        merged: dict[str, LocationOption] = {}
        for option in [*local, *remote]:
            merged.setdefault(option.code, option)
        return list(merged.values())[:DESTINATION_SUGGESTION_LIMIT]

    async def suggest_railcards(self, query: str) -> list[RailcardOption]:
        query = (query or "").strip()
        if not query:
            return []
        try:
            return map_railcards(await self._client.search_railcards(query))
        except UpstreamError as exc:
            logger.info("Railcard search unavailable: %s", exc)
            return []

    async def resolve_destination(self, value: str) -> tuple[str, str]:
        """Turn user input into a ``(code, name)`` pair.

        Accepts a CRS code, an exact station name, or a ``"Name (CRS)"``
        suggestion label. Anything else falls back to the first destination
        suggestion for the text, when there is one.
        """
        value = (value or "").strip()
        station: Station | None = self._directory.find(value)
        if station is None:
            bracketed = parse_bracketed_code(value.upper())
            if bracketed:
                station = self._directory.get(bracketed)
                if station is None:
                    name = value[: value.rfind("(")].strip() or bracketed
                    return bracketed, name
        if station is not None:
            return station.code, station.name

        code = normalize_code(value)
        if code is None:
            suggestions = await self.suggest_destinations(value)
            if suggestions:
                return suggestions[0].code, suggestions[0].name
        return (code or value.upper()), value


def parse_railcard(value: str | None) -> str | None:
    """Accept either a bare railcard code or a ``"Name (CODE)"`` label."""
    value = (value or "").strip()
    if not value:
        return None
    bracketed = parse_bracketed_code(value)
    if bracketed:
        return bracketed
    return value.upper() if len(value) == 3 and value.isalnum() else None


__all__ = ["FareComparisonEngine", "parse_railcard", "unique_codes"]
