"""Tolerant mapping utilities for stations, search and fare payloads.

The legacy endpoints have no published schema, so every mapper here accepts
missing fields and the alternative field names seen in the wild, and drops
entries it cannot make sense of instead of failing the whole document.
"""

from __future__ import annotations

import math
import re
from typing import Any

from railfare.services.dto import FareQuote, LocationOption, RailcardOption, Station

RAILCARD_SUGGESTION_LIMIT = 10
_BRACKETED_CODE = re.compile(r"\(([A-Z0-9]{3})\)\s*$")


class DataMapper:
    """Small helpers for reading loosely-shaped JSON."""

    @staticmethod
    def safe_get(data: Any, *keys: str, default: Any = None) -> Any:
        """Return the first truthy value found under any of ``keys``."""
        if not isinstance(data, dict):
            return default
        for key in keys:
            value = data.get(key)
            if value not in (None, ""):
                return value
        return default

    @staticmethod
    def to_float(value: Any) -> float | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            result = float(value)
        except (TypeError, ValueError):
            return None
        return result if math.isfinite(result) else None

    @staticmethod
    def as_list(value: Any) -> list[Any]:
        return value if isinstance(value, list) else []


def normalize_code(value: Any) -> str | None:
    """Return an upper-case 3-letter CRS code, or None when ``value`` is not one."""
    if not isinstance(value, str):
        return None
    code = value.strip().upper()
    if len(code) != 3 or not code.isalpha():
        return None
    return code


def map_station(data: Any) -> Station | None:
    """Map a raw stations-list entry, returning None for malformed entries."""
    code = normalize_code(DataMapper.safe_get(data, "crs", "code"))
    if code is None:
        return None
    lat = DataMapper.to_float(DataMapper.safe_get(data, "lat", "latitude"))
    lon = DataMapper.to_float(DataMapper.safe_get(data, "long", "lon", "longitude"))
    if lat is None or lon is None:
        return None
    name = DataMapper.safe_get(data, "name", "stationName", default=code)
    return Station(name=str(name), code=code, lat=lat, lon=lon)


def map_stations(raw: Any) -> list[Station]:
    """Map a raw stations document, dropping malformed and duplicate entries."""
    stations: list[Station] = []
    seen: set[str] = set()
    for item in DataMapper.as_list(raw):
        station = map_station(item)
        if station is None or station.code in seen:
            continue
        seen.add(station.code)
        stations.append(station)
    return stations


def adult_price(fare: Any) -> int | None:
    """Extract the adult price in minor units from a single fare entry."""
    if not isinstance(fare, dict):
        return None
    candidate = fare.get("adult")
    if not _is_number(candidate):
        price = fare.get("price")
        candidate = price.get("adult") if isinstance(price, dict) else None
    if not _is_number(candidate):
        return None
    return int(round(candidate))


def cheapest_fare(document: Any) -> FareQuote | None:
    """Pick the cheapest priced adult fare, first listed winning ties."""
    if not isinstance(document, dict):
        return None

    best: tuple[int, dict[str, Any]] | None = None
    for fare in DataMapper.as_list(document.get("fares")):
        price = adult_price(fare)
        if price is None:
            continue
        if best is None or price < best[0]:
            best = (price, fare)

    if best is None:
        return None

    price, fare = best
    return FareQuote(
        ticket_code=str(DataMapper.safe_get(fare, "ticket", "ticket_code", default="")),
        ticket_name=str(
            DataMapper.safe_get(fare, "name", "ticket_name", default="Cheapest")
        ),
        price_minor_units=price,
    )


def map_locations(raw: Any) -> list[LocationOption]:
    """Map legacy location search hits, skipping entries without a code."""
    options: list[LocationOption] = []
    for item in DataMapper.as_list(raw):
        code = DataMapper.safe_get(item, "code", "crs")
        if not code:
            continue
        name = DataMapper.safe_get(item, "location", "name", default=code)
        options.append(LocationOption(name=str(name), code=str(code)))
    return options


def map_railcards(raw: Any, limit: int = RAILCARD_SUGGESTION_LIMIT) -> list[RailcardOption]:
    """Map legacy railcard search hits, de-duplicated by code."""
    options: dict[str, RailcardOption] = {}
    for item in DataMapper.as_list(raw):
        code = DataMapper.safe_get(item, "code", "value", "id")
        if not code:
            continue
        code = str(code)
        if code in options:
            continue
        name = DataMapper.safe_get(
            item, "name", "label", "description", "text", default=code
        )
        options[code] = RailcardOption(name=str(name), code=code)
    return list(options.values())[:limit]


def parse_bracketed_code(label: str | None) -> str | None:
    """Extract the trailing ``(ABC)`` code from a suggestion label."""
    if not label:
        return None
    match = _BRACKETED_CODE.search(label.strip())
    return match.group(1) if match else None


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


__all__ = [
    "DataMapper",
    "adult_price",
    "cheapest_fare",
    "map_locations",
    "map_railcards",
    "map_station",
    "map_stations",
    "normalize_code",
    "parse_bracketed_code",
]
