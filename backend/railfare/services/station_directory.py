"""In-memory station directory with great-circle nearest-neighbour queries."""

from __future__ import annotations

import logging
import math
from typing import Any

from railfare.services.dto import Coordinates, NearbyStation, Station
from railfare.services.fare_mapping import map_stations, normalize_code

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


def haversine_km(a: Coordinates | Station, b: Coordinates | Station) -> float:
    """Great-circle distance between two points in kilometres."""
    d_lat = math.radians(b.lat - a.lat)
    d_lon = math.radians(b.lon - a.lon)
    s = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat))
        * math.cos(math.radians(b.lat))
        * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(s), math.sqrt(1 - s))


class StationDirectory:
    """Holds the active station set.

    The set is replaced wholesale by ``load_from``; readers always see either
    the previous or the new tuple, never a partially built one.
    """

    def __init__(self, stations: list[Station] | None = None) -> None:
        self._stations: tuple[Station, ...] = ()
        self._by_code: dict[str, Station] = {}
        if stations:
            self._replace(stations)

    def __len__(self) -> int:
        return len(self._stations)

    @property
    def stations(self) -> tuple[Station, ...]:
        return self._stations

    def load_from(self, raw_stations: Any) -> int:
        """Replace the active set from a raw stations document."""
        stations = map_stations(raw_stations)
        self._replace(stations)
        logger.debug("Station directory loaded with %d stations", len(stations))
        return len(stations)

    def _replace(self, stations: list[Station]) -> None:
        by_code = {station.code: station for station in stations}
        self._stations, self._by_code = tuple(stations), by_code

    def nearest(
        self, center: Coordinates, radius_km: float, limit: int
    ) -> list[NearbyStation]:
        """Stations within ``radius_km`` of ``center``, closest first, at most ``limit``.

        Equal distances keep directory order (``sorted`` is stable).
        """
        if limit <= 0 or radius_km < 0:
            return []
        candidates = [
            NearbyStation(station=station, distance_km=haversine_km(center, station))
            for station in self._stations
        ]
        within = [item for item in candidates if item.distance_km <= radius_km]
        within.sort(key=lambda item: item.distance_km)
        return within[:limit]

    def get(self, code: str) -> Station | None:
        normalized = normalize_code(code)
        return self._by_code.get(normalized) if normalized else None

    def find(self, value: str) -> Station | None:
        """Look a station up by CRS code or exact (case-insensitive) name."""
        value = (value or "").strip()
        if not value:
            return None
        station = self.get(value)
        if station is not None:
            return station
        lowered = value.lower()
        for candidate in self._stations:
            if candidate.name.lower() == lowered:
                return candidate
        return None

    def search(self, query: str, limit: int = 10) -> list[Station]:
        """Stations whose name contains ``query`` or whose code starts with it."""
        q = (query or "").strip().lower()
        if not q or limit <= 0:
            return []
        matches: list[Station] = []
        for station in self._stations:
            if q in station.name.lower() or station.code.lower().startswith(q):
                matches.append(station)
                if len(matches) >= limit:
                    break
        return matches


__all__ = ["EARTH_RADIUS_KM", "StationDirectory", "haversine_km"]
