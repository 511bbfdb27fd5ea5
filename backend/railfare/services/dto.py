"""Data transfer objects shared by the fare finder services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

JourneyType = Literal["single", "return"]


@dataclass(frozen=True)
class Coordinates:
    """A WGS84 point."""

    lat: float
    lon: float


@dataclass(frozen=True)
class Station:
    """A railway station identified by its CRS code."""

    name: str
    code: str
    lat: float
    lon: float


@dataclass(frozen=True)
class NearbyStation:
    """A station paired with its great-circle distance from a search centre."""

    station: Station
    distance_km: float


@dataclass(frozen=True)
class FareQuote:
    """Cheapest adult fare picked from a fare document."""

    ticket_code: str
    ticket_name: str
    price_minor_units: int


@dataclass(frozen=True)
class ComparisonRow:
    """Cheapest fare from one origin to the destination."""

    origin_code: str
    origin_name: str
    dest_code: str
    dest_name: str
    ticket_code: str
    ticket_name: str
    price_minor_units: int


@dataclass(frozen=True)
class LocationOption:
    """Destination suggestion."""

    name: str
    code: str


@dataclass(frozen=True)
class RailcardOption:
    """Railcard suggestion."""

    name: str
    code: str


@dataclass(frozen=True)
class FareQuery:
    """Parameters forwarded to the legacy fare query endpoint."""

    origin: str
    destination: str
    date: str | None = None
    time: str | None = None
    railcard: str | None = None
    return_journey: bool = False

    def to_params(self) -> dict[str, str]:
        params = {"orig": self.origin, "dest": self.destination}
        if self.date:
            params["date"] = self.date
        if self.time:
            params["time"] = self.time
        if self.railcard:
            params["rlc"] = self.railcard
        if self.return_journey:
            params["rtn"] = "1"
        return params


@dataclass(frozen=True)
class JourneyOptions:
    """Journey parameters collected for a fare comparison.

    ``return_date`` and ``return_time`` are accepted for completeness but the
    legacy fare query has no parameter for them; only the return flag is sent.
    """

    journey: JourneyType = "single"
    date: str | None = None
    time: str | None = None
    return_date: str | None = None
    return_time: str | None = None
    railcard: str | None = None

    @property
    def is_return(self) -> bool:
        return self.journey == "return"

    def fare_query(self, origin: str, destination: str) -> FareQuery:
        return FareQuery(
            origin=origin,
            destination=destination,
            date=self.date,
            time=self.time,
            railcard=self.railcard,
            return_journey=self.is_return,
        )


@dataclass(frozen=True)
class StationsSnapshot:
    """Raw stations document plus where it came from (``remote`` or ``fallback``)."""

    stations: Any
    source: Literal["remote", "fallback"]


__all__ = [
    "ComparisonRow",
    "Coordinates",
    "FareQuery",
    "FareQuote",
    "JourneyOptions",
    "JourneyType",
    "LocationOption",
    "NearbyStation",
    "RailcardOption",
    "Station",
    "StationsSnapshot",
]
