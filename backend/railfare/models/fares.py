from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel, Field

from railfare.services.dto import ComparisonRow as ComparisonRowDTO
from railfare.services.dto import Coordinates as CoordinatesDTO
from railfare.services.dto import LocationOption, NearbyStation as NearbyStationDTO
from railfare.services.dto import RailcardOption


class Coordinates(BaseModel):
    lat: float
    lon: float

    @classmethod
    def from_dto(cls, dto: CoordinatesDTO) -> "Coordinates":
        return cls(lat=dto.lat, lon=dto.lon)


class NearbyStation(BaseModel):
    name: str
    code: str = Field(..., description="Three-letter CRS code.")
    lat: float
    lon: float
    distance_km: float = Field(..., ge=0)

    @classmethod
    def from_dto(cls, dto: NearbyStationDTO) -> "NearbyStation":
        station = dto.station
        return cls(
            name=station.name,
            code=station.code,
            lat=station.lat,
            lon=station.lon,
            distance_km=round(dto.distance_km, 3),
        )


class NearbyResponse(BaseModel):
    postcode: str = Field(..., description="Normalized postcode that was searched.")
    center: Coordinates
    stations: list[NearbyStation] = Field(default_factory=list)

    @classmethod
    def from_dtos(
        cls,
        postcode: str,
        center: CoordinatesDTO,
        stations: Iterable[NearbyStationDTO],
    ) -> "NearbyResponse":
        return cls(
            postcode=postcode,
            center=Coordinates.from_dto(center),
            stations=[NearbyStation.from_dto(item) for item in stations],
        )


class Suggestion(BaseModel):
    name: str
    code: str

    @classmethod
    def from_dto(cls, dto: LocationOption | RailcardOption) -> "Suggestion":
        return cls(name=dto.name, code=dto.code)


class ComparisonRow(BaseModel):
    origin_code: str
    origin_name: str
    dest_code: str
    dest_name: str
    ticket_code: str
    ticket_name: str
    price_minor_units: int = Field(..., description="Adult price in pence.")

    @classmethod
    def from_dto(cls, dto: ComparisonRowDTO) -> "ComparisonRow":
        return cls(**dto.__dict__)


class Destination(BaseModel):
    code: str
    name: str


class ComparisonResponse(BaseModel):
    destination: Destination
    rows: list[ComparisonRow] = Field(
        default_factory=list, description="Cheapest fare per origin, cheapest first."
    )

    @classmethod
    def from_dtos(
        cls, dest_code: str, dest_name: str, rows: Iterable[ComparisonRowDTO]
    ) -> "ComparisonResponse":
        return cls(
            destination=Destination(code=dest_code, name=dest_name),
            rows=[ComparisonRow.from_dto(row) for row in rows],
        )
