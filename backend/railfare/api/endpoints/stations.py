"""
Station endpoints.

Provides the mirrored stations list and postcode-based nearby station lookup.
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response

from railfare.api.shared.dependencies import get_geocoder, get_stations_mirror
from railfare.api.shared.errors import bad_request, error_response
from railfare.models.fares import NearbyResponse
from railfare.services.errors import (
    InvalidPostcodeError,
    StationsUnavailableError,
    UpstreamError,
)
from railfare.services.geocoder import PostcodeGeocoder, normalize_postcode
from railfare.services.stations_mirror import StationsMirror

logger = logging.getLogger(__name__)

router = APIRouter()

STATIONS_SOURCE_HEADER = "X-Stations-Source"


@router.get(
    "/stations",
    response_model=None,
    summary="Get all UK railway stations (mirrored)",
)
async def list_stations(
    response: Response,
    background_tasks: BackgroundTasks,
    mirror: StationsMirror = Depends(get_stations_mirror),
) -> Any:
    """Return the stations list from cache, remote source or local mirror."""
    try:
        snapshot = await mirror.get_stations()
    except StationsUnavailableError as exc:
        return error_response(exc.http_status, "Failed to retrieve stations")

    if snapshot.source == "remote":
        background_tasks.add_task(mirror.persist_quietly, snapshot.stations)
    response.headers[STATIONS_SOURCE_HEADER] = snapshot.source
    return snapshot.stations


@router.get(
    "/nearby",
    response_model=NearbyResponse,
    summary="Find stations near a UK postcode",
)
async def nearby_stations(
    postcode: Annotated[
        str | None,
        Query(description="UK postcode, spaces and case are ignored."),
    ] = None,
    radius: Annotated[
        float,
        Query(gt=0, le=100, description="Search radius in kilometres (default: 10)."),
    ] = 10.0,
    limit: Annotated[
        int,
        Query(ge=1, le=50, description="Maximum number of stations (default: 10)."),
    ] = 10,
    mirror: StationsMirror = Depends(get_stations_mirror),
    geocoder: PostcodeGeocoder = Depends(get_geocoder),
) -> Any:
    """Geocode the postcode and list stations within the radius, closest first."""
    if not postcode or not postcode.strip():
        return bad_request("postcode is required")

    try:
        directory = await mirror.ensure_directory()
    except StationsUnavailableError as exc:
        return error_response(exc.http_status, "Failed to retrieve stations")

    try:
        center = await geocoder.resolve(postcode)
    except InvalidPostcodeError as exc:
        return bad_request(str(exc))
    except UpstreamError as exc:
        logger.error("postcode error: %s", exc)
        return error_response(exc.http_status, "Failed to look up postcode")

    stations = directory.nearest(center, radius, limit)
    return NearbyResponse.from_dtos(normalize_postcode(postcode), center, stations)
