"""
Fare endpoints.

``/fares`` proxies a single legacy fare query; ``/compare`` ranks the cheapest
fare from several origins to one destination.
"""

import logging
from typing import Annotated, Any, Literal

from fastapi import APIRouter, Depends, Query

from railfare.api.shared.dependencies import (
    get_comparison_engine,
    get_stations_mirror,
    get_upstream_client,
)
from railfare.api.shared.errors import bad_request, error_response
from railfare.models.fares import ComparisonResponse
from railfare.services.dto import FareQuery, JourneyOptions
from railfare.services.errors import StationsUnavailableError, UpstreamError
from railfare.services.fare_comparison import (
    FareComparisonEngine,
    parse_railcard,
    unique_codes,
)
from railfare.services.stations_mirror import StationsMirror
from railfare.services.upstream_client import UpstreamClient

logger = logging.getLogger(__name__)

router = APIRouter()

OptionalText = Annotated[str | None, Query()]


@router.get("/fares", response_model=None, summary="Query fares between two stations")
async def fares(
    orig: OptionalText = None,
    dest: OptionalText = None,
    date: OptionalText = None,
    time: OptionalText = None,
    rlc: OptionalText = None,
    rtn: OptionalText = None,
    client: UpstreamClient = Depends(get_upstream_client),
) -> Any:
    """Return the upstream fare document unchanged."""
    if not orig or not dest:
        return bad_request("orig and dest are required")

    query = FareQuery(
        origin=orig,
        destination=dest,
        date=date or None,
        time=time or None,
        railcard=rlc or None,
        return_journey=bool(rtn),
    )
    try:
        return await client.query_fares(query)
    except UpstreamError as exc:
        logger.error("fares error: %s", exc)
        return error_response(exc.http_status, "Failed to fetch fares")


@router.get(
    "/compare",
    response_model=ComparisonResponse,
    summary="Compare the cheapest fare from several origins",
)
async def compare(
    dest: OptionalText = None,
    orig: Annotated[
        list[str],
        Query(description="Origin CRS codes; repeat or comma-separate."),
    ] = [],
    journey: Annotated[Literal["single", "return"], Query()] = "single",
    date: OptionalText = None,
    time: OptionalText = None,
    ret_date: OptionalText = None,
    ret_time: OptionalText = None,
    rlc: Annotated[
        str | None,
        Query(description="Railcard code or a 'Name (CODE)' suggestion label."),
    ] = None,
    mirror: StationsMirror = Depends(get_stations_mirror),
    engine: FareComparisonEngine = Depends(get_comparison_engine),
) -> Any:
    origins = unique_codes(code for value in orig for code in value.split(","))
    if not dest or not dest.strip() or not origins:
        return bad_request("dest and at least one orig are required")

    try:
        await mirror.ensure_directory()
    except StationsUnavailableError as exc:
        # Names fall back to codes; fares do not depend on the directory.
        logger.warning("Comparing without station names: %s", exc)

    dest_code, dest_name = await engine.resolve_destination(dest)
    options = JourneyOptions(
        journey=journey,
        date=date or None,
        time=time or None,
        return_date=ret_date or None,
        return_time=ret_time or None,
        railcard=parse_railcard(rlc),
    )
    rows = await engine.compare(dest_code, origins, options, dest_name=dest_name)
    return ComparisonResponse.from_dtos(dest_code, dest_name, rows)
