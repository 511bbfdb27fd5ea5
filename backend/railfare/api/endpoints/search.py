"""
Search endpoints.

``/loc`` and ``/railcards`` proxy the legacy autocomplete endpoints verbatim;
``/suggest/*`` return the cleaned-up suggestion lists used by the UI.
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from railfare.api.shared.dependencies import (
    get_comparison_engine,
    get_stations_mirror,
    get_upstream_client,
)
from railfare.api.shared.errors import error_response
from railfare.models.fares import Suggestion
from railfare.services.errors import StationsUnavailableError, UpstreamError
from railfare.services.fare_comparison import FareComparisonEngine
from railfare.services.stations_mirror import StationsMirror
from railfare.services.upstream_client import UpstreamClient

logger = logging.getLogger(__name__)

router = APIRouter()

TermQuery = Annotated[str, Query(description="Search text; empty returns [].")]


@router.get("/loc", response_model=None, summary="Search locations")
async def search_locations(
    term: TermQuery = "",
    client: UpstreamClient = Depends(get_upstream_client),
) -> Any:
    if not term.strip():
        return []
    try:
        return await client.search_locations(term)
    except UpstreamError as exc:
        logger.error("loc error: %s", exc)
        return error_response(exc.http_status, "Failed to search locations")


@router.get("/railcards", response_model=None, summary="Search railcards")
async def search_railcards(
    term: TermQuery = "",
    client: UpstreamClient = Depends(get_upstream_client),
) -> Any:
    if not term.strip():
        return []
    try:
        return await client.search_railcards(term)
    except UpstreamError as exc:
        logger.error("railcards error: %s", exc)
        return error_response(exc.http_status, "Failed to search railcards")


@router.get(
    "/suggest/destinations",
    response_model=list[Suggestion],
    summary="Destination suggestions from local stations and location search",
)
async def suggest_destinations(
    q: TermQuery = "",
    mirror: StationsMirror = Depends(get_stations_mirror),
    engine: FareComparisonEngine = Depends(get_comparison_engine),
) -> list[Suggestion]:
    try:
        await mirror.ensure_directory()
    except StationsUnavailableError as exc:
        logger.warning("Suggesting destinations without local stations: %s", exc)
    options = await engine.suggest_destinations(q)
    return [Suggestion.from_dto(option) for option in options]


@router.get(
    "/suggest/railcards",
    response_model=list[Suggestion],
    summary="Railcard suggestions",
)
async def suggest_railcards(
    q: TermQuery = "",
    engine: FareComparisonEngine = Depends(get_comparison_engine),
) -> list[Suggestion]:
    options = await engine.suggest_railcards(q)
    return [Suggestion.from_dto(option) for option in options]
