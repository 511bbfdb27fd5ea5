"""
Shared dependency injection functions for API endpoints.

Services are built once by the application factory and kept on
``app.state``; these helpers hand them to endpoints and are the seams tests
override.
"""

from fastapi import Request

from railfare.services.fare_comparison import FareComparisonEngine
from railfare.services.geocoder import PostcodeGeocoder
from railfare.services.stations_mirror import StationsMirror
from railfare.services.upstream_client import UpstreamClient


def get_upstream_client(request: Request) -> UpstreamClient:
    return request.app.state.upstream_client


def get_stations_mirror(request: Request) -> StationsMirror:
    return request.app.state.stations_mirror


def get_geocoder(request: Request) -> PostcodeGeocoder:
    return request.app.state.geocoder


def get_comparison_engine(request: Request) -> FareComparisonEngine:
    return request.app.state.comparison_engine
