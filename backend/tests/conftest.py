from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from railfare.core.config import Settings  # noqa: E402
from railfare.main import create_app  # noqa: E402
from railfare.services.cache import TTLCache  # noqa: E402
from railfare.services.upstream_client import UpstreamClient  # noqa: E402

STATIONS_URL = "https://stations.test/stations.json"
BRFARES_URL = "https://brfares.test"
POSTCODES_URL = "https://postcodes.test"

FARES_PREFIX = f"{BRFARES_URL}/legacy_querysimple"
LOC_PREFIX = f"{BRFARES_URL}/legacy_ac_loc"
RAILCARDS_PREFIX = f"{BRFARES_URL}/legacy_ac_rlc"
POSTCODE_PREFIX = f"{POSTCODES_URL}/postcodes/"

SAMPLE_STATIONS: list[dict[str, Any]] = [
    {"name": "London Paddington", "crs": "PAD", "lat": 51.5160, "long": -0.1769},
    {"name": "London Marylebone", "crs": "MYB", "lat": 51.5225, "long": -0.1631},
    {"name": "London Euston", "crs": "EUS", "lat": 51.5282, "long": -0.1337},
    {"name": "Reading", "crs": "RDG", "lat": 51.4586, "long": -0.9718},
    {"name": "Manchester Piccadilly", "crs": "MAN", "lat": 53.4774, "long": -2.2309},
    {"name": "Missing Code", "crs": "", "lat": 51.0, "long": 0.0},
    {"name": "Missing Coordinates", "crs": "NOC"},
]


class FakeUpstream:
    """Routes MockTransport requests to canned responses by URL prefix."""

    def __init__(self) -> None:
        self._routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, prefix: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self._routes[prefix] = handler

    def json(self, prefix: str, payload: Any, status_code: int = 200) -> None:
        self.add(prefix, lambda request: httpx.Response(status_code, json=payload))

    def text(self, prefix: str, body: str, status_code: int) -> None:
        self.add(prefix, lambda request: httpx.Response(status_code, text=body))

    def fail(self, prefix: str) -> None:
        def _raise(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        self.add(prefix, _raise)

    def calls(self, prefix: str) -> list[httpx.Request]:
        return [request for request in self.requests if str(request.url).startswith(prefix)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        for prefix in sorted(self._routes, key=len, reverse=True):
            if url.startswith(prefix):
                return self._routes[prefix](request)
        return httpx.Response(404, text=f"no fake route for {url}")


@pytest.fixture()
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture()
def fallback_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "stations.json"


@pytest.fixture()
def settings(fallback_path: Path) -> Settings:
    return Settings(
        STATIONS_SOURCE_URL=STATIONS_URL,
        BRFARES_BASE_URL=BRFARES_URL,
        POSTCODES_BASE_URL=POSTCODES_URL,
        STATIONS_FALLBACK_PATH=str(fallback_path),
        STATIONS_REFRESH_ENABLED=False,
        LOG_LEVEL="debug",
    )


@pytest.fixture()
def http_client(fake_upstream: FakeUpstream) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_upstream.handler))


@pytest.fixture()
def cache() -> TTLCache:
    return TTLCache(max_entries=100)


@pytest.fixture()
def upstream_client(
    http_client: httpx.AsyncClient, cache: TTLCache, settings: Settings
) -> UpstreamClient:
    return UpstreamClient(http_client, cache, settings)


@pytest.fixture()
def api_client(settings: Settings, http_client: httpx.AsyncClient) -> Iterator[TestClient]:
    """Full application wired to the fake upstream, background refresh disabled."""
    app = create_app(settings, http_client=http_client)
    with TestClient(app) as client:
        yield client
