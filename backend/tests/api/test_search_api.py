"""Tests for the location and railcard search endpoints."""

from __future__ import annotations

import pytest

from conftest import LOC_PREFIX, RAILCARDS_PREFIX, SAMPLE_STATIONS, STATIONS_URL


@pytest.mark.parametrize("path", ["/api/loc", "/api/railcards"])
@pytest.mark.parametrize("params", [{}, {"term": ""}, {"term": "   "}])
def test_empty_term_returns_empty_list_without_upstream_call(
    api_client, fake_upstream, path, params
):
    response = api_client.get(path, params=params)

    assert response.status_code == 200
    assert response.json() == []
    assert fake_upstream.requests == []


def test_loc_proxies_upstream_verbatim(api_client, fake_upstream):
    payload = [{"location": "St Albans City", "code": "SAC", "extra": {"k": 1}}]
    fake_upstream.json(LOC_PREFIX, payload)

    response = api_client.get("/api/loc", params={"term": "St Albans"})

    assert response.status_code == 200
    assert response.json() == payload
    (request,) = fake_upstream.calls(LOC_PREFIX)
    assert request.url.params["term"] == "St Albans"


def test_railcards_upstream_error_status_is_mirrored(api_client, fake_upstream):
    fake_upstream.text(RAILCARDS_PREFIX, "rate limited", status_code=429)

    response = api_client.get("/api/railcards", params={"term": "young"})

    assert response.status_code == 429
    assert response.json() == {"error": "Failed to search railcards"}


def test_loc_network_error_is_502(api_client, fake_upstream):
    fake_upstream.fail(LOC_PREFIX)

    response = api_client.get("/api/loc", params={"term": "man"})

    assert response.status_code == 502
    assert response.json() == {"error": "Failed to search locations"}


def test_suggest_destinations_combines_sources(api_client, fake_upstream):
    fake_upstream.json(STATIONS_URL, SAMPLE_STATIONS)
    fake_upstream.json(LOC_PREFIX, [{"location": "London Terminals", "code": "1072"}])

    response = api_client.get("/api/suggest/destinations", params={"q": "london"})

    assert response.status_code == 200
    assert response.json() == [
        {"name": "London Paddington", "code": "PAD"},
        {"name": "London Marylebone", "code": "MYB"},
        {"name": "London Euston", "code": "EUS"},
        {"name": "London Terminals", "code": "1072"},
    ]


def test_suggest_railcards(api_client, fake_upstream):
    fake_upstream.json(
        RAILCARDS_PREFIX,
        [{"code": "YNG", "name": "16-25 Railcard"}, {"code": "YNG", "name": "dup"}],
    )

    response = api_client.get("/api/suggest/railcards", params={"q": "16"})

    assert response.json() == [{"name": "16-25 Railcard", "code": "YNG"}]
