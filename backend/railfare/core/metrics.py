from __future__ import annotations

from prometheus_client import Counter, Histogram

CACHE_EVENTS = Counter(
    "railfare_cache_events_total",
    "Cache operations recorded by the fare finder.",
    labelnames=("cache", "event"),
)
UPSTREAM_REQUESTS = Counter(
    "railfare_upstream_requests_total",
    "Outbound requests to stations, search, fare and postcode services.",
    labelnames=("resource", "result"),
)
UPSTREAM_REQUEST_LATENCY = Histogram(
    "railfare_upstream_request_seconds",
    "Latency of outbound upstream requests.",
    labelnames=("resource",),
)
STATIONS_REFRESH = Counter(
    "railfare_stations_refresh_total",
    "Background stations mirror refresh runs.",
    labelnames=("result",),
)


def record_cache_event(cache: str, event: str) -> None:
    """Increment a cache event counter."""
    CACHE_EVENTS.labels(cache=cache, event=event).inc()


def observe_upstream_request(
    resource: str, result: str, duration_seconds: float
) -> None:
    """Record upstream request result and latency."""
    UPSTREAM_REQUESTS.labels(resource=resource, result=result).inc()
    UPSTREAM_REQUEST_LATENCY.labels(resource=resource).observe(duration_seconds)


def record_stations_refresh(result: str) -> None:
    """Record the outcome of a stations mirror refresh."""
    STATIONS_REFRESH.labels(result=result).inc()
