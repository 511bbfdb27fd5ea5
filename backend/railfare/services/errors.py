"""Exceptions raised by the upstream-facing services."""

from __future__ import annotations

DEFAULT_UPSTREAM_STATUS = 502
SNIPPET_LIMIT = 200


class UpstreamError(Exception):
    """An external dependency failed, answered non-2xx, or sent unreadable JSON."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body_snippet: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_snippet = body_snippet[:SNIPPET_LIMIT]

    @property
    def http_status(self) -> int:
        """Status to mirror back to callers, 502 when the upstream gave none."""
        return self.status_code or DEFAULT_UPSTREAM_STATUS

    @classmethod
    def from_status(cls, status_code: int, body: str) -> "UpstreamError":
        snippet = body[:SNIPPET_LIMIT]
        return cls(f"Upstream {status_code}: {snippet}", status_code, snippet)


class InvalidPostcodeError(Exception):
    """Raised when the geocoding service rejects a postcode."""


class StationsUnavailableError(Exception):
    """Raised when neither the remote stations list nor the local mirror is usable."""

    def __init__(self, status_code: int | None = None) -> None:
        super().__init__("Failed to retrieve stations")
        self.status_code = status_code

    @property
    def http_status(self) -> int:
        return self.status_code or DEFAULT_UPSTREAM_STATUS


__all__ = [
    "UpstreamError",
    "InvalidPostcodeError",
    "StationsUnavailableError",
]
