"""Shared error responses for API endpoints.

Every proxy failure is reported as ``{"error": "<message>"}`` with the
upstream's status code, or 502 when there is none.
"""

from fastapi import status
from fastapi.responses import JSONResponse

from railfare.services.errors import DEFAULT_UPSTREAM_STATUS


def error_response(status_code: int | None, message: str) -> JSONResponse:
    """Build a JSON error body.

    Args:
        status_code: HTTP status to send; falsy values become 502.
        message: Human readable message for the ``error`` field.
    """
    return JSONResponse(
        status_code=status_code or DEFAULT_UPSTREAM_STATUS,
        content={"error": message},
    )


def bad_request(message: str) -> JSONResponse:
    """Create a standardized HTTP 400 response for missing or invalid parameters."""
    return error_response(status.HTTP_400_BAD_REQUEST, message)
