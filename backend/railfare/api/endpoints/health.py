from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/healthz")
async def healthcheck() -> dict[str, bool]:
    """Lightweight liveness probe."""
    return {"ok": True}


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Expose cache, upstream and refresh counters for Prometheus."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
