from fastapi import APIRouter

from railfare.api.endpoints.fares import router as fares_router
from railfare.api.endpoints.search import router as search_router
from railfare.api.endpoints.stations import router as stations_router

api_router = APIRouter()
api_router.include_router(stations_router, tags=["stations"])
api_router.include_router(search_router, tags=["search"])
api_router.include_router(fares_router, tags=["fares"])
