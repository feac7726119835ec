"""
api/routes/health.py
--------------------
Health-check endpoint, used by load balancers and container health checks.
"""
from __future__ import annotations

from fastapi import APIRouter

import config
from api.responses import success

router = APIRouter()


@router.get("/health", summary="Health check")
def health() -> dict:
    """Returns 200 OK when the service is running, plus which live providers are configured."""
    return success(
        {
            "status":  "ok",
            "service": config.SERVICE_NAME,
            "providers": {
                "googleMaps":     bool(config.GOOGLE_PLACES_API_KEY),
                "travelAdvisor":  bool(config.RAPIDAPI_KEY),
            },
            "cacheBackend": config.CACHE_BACKEND,
        },
    )
