"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings
from ...services.routing.directions_client import get_directions_client

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/directions", status_code=status.HTTP_200_OK)
def health_directions() -> dict:
    """Check that the directions provider accepts the configured API key."""
    if not settings.google_api_key:
        return {"service": "directions", "configured": False, "healthy": False}
    try:
        client = get_directions_client()
        healthy = client.validate_api_key()
        return {
            "service": "directions",
            "configured": True,
            "healthy": healthy,
            "cache": client.cache_stats(),
        }
    except Exception as e:
        return {"service": "directions", "configured": True, "healthy": False, "error": str(e)}
