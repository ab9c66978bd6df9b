"""Geocoding endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from ...schemas.scheduling import (
    AutocompleteResponseModel,
    GeocodeResponseModel,
    ReverseGeocodeResponseModel,
)
from ...services.routing.directions_client import get_directions_client

router = APIRouter(prefix="/geocode", tags=["geocoding"])


@router.get("", response_model=GeocodeResponseModel, status_code=status.HTTP_200_OK)
def geocode(address: str = Query(..., min_length=1, description="Free-form address")) -> GeocodeResponseModel:
    result = get_directions_client().geocode(address)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Could not geocode address '{address}'",
        )
    return GeocodeResponseModel(
        latitude=result.latitude,
        longitude=result.longitude,
        formatted_address=result.formatted_address,
    )


@router.get("/reverse", response_model=ReverseGeocodeResponseModel, status_code=status.HTTP_200_OK)
def reverse_geocode(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
) -> ReverseGeocodeResponseModel:
    """Address for a point; falls back to a coordinate label."""
    return ReverseGeocodeResponseModel(address=get_directions_client().reverse_geocode(lat, lng))


@router.get("/autocomplete", response_model=AutocompleteResponseModel, status_code=status.HTTP_200_OK)
def autocomplete(query: str = Query(default="", description="Partial address")) -> AutocompleteResponseModel:
    return AutocompleteResponseModel(suggestions=get_directions_client().autocomplete(query))
