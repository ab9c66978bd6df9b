"""Provider response schemas for the directions, geocoding and autocomplete endpoints.

Only the fields the client reads are declared; anything else in the payload
is ignored. Fields the provider may omit are optional.
"""

from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ProviderModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TextValue(ProviderModel):
    text: Optional[str] = None
    value: Optional[float] = None


class TimeValue(ProviderModel):
    """Leg timing as returned by the provider: display text plus epoch seconds."""

    text: Optional[str] = None
    value: Optional[Union[int, str]] = None
    time_zone: Optional[str] = None


class EncodedPolyline(ProviderModel):
    points: str = ""


class Step(ProviderModel):
    polyline: Optional[EncodedPolyline] = None


class Leg(ProviderModel):
    distance: TextValue = Field(default_factory=TextValue)
    duration: TextValue = Field(default_factory=TextValue)
    arrival_time: Optional[TimeValue] = None
    departure_time: Optional[TimeValue] = None
    start_address: Optional[str] = None
    end_address: Optional[str] = None
    steps: List[Step] = Field(default_factory=list)


class Route(ProviderModel):
    summary: Optional[str] = None
    legs: List[Leg] = Field(default_factory=list)
    waypoint_order: List[int] = Field(default_factory=list)
    overview_polyline: Optional[EncodedPolyline] = None


class StatusResponse(ProviderModel):
    status: str
    error_message: Optional[str] = None


class DirectionsResponse(StatusResponse):
    routes: List[Route] = Field(default_factory=list)


class LatLngLiteral(ProviderModel):
    lat: float
    lng: float


class Geometry(ProviderModel):
    location: LatLngLiteral


class GeocodeResultModel(ProviderModel):
    formatted_address: Optional[str] = None
    geometry: Optional[Geometry] = None


class GeocodeResponse(StatusResponse):
    results: List[GeocodeResultModel] = Field(default_factory=list)


class Prediction(ProviderModel):
    description: str = ""


class AutocompleteResponse(StatusResponse):
    predictions: List[Prediction] = Field(default_factory=list)
