"""Scheduling request/response schemas."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..models.domain import Destination, Passenger, Vehicle
from ..services.routing.models import RouteDetails
from ..services.validation import ValidationReport


class PassengerModel(BaseModel):
    id: int
    name: str
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: Optional[str] = None
    is_available: bool = True
    estimated_pickup_time: Optional[str] = None

    def to_domain(self) -> Passenger:
        return Passenger(**self.model_dump())


class VehicleModel(BaseModel):
    id: int
    capacity: int = Field(..., ge=1)
    start_latitude: float = Field(..., ge=-90, le=90)
    start_longitude: float = Field(..., ge=-180, le=180)
    driver_name: Optional[str] = None
    assigned_passengers: List[PassengerModel] = Field(default_factory=list)
    departure_time: Optional[str] = None
    total_distance: float = 0.0
    total_time: float = 0.0

    def to_domain(self) -> Vehicle:
        data = self.model_dump(exclude={"assigned_passengers"})
        return Vehicle(**data, assigned_passengers=[p.to_domain() for p in self.assigned_passengers])

    @classmethod
    def from_domain(cls, vehicle: Vehicle) -> "VehicleModel":
        return cls(**asdict(vehicle))


class DestinationModel(BaseModel):
    name: str = "Destination"
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    target_time: Optional[str] = Field(default=None, description="Wall-clock arrival time, e.g. '08:00'.")
    address: Optional[str] = None

    def to_domain(self) -> Destination:
        return Destination(**self.model_dump())


class SchedulingRequest(BaseModel):
    destination: DestinationModel
    vehicles: List[VehicleModel]
    passengers: Optional[List[PassengerModel]] = Field(
        default=None,
        description="Full passenger pool. Available passengers must all be assigned.",
    )
    use_directions: Optional[bool] = Field(
        default=None,
        description="Override the configured provider usage for this pass.",
    )


class StopDetailModel(BaseModel):
    stop_number: int
    passenger_id: int
    passenger_name: str
    distance_from_previous: float
    time_from_previous: float
    cumulative_distance: float
    cumulative_time: float
    estimated_arrival_time: Optional[str] = None
    estimated_departure_time: Optional[str] = None


class RouteDetailsModel(BaseModel):
    vehicle_id: int
    total_distance: float
    total_time: float
    departure_time: Optional[str] = None
    stop_details: List[StopDetailModel]
    source: str

    @classmethod
    def from_domain(cls, details: RouteDetails) -> "RouteDetailsModel":
        return cls(**asdict(details))


class ValidationReportModel(BaseModel):
    is_valid: bool
    total_vehicles: int
    used_vehicles: int
    required_count: int
    assigned_count: int
    capacity_exceeded_vehicle_ids: List[int]
    duplicate_passenger_ids: List[int]
    duplicate_assignments: Dict[int, List[int]]
    uncovered_passenger_ids: List[int]
    uncovered_count: int
    total_distance: float
    total_time: float
    average_time: float

    @classmethod
    def from_domain(cls, report: ValidationReport) -> "ValidationReportModel":
        return cls(
            **asdict(report),
            is_valid=report.is_valid,
            uncovered_count=report.uncovered_count,
        )


class SchedulingResponse(BaseModel):
    target_arrival: datetime
    used_directions: bool
    cancelled: bool
    vehicles: List[VehicleModel]
    route_details: Dict[int, RouteDetailsModel]
    report: ValidationReportModel
    report_text: str


class GeocodeResponseModel(BaseModel):
    latitude: float
    longitude: float
    formatted_address: str


class ReverseGeocodeResponseModel(BaseModel):
    address: str


class AutocompleteResponseModel(BaseModel):
    suggestions: List[str]
