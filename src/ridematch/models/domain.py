"""Domain models for vehicles, passengers and the shared destination."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(slots=True)
class Destination:
    """Shared drop-off point with the wall-clock time riders must arrive by."""

    name: str
    latitude: float
    longitude: float
    target_time: Optional[str] = None
    address: Optional[str] = None


@dataclass(slots=True)
class Passenger:
    """A rider waiting to be picked up.

    ``estimated_pickup_time`` is written by the scheduler and always holds a
    canonical ``HH:MM`` string or ``None``.
    """

    id: int
    name: str
    latitude: float
    longitude: float
    address: Optional[str] = None
    is_available: bool = True
    estimated_pickup_time: Optional[str] = None


@dataclass(slots=True)
class Vehicle:
    """A vehicle with its driver start point and ordered pickup list."""

    id: int
    capacity: int
    start_latitude: float
    start_longitude: float
    driver_name: Optional[str] = None
    assigned_passengers: List[Passenger] = field(default_factory=list)
    departure_time: Optional[str] = None
    total_distance: float = 0.0
    total_time: float = 0.0

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ValueError(f"Vehicle {self.id} capacity must be at least 1, got {self.capacity}.")


@dataclass(slots=True)
class Solution:
    """Candidate assignment of passengers to vehicles for one scheduling run."""

    vehicles: List[Vehicle] = field(default_factory=list)

    def used_vehicles(self) -> list[Vehicle]:
        return [vehicle for vehicle in self.vehicles if vehicle.assigned_passengers]

    def assigned_passenger_count(self) -> int:
        return sum(len(vehicle.assigned_passengers) for vehicle in self.vehicles)
