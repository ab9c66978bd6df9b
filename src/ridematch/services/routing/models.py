"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional

DESTINATION_STOP_ID = -1
DESTINATION_STOP_NAME = "Destination"

RouteSource = Literal["provider", "estimate"]


@dataclass(slots=True)
class StopDetail:
    stop_number: int
    passenger_id: int
    passenger_name: str
    distance_from_previous: float
    time_from_previous: float
    cumulative_distance: float
    cumulative_time: float
    estimated_arrival_time: Optional[str] = None
    estimated_departure_time: Optional[str] = None

    @property
    def is_destination(self) -> bool:
        return self.passenger_id == DESTINATION_STOP_ID


@dataclass(slots=True)
class RouteDetails:
    vehicle_id: int
    total_distance: float
    total_time: float
    departure_time: Optional[str] = None
    stop_details: List[StopDetail] = field(default_factory=list)
    source: RouteSource = "estimate"

    def stop_for_passenger(self, passenger_id: int) -> StopDetail | None:
        """Return the stop serving ``passenger_id`` regardless of its position."""
        for stop in self.stop_details:
            if stop.passenger_id == passenger_id:
                return stop
        return None

    @property
    def destination_stop(self) -> StopDetail | None:
        if self.stop_details and self.stop_details[-1].is_destination:
            return self.stop_details[-1]
        return None
