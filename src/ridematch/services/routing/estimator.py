"""Deterministic route estimate used whenever the directions provider cannot answer."""

from __future__ import annotations

from ...config import settings
from ...models.domain import Vehicle
from ..geospatial import haversine_km, travel_minutes
from .models import DESTINATION_STOP_ID, DESTINATION_STOP_NAME, RouteDetails, StopDetail


def estimate_route(
    vehicle: Vehicle,
    destination_lat: float,
    destination_lng: float,
    average_speed_kmh: float | None = None,
) -> RouteDetails | None:
    """Walk start -> passengers in assignment order -> destination.

    Distances are great-circle kilometres and times are minutes at a fixed
    average speed. Time-of-day fields are left unset for the scheduler to fill.
    Returns ``None`` when the vehicle has nobody to pick up.
    """
    if not vehicle.assigned_passengers:
        return None

    speed = average_speed_kmh if average_speed_kmh is not None else settings.average_speed_kmh
    stops: list[StopDetail] = []
    current_lat, current_lng = vehicle.start_latitude, vehicle.start_longitude
    total_distance = 0.0
    total_time = 0.0

    for number, passenger in enumerate(vehicle.assigned_passengers, start=1):
        distance = haversine_km(current_lat, current_lng, passenger.latitude, passenger.longitude)
        minutes = travel_minutes(distance, speed)
        total_distance += distance
        total_time += minutes
        stops.append(
            StopDetail(
                stop_number=number,
                passenger_id=passenger.id,
                passenger_name=passenger.name,
                distance_from_previous=distance,
                time_from_previous=minutes,
                cumulative_distance=total_distance,
                cumulative_time=total_time,
            )
        )
        current_lat, current_lng = passenger.latitude, passenger.longitude

    distance = haversine_km(current_lat, current_lng, destination_lat, destination_lng)
    minutes = travel_minutes(distance, speed)
    total_distance += distance
    total_time += minutes
    stops.append(
        StopDetail(
            stop_number=len(vehicle.assigned_passengers) + 1,
            passenger_id=DESTINATION_STOP_ID,
            passenger_name=DESTINATION_STOP_NAME,
            distance_from_previous=distance,
            time_from_previous=minutes,
            cumulative_distance=total_distance,
            cumulative_time=total_time,
        )
    )

    return RouteDetails(
        vehicle_id=vehicle.id,
        total_distance=total_distance,
        total_time=total_time,
        stop_details=stops,
        source="estimate",
    )
