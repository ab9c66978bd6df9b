"""Serializers for computed timetables."""

from __future__ import annotations

import csv
import io
from typing import Mapping

from ...models.domain import Solution
from ..routing.models import RouteDetails
from ..routing.time_format import format_time_display


def timetable_to_csv(solution: Solution, route_details: Mapping[int, RouteDetails]) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "vehicle_id",
        "departure_time",
        "stop_number",
        "passenger_id",
        "passenger_name",
        "estimated_arrival_time",
        "distance_from_previous_km",
        "cumulative_distance_km",
        "cumulative_time_min",
        "source",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for vehicle in solution.vehicles:
        details = route_details.get(vehicle.id)
        if details is None:
            continue
        for stop in details.stop_details:
            writer.writerow(
                {
                    "vehicle_id": vehicle.id,
                    "departure_time": format_time_display(details.departure_time),
                    "stop_number": stop.stop_number,
                    "passenger_id": stop.passenger_id,
                    "passenger_name": stop.passenger_name,
                    "estimated_arrival_time": format_time_display(stop.estimated_arrival_time),
                    "distance_from_previous_km": round(stop.distance_from_previous, 3),
                    "cumulative_distance_km": round(stop.cumulative_distance, 3),
                    "cumulative_time_min": round(stop.cumulative_time, 2),
                    "source": details.source,
                }
            )
    return buffer.getvalue()
