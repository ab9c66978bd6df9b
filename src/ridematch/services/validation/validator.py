"""Capacity, uniqueness and coverage checks over a scheduled solution.

Every check runs regardless of what the others find, and problems are
reported as findings on the returned :class:`ValidationReport`; nothing here
raises for an invalid assignment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ...models.domain import Passenger, Solution


@dataclass(slots=True)
class ValidationReport:
    total_vehicles: int
    used_vehicles: int
    required_count: int
    assigned_count: int
    capacity_exceeded_vehicle_ids: list[int] = field(default_factory=list)
    duplicate_passenger_ids: list[int] = field(default_factory=list)
    duplicate_assignments: dict[int, list[int]] = field(default_factory=dict)
    uncovered_passenger_ids: list[int] = field(default_factory=list)
    total_distance: float = 0.0
    total_time: float = 0.0
    average_time: float = 0.0

    @property
    def capacity_exceeded(self) -> bool:
        return bool(self.capacity_exceeded_vehicle_ids)

    @property
    def uncovered_count(self) -> int:
        return len(self.uncovered_passenger_ids)

    @property
    def all_required_assigned(self) -> bool:
        return not self.uncovered_passenger_ids

    @property
    def is_valid(self) -> bool:
        return not (self.capacity_exceeded or self.duplicate_passenger_ids or self.uncovered_passenger_ids)

    def to_text(self) -> str:
        lines = [
            "Validation Results:",
            f"All passengers assigned: {self.all_required_assigned}",
            f"Assigned passengers: {self.assigned_count}/{self.required_count}",
            f"Capacity exceeded: {self.capacity_exceeded}",
        ]
        if self.capacity_exceeded_vehicle_ids:
            lines.append(f"Vehicles over capacity: {', '.join(map(str, self.capacity_exceeded_vehicle_ids))}")
        if self.duplicate_passenger_ids:
            lines.append(f"Passengers with multiple assignments: {len(self.duplicate_passenger_ids)}")
            lines.append(f"IDs: {', '.join(map(str, self.duplicate_passenger_ids))}")
        if self.uncovered_passenger_ids:
            lines.append(f"Unassigned passengers: {', '.join(map(str, self.uncovered_passenger_ids))}")
        lines.extend(
            [
                "",
                "Statistics:",
                f"Total distance: {self.total_distance:.2f} km",
                f"Total time: {self.total_time:.2f} minutes",
                f"Average time per vehicle: {self.average_time:.2f} minutes",
                f"Used vehicles: {self.used_vehicles}/{self.total_vehicles}",
            ]
        )
        return "\n".join(lines) + "\n"


def passengers_requiring_ride(passengers: Iterable[Passenger]) -> list[Passenger]:
    """Passengers marked available for the scheduled day."""
    return [passenger for passenger in passengers if passenger.is_available]


def validate_solution(solution: Solution, required_passengers: Iterable[Passenger]) -> ValidationReport:
    capacity_exceeded: list[int] = []
    seen: dict[int, int] = {}
    holders: dict[int, list[int]] = {}
    duplicates: list[int] = []

    for vehicle in solution.vehicles:
        if len(vehicle.assigned_passengers) > vehicle.capacity:
            capacity_exceeded.append(vehicle.id)
        for passenger in vehicle.assigned_passengers:
            holders.setdefault(passenger.id, []).append(vehicle.id)
            if passenger.id in seen:
                if passenger.id not in duplicates:
                    duplicates.append(passenger.id)
            else:
                seen[passenger.id] = vehicle.id

    required_ids: list[int] = []
    for passenger in required_passengers:
        if passenger.id not in required_ids:
            required_ids.append(passenger.id)
    uncovered = [passenger_id for passenger_id in required_ids if passenger_id not in seen]

    used = solution.used_vehicles()
    total_distance = sum(vehicle.total_distance for vehicle in solution.vehicles)
    total_time = sum(vehicle.total_time for vehicle in solution.vehicles)
    average_time = total_time / len(used) if used else 0.0

    return ValidationReport(
        total_vehicles=len(solution.vehicles),
        used_vehicles=len(used),
        required_count=len(required_ids),
        assigned_count=len(seen),
        capacity_exceeded_vehicle_ids=capacity_exceeded,
        duplicate_passenger_ids=duplicates,
        duplicate_assignments={passenger_id: holders[passenger_id] for passenger_id in duplicates},
        uncovered_passenger_ids=uncovered,
        total_distance=total_distance,
        total_time=total_time,
        average_time=average_time,
    )
