"""Scheduling pass orchestration: timetable every vehicle, then validate the result."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable

from ...config import settings
from ...models.domain import Destination, Passenger, Solution
from ..validation import ValidationReport, passengers_requiring_ride, validate_solution
from .directions_client import DirectionsClient, get_directions_client
from .models import RouteDetails
from .scheduler import RouteScheduler
from .time_format import next_arrival_datetime

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SchedulingResult:
    solution: Solution
    route_details: dict[int, RouteDetails]
    report: ValidationReport
    target_arrival: datetime
    used_directions: bool
    cancelled: bool = False


def run_scheduling_pass(
    solution: Solution,
    destination: Destination,
    passengers: Iterable[Passenger] | None = None,
    *,
    use_directions: bool | None = None,
    client: DirectionsClient | None = None,
    clock: Callable[[], datetime] = datetime.now,
    cancel_event: threading.Event | None = None,
    max_workers: int | None = None,
) -> SchedulingResult:
    """Enrich ``solution`` in place with timetables and validate it.

    ``passengers`` is the pool the solution was built from; those marked
    available must all be assigned. When omitted, coverage is checked against
    the passengers already in the solution.
    """
    target = next_arrival_datetime(destination.target_time, clock(), settings.default_target_time)
    logger.info(
        f"Scheduling {len(solution.vehicles)} vehicles to {destination.name} "
        f"for arrival at {target:%Y-%m-%d %H:%M}"
    )

    should_use = settings.use_directions_api if use_directions is None else use_directions
    if should_use and client is None:
        if settings.google_api_key:
            client = get_directions_client()
        else:
            logger.warning("Directions API enabled but no API key is configured, using estimated routes")
            should_use = False

    scheduler = RouteScheduler(destination, client=client, clock=clock, max_workers=max_workers)
    if should_use:
        logger.info("Fetching routes from the directions provider with arrival_time")
        route_details = scheduler.schedule(solution, target, cancel_event)
    else:
        logger.info("Using estimated routes (directions API disabled)")
        route_details = scheduler.estimate(solution, target, cancel_event)

    if passengers is None:
        required = [passenger for vehicle in solution.vehicles for passenger in vehicle.assigned_passengers]
    else:
        required = passengers_requiring_ride(passengers)
    report = validate_solution(solution, required)

    provider_count = sum(1 for details in route_details.values() if details.source == "provider")
    logger.info(
        f"Assigned {solution.assigned_passenger_count()} passengers to {report.used_vehicles} vehicles "
        f"({provider_count} provider routes, {len(route_details) - provider_count} estimated)"
    )
    if not report.is_valid:
        logger.warning(
            f"Solution has validation findings: capacity={report.capacity_exceeded_vehicle_ids} "
            f"duplicates={report.duplicate_passenger_ids} uncovered={report.uncovered_passenger_ids}"
        )

    return SchedulingResult(
        solution=solution,
        route_details=route_details,
        report=report,
        target_arrival=target,
        used_directions=should_use,
        cancelled=scheduler.cancelled,
    )
