"""Per-vehicle timetable computation for a candidate solution.

For every vehicle with passengers the scheduler obtains route legs from the
directions provider (falling back to the geometric estimate on any provider
failure), resolves the vehicle departure time and each passenger's pickup
time, and writes the results back onto the vehicle and passenger records.
Vehicles are independent: one vehicle failing never stops the others.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Callable

from ...config import settings
from ...models.domain import Destination, Solution, Vehicle
from .directions_client import DirectionsClient
from .errors import DirectionsError
from .estimator import estimate_route
from .models import RouteDetails
from .time_format import (
    canonical_time,
    combine_date_and_time,
    ensure_future,
    normalize_time,
    propagate_backward,
    propagate_forward,
    truncate_to_minute,
)

logger = logging.getLogger(__name__)


class RouteScheduler:
    def __init__(
        self,
        destination: Destination,
        client: DirectionsClient | None = None,
        clock: Callable[[], datetime] = datetime.now,
        average_speed_kmh: float | None = None,
        max_workers: int | None = None,
    ) -> None:
        self.destination = destination
        self.client = client
        self._clock = clock
        self.average_speed_kmh = average_speed_kmh if average_speed_kmh is not None else settings.average_speed_kmh
        self.max_workers = max_workers if max_workers is not None else settings.scheduler_max_workers
        self.route_details: dict[int, RouteDetails] = {}
        self.cancelled = False

    def schedule(
        self,
        solution: Solution,
        target_arrival: datetime | None = None,
        cancel_event: threading.Event | None = None,
    ) -> dict[int, RouteDetails]:
        """Compute timetables using the provider, falling back per vehicle to the estimate."""
        return self._run(solution, target_arrival, cancel_event, use_provider=True)

    def estimate(
        self,
        solution: Solution,
        target_arrival: datetime | None = None,
        cancel_event: threading.Event | None = None,
    ) -> dict[int, RouteDetails]:
        """Compute timetables from the geometric estimate only."""
        return self._run(solution, target_arrival, cancel_event, use_provider=False)

    def _run(
        self,
        solution: Solution,
        target_arrival: datetime | None,
        cancel_event: threading.Event | None,
        use_provider: bool,
    ) -> dict[int, RouteDetails]:
        self.cancelled = False
        target = self._future_target(target_arrival)
        if target is not None:
            logger.info(f"Target arrival time for route calculation: {target:%Y-%m-%d %H:%M:%S}")

        # Totals only describe this pass; skipped, failed and cancelled vehicles stay at zero.
        for vehicle in solution.vehicles:
            vehicle.total_distance = 0.0
            vehicle.total_time = 0.0

        vehicles = [vehicle for vehicle in solution.vehicles if vehicle.assigned_passengers]
        results: dict[int, RouteDetails] = {}

        if self.max_workers > 1 and len(vehicles) > 1:
            self._run_parallel(vehicles, target, cancel_event, use_provider, results)
        else:
            for vehicle in vehicles:
                if cancel_event is not None and cancel_event.is_set():
                    self._mark_cancelled(len(vehicles) - len(results))
                    break
                details = self._schedule_vehicle_isolated(vehicle, target, use_provider)
                if details is not None:
                    results[vehicle.id] = details

        self.route_details = results
        return results

    def _run_parallel(
        self,
        vehicles: list[Vehicle],
        target: datetime | None,
        cancel_event: threading.Event | None,
        use_provider: bool,
        results: dict[int, RouteDetails],
    ) -> None:
        def work(vehicle: Vehicle) -> RouteDetails | None:
            if cancel_event is not None and cancel_event.is_set():
                return None
            return self._schedule_vehicle_isolated(vehicle, target, use_provider)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(work, vehicle): vehicle for vehicle in vehicles}
            for future in as_completed(futures):
                details = future.result()
                if details is not None:
                    results[futures[future].id] = details

        if cancel_event is not None and cancel_event.is_set() and len(results) < len(vehicles):
            self._mark_cancelled(len(vehicles) - len(results))

    def _mark_cancelled(self, remaining: int) -> None:
        self.cancelled = True
        logger.warning(f"Scheduling run cancelled, {remaining} vehicles left without a timetable")

    def _future_target(self, target_arrival: datetime | None) -> datetime | None:
        if target_arrival is None:
            return None
        return ensure_future(truncate_to_minute(target_arrival), self._clock())

    def _schedule_vehicle_isolated(
        self, vehicle: Vehicle, target: datetime | None, use_provider: bool
    ) -> RouteDetails | None:
        try:
            return self._schedule_vehicle(vehicle, target, use_provider)
        except Exception:
            logger.exception(f"Failed to compute a timetable for vehicle {vehicle.id}")
            return None

    def _schedule_vehicle(
        self, vehicle: Vehicle, target: datetime | None, use_provider: bool
    ) -> RouteDetails | None:
        details = self._provider_route(vehicle, target) if use_provider else None
        if details is None:
            details = estimate_route(
                vehicle,
                self.destination.latitude,
                self.destination.longitude,
                average_speed_kmh=self.average_speed_kmh,
            )
        if details is None:
            return None

        departure = self._resolve_departure(vehicle, details, target)
        self._resolve_stop_times(vehicle, details, departure)

        vehicle.total_distance = details.total_distance
        vehicle.total_time = details.total_time
        return details

    def _provider_route(self, vehicle: Vehicle, target: datetime | None) -> RouteDetails | None:
        if self.client is None or not self.client.is_configured:
            logger.debug(f"No directions client configured, estimating route for vehicle {vehicle.id}")
            return None
        try:
            return self.client.get_route_details(
                vehicle, self.destination.latitude, self.destination.longitude, target
            )
        except DirectionsError as error:
            logger.warning(f"Directions unavailable for vehicle {vehicle.id} ({error}), using estimated route")
            return None

    def _resolve_departure(
        self, vehicle: Vehicle, details: RouteDetails, target: datetime | None
    ) -> datetime | None:
        """Pick the departure time and return it as a future anchor for propagation.

        Priority: provider departure, then target arrival minus trip time, then
        the departure the vehicle already carried from an earlier pass.
        """
        provider_departure = normalize_time(details.departure_time)
        if provider_departure is not None:
            anchor = self._anchor_from_text(provider_departure, target)
            logger.info(f"Vehicle {vehicle.id} departure time from provider: {provider_departure}")
        elif target is not None:
            anchor = propagate_backward(target, details.total_time)
            logger.info(
                f"Vehicle {vehicle.id} departure time calculated from target arrival: {canonical_time(anchor)}"
            )
        else:
            previous = normalize_time(vehicle.departure_time)
            anchor = self._anchor_from_text(previous, target) if previous is not None else None
            if anchor is None:
                logger.info(f"Vehicle {vehicle.id} has no departure time and no target arrival")

        departure_text = canonical_time(anchor) if anchor is not None else None
        details.departure_time = departure_text
        vehicle.departure_time = departure_text
        return anchor

    def _anchor_from_text(self, departure: str, target: datetime | None) -> datetime:
        now = self._clock()
        day = target.date() if target is not None else now.date()
        return ensure_future(combine_date_and_time(day, departure), now)

    def _resolve_stop_times(self, vehicle: Vehicle, details: RouteDetails, departure: datetime | None) -> None:
        """Fill every stop's times and mirror passenger pickups, matching stops by passenger id."""
        for stop in details.stop_details:
            arrival = normalize_time(stop.estimated_arrival_time)
            if arrival is None and departure is not None:
                arrival = canonical_time(propagate_forward(departure, stop.cumulative_time))
            stop.estimated_arrival_time = arrival
            stop.estimated_departure_time = normalize_time(stop.estimated_departure_time) or (
                None if stop.is_destination else arrival
            )

        for passenger in vehicle.assigned_passengers:
            stop = details.stop_for_passenger(passenger.id)
            if stop is None:
                logger.warning(f"No stop details found for passenger {passenger.id} in vehicle {vehicle.id}")
                passenger.estimated_pickup_time = None
                continue
            passenger.estimated_pickup_time = stop.estimated_arrival_time
            logger.info(
                f"Passenger {passenger.id} pickup time: {passenger.estimated_pickup_time or 'not scheduled'}"
            )
