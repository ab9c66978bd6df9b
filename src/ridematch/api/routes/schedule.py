"""Scheduling endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Response, status

from ...models.domain import Solution
from ...schemas.scheduling import (
    RouteDetailsModel,
    SchedulingRequest,
    SchedulingResponse,
    ValidationReportModel,
    VehicleModel,
)
from ...services.outputs import timetable_to_csv
from ...services.routing.service import SchedulingResult, run_scheduling_pass

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schedule", tags=["schedule"])


def _run(payload: SchedulingRequest, use_directions: bool | None) -> SchedulingResult:
    solution = Solution(vehicles=[vehicle.to_domain() for vehicle in payload.vehicles])
    passengers = None
    if payload.passengers is not None:
        passengers = [passenger.to_domain() for passenger in payload.passengers]
    return run_scheduling_pass(
        solution,
        payload.destination.to_domain(),
        passengers,
        use_directions=use_directions,
    )


def _to_response(result: SchedulingResult) -> SchedulingResponse:
    return SchedulingResponse(
        target_arrival=result.target_arrival,
        used_directions=result.used_directions,
        cancelled=result.cancelled,
        vehicles=[VehicleModel.from_domain(vehicle) for vehicle in result.solution.vehicles],
        route_details={
            vehicle_id: RouteDetailsModel.from_domain(details)
            for vehicle_id, details in result.route_details.items()
        },
        report=ValidationReportModel.from_domain(result.report),
        report_text=result.report.to_text(),
    )


def _schedule(payload: SchedulingRequest, use_directions: bool | None) -> SchedulingResult:
    try:
        return _run(payload, use_directions)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error scheduling routes: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to schedule routes: {str(exc)}",
        ) from exc


@router.post("", response_model=SchedulingResponse, status_code=status.HTTP_200_OK)
def schedule(payload: SchedulingRequest) -> SchedulingResponse:
    """Compute departure and pickup times for every vehicle, then validate the solution."""
    return _to_response(_schedule(payload, payload.use_directions))


@router.post("/estimate", response_model=SchedulingResponse, status_code=status.HTTP_200_OK)
def schedule_estimate(payload: SchedulingRequest) -> SchedulingResponse:
    """Same as ``/schedule`` but never calls the directions provider."""
    return _to_response(_schedule(payload, False))


@router.post("/timetable.csv", status_code=status.HTTP_200_OK)
def schedule_timetable_csv(payload: SchedulingRequest) -> Response:
    """Schedule and return the per-stop timetable as CSV."""
    result = _schedule(payload, payload.use_directions)
    content = timetable_to_csv(result.solution, result.route_details)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="timetable.csv"'},
    )
