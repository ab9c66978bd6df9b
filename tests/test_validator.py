import pytest

from ridematch.models.domain import Passenger, Solution, Vehicle
from ridematch.services.validation import passengers_requiring_ride, validate_solution


def _passenger(pid: int, available: bool = True) -> Passenger:
    return Passenger(id=pid, name=f"Passenger {pid}", latitude=24.7, longitude=46.6, is_available=available)


def _vehicle(vid: int, passengers, capacity: int = 4, total_time: float = 0.0, total_distance: float = 0.0) -> Vehicle:
    return Vehicle(
        id=vid,
        capacity=capacity,
        start_latitude=24.7,
        start_longitude=46.6,
        assigned_passengers=list(passengers),
        total_time=total_time,
        total_distance=total_distance,
    )


def test_valid_solution_has_no_findings():
    passengers = [_passenger(1), _passenger(2), _passenger(3)]
    solution = Solution(
        vehicles=[
            _vehicle(1, passengers[:2], total_time=30.0, total_distance=12.0),
            _vehicle(2, passengers[2:], total_time=20.0, total_distance=8.0),
            _vehicle(3, []),
        ]
    )

    report = validate_solution(solution, passengers)

    assert report.is_valid
    assert report.total_vehicles == 3
    assert report.used_vehicles == 2
    assert report.assigned_count == 3
    assert report.required_count == 3
    assert report.total_distance == pytest.approx(20.0)
    assert report.total_time == pytest.approx(50.0)
    assert report.average_time == pytest.approx(25.0)


def test_capacity_overflow_is_reported():
    passengers = [_passenger(pid) for pid in range(1, 6)]
    solution = Solution(vehicles=[_vehicle(4, passengers, capacity=4)])

    report = validate_solution(solution, passengers)

    assert report.capacity_exceeded
    assert report.capacity_exceeded_vehicle_ids == [4]
    assert not report.is_valid
    assert report.all_required_assigned


def test_duplicate_assignment_is_reported():
    shared = _passenger(7)
    solution = Solution(
        vehicles=[
            _vehicle(1, [shared, _passenger(1)]),
            _vehicle(2, [_passenger(7), _passenger(2)]),
        ]
    )

    report = validate_solution(solution, [shared, _passenger(1), _passenger(2)])

    assert report.duplicate_passenger_ids == [7]
    assert report.duplicate_assignments == {7: [1, 2]}
    assert report.assigned_count == 3
    assert not report.is_valid


def test_uncovered_available_passengers_are_reported():
    pool = [_passenger(1), _passenger(2), _passenger(3, available=False), _passenger(4)]
    solution = Solution(vehicles=[_vehicle(1, [pool[0]])])

    required = passengers_requiring_ride(pool)
    report = validate_solution(solution, required)

    assert [p.id for p in required] == [1, 2, 4]
    assert report.uncovered_passenger_ids == [2, 4]
    assert report.uncovered_count == 2
    assert not report.all_required_assigned


def test_empty_solution_has_zero_average():
    report = validate_solution(Solution(vehicles=[_vehicle(1, [])]), [])

    assert report.used_vehicles == 0
    assert report.average_time == 0.0
    assert report.is_valid


def test_report_text_lists_findings():
    shared = _passenger(7)
    solution = Solution(
        vehicles=[
            _vehicle(1, [shared], capacity=1, total_time=40.0, total_distance=15.5),
            _vehicle(2, [_passenger(7), _passenger(8)], capacity=1, total_time=20.0),
        ]
    )

    text = validate_solution(solution, [shared, _passenger(9)]).to_text()

    assert text.startswith("Validation Results:\n")
    assert "All passengers assigned: False" in text
    assert "Capacity exceeded: True" in text
    assert "Vehicles over capacity: 2" in text
    assert "Passengers with multiple assignments: 1" in text
    assert "IDs: 7" in text
    assert "Unassigned passengers: 9" in text
    assert "Total distance: 15.50 km" in text
    assert "Average time per vehicle: 30.00 minutes" in text
    assert "Used vehicles: 2/2" in text
