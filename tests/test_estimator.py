import pytest

from ridematch.models.domain import Passenger, Vehicle
from ridematch.services.geospatial import haversine_km, travel_minutes
from ridematch.services.routing.estimator import estimate_route
from ridematch.services.routing.models import DESTINATION_STOP_ID

ONE_DEGREE_KM = haversine_km(0.0, 0.0, 0.0, 1.0)


def _passenger(pid: int, lat: float, lng: float) -> Passenger:
    return Passenger(id=pid, name=f"Passenger {pid}", latitude=lat, longitude=lng)


def _vehicle(passengers, vid: int = 1) -> Vehicle:
    return Vehicle(id=vid, capacity=4, start_latitude=0.0, start_longitude=0.0, assigned_passengers=list(passengers))


def test_haversine_one_degree_on_equator():
    assert ONE_DEGREE_KM == pytest.approx(111.195, rel=1e-4)
    assert haversine_km(24.7, 46.6, 24.7, 46.6) == 0.0


def test_travel_minutes_rejects_non_positive_speed():
    assert travel_minutes(30.0, 60.0) == pytest.approx(30.0)
    with pytest.raises(ValueError):
        travel_minutes(1.0, 0.0)


def test_estimate_walks_passengers_in_assignment_order():
    vehicle = _vehicle([_passenger(1, 0.0, 1.0), _passenger(2, 0.0, 2.0)])

    details = estimate_route(vehicle, 0.0, 3.0, average_speed_kmh=60.0)

    assert details is not None
    assert details.source == "estimate"
    assert details.vehicle_id == 1
    assert [stop.passenger_id for stop in details.stop_details] == [1, 2, DESTINATION_STOP_ID]
    assert [stop.stop_number for stop in details.stop_details] == [1, 2, 3]
    for index, stop in enumerate(details.stop_details, start=1):
        assert stop.distance_from_previous == pytest.approx(ONE_DEGREE_KM)
        assert stop.time_from_previous == pytest.approx(ONE_DEGREE_KM)
        assert stop.cumulative_distance == pytest.approx(index * ONE_DEGREE_KM)
    assert details.total_distance == pytest.approx(3 * ONE_DEGREE_KM)
    assert details.total_time == pytest.approx(details.stop_details[-1].cumulative_time)
    assert details.departure_time is None
    assert all(stop.estimated_arrival_time is None for stop in details.stop_details)


def test_estimate_cumulative_values_never_decrease():
    passengers = [_passenger(pid, 0.01 * pid, -0.02 * pid) for pid in range(1, 6)]
    details = estimate_route(_vehicle(passengers), 0.3, 0.3)

    cumulative = [stop.cumulative_time for stop in details.stop_details]
    assert cumulative == sorted(cumulative)
    distances = [stop.cumulative_distance for stop in details.stop_details]
    assert distances == sorted(distances)


def test_estimate_uses_configured_speed_by_default(monkeypatch):
    from ridematch.config import settings

    monkeypatch.setattr(settings, "average_speed_kmh", 60.0)
    details = estimate_route(_vehicle([_passenger(1, 0.0, 1.0)]), 0.0, 2.0)
    assert details.total_time == pytest.approx(2 * ONE_DEGREE_KM)


def test_estimate_handles_passenger_at_start_point():
    details = estimate_route(_vehicle([_passenger(1, 0.0, 0.0)]), 0.0, 0.0, average_speed_kmh=30.0)
    assert details.total_distance == 0.0
    assert details.total_time == 0.0
    assert len(details.stop_details) == 2


def test_estimate_returns_none_without_passengers():
    assert estimate_route(_vehicle([]), 0.0, 1.0) is None
