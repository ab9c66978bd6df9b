from datetime import date, datetime

import pytest

from ridematch.services.routing.time_format import (
    NOT_SCHEDULED,
    combine_date_and_time,
    ensure_future,
    format_time_display,
    from_epoch_seconds,
    next_arrival_datetime,
    normalize_time,
    parse_time,
    propagate_backward,
    propagate_forward,
    round_minutes,
    to_epoch_seconds,
)

DAY = date(2024, 5, 1)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("8:05 AM", "08:05"),
        ("08:05 am", "08:05"),
        ("7:05 pm", "19:05"),
        ("7:05PM", "19:05"),
        ("7:05 PM", "19:05"),
        ("12:00 AM", "00:00"),
        ("9:15", "09:15"),
        ("20:05:30", "20:05"),
        ("2024-05-01 07:30:00", "07:30"),
        ("2024-05-01T07:30:00", "07:30"),
        ("05/01/2024 6:45 PM", "18:45"),
    ],
)
def test_normalize_time_accepts_common_formats(text, expected):
    assert normalize_time(text) == expected


@pytest.mark.parametrize("text", [None, "", "   ", "soon", "25:99", 730, object()])
def test_unparseable_values_return_none(text):
    assert parse_time(text) is None
    assert normalize_time(text) is None


def test_time_only_values_use_reference_date():
    parsed = parse_time("7:35 AM", reference_date=DAY)
    assert parsed == datetime(2024, 5, 1, 7, 35)


def test_timezone_aware_values_become_local_naive():
    parsed = parse_time("2024-05-01T08:00:00+00:00")
    assert parsed is not None
    assert parsed.tzinfo is None


def test_ensure_future_adds_whole_days():
    now = datetime(2024, 5, 1, 9, 0)
    assert ensure_future(datetime(2024, 5, 1, 8, 0), now) == datetime(2024, 5, 2, 8, 0)
    assert ensure_future(datetime(2024, 4, 28, 8, 0), now) == datetime(2024, 5, 2, 8, 0)
    assert ensure_future(datetime(2024, 5, 1, 9, 0), now) == datetime(2024, 5, 2, 9, 0)
    assert ensure_future(datetime(2024, 5, 3, 6, 0), now) == datetime(2024, 5, 3, 6, 0)


def test_ensure_future_keeps_time_of_day():
    now = datetime(2024, 5, 10, 23, 59)
    adjusted = ensure_future(datetime(2024, 1, 1, 7, 42), now)
    assert adjusted > now
    assert (adjusted.hour, adjusted.minute) == (7, 42)


def test_epoch_round_trip_is_local_time():
    value = datetime(2024, 5, 2, 8, 0)
    assert from_epoch_seconds(to_epoch_seconds(value)) == value
    assert from_epoch_seconds(str(to_epoch_seconds(value))) == value


@pytest.mark.parametrize("value", [None, True, "abc", 10**20])
def test_from_epoch_seconds_rejects_bad_values(value):
    assert from_epoch_seconds(value) is None


def test_round_minutes_goes_half_up():
    assert round_minutes(0.49) == 0
    assert round_minutes(0.5) == 1
    assert round_minutes(2.5) == 3
    assert round_minutes(14.6) == 15


@pytest.mark.parametrize("minutes", [0, 0.4, 0.5, 14.6, 40, 123.49, 333.585])
def test_propagation_is_reversible(minutes):
    departure = datetime(2024, 5, 2, 7, 20)
    assert propagate_backward(propagate_forward(departure, minutes), minutes) == departure


def test_propagation_examples():
    target = datetime(2024, 5, 2, 8, 0)
    departure = propagate_backward(target, 40)
    assert departure == datetime(2024, 5, 2, 7, 20)
    assert propagate_forward(departure, 15) == datetime(2024, 5, 2, 7, 35)


def test_propagation_ignores_seconds_on_anchor():
    assert propagate_forward(datetime(2024, 5, 2, 7, 20, 59), 1) == datetime(2024, 5, 2, 7, 21)


def test_combine_date_and_time_falls_back_to_midnight():
    assert combine_date_and_time(DAY, "6:30 PM") == datetime(2024, 5, 1, 18, 30)
    assert combine_date_and_time(DAY, "later") == datetime(2024, 5, 1, 0, 0)


def test_format_time_display():
    assert format_time_display(None) == NOT_SCHEDULED
    assert format_time_display("") == NOT_SCHEDULED
    assert format_time_display("7:05 AM") == "07:05"
    assert format_time_display("whenever") == "whenever"


def test_next_arrival_is_tomorrow_at_target():
    now = datetime(2024, 5, 1, 10, 0)
    assert next_arrival_datetime("08:00", now) == datetime(2024, 5, 2, 8, 0)
    assert next_arrival_datetime("8:30 AM", now) == datetime(2024, 5, 2, 8, 30)


def test_next_arrival_uses_default_for_bad_target():
    now = datetime(2024, 5, 1, 10, 0)
    assert next_arrival_datetime("bogus", now) == datetime(2024, 5, 2, 8, 0)
    assert next_arrival_datetime(None, now, default="07:15") == datetime(2024, 5, 2, 7, 15)
