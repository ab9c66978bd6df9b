"""Parsing, canonical formatting and propagation helpers for time-of-day values.

Every time string stored on a vehicle, passenger or stop goes through
:func:`normalize_time` or :func:`canonical_time`, so downstream code only ever
sees the 24-hour ``HH:MM`` form. Parsing never raises: callers get ``None``
and fall through to their next source.

Propagation uses a single minute-resolution rule. Anchor datetimes are
truncated to the minute and offsets are rounded half-up to whole minutes by
:func:`round_minutes`, so ``propagate_backward(propagate_forward(d, m), m)``
returns ``d`` for any minute-aligned ``d``.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta
from typing import Any

CANONICAL_TIME_FORMAT = "%H:%M"
NOT_SCHEDULED = "Not scheduled"

_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %I:%M %p",
    "%Y-%m-%d %I:%M:%S %p",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %I:%M %p",
)

# %I and %H both accept one or two digit hours, covering h:mm/hh:mm and H:mm/HH:mm.
_TIME_FORMATS = (
    "%I:%M %p",
    "%I:%M%p",
    "%H:%M",
    "%H:%M:%S",
)

_SPACE_VARIANTS = ("\u202f", "\u00a0", "\u2009")


def _clean(text: str) -> str:
    for variant in _SPACE_VARIANTS:
        text = text.replace(variant, " ")
    return " ".join(text.split())


def _parse_datetime(text: str) -> datetime | None:
    if len(text) >= 10 and text[4:5] == "-":
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            parsed = None
        if parsed is not None:
            if parsed.tzinfo is not None:
                parsed = parsed.astimezone().replace(tzinfo=None)
            return parsed
    for fmt in _DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def parse_time(text: Any, reference_date: date | None = None) -> datetime | None:
    """Parse ``text`` into a datetime, or return ``None`` if it is not recognised.

    Time-only inputs are placed on ``reference_date`` (today by default).
    """
    if not isinstance(text, str):
        return None
    cleaned = _clean(text)
    if not cleaned:
        return None

    parsed = _parse_datetime(cleaned)
    if parsed is not None:
        return parsed

    for fmt in _TIME_FORMATS:
        try:
            parsed_time = datetime.strptime(cleaned.upper(), fmt).time()
        except ValueError:
            continue
        return datetime.combine(reference_date or date.today(), parsed_time)
    return None


def canonical_time(value: datetime | time) -> str:
    return value.strftime(CANONICAL_TIME_FORMAT)


def normalize_time(text: Any) -> str | None:
    """Return the canonical ``HH:MM`` form of ``text`` or ``None`` if unparseable."""
    parsed = parse_time(text)
    if parsed is None:
        return None
    return canonical_time(parsed)


def ensure_future(value: datetime, now: datetime) -> datetime:
    """Push ``value`` forward by whole days until it is strictly after ``now``."""
    if value > now:
        return value
    days_behind = (now - value).days + 1
    adjusted = value + timedelta(days=days_behind)
    while adjusted <= now:
        adjusted += timedelta(days=1)
    return adjusted


def to_epoch_seconds(value: datetime) -> int:
    """Seconds since the Unix epoch. Naive datetimes are local wall-clock time."""
    return math.floor(value.timestamp())


def from_epoch_seconds(value: Any) -> datetime | None:
    """Local naive datetime for an epoch value, or ``None`` when it cannot be converted."""
    if isinstance(value, bool):
        return None
    try:
        seconds = int(value)
        return datetime.fromtimestamp(seconds)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def round_minutes(minutes: float) -> int:
    """Round a travel time to whole minutes, halves going up."""
    return math.floor(minutes + 0.5)


def truncate_to_minute(value: datetime) -> datetime:
    return value.replace(second=0, microsecond=0)


def propagate_forward(departure: datetime, minutes: float) -> datetime:
    """Time reached ``minutes`` after ``departure``."""
    return truncate_to_minute(departure) + timedelta(minutes=round_minutes(minutes))


def propagate_backward(arrival: datetime, minutes: float) -> datetime:
    """Time to leave so that a ``minutes`` long trip ends at ``arrival``."""
    return truncate_to_minute(arrival) - timedelta(minutes=round_minutes(minutes))


def combine_date_and_time(day: date, text: Any) -> datetime:
    """Put the time of day parsed from ``text`` on ``day``; midnight if it does not parse."""
    parsed = parse_time(text, reference_date=day)
    if parsed is None:
        return datetime.combine(day, time())
    return datetime.combine(day, parsed.time())


def format_time_display(text: Any) -> str:
    if not text:
        return NOT_SCHEDULED
    normalized = normalize_time(text)
    return normalized if normalized is not None else str(text)


def next_arrival_datetime(target_text: Any, now: datetime, default: str = "08:00") -> datetime:
    """Tomorrow at the destination's target time, pushed further ahead if already past.

    Unparseable targets fall back to ``default``.
    """
    tomorrow = now.date() + timedelta(days=1)
    parsed = parse_time(target_text, reference_date=tomorrow)
    if parsed is None:
        parsed = parse_time(default, reference_date=tomorrow)
    if parsed is None:
        parsed = datetime.combine(tomorrow, time(hour=8))
    target = datetime.combine(tomorrow, parsed.time())
    return ensure_future(target, now)
