"""HTTP client for the Google Maps directions, geocoding and autocomplete endpoints."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Any, Callable, Hashable, Sequence, TypeVar

import httpx
from pydantic import ValidationError

from ...config import settings
from ...models.domain import Vehicle
from ...schemas.directions import (
    AutocompleteResponse,
    DirectionsResponse,
    GeocodeResponse,
    StatusResponse,
    TimeValue,
)
from .errors import (
    DirectionsNotConfiguredError,
    DirectionsTransportError,
    ProviderStatusError,
)
from .models import DESTINATION_STOP_ID, DESTINATION_STOP_NAME, RouteDetails, StopDetail
from .throttling import BoundedTTLCache, RateLimiter, ResponseCache, Sleeper
from .time_format import (
    canonical_time,
    ensure_future,
    from_epoch_seconds,
    normalize_time,
    to_epoch_seconds,
)

logger = logging.getLogger(__name__)

LatLng = tuple[float, float]
ResponseT = TypeVar("ResponseT", bound=StatusResponse)

INVALID_RESPONSE = "INVALID_RESPONSE"


@dataclass(slots=True)
class DirectionsLeg:
    """One leg of a provider route, already converted to km, minutes and canonical times.

    ``waypoint_index`` points into the waypoint list the request was built
    from; ``None`` marks the final leg into the destination.
    """

    waypoint_index: int | None
    distance_km: float
    duration_min: float
    arrival_time: str | None = None
    departure_time: str | None = None


@dataclass(slots=True)
class GeocodeResult:
    latitude: float
    longitude: float
    formatted_address: str


def _format_point(point: LatLng) -> str:
    lat, lng = point
    return f"{lat},{lng}"


def _describe(error: Exception) -> str:
    # Never echo the request URL: it carries the API key.
    if isinstance(error, httpx.HTTPStatusError):
        return f"HTTP {error.response.status_code}"
    if isinstance(error, httpx.HTTPError):
        return type(error).__name__
    return f"{type(error).__name__}: {error}"


def decode_leg_time(field: TimeValue | None) -> str | None:
    """Canonical time from a leg timing field: text first, then epoch value."""
    if field is None:
        return None
    if field.text:
        normalized = normalize_time(field.text)
        if normalized is not None:
            return normalized
    if field.value is not None:
        parsed = from_epoch_seconds(field.value)
        if parsed is not None:
            return canonical_time(parsed)
    return None


def decode_polyline(polyline: str) -> list[tuple[float, float]]:
    """Decode an encoded polyline string to a list of (lat, lon) coordinates."""
    coordinates = []
    index = 0
    lat = 0
    lon = 0

    while index < len(polyline):
        shift = 0
        result = 0
        while True:
            b = ord(polyline[index]) - 63
            index += 1
            result |= (b & 0x1f) << shift
            shift += 5
            if b < 0x20:
                break
        lat += ~(result >> 1) if (result & 1) else (result >> 1)

        shift = 0
        result = 0
        while True:
            b = ord(polyline[index]) - 63
            index += 1
            result |= (b & 0x1f) << shift
            shift += 5
            if b < 0x20:
                break
        lon += ~(result >> 1) if (result & 1) else (result >> 1)

        coordinates.append((lat / 1e5, lon / 1e5))

    return coordinates


class DirectionsClient:
    """Rate-limited, retrying and caching wrapper around the routing provider.

    One instance owns one rate limiter and one cache; every endpoint goes
    through both. Directions failures raise :class:`DirectionsError`
    subclasses so the scheduler can fall back to the geometric estimate.
    Geocoding endpoints have no fallback and return explicit failure values
    instead.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
        min_interval_seconds: float | None = None,
        cache: ResponseCache | None = None,
        rate_limiter: RateLimiter | None = None,
        http_client: httpx.Client | None = None,
        now: Callable[[], datetime] = datetime.now,
        sleep: Sleeper = time.sleep,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.google_api_key
        self.base_url = (base_url or settings.directions_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self.max_attempts = max_attempts if max_attempts is not None else settings.max_attempts
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.backoff_seconds
        interval = (
            min_interval_seconds if min_interval_seconds is not None else settings.min_request_interval_seconds
        )
        self.rate_limiter = rate_limiter or RateLimiter(interval, sleep=sleep)
        self.cache: ResponseCache = cache if cache is not None else BoundedTTLCache(
            max_entries=settings.cache_max_entries,
            ttl_seconds=settings.cache_ttl_seconds,
        )
        self._client = http_client or httpx.Client(timeout=httpx.Timeout(self.timeout, connect=10.0))
        self._owns_client = http_client is None
        self._now = now
        self._sleep = sleep

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "DirectionsClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def clear_cache(self) -> None:
        self.cache.clear()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def _request_json(self, endpoint: str, params: dict[str, str]) -> Any:
        if not self.api_key:
            raise DirectionsNotConfiguredError("No Google Maps API key is configured.")

        url = f"{self.base_url}/{endpoint}/json"
        query = {**params, "key": self.api_key}
        attempt = 0
        delay = self.backoff_seconds
        while True:
            self.rate_limiter.acquire()
            try:
                response = self._client.get(url, params=query)
                response.raise_for_status()
                return response.json()
            except (httpx.HTTPError, ValueError) as error:
                attempt += 1
                if attempt >= self.max_attempts:
                    logger.warning(
                        f"Provider {endpoint} request failed after {attempt} attempts: {_describe(error)}"
                    )
                    raise DirectionsTransportError(
                        f"Provider {endpoint} request failed after {attempt} attempts: {_describe(error)}"
                    ) from error
                logger.debug(
                    f"Provider {endpoint} request failed, retrying in {delay:.1f}s "
                    f"(attempt {attempt}/{self.max_attempts}): {_describe(error)}"
                )
                self._sleep(delay)
                delay *= 2

    @staticmethod
    def _parse(model: type[ResponseT], payload: Any, label: str) -> ResponseT:
        try:
            response = model.model_validate(payload)
        except ValidationError as error:
            logger.warning(f"{label} response did not match the expected schema: {error.error_count()} errors")
            raise ProviderStatusError(INVALID_RESPONSE, f"{label} response did not match schema") from error
        if response.status != "OK":
            message = response.status
            if response.error_message:
                message += f": {response.error_message}"
            logger.warning(f"{label} API error: {message}")
            raise ProviderStatusError(response.status, response.error_message)
        return response

    def _cached(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Provider cache hit for {key[0] if isinstance(key, tuple) else key}")
            return cached
        value = loader()
        if value is not None:
            self.cache.set(key, value)
        return value

    # ------------------------------------------------------------------
    # Directions
    # ------------------------------------------------------------------
    def _arrival_epoch(self, target_arrival: datetime | None) -> int | None:
        if target_arrival is None:
            return None
        future_arrival = ensure_future(target_arrival, self._now())
        if future_arrival != target_arrival:
            logger.info(
                f"Target arrival {target_arrival:%Y-%m-%d %H:%M:%S} is not in the future, "
                f"using {future_arrival:%Y-%m-%d %H:%M:%S}"
            )
        return to_epoch_seconds(future_arrival)

    def _fetch_directions(self, points: Sequence[LatLng], target_arrival: datetime | None) -> DirectionsResponse:
        if len(points) < 2:
            raise ValueError("At least two points are required for directions.")

        arrival_epoch = self._arrival_epoch(target_arrival)
        key = ("directions", tuple((float(lat), float(lng)) for lat, lng in points), arrival_epoch)

        def load() -> DirectionsResponse:
            params = {
                "origin": _format_point(points[0]),
                "destination": _format_point(points[-1]),
            }
            if len(points) > 2:
                params["waypoints"] = "|".join(_format_point(point) for point in points[1:-1])
            if arrival_epoch is not None:
                params["arrival_time"] = str(arrival_epoch)
                logger.info(f"Requesting directions with arrival_time={arrival_epoch}")
            payload = self._request_json("directions", params)
            response = self._parse(DirectionsResponse, payload, "Directions")
            if not response.routes:
                raise ProviderStatusError("ZERO_RESULTS", "Directions response contained no routes")
            return response

        return self._cached(key, load)

    def get_legs(
        self,
        origin: LatLng,
        waypoints: Sequence[LatLng],
        destination: LatLng,
        target_arrival: datetime | None = None,
    ) -> list[DirectionsLeg]:
        """Legs from ``origin`` through every waypoint to ``destination``.

        When the provider reports a ``waypoint_order`` the legs are mapped
        back to the waypoint they arrive at, so callers can match stops by
        identity rather than by position.
        """
        response = self._fetch_directions([origin, *waypoints, destination], target_arrival)
        route = response.routes[0]
        expected = len(waypoints) + 1
        if len(route.legs) != expected:
            raise ProviderStatusError(
                INVALID_RESPONSE, f"Expected {expected} legs, provider returned {len(route.legs)}"
            )

        order = list(range(len(waypoints)))
        if route.waypoint_order:
            if sorted(route.waypoint_order) == order:
                order = list(route.waypoint_order)
            else:
                logger.warning(f"Ignoring inconsistent waypoint_order {route.waypoint_order}")

        legs: list[DirectionsLeg] = []
        for index, leg in enumerate(route.legs):
            if leg.distance.value is None or leg.duration.value is None:
                raise ProviderStatusError(INVALID_RESPONSE, f"Leg {index + 1} is missing distance or duration")
            legs.append(
                DirectionsLeg(
                    waypoint_index=order[index] if index < len(order) else None,
                    distance_km=leg.distance.value / 1000.0,
                    duration_min=leg.duration.value / 60.0,
                    arrival_time=decode_leg_time(leg.arrival_time),
                    departure_time=decode_leg_time(leg.departure_time),
                )
            )
        return legs

    def get_route_details(
        self,
        vehicle: Vehicle,
        destination_lat: float,
        destination_lng: float,
        target_arrival: datetime | None = None,
    ) -> RouteDetails | None:
        """Provider-backed route details for one vehicle, or ``None`` if it has no passengers."""
        passengers = vehicle.assigned_passengers
        if not passengers:
            return None

        legs = self.get_legs(
            (vehicle.start_latitude, vehicle.start_longitude),
            [(passenger.latitude, passenger.longitude) for passenger in passengers],
            (destination_lat, destination_lng),
            target_arrival,
        )

        stops: list[StopDetail] = []
        total_distance = 0.0
        total_time = 0.0
        for number, leg in enumerate(legs, start=1):
            total_distance += leg.distance_km
            total_time += leg.duration_min
            if leg.waypoint_index is None:
                passenger_id, passenger_name = DESTINATION_STOP_ID, DESTINATION_STOP_NAME
            else:
                passenger = passengers[leg.waypoint_index]
                passenger_id, passenger_name = passenger.id, passenger.name
            stops.append(
                StopDetail(
                    stop_number=number,
                    passenger_id=passenger_id,
                    passenger_name=passenger_name,
                    distance_from_previous=leg.distance_km,
                    time_from_previous=leg.duration_min,
                    cumulative_distance=total_distance,
                    cumulative_time=total_time,
                    estimated_arrival_time=leg.arrival_time,
                    estimated_departure_time=leg.departure_time,
                )
            )

        departure = legs[0].departure_time
        if departure:
            logger.info(f"Vehicle {vehicle.id} departure time from provider: {departure}")
        return RouteDetails(
            vehicle_id=vehicle.id,
            total_distance=total_distance,
            total_time=total_time,
            departure_time=departure,
            stop_details=stops,
            source="provider",
        )

    def get_polyline(
        self, waypoints: Sequence[LatLng], target_arrival: datetime | None = None
    ) -> list[tuple[float, float]]:
        """Road geometry through ``waypoints`` decoded from the step polylines."""
        response = self._fetch_directions(waypoints, target_arrival)
        route = response.routes[0]
        points: list[tuple[float, float]] = []
        for leg in route.legs:
            for step in leg.steps:
                if step.polyline and step.polyline.points:
                    points.extend(decode_polyline(step.polyline.points))
        if not points and route.overview_polyline and route.overview_polyline.points:
            points = decode_polyline(route.overview_polyline.points)
        return points

    # ------------------------------------------------------------------
    # Geocoding
    # ------------------------------------------------------------------
    def geocode(self, address: str) -> GeocodeResult | None:
        """Coordinates for ``address``, or ``None`` when it cannot be resolved."""
        if not address or not address.strip():
            return None
        query = address.strip()

        def load() -> GeocodeResult | None:
            payload = self._request_json("geocode", {"address": query})
            response = self._parse(GeocodeResponse, payload, "Geocoding")
            for result in response.results:
                if result.geometry is not None:
                    return GeocodeResult(
                        latitude=result.geometry.location.lat,
                        longitude=result.geometry.location.lng,
                        formatted_address=result.formatted_address or query,
                    )
            return None

        try:
            return self._cached(("geocode", query), load)
        except DirectionsNotConfiguredError:
            logger.warning("No Google Maps API key available for geocoding")
            return None
        except (DirectionsTransportError, ProviderStatusError) as error:
            logger.warning(f"Error geocoding address '{query}': {error}")
            return None

    def reverse_geocode(self, latitude: float, longitude: float) -> str:
        """Formatted address for a point, or a plain coordinate label on failure."""
        fallback = f"Location ({latitude:.6f}, {longitude:.6f})"

        def load() -> str | None:
            payload = self._request_json("geocode", {"latlng": f"{latitude},{longitude}"})
            response = self._parse(GeocodeResponse, payload, "Reverse geocoding")
            for result in response.results:
                if result.formatted_address:
                    return result.formatted_address
            return None

        try:
            address = self._cached(("reverse_geocode", float(latitude), float(longitude)), load)
        except DirectionsNotConfiguredError:
            logger.warning("No Google Maps API key available for reverse geocoding")
            return fallback
        except (DirectionsTransportError, ProviderStatusError) as error:
            logger.warning(f"Error reverse geocoding ({latitude}, {longitude}): {error}")
            return fallback
        return address or fallback

    def autocomplete(self, query: str) -> list[str]:
        """Address suggestions for a partial address; empty when none are available."""
        if not query or not query.strip():
            return []
        text = query.strip()

        def load() -> list[str]:
            payload = self._request_json("place/autocomplete", {"input": text})
            response = self._parse(AutocompleteResponse, payload, "Autocomplete")
            return [prediction.description for prediction in response.predictions if prediction.description]

        try:
            return list(self._cached(("autocomplete", text), load))
        except DirectionsNotConfiguredError:
            logger.warning("No Google Maps API key available for autocomplete")
            return []
        except (DirectionsTransportError, ProviderStatusError) as error:
            logger.warning(f"Error getting address suggestions for '{text}': {error}")
            return []

    def validate_api_key(self) -> bool:
        """Make a throwaway geocoding request and report whether the key is accepted."""
        if not self.api_key:
            return False
        try:
            payload = self._request_json("geocode", {"address": "test"})
            response = StatusResponse.model_validate(payload)
        except (DirectionsTransportError, ValidationError) as error:
            logger.warning(f"API key validation request failed: {error}")
            return False
        return response.status in ("OK", "ZERO_RESULTS") and not response.error_message

    def cache_stats(self) -> dict[str, int] | None:
        """Entry count and hit/miss counters of the default cache, ``None`` for other caches."""
        if not isinstance(self.cache, BoundedTTLCache):
            return None
        return {"entries": len(self.cache), "hits": self.cache.hits, "misses": self.cache.misses}


@lru_cache()
def get_directions_client() -> DirectionsClient:
    """Process-wide client instance.

    Every caller shares one rate limiter and one response cache, so the
    minimum gap between provider calls holds across concurrent requests.
    """
    return DirectionsClient()
