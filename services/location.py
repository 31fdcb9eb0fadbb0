"""
Geolocation service.
Resolves the reporter's position from a location provider with timeouts and a
fixed fallback coordinate, and offers reverse geocoding via OpenStreetMap Nominatim.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

# Fallback position (Delhi, India) used when no reading can be obtained
DEFAULT_LAT = 28.7041
DEFAULT_LNG = 77.1025

PRECISE_TIMEOUT_SECONDS = 30.0
QUICK_TIMEOUT_SECONDS = 10.0

# Single bound applied to the location lookup inside a report submission
SUBMISSION_TIMEOUT_SECONDS = 5.0

NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"
NOMINATIM_USER_AGENT = "clean-city-reports/1.0"

EARTH_RADIUS_KM = 6371

# Location error codes
PERMISSION_DENIED = "permission_denied"
POSITION_UNAVAILABLE = "unavailable"
TIMEOUT = "timeout"
UNSUPPORTED = "unsupported"

ERROR_MESSAGES = {
    PERMISSION_DENIED: "Location permission denied. Please enable location access.",
    POSITION_UNAVAILABLE: "Location information unavailable.",
    TIMEOUT: "Location request timed out. Using default location.",
    UNSUPPORTED: "Geolocation is not supported by your browser",
}


class LocationError(Exception):
    """A location reading could not be obtained."""

    def __init__(self, code: str, message: Optional[str] = None):
        self.code = code
        super().__init__(message or ERROR_MESSAGES.get(code, "An unknown error occurred."))


@dataclass(frozen=True)
class Position:
    lat: float
    lng: float
    accuracy: Optional[float] = None


# provider(high_accuracy) -> Position, raising LocationError
LocationProvider = Callable[[bool], Awaitable[Position]]


class ClientLocationProvider:
    """
    Location provider backed by the reading the browser sent with the request.

    The client either supplies coordinates or the error code its own
    geolocation call failed with.
    """

    def __init__(
        self,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        accuracy: Optional[float] = None,
        error: Optional[str] = None,
    ):
        self.latitude = latitude
        self.longitude = longitude
        self.accuracy = accuracy
        self.error = error

    async def __call__(self, high_accuracy: bool = True) -> Position:
        if self.error:
            code = self.error if self.error in ERROR_MESSAGES else POSITION_UNAVAILABLE
            raise LocationError(code)
        if self.latitude is None or self.longitude is None:
            raise LocationError(POSITION_UNAVAILABLE)
        return Position(lat=self.latitude, lng=self.longitude, accuracy=self.accuracy)


def default_location() -> Dict:
    """The fixed fallback coordinate."""
    return {"lat": DEFAULT_LAT, "lng": DEFAULT_LNG, "accuracy": 0, "isDefault": True}


def _is_valid_position(position: Position) -> bool:
    return (
        math.isfinite(position.lat)
        and math.isfinite(position.lng)
        and -90 <= position.lat <= 90
        and -180 <= position.lng <= 180
    )


def _as_location(position: Position) -> Dict:
    if not _is_valid_position(position):
        logger.warning("Discarding impossible position %s, %s", position.lat, position.lng)
        raise LocationError(POSITION_UNAVAILABLE)
    return {
        "lat": position.lat,
        "lng": position.lng,
        "accuracy": position.accuracy,
        "isDefault": False,
    }


async def get_current_location(
    provider: Optional[LocationProvider],
    timeout: float = PRECISE_TIMEOUT_SECONDS,
) -> Dict:
    """
    Precise lookup: high accuracy, long timeout.

    Only a timeout falls back to the default coordinate; permission denied,
    unavailable and unsupported are raised.

    Args:
        provider: Location provider, or None when the platform has none
        timeout: Seconds to wait for a reading

    Returns:
        Location dict with lat, lng, accuracy and isDefault

    Raises:
        LocationError: For any failure other than a timeout
    """
    if provider is None:
        raise LocationError(UNSUPPORTED)

    try:
        position = await asyncio.wait_for(provider(True), timeout=timeout)
    except asyncio.TimeoutError:
        logger.info("Location request timed out after %ss, using default location", timeout)
        return default_location()
    except LocationError as e:
        if e.code == TIMEOUT:
            return default_location()
        raise

    return _as_location(position)


async def get_quick_location(
    provider: Optional[LocationProvider],
    timeout: float = QUICK_TIMEOUT_SECONDS,
) -> Dict:
    """
    Quick lookup: low accuracy, short timeout, never raises.

    Any failure, including a missing provider, yields the default coordinate.
    """
    if provider is None:
        return default_location()

    try:
        position = await asyncio.wait_for(provider(False), timeout=timeout)
        return _as_location(position)
    except (asyncio.TimeoutError, LocationError) as e:
        logger.info("Quick location failed (%s), using default location", str(e) or "timeout")
        return default_location()


async def locate_for_submission(provider: Optional[LocationProvider]) -> Optional[Dict]:
    """
    Location policy for report submissions.

    One bound of SUBMISSION_TIMEOUT_SECONDS replaces stacking a race on top of
    the precise timeout. A timeout yields the default coordinate; any other
    failure omits the location so the submission is never blocked.
    """
    try:
        return await get_current_location(provider, timeout=SUBMISSION_TIMEOUT_SECONDS)
    except LocationError as e:
        logger.info("Submitting without location: %s", e)
        return None


async def get_address_from_coords(latitude: float, longitude: float) -> Dict[str, str]:
    """
    Reverse geocode coordinates with OpenStreetMap Nominatim.

    Args:
        latitude: Latitude coordinate
        longitude: Longitude coordinate

    Returns:
        Dictionary with address, city and country. On failure the address is
        the formatted coordinates and city/country are empty.
    """
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(
                NOMINATIM_REVERSE_URL,
                params={"lat": latitude, "lon": longitude, "format": "json"},
                headers={"User-Agent": NOMINATIM_USER_AGENT},
            )
            response.raise_for_status()
            data = response.json()

        address = data.get("address") or {}
        return {
            "address": data.get("display_name") or "Unknown location",
            "city": address.get("city") or address.get("town") or address.get("village") or "",
            "country": address.get("country") or "",
        }

    except (httpx.HTTPError, ValueError) as e:
        logger.warning("Error getting address: %s", e)
        return {
            "address": f"{latitude:.6f}, {longitude:.6f}",
            "city": "",
            "country": "",
        }


def calculate_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Haversine distance between two coordinates in kilometers."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlam = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c
