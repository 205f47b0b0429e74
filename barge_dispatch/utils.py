# barge-dispatch/barge_dispatch/utils.py
"""
Utility functions for the barge refueling dispatch engine.

Provides geographic calculations (great-circle distance and travel time
between port locations) and time manipulation utilities.
"""

from __future__ import annotations

import math
import logging
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Union

from . import config
from .errors import ConfigurationError, InputValidationError
from .models import Location

logger = logging.getLogger(__name__)


def validate_coordinates(lat: float, lon: float) -> None:
    """
    Reject coordinates outside the valid latitude/longitude ranges.

    Raises:
        ConfigurationError: If either value is out of range or not a number
    """
    if not isinstance(lat, (int, float)) or not isinstance(lon, (int, float)):
        raise ConfigurationError(f"Coordinates must be numeric, got ({lat!r}, {lon!r})")
    if math.isnan(lat) or math.isnan(lon) or not (-90.0 <= lat <= 90.0) or not (-180.0 <= lon <= 180.0):
        raise ConfigurationError(f"Invalid coordinates ({lat}, {lon})")


@lru_cache(maxsize=4096)
def haversine_distance_nm(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great-circle distance between two points on Earth.

    Uses the Haversine formula with the mean Earth radius expressed in
    nautical miles, so the result divides directly by a speed in knots.

    Args:
        lat1: Latitude of point 1 in decimal degrees
        lon1: Longitude of point 1 in decimal degrees
        lat2: Latitude of point 2 in decimal degrees
        lon2: Longitude of point 2 in decimal degrees

    Returns:
        Distance in nautical miles between the two points

    Example:
        >>> round(haversine_distance_nm(0.0, 0.0, 1.0, 0.0), 1)
        60.0
    """
    validate_coordinates(lat1, lon1)
    validate_coordinates(lat2, lon2)

    lon1, lat1, lon2, lat2 = map(math.radians, [lon1, lat1, lon2, lat2])

    dlon = lon2 - lon1
    dlat = lat2 - lat1
    a = math.sin(dlat / 2)**2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2)**2
    c = 2 * math.asin(math.sqrt(a))

    return c * config.EARTH_RADIUS_NM


def round_travel_hours(hours: float) -> float:
    """
    Round a travel duration to the nearest TRAVEL_TIME_STEP_HOURS.

    Standard rounding: exact ties round up.

    Example:
        >>> round_travel_hours(1.25)
        1.5
        >>> round_travel_hours(1.2)
        1.0
    """
    step = config.TRAVEL_TIME_STEP_HOURS
    return math.floor(hours / step + 0.5) * step


def get_travel_hours(origin: Location, destination: Location, speed_knots: float) -> float:
    """
    Get the sailing time between two locations.

    Same-location legs take zero time and skip the distance formula.

    Args:
        origin: Departure location
        destination: Arrival location
        speed_knots: Barge sailing speed

    Returns:
        Travel time in hours, a multiple of TRAVEL_TIME_STEP_HOURS

    Raises:
        ConfigurationError: On a non-positive speed or invalid coordinates
    """
    if origin.location_id == destination.location_id:
        return 0.0
    if speed_knots <= 0:
        raise ConfigurationError(f"Sailing speed must be positive, got {speed_knots}")

    distance = haversine_distance_nm(
        origin.latitude, origin.longitude,
        destination.latitude, destination.longitude
    )
    return round_travel_hours(distance / speed_knots)


def add_hours(base: datetime, hours: Union[int, float]) -> datetime:
    """
    Add a (possibly fractional) number of hours to a timestamp.

    Example:
        >>> add_hours(datetime(2025, 3, 1, 8, 0), 1.5)
        datetime.datetime(2025, 3, 1, 9, 30)
    """
    return base + timedelta(hours=hours)


def hours_between(start: datetime, end: datetime) -> float:
    """Signed number of hours from start to end."""
    return (end - start).total_seconds() / 3600


def parse_timestamp(value: Union[str, datetime], field_name: str = "timestamp") -> datetime:
    """
    Parse an ISO-8601 timestamp ('2025-03-01T08:00' or a date '2025-03-01').

    Raises:
        InputValidationError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise InputValidationError(f"Invalid {field_name}: {value!r}")
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError as e:
        raise InputValidationError(f"Invalid {field_name} '{value}': {e}")


def format_time_duration(hours: float) -> str:
    """
    Format a duration in hours as a human-readable string.

    Example:
        >>> format_time_duration(5.375)
        '5h 22m'
    """
    if hours < 1:
        return f"{hours * 60:.0f}m"
    whole = int(hours)
    mins = int(round((hours - whole) * 60))
    return f"{whole}h {mins}m"
