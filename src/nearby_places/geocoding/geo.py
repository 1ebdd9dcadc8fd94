"""
Geospatial helpers: coordinate validation, great-circle distance and the
padded bounding box used as an area hint for Nominatim searches.

Every function here is pure and validates its inputs; invalid coordinates
raise instead of being repaired.
"""

from __future__ import annotations

import math
from math import radians, sin, cos, sqrt, atan2
from typing import Any, Type

from .models import BoundingBox, GeoPoint
from ..utils.errors import InvalidInputError, InvalidLatitude, InvalidLongitude, InvalidRadius

EARTH_MEAN_RADIUS_MILES = 3958.8

MIN_SEARCH_RADIUS_MILES = 0.1
MAX_SEARCH_RADIUS_MILES = 400.0
SEARCH_RADIUS_DECIMALS = 4

MILES_PER_DEGREE_LATITUDE = 69.0
MILES_PER_DEGREE_LONGITUDE_AT_EQUATOR = 69.17

# (exclusive lower bound in miles, padding in miles), checked top to bottom.
# Haversine drifts from true ground distance as the radius grows, so larger
# searches get a wider margin. Anything <= 10 miles gets ~100 feet.
RADIUS_PADDING_SCHEDULE: tuple[tuple[float, float], ...] = (
    (200.0, 2.0),
    (100.0, 1.0),
    (50.0, 0.5),
    (25.0, 0.25),
    (10.0, 0.1),
)
SMALL_RADIUS_PADDING = 0.02


def _parse_number(value: Any, error_cls: Type[InvalidInputError], label: str) -> float:
    """Coerce an int, float or numeric string to float, raising ``error_cls`` otherwise."""
    if isinstance(value, bool):
        raise error_cls(f"{label} must be a number, got a boolean", value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            raise error_cls(f"{label} must be a number, got {value!r}", value) from None
    raise error_cls(f"{label} must be a number, got {type(value).__name__}", value)


def parse_latitude(value: Any) -> float:
    """Validate a latitude in degrees. Out-of-range values are rejected, never clamped."""
    latitude = _parse_number(value, InvalidLatitude, "Latitude")
    if math.isnan(latitude):
        raise InvalidLatitude("Latitude must not be NaN", value)
    if not -90.0 <= latitude <= 90.0:
        raise InvalidLatitude(f"Latitude must be between -90 and 90, got {latitude}", value)
    return latitude


def normalize_longitude(value: Any) -> float:
    """
    Wrap a longitude into the canonical range (-180, 180].

    The magnitude is reduced by whole turns until it is at most 180, then
    the original sign is reapplied. ``181`` becomes ``-179`` and ``-181``
    becomes ``179``; ``-180`` is reported as ``180``.

    Raises:
        InvalidLongitude: for non-numbers, NaN and infinities
    """
    longitude = _parse_number(value, InvalidLongitude, "Longitude")
    if math.isnan(longitude) or math.isinf(longitude):
        raise InvalidLongitude(f"Longitude must be finite, got {longitude}", value)

    sign = -1.0 if longitude < 0 else 1.0
    magnitude = abs(longitude) % 360.0
    if magnitude > 180.0:
        magnitude -= 360.0

    wrapped = sign * magnitude
    if wrapped == -180.0:
        return 180.0
    return wrapped + 0.0  # drop negative zero


def parse_search_radius(value: Any) -> float:
    """
    Validate a search radius in miles and round it to 4 decimal places.

    The range check runs on the raw value, so 400.00001 is rejected even
    though it would round to 400.
    """
    radius = _parse_number(value, InvalidRadius, "Search radius")
    if math.isnan(radius):
        raise InvalidRadius("Search radius must not be NaN", value)
    if not MIN_SEARCH_RADIUS_MILES <= radius <= MAX_SEARCH_RADIUS_MILES:
        raise InvalidRadius(
            f"Search radius must be between {MIN_SEARCH_RADIUS_MILES} and "
            f"{MAX_SEARCH_RADIUS_MILES:g} miles, got {radius}",
            value,
        )
    return round(radius, SEARCH_RADIUS_DECIMALS)


def haversine_distance_miles(lat1: Any, lon1: Any, lat2: Any, lon2: Any) -> float:
    """
    Great-circle distance in miles between two points.

    North and east are positive; south and west are negative. All four
    inputs are validated (latitudes) or normalized (longitudes) first.
    """
    lat1 = radians(parse_latitude(lat1))
    lon1 = radians(normalize_longitude(lon1))
    lat2 = radians(parse_latitude(lat2))
    lon2 = radians(normalize_longitude(lon2))

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Rounding can push ``a`` a hair outside [0, 1] for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_MEAN_RADIUS_MILES * c


distance_between_points_miles = haversine_distance_miles


def pad_search_radius(radius_miles: float) -> float:
    """Add the fixed error margin for a radius of this magnitude."""
    for lower_bound, padding in RADIUS_PADDING_SCHEDULE:
        if radius_miles > lower_bound:
            return radius_miles + padding
    return radius_miles + SMALL_RADIUS_PADDING


def miles_per_degree_longitude(latitude: float) -> float:
    """Miles spanned by one degree of longitude at the given latitude."""
    return cos(radians(latitude)) * MILES_PER_DEGREE_LONGITUDE_AT_EQUATOR


def hemisphere_signed_longitude_offsets(center_longitude: float, offset_degrees: float) -> tuple[float, float]:
    """
    Longitudes of the two bounding-box corners.

    The first corner moves away from the prime meridian and the second
    toward it, with the direction picked from the center's own hemisphere.
    Only valid away from the antimeridian and the poles: no wrapping is
    applied, so corners can fall outside (-180, 180] there.
    """
    if center_longitude < 0:
        return center_longitude - offset_degrees, center_longitude + offset_degrees
    return center_longitude + offset_degrees, center_longitude - offset_degrees


def compute_bounding_box(center_latitude: Any, center_longitude: Any, radius_miles: Any) -> BoundingBox:
    """
    Compute the padded box that approximately covers a circular search area.

    The radius is padded (see ``RADIUS_PADDING_SCHEDULE``) and halved, then
    converted to degrees with 69.0 mi per degree of latitude and
    ``cos(lat) * 69.17`` mi per degree of longitude.
    """
    latitude = parse_latitude(center_latitude)
    longitude = normalize_longitude(center_longitude)
    radius = parse_search_radius(radius_miles)

    half_radius = pad_search_radius(radius) / 2.0
    latitude_offset = half_radius * (1.0 / MILES_PER_DEGREE_LATITUDE)
    longitude_offset = half_radius * (1.0 / miles_per_degree_longitude(latitude))

    first_longitude, second_longitude = hemisphere_signed_longitude_offsets(longitude, longitude_offset)
    return BoundingBox(
        first=GeoPoint(latitude=latitude + latitude_offset, longitude=first_longitude),
        second=GeoPoint(latitude=latitude - latitude_offset, longitude=second_longitude),
    )
