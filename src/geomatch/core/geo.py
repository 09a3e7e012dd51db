"""Great-circle distance helpers."""

from __future__ import annotations

import math
from typing import Any

from ..errors import InvalidCoordinates
from ..schemas import GeoPoint

EARTH_RADIUS_KM = 6371.0
_KM_PER_DEGREE_LATITUDE = math.pi * EARTH_RADIUS_KM / 180.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in kilometres at full precision."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    # Rounding can push ``a`` a hair past 1 for antipodal points.
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, a)))


def distance(p1: GeoPoint, p2: GeoPoint) -> float:
    return haversine_km(p1.latitude, p1.longitude, p2.latitude, p2.longitude)


def round_distance(km: float) -> float:
    return round(km, 2)


def validate_coordinates(latitude: Any, longitude: Any) -> GeoPoint:
    """Return a ``GeoPoint`` or raise ``InvalidCoordinates``."""
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError) as exc:
        raise InvalidCoordinates(latitude, longitude) from exc

    if isinstance(latitude, bool) or math.isnan(lat) or not -90.0 <= lat <= 90.0:
        raise InvalidCoordinates(latitude, longitude, "Invalid latitude")
    if isinstance(longitude, bool) or math.isnan(lon) or not -180.0 <= lon <= 180.0:
        raise InvalidCoordinates(latitude, longitude, "Invalid longitude")
    return GeoPoint(latitude=lat, longitude=lon)


def bounding_box(center: GeoPoint, radius_km: float) -> tuple[float, float, float, float]:
    """Return ``(min_lat, max_lat, min_lon, max_lon)`` enclosing the radius.

    The box is a coarse prefilter; callers still compare exact distances.
    Longitude spans the full range near the poles or across the antimeridian.
    """
    d_lat = radius_km / _KM_PER_DEGREE_LATITUDE
    min_lat = max(-90.0, center.latitude - d_lat)
    max_lat = min(90.0, center.latitude + d_lat)

    cos_lat = math.cos(math.radians(center.latitude))
    if min_lat <= -90.0 or max_lat >= 90.0 or cos_lat <= 1e-12:
        return min_lat, max_lat, -180.0, 180.0

    # Widest longitude of the spherical cap, reached north or south of the centre.
    ratio = math.sin(radius_km / EARTH_RADIUS_KM) / cos_lat
    if ratio >= 1.0:
        return min_lat, max_lat, -180.0, 180.0
    d_lon = math.degrees(math.asin(ratio))
    min_lon = center.longitude - d_lon
    max_lon = center.longitude + d_lon
    if min_lon < -180.0 or max_lon > 180.0:
        return min_lat, max_lat, -180.0, 180.0
    return min_lat, max_lat, min_lon, max_lon
