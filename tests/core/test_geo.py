from __future__ import annotations

import math

import pytest

from geomatch.core.geo import (
    EARTH_RADIUS_KM,
    bounding_box,
    distance,
    haversine_km,
    round_distance,
    validate_coordinates,
)
from geomatch.errors import InvalidCoordinates
from geomatch.schemas import GeoPoint

BANGALORE = GeoPoint(latitude=12.9716, longitude=77.5946)
MYSORE = GeoPoint(latitude=12.2958, longitude=76.6394)


@pytest.mark.parametrize(
    "point",
    [BANGALORE, GeoPoint(latitude=0, longitude=0), GeoPoint(latitude=-90, longitude=180)],
)
def test_distance_to_self_is_zero(point: GeoPoint):
    assert distance(point, point) == 0.0


def test_distance_is_symmetric():
    assert distance(BANGALORE, MYSORE) == distance(MYSORE, BANGALORE)


def test_distance_bangalore_mysore_is_about_128_km():
    assert distance(BANGALORE, MYSORE) == pytest.approx(128.2, abs=1.0)


def test_one_degree_of_latitude_is_about_111_km():
    assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.19, abs=0.01)


def test_antipodal_points_do_not_raise():
    km = haversine_km(0.0, 0.0, 0.0, 180.0)
    assert km == pytest.approx(3.141592653589793 * 6371.0, rel=1e-9)


def test_round_distance_two_decimals():
    assert round_distance(12.34567) == 12.35


def test_validate_coordinates_accepts_numeric_strings():
    point = validate_coordinates("12.9716", "77.5946")
    assert point == BANGALORE


@pytest.mark.parametrize(
    ("latitude", "longitude"),
    [(91, 0), (-90.5, 0), (0, 180.1), (0, -181), ("north", 0), (None, 0), (float("nan"), 0)],
)
def test_validate_coordinates_rejects_out_of_range(latitude, longitude):
    with pytest.raises(InvalidCoordinates):
        validate_coordinates(latitude, longitude)


def test_bounding_box_contains_radius():
    min_lat, max_lat, min_lon, max_lon = bounding_box(BANGALORE, 10)
    assert min_lat < BANGALORE.latitude < max_lat
    assert min_lon < BANGALORE.longitude < max_lon
    assert haversine_km(min_lat, BANGALORE.longitude, BANGALORE.latitude, BANGALORE.longitude) == pytest.approx(10, rel=1e-6)


def test_bounding_box_near_pole_spans_all_longitudes():
    _, _, min_lon, max_lon = bounding_box(GeoPoint(latitude=89.99, longitude=10), 50)
    assert (min_lon, max_lon) == (-180.0, 180.0)


def widest_point_of_cap(center: GeoPoint, radius_km: float) -> tuple[float, float]:
    """Latitude and longitude offset where the circle reaches furthest east."""
    angle = radius_km / EARTH_RADIUS_KM
    lat = math.radians(center.latitude)
    widest_lat = math.degrees(math.asin(math.sin(lat) / math.cos(angle)))
    d_lon = math.degrees(math.asin(math.sin(angle) / math.cos(lat)))
    return widest_lat, d_lon


def test_bounding_box_covers_the_whole_cap_at_high_latitude():
    center = GeoPoint(latitude=80.0, longitude=0.0)
    widest_lat, d_lon = widest_point_of_cap(center, 100)
    inside_lon = d_lon - 0.002

    _, _, min_lon, max_lon = bounding_box(center, 100)

    assert haversine_km(80.0, 0.0, widest_lat, inside_lon) < 100
    assert max_lon >= d_lon
    assert min_lon <= -d_lon
    assert min_lon <= -inside_lon and inside_lon <= max_lon
