"""
Geographic utility functions.

This module provides the geospatial calculations used for route matching
and booking validation. Points are ``(longitude, latitude)`` pairs in
degrees (WGS84 axis order) and lines are sequences of such points.

All distances are computed on a spherical earth model (great-circle),
never on a flat lon/lat plane, so results stay correct at any latitude.
"""

from math import radians, degrees, cos, sin, asin, acos, atan2, sqrt, fabs
from typing import Iterable, List, Sequence, Tuple

# Mean earth radius (IUGG) in meters
EARTH_RADIUS_METERS = 6371008.8

Point = Tuple[float, float]
Line = Sequence[Point]


class InvalidGeometryError(ValueError):
    """Raised when a point or line is malformed."""
    pass


# ---------------------- Validation ----------------------

def validate_point(point) -> Point:
    """
    Normalise a ``(longitude, latitude)`` pair into floats.

    Raises:
        InvalidGeometryError: If the value is not a pair of numbers within
            valid WGS84 ranges.
    """
    try:
        lon, lat = point
        lon, lat = float(lon), float(lat)
    except (TypeError, ValueError):
        raise InvalidGeometryError(f"Invalid point: {point!r}")

    if not -180.0 <= lon <= 180.0:
        raise InvalidGeometryError(f"Longitude {lon} outside [-180, 180]")
    if not -90.0 <= lat <= 90.0:
        raise InvalidGeometryError(f"Latitude {lat} outside [-90, 90]")
    return lon, lat


def validate_line(line) -> List[Point]:
    """Normalise a polyline; it must contain at least two vertices."""
    if line is None:
        raise InvalidGeometryError("Line is required")
    points = [validate_point(p) for p in line]
    if len(points) < 2:
        raise InvalidGeometryError("Line must have at least 2 points")
    return points


# ---------------------- Distances & bearings ----------------------

def _angular_distance(a: Point, b: Point) -> float:
    """Central angle between two points in radians (haversine)."""
    lon1, lat1, lon2, lat2 = map(radians, [a[0], a[1], b[0], b[1]])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    return 2 * asin(min(1.0, sqrt(h)))


def _initial_bearing(a: Point, b: Point) -> float:
    """Initial bearing from a to b in radians (not normalised)."""
    lon1, lat1, lon2, lat2 = map(radians, [a[0], a[1], b[0], b[1]])
    dlon = lon2 - lon1
    x = sin(dlon) * cos(lat2)
    y = cos(lat1) * sin(lat2) - sin(lat1) * cos(lat2) * cos(dlon)
    return atan2(x, y)


def distance_meters(point_a, point_b) -> float:
    """Great-circle distance between two points in meters."""
    a = validate_point(point_a)
    b = validate_point(point_b)
    return _angular_distance(a, b) * EARTH_RADIUS_METERS


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate distance between two points in meters.

    Latitude-first convenience wrapper for callers holding separate
    latitude/longitude columns.
    """
    return distance_meters((lon1, lat1), (lon2, lat2))


def bearing_degrees(origin, target) -> float:
    """
    Initial compass bearing from ``origin`` to ``target``.

    Returns:
        Bearing in degrees within [0, 360); 0 is north, 90 is east.
    """
    a = validate_point(origin)
    b = validate_point(target)
    return (degrees(_initial_bearing(a, b)) + 360.0) % 360.0


def angular_difference(bearing_a: float, bearing_b: float) -> float:
    """Smallest difference between two bearings, in [0, 180]."""
    diff = fabs(bearing_a - bearing_b) % 360.0
    return 360.0 - diff if diff > 180.0 else diff


def line_length_km(line) -> float:
    """Sum of great-circle segment lengths in km, rounded to 2 decimals."""
    points = validate_line(line)
    return round(_line_length_meters(points) / 1000.0, 2)


def _line_length_meters(points: List[Point]) -> float:
    return sum(
        _angular_distance(points[i], points[i + 1]) * EARTH_RADIUS_METERS
        for i in range(len(points) - 1)
    )


# ---------------------- Point to line ----------------------

def _project_on_segment(start: Point, end: Point, point: Point) -> Tuple[float, float]:
    """
    Project a point onto the great-circle segment start->end.

    Returns:
        (distance_to_segment, offset_along_segment), both in meters.
        The offset is clamped to the segment so it lies in [0, length].
    """
    d12 = _angular_distance(start, end)
    d13 = _angular_distance(start, point)

    if d12 == 0.0:
        return d13 * EARTH_RADIUS_METERS, 0.0

    theta12 = _initial_bearing(start, end)
    theta13 = _initial_bearing(start, point)
    delta = theta13 - theta12

    cross_track = asin(max(-1.0, min(1.0, sin(d13) * sin(delta))))
    denominator = cos(cross_track)
    if denominator == 0.0:
        along_track = 0.0
    else:
        along_track = acos(max(-1.0, min(1.0, cos(d13) / denominator)))
    if cos(delta) < 0:
        along_track = -along_track

    if along_track <= 0.0:
        return d13 * EARTH_RADIUS_METERS, 0.0
    if along_track >= d12:
        return _angular_distance(end, point) * EARTH_RADIUS_METERS, d12 * EARTH_RADIUS_METERS
    return fabs(cross_track) * EARTH_RADIUS_METERS, along_track * EARTH_RADIUS_METERS


def _locate_on_line(points: List[Point], point: Point) -> Tuple[float, float]:
    """Return (distance to line, position along line) in meters."""
    best_distance = None
    best_position = 0.0
    travelled = 0.0

    for i in range(len(points) - 1):
        distance, offset = _project_on_segment(points[i], points[i + 1], point)
        if best_distance is None or distance < best_distance:
            best_distance = distance
            best_position = travelled + offset
        travelled += _angular_distance(points[i], points[i + 1]) * EARTH_RADIUS_METERS

    return best_distance, best_position


def distance_to_line_meters(line, point) -> float:
    """Minimum distance in meters from ``point`` to any segment of ``line``."""
    points = validate_line(line)
    target = validate_point(point)
    distance, _ = _locate_on_line(points, target)
    return distance


def point_near_line(line, point, tolerance_meters: float) -> bool:
    """True if ``point`` lies within ``tolerance_meters`` of ``line``."""
    if tolerance_meters is None or float(tolerance_meters) < 0:
        raise InvalidGeometryError("Tolerance must be a non-negative number")
    return distance_to_line_meters(line, point) <= float(tolerance_meters)


def distance_along_line_km(line, start, end) -> float:
    """
    Distance in km travelled along ``line`` between the projections of
    ``start`` and ``end`` onto it (direction-agnostic, unrounded).
    """
    points = validate_line(line)
    _, start_position = _locate_on_line(points, validate_point(start))
    _, end_position = _locate_on_line(points, validate_point(end))
    return fabs(end_position - start_position) / 1000.0


def closest_point_index(points: Iterable[Point], point) -> int:
    """Index of the point in ``points`` closest to ``point`` (-1 if empty)."""
    target = validate_point(point)
    best_index = -1
    best_distance = None
    for index, candidate in enumerate(points):
        distance = _angular_distance(validate_point(candidate), target)
        if best_distance is None or distance < best_distance:
            best_index, best_distance = index, distance
    return best_index
