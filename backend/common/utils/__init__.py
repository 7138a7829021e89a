"""Common utility functions."""

from .geo import (
    InvalidGeometryError,
    angular_difference,
    bearing_degrees,
    calculate_distance,
    closest_point_index,
    distance_along_line_km,
    distance_meters,
    distance_to_line_meters,
    line_length_km,
    point_near_line,
    validate_line,
    validate_point,
)

__all__ = [
    "InvalidGeometryError",
    "angular_difference",
    "bearing_degrees",
    "calculate_distance",
    "closest_point_index",
    "distance_along_line_km",
    "distance_meters",
    "distance_to_line_meters",
    "line_length_km",
    "point_near_line",
    "validate_line",
    "validate_point",
]
