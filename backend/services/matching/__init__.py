"""
Route matching service.

This module handles:
    - Finding published routes near a location
    - Finding routes heading towards a destination
    - Validating pickup/dropoff points against route tolerance
    - Creating, publishing and extending routes with virtual stops
"""

from .route_matcher import MatchingConfig, RouteMatch, RouteMatcher, available_routes
from .route_builder import (
    add_virtual_stop,
    create_route,
    deactivate_route,
    get_driver_routes,
    get_published_routes,
    get_route,
    publish_route,
    unpublish_route,
)

__all__ = [
    "MatchingConfig",
    "RouteMatch",
    "RouteMatcher",
    "available_routes",
    "add_virtual_stop",
    "create_route",
    "deactivate_route",
    "get_driver_routes",
    "get_published_routes",
    "get_route",
    "publish_route",
    "unpublish_route",
]
