"""
Match riders to driver routes.

Finds published routes passing near a location or heading towards a
destination, and checks pickup/dropoff points against a route's
max-deviation tolerance.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from django.conf import settings

from common.utils import (
    angular_difference,
    bearing_degrees,
    closest_point_index,
    distance_to_line_meters,
    point_near_line,
    validate_point,
)
from routes.models import Route, VirtualStop
from services.exceptions import LocationTooFarError, NotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchingConfig:
    """Search policy for route matching."""
    default_radius_meters: float = 500.0
    heading_tolerance_degrees: float = 45.0
    max_results: int = 20

    @classmethod
    def from_settings(cls) -> "MatchingConfig":
        return cls(
            default_radius_meters=float(getattr(settings, "ROUTE_SEARCH_RADIUS_METERS", cls.default_radius_meters)),
            heading_tolerance_degrees=float(
                getattr(settings, "ROUTE_HEADING_TOLERANCE_DEGREES", cls.heading_tolerance_degrees)
            ),
            max_results=int(getattr(settings, "ROUTE_SEARCH_MAX_RESULTS", cls.max_results)),
        )


@dataclass
class RouteMatch:
    """A route together with its distance from the searched point."""
    route: Route
    distance_meters: float


def available_routes():
    """Routes riders may currently book."""
    return Route.objects.filter(is_active=True, is_published=True).select_related("driver")


class RouteMatcher:
    """Geospatial queries over routes."""

    def __init__(self, config: MatchingConfig = None):
        self.config = config or MatchingConfig.from_settings()

    def _candidates(self, routes: Optional[Iterable[Route]]) -> Iterable[Route]:
        if routes is None:
            return available_routes()
        return [route for route in routes if route.is_active and route.is_published]

    def _within_radius(self, point, radius_meters, routes) -> List[RouteMatch]:
        """Every candidate route within the radius, closest first, uncapped."""
        location = validate_point(point)
        radius = self.config.default_radius_meters if radius_meters is None else float(radius_meters)

        logger.info("Searching for routes within %.0fm of (%.6f, %.6f)", radius, location[1], location[0])

        matches = []
        for route in self._candidates(routes):
            distance = distance_to_line_meters(route.coordinates, location)
            if distance <= radius:
                matches.append(RouteMatch(route=route, distance_meters=distance))

        matches.sort(key=lambda match: match.distance_meters)
        return matches

    def find_nearby(self, point, radius_meters: float = None, routes: Iterable[Route] = None) -> List[RouteMatch]:
        """
        Find routes whose path passes within ``radius_meters`` of ``point``.

        Args:
            point: (longitude, latitude)
            radius_meters: Search radius, defaults to the configured radius
            routes: Optional candidate routes (defaults to all published)

        Returns:
            RouteMatch list sorted closest first
        """
        matches = self._within_radius(point, radius_meters, routes)[:self.config.max_results]

        logger.info("Found %d matching routes", len(matches))
        return matches

    def find_heading_towards(
        self,
        origin,
        destination,
        radius_meters: float = None,
        tolerance_degrees: float = None,
        routes: Iterable[Route] = None,
    ) -> List[RouteMatch]:
        """
        Find routes near ``origin`` whose overall direction (start to end)
        points towards ``destination`` within ``tolerance_degrees``.

        Not capped: the direction filter runs over every route in the radius.
        """
        tolerance = self.config.heading_tolerance_degrees if tolerance_degrees is None else float(tolerance_degrees)
        target_bearing = bearing_degrees(origin, destination)

        matches = []
        for match in self._within_radius(origin, radius_meters, routes):
            route_bearing = bearing_degrees(match.route.start_point, match.route.end_point)
            if angular_difference(route_bearing, target_bearing) < tolerance:
                matches.append(match)

        logger.info(
            "Found %d routes heading %.1f deg (+/- %.0f)",
            len(matches), target_bearing, tolerance
        )
        return matches

    def is_near_route(self, route: Route, point) -> bool:
        return point_near_line(route.coordinates, point, route.max_deviation_meters)

    def validate_pickup(self, route_id, point) -> bool:
        """Whether ``point`` is an acceptable pickup for the route."""
        try:
            route = Route.objects.get(pk=route_id)
        except Route.DoesNotExist:
            raise NotFoundError("Route not found", route_id=route_id)
        return self.is_near_route(route, point)

    def validate_location(self, route: Route, point, label: str = "Pickup"):
        """Raise LocationTooFarError unless ``point`` is within tolerance."""
        if not self.is_near_route(route, point):
            raise LocationTooFarError(
                f"{label} location is too far from route (max {route.max_deviation_meters}m)",
                max_deviation_meters=route.max_deviation_meters,
            )

    def nearest_stop(self, route: Route, point) -> Optional[VirtualStop]:
        """Closest active virtual stop of the route, if it has any."""
        stops = list(route.stops.filter(is_active=True))
        index = closest_point_index([stop.point for stop in stops], point)
        return stops[index] if index >= 0 else None
