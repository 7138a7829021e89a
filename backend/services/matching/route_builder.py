"""
Create and publish driver routes.

Route geometry is validated and measured once at creation; nothing edits
it afterwards. A route must be active to be published.
"""

import logging
from typing import Iterable, Optional

from django.db import IntegrityError, transaction
from django.db.models import Max

from common.utils import InvalidGeometryError, line_length_km, point_near_line, validate_line
from drivers.models import Vehicle
from routes.models import Route, VirtualStop
from services.exceptions import (
    ConflictError,
    IllegalStateError,
    InvalidInputError,
    LocationTooFarError,
    NotFoundError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)


def _get_owned_route(route_id, driver, lock: bool = False) -> Route:
    queryset = Route.objects.select_for_update() if lock else Route.objects.all()
    try:
        route = queryset.get(pk=route_id)
    except Route.DoesNotExist:
        raise NotFoundError("Route not found", route_id=route_id)
    if route.driver_id != driver.id:
        raise UnauthorizedError("Driver does not own this route")
    return route


@transaction.atomic
def create_route(
    driver,
    name: str,
    coordinates: Iterable,
    description: str = "",
    vehicle_id: Optional[int] = None,
    max_deviation_meters: int = 500,
) -> Route:
    """
    Create a new (unpublished) route for a driver.

    Args:
        driver: User model instance with the DRIVER role
        name: Display name
        coordinates: Ordered (longitude, latitude) vertices, at least 2
        description: Optional free text
        vehicle_id: Optional vehicle owned by the driver serving this route
        max_deviation_meters: Pickup/dropoff tolerance

    Returns:
        The saved Route
    """
    if not driver.is_driver:
        raise UnauthorizedError("User is not registered as a driver")

    try:
        points = validate_line(coordinates)
    except InvalidGeometryError as exc:
        raise InvalidInputError(str(exc))

    if max_deviation_meters is None or int(max_deviation_meters) <= 0:
        raise InvalidInputError("Max deviation must be a positive number of meters")

    vehicle = None
    if vehicle_id is not None:
        try:
            vehicle = Vehicle.objects.get(pk=vehicle_id, owner=driver)
        except Vehicle.DoesNotExist:
            raise NotFoundError("Vehicle not found", vehicle_id=vehicle_id)

    route = Route.objects.create(
        name=name,
        description=description,
        path=[[lon, lat] for lon, lat in points],
        distance_km=line_length_km(points),
        driver=driver,
        vehicle=vehicle,
        max_deviation_meters=int(max_deviation_meters),
    )

    logger.info("Route %s created by driver %s (%s km)", route.id, driver.id, route.distance_km)
    return route


@transaction.atomic
def publish_route(route_id, driver) -> Route:
    route = _get_owned_route(route_id, driver, lock=True)
    if not route.is_active:
        raise IllegalStateError("Inactive routes cannot be published")
    route.is_published = True
    route.save(update_fields=["is_published", "updated_at"])
    logger.info("Route %s published", route.id)
    return route


@transaction.atomic
def unpublish_route(route_id, driver) -> Route:
    route = _get_owned_route(route_id, driver, lock=True)
    route.is_published = False
    route.save(update_fields=["is_published", "updated_at"])
    logger.info("Route %s unpublished", route.id)
    return route


@transaction.atomic
def deactivate_route(route_id, driver) -> Route:
    """Retire a route; it is unpublished at the same time."""
    route = _get_owned_route(route_id, driver, lock=True)
    route.is_active = False
    route.is_published = False
    route.save(update_fields=["is_active", "is_published", "updated_at"])
    logger.info("Route %s deactivated", route.id)
    return route


@transaction.atomic
def add_virtual_stop(
    route_id,
    driver,
    name: str,
    latitude: float,
    longitude: float,
    sequence_order: Optional[int] = None,
    time_offset_minutes: Optional[int] = None,
    description: str = "",
) -> VirtualStop:
    """
    Add a named stop along a route.

    The stop must lie within the route's max deviation. When no
    sequence order is given the stop is appended after the last one.
    """
    route = _get_owned_route(route_id, driver, lock=True)

    if not point_near_line(route.coordinates, (longitude, latitude), route.max_deviation_meters):
        raise LocationTooFarError(
            f"Stop is too far from route (max {route.max_deviation_meters}m)",
            max_deviation_meters=route.max_deviation_meters,
        )

    if sequence_order is None:
        last = route.stops.aggregate(last=Max("sequence_order"))["last"]
        sequence_order = 0 if last is None else last + 1
    elif int(sequence_order) < 0:
        raise InvalidInputError("Sequence order must be zero or greater")

    try:
        with transaction.atomic():
            stop = VirtualStop.objects.create(
                route=route,
                name=name,
                description=description,
                latitude=latitude,
                longitude=longitude,
                sequence_order=sequence_order,
                time_offset_minutes=time_offset_minutes,
            )
    except IntegrityError:
        raise ConflictError(
            f"Route already has a stop at position {sequence_order}",
            sequence_order=sequence_order,
        )

    logger.info("Stop %s added to route %s at position %s", stop.id, route.id, sequence_order)
    return stop


def get_route(route_id) -> Route:
    try:
        return Route.objects.select_related("driver", "vehicle").get(pk=route_id)
    except Route.DoesNotExist:
        raise NotFoundError("Route not found", route_id=route_id)


def get_driver_routes(driver):
    return Route.objects.filter(driver=driver).order_by("-created_at")


def get_published_routes():
    return Route.objects.filter(is_active=True, is_published=True).select_related("driver")
