"""
Core booking lifecycle operations.

Every operation runs in a single transaction and re-reads the rows it
decides on with SELECT ... FOR UPDATE: the route row for anything that
checks seat capacity, the booking row for status transitions. Legality
of a transition is decided by ``transitions.next_status``.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import Max, Sum
from django.utils import timezone

from bookings.models import Booking, BookingStatus
from common.utils import InvalidGeometryError, distance_along_line_km, distance_meters, validate_point
from drivers.models import Vehicle
from routes.models import Route
from services.exceptions import (
    CapacityExceededError,
    ConflictError,
    IllegalStateError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from services.matching import RouteMatcher
from services.pricing import FareCalculator, FareConfig
from services.ratings import record_rating, validate_rating
from .references import generate_reference_number
from .transitions import ACTIVE_STATUSES, SEAT_HOLDING_STATUSES, BookingAction, next_status

logger = logging.getLogger(__name__)

MAX_PASSENGERS = 10
REFERENCE_ATTEMPTS = 5


@dataclass
class BookingResult:
    """Result object for booking operations."""
    success: bool
    booking: Optional[Booking] = None
    message: str = ""
    extra: Optional[Dict[str, Any]] = None


# ===================== Helpers =====================

def _lock_route(route_id) -> Route:
    try:
        return Route.objects.select_for_update().get(pk=route_id)
    except (Route.DoesNotExist, ValueError, ValidationError):
        raise NotFoundError("Route not found", route_id=str(route_id))


def _lock_booking(booking_id) -> Booking:
    try:
        return Booking.objects.select_for_update().get(pk=booking_id)
    except (Booking.DoesNotExist, ValueError, ValidationError):
        raise NotFoundError("Booking not found", booking_id=str(booking_id))


def _is_route_driver(booking: Booking, user) -> bool:
    return booking.route.driver_id == user.id


def _require_route_owner(booking: Booking, driver):
    if not _is_route_driver(booking, driver):
        raise UnauthorizedError("Driver does not own this route")


def _normalise_passenger_count(passenger_count) -> int:
    if passenger_count is None:
        return 1
    try:
        count = int(passenger_count)
    except (TypeError, ValueError):
        raise InvalidInputError("Passenger count must be a number")
    if count <= 0:
        return 1
    if count > MAX_PASSENGERS:
        raise InvalidInputError(f"At most {MAX_PASSENGERS} passengers per booking", passenger_count=count)
    return count


def _as_aware(value: datetime) -> datetime:
    if timezone.is_naive(value):
        return timezone.make_aware(value)
    return value


def booking_distance_km(route: Route, pickup, dropoff) -> Decimal:
    """
    Distance travelled along the route between pickup and dropoff.

    Falls back to the straight great-circle distance when both points
    project onto the same place on the route.
    """
    distance = distance_along_line_km(route.coordinates, pickup, dropoff)
    if distance == 0.0:
        distance = distance_meters(pickup, dropoff) / 1000.0
    return Decimal(str(distance)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


# ===================== Capacity =====================

def route_seat_capacity(route: Route) -> int:
    """
    Seats available on a route per day: the assigned vehicle's capacity,
    else the driver's largest active vehicle, else the configured default.
    """
    if route.vehicle_id:
        vehicle = route.vehicle
        if vehicle.is_active:
            return vehicle.capacity

    largest = Vehicle.objects.filter(owner_id=route.driver_id, is_active=True).aggregate(
        largest=Max("capacity")
    )["largest"]
    if largest:
        return largest
    return settings.BOOKING_DEFAULT_SEAT_CAPACITY


def _day_bounds(moment: datetime):
    local = timezone.localtime(moment)
    start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def booked_seats(route: Route, scheduled_time: datetime, exclude_booking_id=None) -> int:
    """Seats held on the route for the local calendar day of ``scheduled_time``."""
    start, end = _day_bounds(scheduled_time)
    bookings = Booking.objects.filter(
        route=route,
        status__in=SEAT_HOLDING_STATUSES,
        scheduled_pickup_time__gte=start,
        scheduled_pickup_time__lt=end,
    )
    if exclude_booking_id is not None:
        bookings = bookings.exclude(pk=exclude_booking_id)
    return bookings.aggregate(total=Sum("passenger_count"))["total"] or 0


def check_capacity(route: Route, scheduled_time: datetime, requested_seats: int, exclude_booking_id=None):
    """
    Raise CapacityExceededError if the route cannot seat ``requested_seats``
    more passengers on that day. Caller must hold the route row lock.
    """
    capacity = route_seat_capacity(route)
    booked = booked_seats(route, scheduled_time, exclude_booking_id)

    if booked + requested_seats > capacity:
        available = max(capacity - booked, 0)
        raise CapacityExceededError(
            f"Route is full. Available seats: {available}, Requested: {requested_seats}",
            available_seats=available,
            requested_seats=requested_seats,
        )


def _save_with_reference(booking: Booking) -> Booking:
    """Insert the booking, drawing a fresh reference number on collision."""
    for attempt in range(REFERENCE_ATTEMPTS):
        booking.reference_number = generate_reference_number()
        try:
            with transaction.atomic():
                booking.save(force_insert=True)
            return booking
        except IntegrityError:
            if not Booking.objects.filter(reference_number=booking.reference_number).exists():
                raise ConflictError("Booking could not be saved")
            logger.warning("Reference number collision on attempt %d, retrying", attempt + 1)

    raise ConflictError("Could not allocate a unique booking reference")


# ===================== Rider Operations =====================

@transaction.atomic
def create_booking(
    rider,
    route_id,
    pickup_latitude: float,
    pickup_longitude: float,
    dropoff_latitude: float,
    dropoff_longitude: float,
    scheduled_pickup_time: datetime,
    passenger_count: int = 1,
    special_instructions: str = "",
    fare_calculator: FareCalculator = None,
    matcher: RouteMatcher = None,
) -> BookingResult:
    """
    Create a booking request on a route.

    Args:
        rider: User model instance with the RIDER role
        route_id: ID of a published route
        pickup_latitude: Pickup location latitude
        pickup_longitude: Pickup location longitude
        dropoff_latitude: Dropoff location latitude
        dropoff_longitude: Dropoff location longitude
        scheduled_pickup_time: When the rider wants to be picked up
        passenger_count: Seats requested (1-10)
        special_instructions: Free text for the driver

    Returns:
        BookingResult with the PENDING booking

    Raises:
        UnauthorizedError: If the user is not an active rider
        NotFoundError: If the route does not exist
        InvalidInputError: Unavailable route, bad location or past time
        CapacityExceededError: If the route is full on that day
    """
    fare_calculator = fare_calculator or FareCalculator(FareConfig.from_settings())
    matcher = matcher or RouteMatcher()

    logger.info("Creating booking for rider %s on route %s", rider.id, route_id)

    if not rider.is_active or not rider.is_rider:
        raise UnauthorizedError("User is not registered as a rider")

    seats = _normalise_passenger_count(passenger_count)

    try:
        pickup = validate_point((pickup_longitude, pickup_latitude))
        dropoff = validate_point((dropoff_longitude, dropoff_latitude))
    except InvalidGeometryError as exc:
        raise InvalidInputError(str(exc))

    if scheduled_pickup_time is None:
        raise InvalidInputError("Scheduled pickup time is required")
    scheduled = _as_aware(scheduled_pickup_time)
    if scheduled <= timezone.now():
        raise InvalidInputError("Scheduled time must be in the future")

    # Serialises concurrent bookings on this route until commit
    route = _lock_route(route_id)

    if not route.is_active or not route.is_published:
        raise InvalidInputError("Route is not available")
    if route.driver_id == rider.id:
        raise InvalidInputError("Drivers cannot book their own route")

    matcher.validate_location(route, pickup, "Pickup")
    matcher.validate_location(route, dropoff, "Dropoff")

    distance = booking_distance_km(route, pickup, dropoff)
    fare = fare_calculator.compute_fare(distance, seats)

    check_capacity(route, scheduled, seats)

    booking = Booking(
        rider=rider,
        route=route,
        pickup_latitude=pickup_latitude,
        pickup_longitude=pickup_longitude,
        dropoff_latitude=dropoff_latitude,
        dropoff_longitude=dropoff_longitude,
        pickup_stop=matcher.nearest_stop(route, pickup),
        dropoff_stop=matcher.nearest_stop(route, dropoff),
        status=BookingStatus.PENDING,
        scheduled_pickup_time=scheduled,
        # Rough estimate: 2 minutes per km (30 km/h average)
        estimated_dropoff_time=scheduled + timedelta(minutes=int(distance * 2)),
        passenger_count=seats,
        fare_amount=fare,
        distance_km=distance,
        special_instructions=special_instructions or None,
    )
    _save_with_reference(booking)

    logger.info(
        "Booking created: %s (%s), fare %s %s",
        booking.id, booking.reference_number, fare_calculator.config.currency, fare
    )

    return BookingResult(
        success=True,
        booking=booking,
        message="Booking request sent to the driver",
        extra={"currency": fare_calculator.config.currency},
    )


@transaction.atomic
def cancel_booking(booking_id, user, reason: str = "") -> BookingResult:
    """
    Cancel a booking, by its rider or by the route's driver.

    Only PENDING and CONFIRMED bookings can be cancelled; cancelling an
    already cancelled booking is an error.
    """
    booking = _lock_booking(booking_id)

    is_rider = booking.rider_id == user.id
    is_driver = _is_route_driver(booking, user)
    if not is_rider and not is_driver:
        raise UnauthorizedError("User not authorized to cancel this booking")

    booking.status = next_status(booking.status, BookingAction.CANCEL)
    booking.cancelled_by = user
    booking.cancellation_reason = reason or "No reason provided"
    booking.cancelled_at = timezone.now()
    booking.save(update_fields=["status", "cancelled_by", "cancellation_reason", "cancelled_at", "updated_at"])

    logger.info("Booking %s cancelled by %s %s", booking.id, "rider" if is_rider else "driver", user.id)

    return BookingResult(
        success=True,
        booking=booking,
        message="Booking cancelled successfully",
        extra={"cancelled_by_role": "rider" if is_rider else "driver"},
    )


# ===================== Driver Operations =====================

@transaction.atomic
def confirm_booking(booking_id, driver) -> BookingResult:
    """Driver accepts a PENDING booking on one of their routes."""
    booking = _lock_booking(booking_id)
    _require_route_owner(booking, driver)

    new_status = next_status(booking.status, BookingAction.CONFIRM)

    # Capacity may have shrunk since creation (vehicle swapped or deactivated)
    route = _lock_route(booking.route_id)
    check_capacity(route, booking.scheduled_pickup_time, booking.passenger_count, exclude_booking_id=booking.pk)

    booking.status = new_status
    booking.confirmed_at = timezone.now()
    booking.save(update_fields=["status", "confirmed_at", "updated_at"])

    logger.info("Booking %s confirmed by driver %s", booking.id, driver.id)

    return BookingResult(success=True, booking=booking, message="Booking confirmed")


@transaction.atomic
def start_ride(booking_id, driver) -> BookingResult:
    """Driver picks up the rider."""
    booking = _lock_booking(booking_id)
    _require_route_owner(booking, driver)

    booking.status = next_status(booking.status, BookingAction.START)
    booking.actual_pickup_time = timezone.now()
    booking.save(update_fields=["status", "actual_pickup_time", "updated_at"])

    logger.info("Ride started for booking %s", booking.id)

    return BookingResult(success=True, booking=booking, message="Ride started")


@transaction.atomic
def complete_ride(booking_id, driver) -> BookingResult:
    """Driver drops the rider off."""
    booking = _lock_booking(booking_id)
    _require_route_owner(booking, driver)

    booking.status = next_status(booking.status, BookingAction.COMPLETE)
    now = timezone.now()
    booking.actual_dropoff_time = now
    booking.completed_at = now
    booking.save(update_fields=["status", "actual_dropoff_time", "completed_at", "updated_at"])

    logger.info("Ride completed for booking %s", booking.id)

    return BookingResult(
        success=True,
        booking=booking,
        message="Ride completed successfully",
        extra={"awaiting_ratings": True},
    )


# ===================== Ratings =====================

@transaction.atomic
def submit_rating(booking_id, user, rating: int, feedback: str = "") -> BookingResult:
    """
    Rate the other party of a completed booking.

    The rider rates the driver and the driver rates the rider; each side
    can rate once. The rated user's running average is updated.
    """
    validate_rating(rating)
    booking = _lock_booking(booking_id)

    is_rider = booking.rider_id == user.id
    is_driver = _is_route_driver(booking, user)
    if not is_rider and not is_driver:
        raise UnauthorizedError("User not part of this booking")

    if booking.status != BookingStatus.COMPLETED:
        raise IllegalStateError("Can only rate completed rides", status=booking.status)

    if is_rider:
        if booking.rider_rating is not None:
            raise IllegalStateError("You have already rated this ride")
        booking.rider_rating = rating
        booking.rider_feedback = feedback or None
        booking.save(update_fields=["rider_rating", "rider_feedback", "updated_at"])
        rated_user_id = booking.route.driver_id
    else:
        if booking.driver_rating is not None:
            raise IllegalStateError("You have already rated this ride")
        booking.driver_rating = rating
        booking.driver_feedback = feedback or None
        booking.save(update_fields=["driver_rating", "driver_feedback", "updated_at"])
        rated_user_id = booking.rider_id

    rated_user = record_rating(rated_user_id, rating)
    logger.info("Booking %s rated %s by user %s", booking.id, rating, user.id)

    return BookingResult(
        success=True,
        booking=booking,
        message="Thank you for your feedback",
        extra={"rated_user_id": rated_user.id, "rated_user_rating": str(rated_user.rating)},
    )


# ===================== Queries =====================

def get_booking(booking_id, user=None) -> Booking:
    """Fetch a booking; when ``user`` is given they must be part of it."""
    try:
        booking = Booking.objects.select_related("route", "rider").get(pk=booking_id)
    except (Booking.DoesNotExist, ValueError, ValidationError):
        raise NotFoundError("Booking not found", booking_id=str(booking_id))

    if user is not None and booking.rider_id != user.id and booking.route.driver_id != user.id:
        raise UnauthorizedError("User not part of this booking")
    return booking


def get_rider_bookings(rider):
    """Rider's booking history, latest pickup first."""
    return Booking.objects.filter(rider=rider).select_related("route").order_by("-scheduled_pickup_time")


def get_upcoming_rider_bookings(rider):
    return Booking.objects.filter(
        rider=rider,
        status__in=[BookingStatus.PENDING, BookingStatus.CONFIRMED],
        scheduled_pickup_time__gt=timezone.now(),
    ).select_related("route").order_by("scheduled_pickup_time")


def get_driver_bookings(driver, status: Optional[str] = None):
    """Bookings on routes owned by ``driver``, optionally filtered by status."""
    bookings = Booking.objects.filter(route__driver=driver).select_related("route", "rider")
    if status:
        if status not in BookingStatus.values:
            raise InvalidInputError(f"Unknown booking status: {status}")
        bookings = bookings.filter(status=status)
    return bookings.order_by("scheduled_pickup_time")


def get_driver_pending_bookings(driver):
    return get_driver_bookings(driver, BookingStatus.PENDING)


def get_route_bookings(route_id, statuses=None):
    if not Route.objects.filter(pk=route_id).exists():
        raise NotFoundError("Route not found", route_id=str(route_id))
    bookings = Booking.objects.filter(route_id=route_id).select_related("rider")
    if statuses:
        bookings = bookings.filter(status__in=statuses)
    return bookings.order_by("scheduled_pickup_time")


def get_route_active_bookings(route_id):
    return get_route_bookings(route_id, ACTIVE_STATUSES)
