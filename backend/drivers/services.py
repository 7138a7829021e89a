import logging
from datetime import timedelta

from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.utils import timezone

from bookings.models import Booking, BookingStatus
from drivers.models import Vehicle
from routes.models import Route
from services.exceptions import ConflictError, InvalidInputError, UnauthorizedError

logger = logging.getLogger(__name__)


# VEHICLES
def register_vehicle(owner, **fields) -> Vehicle:
    """
    Register a vehicle for a driver.
    Licence plates are unique across the system.
    """
    if not owner.is_driver:
        raise UnauthorizedError("Only drivers can register vehicles")

    capacity = fields.get("capacity")
    if capacity is None or not 1 <= int(capacity) <= 50:
        raise InvalidInputError("Vehicle capacity must be between 1 and 50")

    fields["license_plate"] = fields["license_plate"].strip().upper()

    try:
        with transaction.atomic():
            vehicle = Vehicle.objects.create(owner=owner, **fields)
    except IntegrityError:
        raise ConflictError(
            "A vehicle with this license plate is already registered",
            license_plate=fields["license_plate"],
        )

    logger.info("Vehicle %s registered for driver %s", vehicle.id, owner.id)
    return vehicle


def get_driver_vehicles(owner):
    return Vehicle.objects.filter(owner=owner)


# DASHBOARD METRICS
def count_active_passengers(route_ids) -> int:
    """Passengers currently on board across the given routes."""
    return Booking.objects.filter(
        route_id__in=route_ids,
        status=BookingStatus.IN_PROGRESS,
    ).aggregate(total=Sum("passenger_count"))["total"] or 0


def count_pending_requests(route_ids) -> int:
    return Booking.objects.filter(route_id__in=route_ids, status=BookingStatus.PENDING).count()


def next_stop_info(route_ids):
    """
    Name of the next pickup and minutes until it.
    Returns (None, None) when nothing is scheduled.
    """
    now = timezone.now()
    booking = (
        Booking.objects.filter(
            route_id__in=route_ids,
            status=BookingStatus.CONFIRMED,
            scheduled_pickup_time__gte=now - timedelta(minutes=30),
        )
        .select_related("pickup_stop")
        .order_by("scheduled_pickup_time")
        .first()
    )
    if booking is None:
        return None, None

    stop_name = booking.pickup_stop.name if booking.pickup_stop else "Pickup Location"
    eta_minutes = max(0, int((booking.scheduled_pickup_time - now).total_seconds() // 60))
    return stop_name, eta_minutes


def completed_bookings_in_range(route_ids, start, end):
    return Booking.objects.filter(
        route_id__in=route_ids,
        status=BookingStatus.COMPLETED,
        completed_at__gte=start,
        completed_at__lt=end,
    ).order_by("-completed_at")


def get_driver_dashboard(driver) -> dict:
    """Aggregate today's activity across all of the driver's routes."""
    route_ids = list(Route.objects.filter(driver=driver).values_list("id", flat=True))

    start_of_day = timezone.localtime().replace(hour=0, minute=0, second=0, microsecond=0)
    end_of_day = start_of_day + timedelta(days=1)
    todays = completed_bookings_in_range(route_ids, start_of_day, end_of_day)
    earnings = todays.aggregate(total=Sum("fare_amount"))["total"] or 0

    stop_name, eta_minutes = next_stop_info(route_ids)

    return {
        "route_count": len(route_ids),
        "active_passengers": count_active_passengers(route_ids),
        "pending_requests": count_pending_requests(route_ids),
        "next_stop": stop_name,
        "next_stop_eta_minutes": eta_minutes,
        "completed_today": todays.count(),
        "earnings_today": f"{earnings:.2f}",
        "rating": str(driver.rating),
        "total_ratings": driver.total_ratings,
    }
