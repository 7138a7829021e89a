"""
Booking management service - Core booking lifecycle operations.

This module handles:
    - Creating bookings (proximity, pricing, capacity)
    - Confirming, starting and completing rides
    - Cancelling bookings
    - Rating completed rides
    - Querying bookings by rider, driver and route
"""

from .booking_lifecycle import (
    BookingResult,
    booked_seats,
    booking_distance_km,
    cancel_booking,
    check_capacity,
    complete_ride,
    confirm_booking,
    create_booking,
    get_booking,
    get_driver_bookings,
    get_driver_pending_bookings,
    get_rider_bookings,
    get_route_active_bookings,
    get_route_bookings,
    get_upcoming_rider_bookings,
    route_seat_capacity,
    start_ride,
    submit_rating,
)
from .transitions import (
    ACTIVE_STATUSES,
    SEAT_HOLDING_STATUSES,
    BookingAction,
    allowed_actions,
    can_cancel,
    next_status,
)

__all__ = [
    # Lifecycle operations
    "BookingResult",
    "create_booking",
    "confirm_booking",
    "start_ride",
    "complete_ride",
    "cancel_booking",
    "submit_rating",
    # Capacity & pricing helpers
    "booked_seats",
    "booking_distance_km",
    "check_capacity",
    "route_seat_capacity",
    # Queries
    "get_booking",
    "get_rider_bookings",
    "get_upcoming_rider_bookings",
    "get_driver_bookings",
    "get_driver_pending_bookings",
    "get_route_bookings",
    "get_route_active_bookings",
    # Transitions
    "ACTIVE_STATUSES",
    "SEAT_HOLDING_STATUSES",
    "BookingAction",
    "allowed_actions",
    "can_cancel",
    "next_status",
]
