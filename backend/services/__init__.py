"""
Services package - Business logic layer.

This package contains all business logic services that operate on Django models
but are decoupled from the HTTP layer.

Modules:
    - booking_management: Booking lifecycle state machine
    - matching: Route matching and route management
    - pricing: Fare calculation
    - ratings: Running-average user ratings
    - exceptions: Error taxonomy surfaced to callers
"""

# Expose commonly used functions at package level
from .exceptions import (
    BookingServiceError,
    CapacityExceededError,
    ConflictError,
    IllegalStateError,
    InvalidInputError,
    InvalidRatingError,
    LocationTooFarError,
    NotFoundError,
    UnauthorizedError,
)
from .pricing import FareCalculator, FareConfig, compute_fare
from .ratings import apply_rating, record_rating
from .matching import MatchingConfig, RouteMatcher
from .booking_management import (
    create_booking,
    confirm_booking,
    start_ride,
    complete_ride,
    cancel_booking,
    submit_rating,
    get_booking,
    next_status,
)

__all__ = [
    # Booking management
    "create_booking",
    "confirm_booking",
    "start_ride",
    "complete_ride",
    "cancel_booking",
    "submit_rating",
    "get_booking",
    "next_status",
    # Matching
    "MatchingConfig",
    "RouteMatcher",
    # Pricing & ratings
    "FareCalculator",
    "FareConfig",
    "compute_fare",
    "apply_rating",
    "record_rating",
    # Exceptions
    "BookingServiceError",
    "CapacityExceededError",
    "ConflictError",
    "IllegalStateError",
    "InvalidInputError",
    "InvalidRatingError",
    "LocationTooFarError",
    "NotFoundError",
    "UnauthorizedError",
]
