"""Custom exceptions for booking and route operations."""


class BookingServiceError(Exception):
    """Base class for errors surfaced to API callers."""
    code = "error"
    status_code = 400

    def __init__(self, message: str = "", **context):
        super().__init__(message)
        self.message = message
        self.context = context


class NotFoundError(BookingServiceError):
    """Raised when a referenced user, route, booking or vehicle does not exist."""
    code = "not_found"
    status_code = 404


class InvalidInputError(BookingServiceError):
    """Raised for malformed or out-of-range input."""
    code = "invalid_input"
    status_code = 400


class LocationTooFarError(InvalidInputError):
    """Raised when a pickup/dropoff point lies outside the route's tolerance."""
    code = "location_too_far"


class InvalidRatingError(InvalidInputError):
    """Raised when a rating is outside 1..5."""
    code = "invalid_rating"


class IllegalStateError(BookingServiceError):
    """Raised when a booking is not in a state that allows the operation."""
    code = "illegal_state"
    status_code = 409


class CapacityExceededError(IllegalStateError):
    """Raised when a route has no seats left for the requested date."""
    code = "capacity_exceeded"


class UnauthorizedError(BookingServiceError):
    """Raised when the caller lacks the required role or ownership."""
    code = "unauthorized"
    status_code = 403


class ConflictError(BookingServiceError):
    """Raised when a unique constraint would be violated."""
    code = "conflict"
    status_code = 409
