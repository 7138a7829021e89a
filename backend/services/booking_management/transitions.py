"""
Booking state transitions.

Pure decision logic: given the current status and an action, return the
next status or raise IllegalStateError. Nothing here touches the database.

    PENDING -> CONFIRMED -> IN_PROGRESS -> COMPLETED
    PENDING | CONFIRMED -> CANCELLED
"""

from enum import Enum

from bookings.models import BookingStatus
from services.exceptions import IllegalStateError


class BookingAction(str, Enum):
    CONFIRM = "confirm"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"


TRANSITIONS = {
    (BookingStatus.PENDING, BookingAction.CONFIRM): BookingStatus.CONFIRMED,
    (BookingStatus.CONFIRMED, BookingAction.START): BookingStatus.IN_PROGRESS,
    (BookingStatus.IN_PROGRESS, BookingAction.COMPLETE): BookingStatus.COMPLETED,
    (BookingStatus.PENDING, BookingAction.CANCEL): BookingStatus.CANCELLED,
    (BookingStatus.CONFIRMED, BookingAction.CANCEL): BookingStatus.CANCELLED,
}

# Statuses whose passengers hold seats on the route
SEAT_HOLDING_STATUSES = (
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.IN_PROGRESS,
)

ACTIVE_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS)

TERMINAL_STATUSES = (BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW)


def next_status(current, action: BookingAction) -> BookingStatus:
    """
    Decide the status a booking moves to.

    Raises:
        IllegalStateError: If ``action`` is not allowed from ``current``.
    """
    action = BookingAction(action)
    current = BookingStatus(current)
    try:
        return TRANSITIONS[(current, action)]
    except KeyError:
        raise IllegalStateError(
            f"Cannot {action.value} a booking that is {current.label.lower()}",
            status=current.value,
            action=action.value,
        )


def allowed_actions(current) -> list:
    current = BookingStatus(current)
    return [action for (status, action) in TRANSITIONS if status == current]


def can_cancel(current) -> bool:
    return BookingAction.CANCEL in allowed_actions(current)
