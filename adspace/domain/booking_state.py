"""Booking state machine."""

from enum import Enum

from adspace.core.exceptions import InvalidTransition


class BookingStatus(str, Enum):
    """Booking lifecycle states."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


BOOKING_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {BookingStatus.APPROVED, BookingStatus.REJECTED, BookingStatus.CANCELLED},
    BookingStatus.APPROVED: {BookingStatus.ACTIVE, BookingStatus.CANCELLED},
    BookingStatus.ACTIVE: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.REJECTED: set(),
    BookingStatus.CANCELLED: set(),
}

# Bookings in these states hold their dates on the listing
OPEN_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.PENDING, BookingStatus.APPROVED, BookingStatus.ACTIVE}
)

TERMINAL_STATUSES: frozenset[BookingStatus] = frozenset(
    status for status, targets in BOOKING_TRANSITIONS.items() if not targets
)


def is_terminal(status: str | BookingStatus) -> bool:
    return BookingStatus(status) in TERMINAL_STATUSES


def assert_booking_transition(current: str | BookingStatus, target: str | BookingStatus) -> None:
    current = BookingStatus(current)
    target = BookingStatus(target)
    allowed = BOOKING_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise InvalidTransition(
            f"Invalid booking transition: {current.value} → {target.value}"
        )
