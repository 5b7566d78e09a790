"""Reservation status lifecycle.

    Pending --(server)--> Approved
    Pending --(server)--> Rejected      terminal
    Pending --(client)--> Cancelled     terminal
    Approved --(client)--> Cancelled

Approval and rejection are decided by the server; the client only observes
them. Cancellation is requested by the client after the user confirms.
Nothing leaves a terminal state: a new reservation has to be created instead.
"""

from collections.abc import Iterable

from campusroom.errors import InvalidTransitionError
from campusroom.logging import get_logger
from campusroom.models import Booking, BookingStatus

log = get_logger(__name__)

TERMINAL_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.REJECTED, BookingStatus.CANCELLED}
)

SERVER_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.APPROVED, BookingStatus.REJECTED}),
}

CLIENT_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.APPROVED: frozenset({BookingStatus.CANCELLED}),
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    """True if any actor may move a reservation from `current` to `target`."""
    return target in SERVER_TRANSITIONS.get(
        current, frozenset()
    ) or target in CLIENT_TRANSITIONS.get(current, frozenset())


def can_cancel(booking: Booking) -> bool:
    return BookingStatus.CANCELLED in CLIENT_TRANSITIONS.get(booking.status, frozenset())


def available_actions(booking: Booking) -> frozenset[str]:
    """Actions a reservation list may offer for a booking."""
    actions = {"view"}
    if booking.status is BookingStatus.PENDING:
        actions.add("edit")
    if can_cancel(booking):
        actions.add("cancel")
    return frozenset(actions)


def observe(booking: Booking, status: BookingStatus) -> Booking:
    """Apply a status reported by the server.

    Reporting the current status again is a no-op.

    Raises:
        InvalidTransitionError: If the reported change would leave a terminal
            state or skip the lifecycle (e.g. Approved -> Rejected).
    """
    if status is booking.status:
        return booking
    if not can_transition(booking.status, status):
        raise InvalidTransitionError(
            f"Reservation {booking.id}: {booking.status.value} -> {status.value} is not allowed"
        )
    log.info(
        "reservation_status_observed",
        booking_id=booking.id,
        previous=booking.status.value,
        status=status.value,
    )
    return booking.model_copy(update={"status": status})


def request_cancel(booking: Booking) -> Booking:
    """Return the cancelled form of a booking.

    Raises:
        InvalidTransitionError: If the booking is already Cancelled or Rejected.
    """
    if not can_cancel(booking):
        raise InvalidTransitionError(
            f"Reservation {booking.id} cannot be cancelled from {booking.status.value}"
        )
    return booking.model_copy(update={"status": BookingStatus.CANCELLED})


def without_booking(bookings: Iterable[Booking], booking_id: str) -> list[Booking]:
    """New collection with the given booking removed."""
    return [b for b in bookings if b.id != booking_id]
