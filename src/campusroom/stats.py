"""Weekly hours and dashboard statistics over a booking collection.

Every figure is a pure fold recomputed from the whole collection on each
call; bookings can be added, cancelled or re-fetched out of order, so
nothing here is maintained incrementally.
"""

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta

from campusroom.logging import get_logger
from campusroom.models import Booking, BookingStatus, DashboardStats, Role, ScheduleEntry
from campusroom.schedule import index_entries, today_classes
from campusroom.timeutils import to_minutes

log = get_logger(__name__)


def week_window(reference: date) -> tuple[datetime, datetime]:
    """Monday 00:00:00 to Sunday 23:59:59.999999 of the week containing `reference`."""
    monday = reference - timedelta(days=reference.weekday())
    start = datetime.combine(monday, time.min)
    end = datetime.combine(monday + timedelta(days=6), time.max)
    return start, end


def booking_duration_hours(booking: Booking) -> float:
    """Duration of a booking in hours; 0 when unknown or non-positive.

    Explicit start/end fields take precedence over the combined
    "HH:MM - HH:MM" display string.
    """
    interval = booking.interval
    if interval is None:
        log.debug("booking_duration_unknown", booking_id=booking.id)
        return 0.0
    minutes = to_minutes(interval[1]) - to_minutes(interval[0])
    if minutes <= 0:
        log.debug(
            "booking_duration_non_positive",
            booking_id=booking.id,
            start=interval[0],
            end=interval[1],
        )
        return 0.0
    return minutes / 60


def weekly_hours(bookings: Iterable[Booking], reference: date) -> float:
    """Total hours of Approved bookings dated within the reference ISO week."""
    start, end = week_window(reference)
    total = 0.0
    for booking in bookings:
        if booking.status is not BookingStatus.APPROVED or booking.date is None:
            continue
        if not (start.date() <= booking.date <= end.date()):
            continue
        total += booking_duration_hours(booking)
    return total


def format_hours(hours: float) -> str:
    """Format fractional hours as "HHh MMmin", minutes rounded to the nearest."""
    total_minutes = round(max(0.0, hours) * 60)
    whole_hours, minutes = divmod(total_minutes, 60)
    return f"{whole_hours:02d}h {minutes:02d}min"


def weekly_hours_label(bookings: Iterable[Booking], reference: date) -> str:
    return format_hours(weekly_hours(bookings, reference))


def dashboard_stats(
    bookings: Iterable[Booking],
    entries: Iterable[ScheduleEntry],
    today: date,
    role: Role,
) -> DashboardStats:
    """Summary figures for a dashboard.

    Professors count Pending and Approved reservations as active; students
    count Approved ones only.
    """
    bookings = list(bookings)
    if role is Role.PROFESSOR:
        active = sum(1 for b in bookings if b.is_active)
    else:
        active = sum(1 for b in bookings if b.status is BookingStatus.APPROVED)
    return DashboardStats(
        active_reservations=active,
        pending_reservations=sum(
            1 for b in bookings if b.status is BookingStatus.PENDING
        ),
        total_reservations=len(bookings),
        today_classes=len(today_classes(index_entries(entries), today)),
        weekly_hours=weekly_hours_label(bookings, today),
    )
