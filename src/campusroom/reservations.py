"""Filtering and sorting for the "my reservations" list."""

from collections.abc import Iterable
from datetime import date
from enum import Enum

from campusroom.models import Booking, BookingStatus
from campusroom.stats import week_window


class DateRange(str, Enum):
    ALL = "all"
    UPCOMING = "upcoming"
    PAST = "past"
    TODAY = "today"
    THIS_WEEK = "thisWeek"


class SortField(str, Enum):
    DATE = "date"
    ROOM = "room"
    STATUS = "status"
    PURPOSE = "purpose"


def _in_range(booking: Booking, date_range: DateRange, today: date) -> bool:
    if date_range is DateRange.ALL:
        return True
    # Undated bookings only show up under "all"
    if booking.date is None:
        return False
    if date_range is DateRange.UPCOMING:
        return booking.date >= today
    if date_range is DateRange.PAST:
        return booking.date < today
    if date_range is DateRange.TODAY:
        return booking.date == today
    start, end = week_window(today)
    return start.date() <= booking.date <= end.date()


def _matches(booking: Booking, term: str) -> bool:
    haystack = (
        booking.room,
        booking.purpose,
        booking.date.isoformat() if booking.date else "",
        booking.time,
    )
    return any(term in field.lower() for field in haystack)


def _sort_key(field: SortField):
    if field is SortField.DATE:
        return lambda b: (b.date is None, b.date or date.min)
    if field is SortField.ROOM:
        return lambda b: b.room.lower()
    if field is SortField.STATUS:
        return lambda b: b.status.value
    return lambda b: b.purpose.lower()


def filter_reservations(
    bookings: Iterable[Booking],
    today: date,
    *,
    date_range: DateRange = DateRange.ALL,
    status: BookingStatus | None = None,
    term: str = "",
    sort_by: SortField = SortField.DATE,
    descending: bool = False,
) -> list[Booking]:
    """Apply date-range, status and free-text filters, then sort.

    The free-text term matches room, purpose, ISO date and time display,
    case-insensitively. Sorting is stable.
    """
    needle = term.strip().lower()
    result = [
        b
        for b in bookings
        if _in_range(b, date_range, today)
        and (status is None or b.status is status)
        and (not needle or _matches(b, needle))
    ]
    result.sort(key=_sort_key(sort_by), reverse=descending)
    return result
