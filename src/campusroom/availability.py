"""Room availability matching for the reservation search screen.

A room is returned by search() when it is eligible (enough capacity, right
type) and available: no active (Pending or Approved) booking for the room on
the query date overlaps the requested interval, and, when a timetable is
supplied, no regular class is held there at that time.

Two intervals overlap when ``start_a < end_b and end_a > start_b``; times are
compared as minute-of-day integers.
"""

import datetime as dt
from collections.abc import Iterable

from campusroom.errors import MalformedTimeError, ValidationError
from campusroom.logging import get_logger
from campusroom.models import Booking, ConflictInfo, Room, ScheduleEntry, SearchQuery
from campusroom.schedule import day_name
from campusroom.timeutils import parse_time, to_minutes

log = get_logger(__name__)


def has_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open interval overlap on minute-of-day integers."""
    return start_a < end_b and end_a > start_b


def validate_query(
    date: object,
    start_time: object,
    end_time: object,
    min_capacity: object,
    type: str | None = None,
) -> SearchQuery:
    """Check search preconditions and build a SearchQuery.

    Raises:
        ValidationError: Listing every problem found (missing field,
            unparsable time or date, non-positive capacity, start >= end).
    """
    problems: list[str] = []

    query_date = None
    if date in (None, ""):
        problems.append("date is required")
    elif isinstance(date, str):
        try:
            query_date = dt.date.fromisoformat(date.strip()[:10])
        except ValueError:
            problems.append(f"date {date!r} is not a valid YYYY-MM-DD date")
    elif isinstance(date, dt.datetime):
        query_date = date.date()
    elif isinstance(date, dt.date):
        query_date = date
    else:
        problems.append(f"date {date!r} is not a valid YYYY-MM-DD date")

    times: dict[str, str] = {}
    for field, raw in (("start_time", start_time), ("end_time", end_time)):
        if raw in (None, ""):
            problems.append(f"{field} is required")
            continue
        try:
            times[field] = parse_time(raw)
        except MalformedTimeError as e:
            problems.append(f"{field}: {e}")

    capacity = None
    if min_capacity in (None, ""):
        problems.append("min_capacity is required")
    else:
        try:
            capacity = int(str(min_capacity).strip())
        except ValueError:
            problems.append(f"min_capacity {min_capacity!r} is not an integer")
        else:
            if capacity <= 0:
                problems.append("min_capacity must be a positive integer")

    if len(times) == 2 and to_minutes(times["start_time"]) >= to_minutes(
        times["end_time"]
    ):
        problems.append("start_time must be before end_time")

    if problems:
        log.info("search_query_rejected", problems=problems)
        raise ValidationError(problems)

    return SearchQuery(
        date=query_date,
        start_time=times["start_time"],
        end_time=times["end_time"],
        min_capacity=capacity,
        type=type or None,
    )


def is_eligible(room: Room, query: SearchQuery) -> bool:
    """Capacity and type criteria only (ignores bookings)."""
    if room.capacity < query.min_capacity:
        return False
    return query.type is None or room.type == query.type


def conflicting_bookings(
    room: Room, bookings: Iterable[Booking], query: SearchQuery
) -> list[Booking]:
    """Active bookings of `room` on the query date that overlap the query window.

    A booking whose time interval cannot be determined counts as a conflict.
    """
    query_start = to_minutes(query.start_time)
    query_end = to_minutes(query.end_time)
    conflicts: list[Booking] = []
    for booking in bookings:
        if not booking.is_active or booking.date != query.date:
            continue
        if not booking.refers_to(room):
            continue
        interval = booking.interval
        if interval is None:
            log.warning("booking_interval_unknown", booking_id=booking.id, room=room.id)
            conflicts.append(booking)
            continue
        if has_overlap(
            to_minutes(interval[0]), to_minutes(interval[1]), query_start, query_end
        ):
            conflicts.append(booking)
    return conflicts


def conflicting_classes(
    room: Room, timetable: Iterable[ScheduleEntry], query: SearchQuery
) -> list[ScheduleEntry]:
    """Timetable entries held in `room` on the query's weekday that overlap the window."""
    weekday = day_name(query.date).lower()
    query_start = to_minutes(query.start_time)
    query_end = to_minutes(query.end_time)
    return [
        entry
        for entry in timetable
        if entry.day.strip().lower() == weekday
        and room.matches_reference(entry.location)
        and has_overlap(entry.start_minutes, entry.end_minutes, query_start, query_end)
    ]


def is_available(
    room: Room,
    bookings: Iterable[Booking],
    query: SearchQuery,
    timetable: Iterable[ScheduleEntry] = (),
) -> bool:
    if conflicting_bookings(room, bookings, query):
        return False
    return not conflicting_classes(room, timetable, query)


def search(
    rooms: Iterable[Room],
    bookings: Iterable[Booking],
    query: SearchQuery,
    timetable: Iterable[ScheduleEntry] = (),
) -> list[Room]:
    """Rooms that meet the query criteria and are free for its interval.

    Result order follows the input order but is not part of the contract.
    """
    bookings = list(bookings)
    timetable = list(timetable)
    available = [
        room
        for room in rooms
        if is_eligible(room, query) and is_available(room, bookings, query, timetable)
    ]
    log.info(
        "rooms_searched",
        date=query.date.isoformat(),
        start_time=query.start_time,
        end_time=query.end_time,
        min_capacity=query.min_capacity,
        type=query.type,
        matches=len(available),
    )
    return available


def conflict_info(
    room: Room,
    bookings: Iterable[Booking],
    query: SearchQuery,
    timetable: Iterable[ScheduleEntry] = (),
) -> ConflictInfo:
    """Describe why `room` is (or is not) available for the query."""
    return ConflictInfo(
        reservation_conflicts=[
            f"Reservation {b.id} from {b.interval[0]} to {b.interval[1]} ({b.status.value})"
            if b.interval
            else f"Reservation {b.id} with unknown time ({b.status.value})"
            for b in conflicting_bookings(room, bookings, query)
        ],
        class_conflicts=[
            f"Class '{e.name}' from {e.start_time} to {e.end_time}"
            for e in conflicting_classes(room, timetable, query)
        ],
    )
