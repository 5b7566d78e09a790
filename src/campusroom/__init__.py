"""Timetable and room-availability engine for the campus room portal.

Turns the portal's timetable, room and reservation records into what the
professor and student screens render: a weekly grid, weekly booked hours,
dashboard figures and room-search results.
"""

from campusroom.availability import search, validate_query
from campusroom.grid import default_slots, plan, table_rows
from campusroom.models import Booking, BookingStatus, Role, Room, ScheduleEntry
from campusroom.schedule import index_entries, parse_entries
from campusroom.session import TimetableSession
from campusroom.stats import format_hours, weekly_hours
from campusroom.timeutils import normalize_time

__all__ = [
    "Booking",
    "BookingStatus",
    "Role",
    "Room",
    "ScheduleEntry",
    "TimetableSession",
    "default_slots",
    "format_hours",
    "index_entries",
    "normalize_time",
    "parse_entries",
    "plan",
    "search",
    "table_rows",
    "validate_query",
    "weekly_hours",
]
