"""Schedule index: bucket timetable entries by weekday.

The index is the shared input of every timetable screen (grid, list view,
dashboard "today" panel, course search). It always carries all five
weekdays, keeps the input's relative order within a day, and silently drops
entries for days outside Monday-Friday.
"""

from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from campusroom.errors import UnrecognizedDayError
from campusroom.logging import get_logger
from campusroom.models import WEEKDAYS, ScheduleEntry

log = get_logger(__name__)

ScheduleIndex = dict[str, list[ScheduleEntry]]

_DAY_LOOKUP: dict[str, str] = {day.lower(): day for day in WEEKDAYS}


def canonical_day(raw: str) -> str:
    """Map a day name to its canonical weekday spelling.

    Raises:
        UnrecognizedDayError: If the name is not Monday-Friday.
    """
    day = _DAY_LOOKUP.get(str(raw or "").strip().lower())
    if day is None:
        raise UnrecognizedDayError(f"Unsupported day: {raw!r}")
    return day


def parse_entries(raws: Iterable[Any]) -> list[ScheduleEntry]:
    """Convert raw timetable records into ScheduleEntry models.

    Records that are not objects or cannot form a valid entry (e.g. end
    time not after start time) are dropped and logged; missing ids become
    "entry-<position>".
    """
    entries: list[ScheduleEntry] = []
    for position, raw in enumerate(raws):
        if not isinstance(raw, Mapping):
            log.warning(
                "entry_dropped",
                position=position,
                record_type=type(raw).__name__,
                reason="not an object",
            )
            continue
        try:
            entries.append(
                ScheduleEntry.from_raw(raw, fallback_id=f"entry-{position}")
            )
        except PydanticValidationError as e:
            log.warning(
                "entry_dropped",
                position=position,
                entry_id=raw.get("id"),
                errors=e.error_count(),
                reason=e.errors()[0]["msg"],
            )
    return entries


def index_entries(entries: Iterable[ScheduleEntry]) -> ScheduleIndex:
    """Bucket entries by weekday.

    Returns:
        Dict with exactly the five weekday keys, each mapped to that day's
        entries in input order. Entries for unrecognized days are excluded.
    """
    index: ScheduleIndex = {day: [] for day in WEEKDAYS}
    for entry in entries:
        try:
            day = canonical_day(entry.day)
        except UnrecognizedDayError as e:
            log.debug("entry_excluded", entry_id=entry.id, day=entry.day, reason=str(e))
            continue
        if day != entry.day:
            entry = entry.model_copy(update={"day": day})
        index[day].append(entry)
    return index


def sort_by_start(entries: Iterable[ScheduleEntry]) -> list[ScheduleEntry]:
    """Sort entries by start time (zero-padded strings sort chronologically)."""
    return sorted(entries, key=lambda e: e.start_time)


def day_name(d: date) -> str:
    """Weekday name of a date, e.g. "Monday" (weekends included)."""
    return d.strftime("%A")


def week_dates(reference: date, offset_weeks: int = 0) -> list[date]:
    """Compute Mon-Fri dates for the week containing `reference`.

    Args:
        reference: Any date within the base week.
        offset_weeks: Shift in whole weeks (-1 = previous week, 1 = next week).
    """
    # weekday() returns 0 for Monday
    monday = reference - timedelta(days=reference.weekday()) + timedelta(weeks=offset_weeks)
    return [monday + timedelta(days=offset) for offset in range(len(WEEKDAYS))]


def current_weekday(today: date) -> str:
    """Today's weekday name, falling back to Monday on weekends."""
    name = day_name(today)
    return name if name in WEEKDAYS else WEEKDAYS[0]


def today_classes(index: ScheduleIndex, today: date) -> list[ScheduleEntry]:
    """Entries scheduled on `today`'s weekday, sorted by start time.

    Empty on weekends.
    """
    return sort_by_start(index.get(day_name(today), []))


def upcoming_classes(
    index: ScheduleIndex, now: datetime, limit: int = 3
) -> list[ScheduleEntry]:
    """Classes that start after the current hour, topped up from the next weekday.

    Today's entries whose start hour is later than now's hour come first; if
    fewer than `limit`, the next weekday's entries (Friday wraps to Monday)
    are appended. The result never holds more than `limit` entries.
    """
    current = current_weekday(now.date())
    upcoming = [
        e for e in index.get(current, []) if int(e.start_time[:2]) > now.hour
    ]
    if len(upcoming) < limit:
        following = WEEKDAYS[(WEEKDAYS.index(current) + 1) % len(WEEKDAYS)]
        upcoming = [*upcoming, *index.get(following, [])]
    return upcoming[:limit]


def search_entries(index: ScheduleIndex, term: str) -> list[ScheduleEntry]:
    """Case-insensitive substring search over name, instructor and location.

    Returns matches in weekday order; an empty term matches nothing.
    """
    needle = term.strip().lower()
    if not needle:
        return []
    return [
        entry
        for day in WEEKDAYS
        for entry in index.get(day, [])
        if needle in entry.name.lower()
        or needle in entry.instructor.lower()
        or needle in entry.location.lower()
    ]
