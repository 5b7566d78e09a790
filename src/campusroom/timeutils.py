"""Time normalization: every time value the engine sees becomes canonical HH:MM.

Schedule data comes from an untrusted service in several shapes ("9:00",
"09:00:00", "2024-01-01T14:30:00", datetime objects). normalize_time() turns
all of them into a zero-padded 24-hour "HH:MM" string and never raises: an
unparsable value becomes "00:00" and is reported as a ``malformed_time`` log
event so partial rendering can proceed. parse_time() is the strict variant
for user input that must be rejected instead.
"""

import re
from datetime import datetime, time

from campusroom.errors import MalformedTimeError
from campusroom.logging import get_logger

log = get_logger(__name__)

FALLBACK_TIME = "00:00"

_HH_MM = re.compile(r"^(\d{1,2}):(\d{2})$")
_HH_MM_SS = re.compile(r"^(\d{1,2}):(\d{2}):(\d{2})$")
_RANGE_SEPARATOR = re.compile(r"\s+-\s+")


def _format(hour: int, minute: int) -> str:
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise MalformedTimeError(f"Time out of range: {hour}:{minute:02d}")
    return f"{hour:02d}:{minute:02d}"


def _parse_timestamp(text: str) -> datetime | None:
    """Parse an ISO-8601 date-time, accepting a trailing 'Z' for UTC."""
    if "T" not in text and " " not in text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def parse_time(raw: object) -> str:
    """Parse a time value into canonical HH:MM, raising on failure.

    Args:
        raw: "H:MM", "HH:MM", "HH:MM:SS", an ISO timestamp string, or a
             datetime.time / datetime.datetime. Other objects are coerced to
             str first.

    Returns:
        Zero-padded "HH:MM".

    Raises:
        MalformedTimeError: If the value is empty, unparsable or out of range.
    """
    if raw is None or raw == "":
        raise MalformedTimeError("Empty time value")

    # datetime is a subclass of date, not of time, so check it first
    if isinstance(raw, datetime):
        if raw.tzinfo is not None:
            raw = raw.astimezone()
        return _format(raw.hour, raw.minute)
    if isinstance(raw, time):
        return _format(raw.hour, raw.minute)

    text = str(raw).strip()

    match = _HH_MM.match(text) or _HH_MM_SS.match(text)
    if match:
        return _format(int(match.group(1)), int(match.group(2)))

    timestamp = _parse_timestamp(text)
    if timestamp is not None:
        if timestamp.tzinfo is not None:
            timestamp = timestamp.astimezone()
        return _format(timestamp.hour, timestamp.minute)

    raise MalformedTimeError(f"Unrecognized time format: {text!r}")


def normalize_time(raw: object) -> str:
    """Normalize any time representation to canonical HH:MM, never raising.

    Idempotent: normalize_time(normalize_time(x)) == normalize_time(x).

    Returns:
        "HH:MM", or "00:00" when the value cannot be parsed.
    """
    try:
        return parse_time(raw)
    except MalformedTimeError as e:
        log.warning("malformed_time", raw=repr(raw), error=str(e))
        return FALLBACK_TIME


def hour_minute(value: object) -> tuple[int, int]:
    """Split a time value into (hour, minute) after normalization."""
    hours, minutes = normalize_time(value).split(":")
    return int(hours), int(minutes)


def to_minutes(value: object) -> int:
    """Convert a time value to minutes since midnight."""
    hour, minute = hour_minute(value)
    return hour * 60 + minute


def parse_time_range(text: str | None) -> tuple[str, str] | None:
    """Parse a combined "HH:MM - HH:MM" display string.

    Returns:
        (start, end) in canonical form, or None if either side is unparsable.
    """
    if not text:
        return None
    parts = _RANGE_SEPARATOR.split(text.strip())
    if len(parts) != 2:
        return None
    try:
        return parse_time(parts[0]), parse_time(parts[1])
    except MalformedTimeError:
        return None
