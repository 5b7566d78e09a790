"""Pydantic models for timetable, room and reservation data.

All data structures use Pydantic v2 for validation, serialization, and type safety.
Records arrive from the portal API in loosely typed camelCase dictionaries;
each model has a ``from_raw`` constructor that maps those keys, fills
placeholders and normalizes times.
"""

import datetime as dt
from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from campusroom.logging import get_logger
from campusroom.timeutils import normalize_time, parse_time_range, to_minutes

log = get_logger(__name__)

WEEKDAYS: tuple[str, ...] = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")


class Role(str, Enum):
    """Who is looking at the timetable; selects endpoints, cache keys and labels."""

    PROFESSOR = "professor"
    STUDENT = "student"

    @property
    def companion_label(self) -> str:
        """Label for the person listed in an entry's ``instructor`` field."""
        return "Assistant" if self is Role.PROFESSOR else "Instructor"


class BookingStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"

    @classmethod
    def parse(cls, raw: object) -> "BookingStatus":
        """Case-insensitive parse; missing values default to Pending."""
        if isinstance(raw, cls):
            return raw
        text = str(raw or "").strip().lower()
        if not text:
            return cls.PENDING
        # Some endpoints spell it "CANCELED"
        if text == "canceled":
            text = "cancelled"
        for status in cls:
            if status.value.lower() == text:
                return status
        raise ValueError(f"Unknown booking status: {raw!r}")


def _first(raw: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first truthy value among keys (mirrors `a || b || c`)."""
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return default


class ScheduleEntry(BaseModel):
    """One timetabled class/activity occurrence in the weekly timetable."""

    model_config = ConfigDict(frozen=True)

    id: str
    day: str
    start_time: str  # canonical "HH:MM"
    end_time: str  # canonical "HH:MM", strictly later than start_time
    name: str = "Unnamed Course"
    location: str = "TBD"
    type: str = "Lecture"
    instructor: str = "No instructor assigned"
    color: str = "#6366f1"
    description: str = ""

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _normalize(cls, value: object) -> str:
        return normalize_time(value)

    @model_validator(mode="after")
    def _check_order(self) -> "ScheduleEntry":
        if to_minutes(self.end_time) <= to_minutes(self.start_time):
            raise ValueError(
                f"end_time {self.end_time} is not after start_time {self.start_time}"
            )
        return self

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return to_minutes(self.end_time)

    @property
    def duration_hours(self) -> float:
        return (self.end_minutes - self.start_minutes) / 60

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any], *, fallback_id: str = "") -> "ScheduleEntry":
        """Build an entry from a raw timetable record.

        Raises:
            pydantic.ValidationError: If the record cannot form a valid entry
                (e.g. end time not after start time).
        """
        return cls(
            id=str(_first(raw, "id", default=fallback_id)),
            day=str(raw.get("day") or ""),
            start_time=raw.get("startTime"),
            end_time=raw.get("endTime"),
            name=str(_first(raw, "name", default="Unnamed Course")),
            location=str(_first(raw, "location", default="TBD")),
            type=str(_first(raw, "type", default="Lecture")),
            instructor=str(_first(raw, "instructor", default="No instructor assigned")),
            color=str(_first(raw, "color", default="#6366f1")),
            description=str(_first(raw, "description", default="")),
        )


class TimeSlot(BaseModel):
    """A fixed hourly bucket of the weekly grid, e.g. "8:00 - 9:00"."""

    model_config = ConfigDict(frozen=True)

    start_hour: int = Field(ge=0, le=23)
    end_hour: int = Field(ge=1, le=24)

    @property
    def label(self) -> str:
        return f"{self.start_hour}:00 - {self.end_hour}:00"


class PlacedEntry(BaseModel):
    """An entry rendered in its starting grid cell."""

    model_config = ConfigDict(frozen=True)

    entry: ScheduleEntry
    span_hours: float  # fractional height, e.g. 1.5 for 9:00-10:30
    top_offset_fraction: float  # start minute / 60


class TableCell(BaseModel):
    """One emitted cell of the tabular (export-style) layout."""

    model_config = ConfigDict(frozen=True)

    day: str
    entry: ScheduleEntry | None = None  # None = empty slot
    row_span: int = 1


class TableRow(BaseModel):
    """One slot row of the tabular layout; continuation cells are omitted."""

    model_config = ConfigDict(frozen=True)

    slot: TimeSlot
    cells: list[TableCell]


class Room(BaseModel):
    """A bookable classroom or study room."""

    model_config = ConfigDict(frozen=True)

    id: str
    room_number: str
    capacity: int = Field(ge=1)
    type: str = ""
    features: frozenset[str] = frozenset()

    @field_validator("features", mode="before")
    @classmethod
    def _split_features(cls, value: object) -> frozenset[str]:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            value = value.split(",")
        return frozenset(str(f).strip() for f in value if str(f).strip())

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "Room":
        room_id = str(_first(raw, "id", default=""))
        return cls(
            id=room_id,
            room_number=str(_first(raw, "roomNumber", "name", default=room_id)),
            capacity=raw.get("capacity"),
            type=str(_first(raw, "type", default="")),
            features=raw.get("features"),
        )

    def matches_reference(self, reference: str | None) -> bool:
        """True if a booking/timetable reference names this room.

        References may carry the room id or the room number; room numbers
        compare case-insensitively.
        """
        if not reference:
            return False
        ref = reference.strip()
        return ref == self.id or ref.lower() == self.room_number.strip().lower()


class Booking(BaseModel):
    """A reservation request for a room on a given date."""

    model_config = ConfigDict(frozen=True)

    id: str
    room: str = ""  # display reference: room number or name
    room_id: str = ""
    date: dt.date | None = None
    start_time: str | None = None
    end_time: str | None = None
    time: str = ""  # combined "HH:MM - HH:MM" display string
    status: BookingStatus = BookingStatus.PENDING
    purpose: str = ""
    notes: str = ""

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _normalize(cls, value: object) -> str | None:
        if value in (None, ""):
            return None
        return normalize_time(value)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: object) -> BookingStatus:
        return BookingStatus.parse(value)

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: object) -> dt.date | None:
        if value in (None, ""):
            return None
        if isinstance(value, dt.datetime):
            return value.date()
        if isinstance(value, dt.date):
            return value
        text = str(value).strip()
        try:
            return dt.date.fromisoformat(text[:10])
        except ValueError:
            log.warning("malformed_date", raw=text)
            return None

    @property
    def interval(self) -> tuple[str, str] | None:
        """(start, end) from explicit fields, else from the combined display string."""
        if self.start_time and self.end_time:
            return self.start_time, self.end_time
        return parse_time_range(self.time)

    @property
    def is_active(self) -> bool:
        """Pending and Approved bookings hold their room."""
        return self.status in (BookingStatus.PENDING, BookingStatus.APPROVED)

    def refers_to(self, room: Room) -> bool:
        if self.room_id and self.room_id.strip() == room.id:
            return True
        return room.matches_reference(self.room)

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "Booking":
        start = _first(raw, "startTime", default=None)
        end = _first(raw, "endTime", default=None)
        combined = _first(raw, "time", default="")
        if not combined and start and end:
            combined = f"{start} - {end}"
        return cls(
            id=str(_first(raw, "id", default="")),
            room=str(_first(raw, "classroom", "roomNumber", "room", default="")),
            room_id=str(_first(raw, "classroomId", "roomId", default="")),
            date=raw.get("date"),
            start_time=start,
            end_time=end,
            time=str(combined),
            status=raw.get("status"),
            purpose=str(_first(raw, "purpose", default="")),
            notes=str(_first(raw, "notes", default="")),
        )


class SearchQuery(BaseModel):
    """A validated room-search request; build it with availability.validate_query()."""

    model_config = ConfigDict(frozen=True)

    date: dt.date
    start_time: str
    end_time: str
    min_capacity: int = Field(ge=1)
    type: str | None = None


class ConflictInfo(BaseModel):
    """Human-readable reasons a room is not available for a query."""

    reservation_conflicts: list[str] = []
    class_conflicts: list[str] = []

    @property
    def has_conflicts(self) -> bool:
        return bool(self.reservation_conflicts or self.class_conflicts)


class DashboardStats(BaseModel):
    """Summary figures shown on a dashboard."""

    active_reservations: int = 0
    pending_reservations: int = 0
    total_reservations: int = 0
    today_classes: int = 0
    weekly_hours: str = "00h 00min"
