"""Shared fixtures: a small week of portal data and an in-memory data service."""

from datetime import date

import pytest

from campusroom.config import reset_config
from campusroom.errors import TransientError
from campusroom.models import Booking, Room
from campusroom.repository import FallbackRepository, SnapshotStore
from campusroom.schedule import parse_entries

# 2026-10-19 is a Monday
MONDAY = date(2026, 10, 19)


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    for var in ("CAMPUSROOM_FIRST_SLOT_HOUR", "CAMPUSROOM_LAST_SLOT_HOUR", "CAMPUSROOM_UPCOMING_LIMIT"):
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def raw_entries() -> list[dict]:
    return [
        {
            "id": 1,
            "day": "Monday",
            "startTime": "9:00",
            "endTime": "10:30",
            "name": "Algorithms",
            "location": "A101",
            "instructor": "Dr. Smith",
            "type": "Lecture",
        },
        {
            "id": 2,
            "day": "Monday",
            "startTime": "14:00",
            "endTime": "15:00",
            "name": "Databases",
            "location": "B202",
            "instructor": "Dr. Jones",
            "type": "Lab",
        },
        {
            "id": 3,
            "day": "tuesday",
            "startTime": "08:00:00",
            "endTime": "10:00:00",
            "name": "Networks",
            "location": "Lab 3",
        },
        {
            "id": 4,
            "day": "Wednesday",
            "startTime": "2026-10-21T11:15:00",
            "endTime": "12:00",
            "name": "Seminar",
        },
        {
            "id": 5,
            "day": "Saturday",
            "startTime": "10:00",
            "endTime": "11:00",
            "name": "Weekend Workshop",
        },
    ]


@pytest.fixture
def entries(raw_entries):
    return parse_entries(raw_entries)


@pytest.fixture
def rooms() -> list[Room]:
    return [
        Room(id="1", room_number="A101", capacity=2, type="Classroom"),
        Room(id="2", room_number="B202", capacity=4, type="Lab"),
        Room(id="3", room_number="C303", capacity=40, type="Classroom"),
    ]


@pytest.fixture
def bookings() -> list[Booking]:
    return [
        Booking(
            id="b1",
            room="A101",
            date=MONDAY,
            start_time="09:00",
            end_time="10:30",
            status="Approved",
            purpose="Office hours",
        ),
        Booking(
            id="b2",
            room="B202",
            date=MONDAY,
            time="13:00 - 14:00",
            status="Pending",
            purpose="Thesis defense rehearsal",
        ),
        Booking(
            id="b3",
            room="C303",
            date=date(2026, 10, 21),
            start_time="10:00",
            end_time="12:00",
            status="Rejected",
            purpose="Guest lecture",
        ),
        Booking(
            id="b4",
            room="C303",
            date=date(2026, 10, 12),
            start_time="10:00",
            end_time="11:00",
            status="Approved",
            purpose="Review session",
        ),
    ]


@pytest.fixture
def repository(tmp_path) -> FallbackRepository:
    return FallbackRepository(SnapshotStore(tmp_path / "cache"))


class FakeService:
    """In-memory DataService; set ``failing`` to make every fetch raise."""

    def __init__(self, entries=None, rooms=None, bookings=None, failing=False):
        self.entries = entries or []
        self.rooms = rooms or []
        self.bookings = bookings or []
        self.failing = failing
        self.cancelled: list[str] = []

    def _check(self):
        if self.failing:
            raise TransientError("portal unreachable")

    def get_timetable_entries(self):
        self._check()
        return list(self.entries)

    def get_rooms(self):
        self._check()
        return list(self.rooms)

    def get_bookings(self):
        self._check()
        return list(self.bookings)

    def cancel_booking(self, booking_id):
        self._check()
        self.cancelled.append(booking_id)


@pytest.fixture
def fake_service(raw_entries):
    return FakeService(
        entries=raw_entries,
        rooms=[
            {"id": 1, "roomNumber": "A101", "capacity": 2, "type": "Classroom"},
            {"id": 2, "roomNumber": "B202", "capacity": 4, "type": "Lab"},
        ],
        bookings=[
            {
                "id": "b1",
                "classroom": "A101",
                "date": "2026-10-19",
                "startTime": "09:00",
                "endTime": "10:30",
                "status": "APPROVED",
                "purpose": "Office hours",
            },
            {
                "id": "b2",
                "classroom": "B202",
                "date": "2026-10-19",
                "time": "13:00 - 14:00",
                "status": "PENDING",
                "purpose": "Rehearsal",
            },
        ],
    )
