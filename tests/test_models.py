from datetime import date

import pytest
from pydantic import ValidationError as PydanticValidationError
from structlog.testing import capture_logs

from campusroom.models import Booking, BookingStatus, Role, Room, ScheduleEntry


def test_schedule_entry_placeholders():
    entry = ScheduleEntry.from_raw(
        {"day": "Monday", "startTime": "9:00", "endTime": "10:00"}, fallback_id="entry-0"
    )

    assert entry.id == "entry-0"
    assert entry.start_time == "09:00"
    assert entry.name == "Unnamed Course"
    assert entry.location == "TBD"
    assert entry.type == "Lecture"
    assert entry.instructor == "No instructor assigned"
    assert entry.color == "#6366f1"


def test_schedule_entry_coerces_numeric_id():
    entry = ScheduleEntry.from_raw(
        {"id": 42, "day": "Friday", "startTime": "13:00", "endTime": "14:00"}
    )
    assert entry.id == "42"


def test_schedule_entry_rejects_inverted_interval():
    with pytest.raises(PydanticValidationError):
        ScheduleEntry.from_raw({"day": "Monday", "startTime": "11:00", "endTime": "10:00"})


def test_schedule_entry_duration():
    entry = ScheduleEntry(id="x", day="Monday", start_time="9:00", end_time="10:30")
    assert entry.duration_hours == 1.5
    assert entry.start_minutes == 540


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Approved", BookingStatus.APPROVED),
        ("APPROVED", BookingStatus.APPROVED),
        ("pending", BookingStatus.PENDING),
        ("CANCELED", BookingStatus.CANCELLED),
        ("Rejected", BookingStatus.REJECTED),
        (None, BookingStatus.PENDING),
        ("", BookingStatus.PENDING),
    ],
)
def test_booking_status_parse(raw, expected):
    assert BookingStatus.parse(raw) is expected


def test_booking_status_parse_unknown():
    with pytest.raises(ValueError):
        BookingStatus.parse("archived")


def test_booking_from_raw_builds_display_time():
    booking = Booking.from_raw(
        {
            "id": 7,
            "classroom": "A101",
            "classroomId": 1,
            "date": "2026-10-19T00:00:00",
            "startTime": "9:00",
            "endTime": "10:00",
            "status": "APPROVED",
        }
    )

    assert booking.id == "7"
    assert booking.room == "A101"
    assert booking.room_id == "1"
    assert booking.date == date(2026, 10, 19)
    assert booking.time == "9:00 - 10:00"
    assert booking.interval == ("09:00", "10:00")
    assert booking.status is BookingStatus.APPROVED


def test_booking_interval_from_display_time_only():
    booking = Booking(id="b", time="13:00 - 14:30")
    assert booking.interval == ("13:00", "14:30")


def test_booking_interval_unknown():
    assert Booking(id="b", time="all day").interval is None


def test_booking_malformed_date_is_logged():
    with capture_logs() as logs:
        booking = Booking(id="b", date="next tuesday")

    assert booking.date is None
    assert logs[0]["event"] == "malformed_date"


def test_booking_unknown_status_rejected():
    with pytest.raises(PydanticValidationError):
        Booking.from_raw({"id": "b", "status": "archived"})


def test_booking_is_active():
    assert Booking(id="a", status="Pending").is_active
    assert Booking(id="b", status="Approved").is_active
    assert not Booking(id="c", status="Rejected").is_active
    assert not Booking(id="d", status="Cancelled").is_active


def test_room_from_raw_and_features():
    room = Room.from_raw(
        {"id": 3, "name": "Lab 3", "capacity": 20, "features": "projector, whiteboard"}
    )

    assert room.id == "3"
    assert room.room_number == "Lab 3"
    assert room.features == frozenset({"projector", "whiteboard"})


def test_room_capacity_must_be_positive():
    with pytest.raises(PydanticValidationError):
        Room(id="1", room_number="A101", capacity=0)


def test_room_matches_reference():
    room = Room(id="1", room_number="A101", capacity=10)

    assert room.matches_reference("a101")
    assert room.matches_reference("1")
    assert not room.matches_reference("A102")
    assert not room.matches_reference(None)


def test_booking_refers_to_room_by_id_or_number():
    room = Room(id="1", room_number="A101", capacity=10)

    assert Booking(id="x", room_id="1").refers_to(room)
    assert Booking(id="y", room="A101").refers_to(room)
    assert not Booking(id="z", room="B202", room_id="2").refers_to(room)


def test_role_companion_label():
    assert Role.PROFESSOR.companion_label == "Assistant"
    assert Role.STUDENT.companion_label == "Instructor"
