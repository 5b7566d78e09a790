from datetime import date, datetime

import pytest

from conftest import MONDAY

from campusroom.models import Booking, Role, ScheduleEntry
from campusroom.stats import (
    booking_duration_hours,
    dashboard_stats,
    format_hours,
    week_window,
    weekly_hours,
    weekly_hours_label,
)


def _approved(id, day, start=None, end=None, time=""):
    return Booking(id=id, date=day, start_time=start, end_time=end, time=time, status="Approved")


def test_week_window_runs_monday_to_sunday():
    start, end = week_window(date(2026, 10, 22))

    assert start == datetime(2026, 10, 19, 0, 0)
    assert end.date() == date(2026, 10, 25)
    assert (end.hour, end.minute, end.second) == (23, 59, 59)


def test_weekly_hours_single_approved_booking():
    bookings = [_approved("a", MONDAY, "09:00", "10:30")]

    assert weekly_hours_label(bookings, MONDAY) == "01h 30min"


def test_weekly_hours_ignores_other_statuses_and_weeks(bookings):
    # Only b1 (Approved, this week) counts; b4 is Approved but a week earlier
    assert weekly_hours(bookings, MONDAY) == 1.5


def test_weekly_hours_includes_sunday():
    sunday = date(2026, 10, 25)
    bookings = [_approved("s", sunday, "10:00", "11:00")]

    assert weekly_hours(bookings, MONDAY) == 1.0
    assert weekly_hours(bookings, date(2026, 10, 26)) == 0.0


def test_weekly_hours_uses_display_time_when_fields_missing():
    bookings = [_approved("t", MONDAY, time="10:00 - 12:00")]

    assert weekly_hours_label(bookings, MONDAY) == "02h 00min"


def test_weekly_hours_empty():
    assert weekly_hours_label([], MONDAY) == "00h 00min"


def test_undated_booking_not_counted():
    assert weekly_hours([_approved("u", None, "09:00", "10:00")], MONDAY) == 0.0


def test_duration_zero_when_unknown_or_inverted():
    assert booking_duration_hours(Booking(id="x", time="sometime")) == 0.0
    assert booking_duration_hours(Booking(id="y", start_time="11:00", end_time="10:00")) == 0.0


@pytest.mark.parametrize(
    "hours, label",
    [
        (0, "00h 00min"),
        (0.5, "00h 30min"),
        (1.25, "01h 15min"),
        (12, "12h 00min"),
        (1.999, "02h 00min"),
        (-3, "00h 00min"),
    ],
)
def test_format_hours(hours, label):
    assert format_hours(hours) == label


def test_dashboard_stats_professor(bookings, entries):
    summary = dashboard_stats(bookings, entries, MONDAY, Role.PROFESSOR)

    assert summary.active_reservations == 3
    assert summary.pending_reservations == 1
    assert summary.total_reservations == 4
    assert summary.today_classes == 2
    assert summary.weekly_hours == "01h 30min"


def test_dashboard_stats_student_counts_approved_only(bookings, entries):
    summary = dashboard_stats(bookings, entries, MONDAY, Role.STUDENT)

    assert summary.active_reservations == 2


def test_dashboard_stats_weekend_has_no_classes(bookings):
    monday_class = ScheduleEntry(id="m", day="Monday", start_time="09:00", end_time="10:00")

    summary = dashboard_stats(bookings, [monday_class], date(2026, 10, 24), Role.STUDENT)

    assert summary.today_classes == 0
