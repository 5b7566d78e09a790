"""Render timetable views from exported portal data as JSON or a table.

Reads JSON files holding raw portal records (a plain list, or a fallback
snapshot with an "items" list) and prints one engine view to stdout.

Grid:    campusroom grid --entries data/timetable.json
Table:   campusroom grid --entries data/timetable.json --table
Hours:   campusroom hours --bookings data/reservations.json --date 2026-10-19
Search:  campusroom search --rooms data/rooms.json --bookings data/reservations.json \\
             --date 2026-10-19 --start 09:00 --end 11:00 --capacity 30

Exit codes:
  0 = success (JSON, label or table on stdout)
  1 = error (message on stderr)
  2 = invalid search query (one line per problem on stderr)
"""

import argparse
import json
import sys
from datetime import date
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from campusroom import availability, grid, schedule, stats
from campusroom.config import get_config
from campusroom.errors import ValidationError
from campusroom.logging import setup_logging
from campusroom.models import WEEKDAYS, Booking, Room, TableRow
from campusroom.session import parse_records


def _log(msg: str) -> None:
    """Write diagnostic messages to stderr so stdout stays clean for JSON."""
    print(msg, file=sys.stderr)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        prog="campusroom",
        description="Render timetable views from exported portal data.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    commands = parser.add_subparsers(dest="command", required=True)

    grid_parser = commands.add_parser("grid", help="Weekly timetable grid.")
    grid_parser.add_argument(
        "--entries",
        required=True,
        help="JSON file of raw timetable records.",
    )
    grid_parser.add_argument(
        "--table",
        action="store_true",
        help="Output a human-readable table instead of JSON.",
    )
    grid_parser.set_defaults(handler=_run_grid)

    hours_parser = commands.add_parser("hours", help="Approved hours in a week.")
    hours_parser.add_argument(
        "--bookings",
        required=True,
        help="JSON file of raw reservation records.",
    )
    hours_parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Any date in the week to total (YYYY-MM-DD, default: today).",
    )
    hours_parser.set_defaults(handler=_run_hours)

    search_parser = commands.add_parser("search", help="Available rooms for a slot.")
    search_parser.add_argument("--rooms", required=True, help="JSON file of raw rooms.")
    search_parser.add_argument(
        "--bookings",
        required=True,
        help="JSON file of raw reservation records.",
    )
    search_parser.add_argument("--date", default=None, help="YYYY-MM-DD.")
    search_parser.add_argument("--start", default=None, help="Start time (HH:MM).")
    search_parser.add_argument("--end", default=None, help="End time (HH:MM).")
    search_parser.add_argument("--capacity", default=None, help="Minimum capacity.")
    search_parser.add_argument("--type", default=None, help="Required room type.")
    search_parser.add_argument(
        "--entries",
        default=None,
        help="Optional JSON file of timetable records; rooms in use by a class are excluded.",
    )
    search_parser.set_defaults(handler=_run_search)

    return parser.parse_args(argv)


def _load_records(path: str) -> list[dict[str, Any]]:
    """Load raw records from a JSON list or a fallback snapshot file."""
    with open(Path(path), encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict) and "items" in data:
        data = data["items"]
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON list of records")
    return data


def _describe(entry) -> str:
    return f"{entry.name} ({entry.location}) {entry.start_time}-{entry.end_time}"


def _format_table(rows: list[TableRow]) -> str:
    """Format the tabular layout as text.

    Columns: Time | Monday .. Friday. A cell covered by an entry that started
    in an earlier row shows "^".
    """
    if not any(cell.entry for row in rows for cell in row.cells):
        return "(no classes scheduled)"

    headers = ["Time", *WEEKDAYS]

    table = []
    for row in rows:
        line = [row.slot.label]
        for day in WEEKDAYS:
            cells = [c for c in row.cells if c.day == day]
            if not cells:
                line.append("^")
            elif cells[0].entry is None:
                line.append("-")
            else:
                line.append(" / ".join(_describe(c.entry) for c in cells))
        table.append(line)

    widths = [len(h) for h in headers]
    for line in table:
        for i, cell in enumerate(line):
            widths[i] = max(widths[i], len(cell))

    header_line = " | ".join(h.ljust(widths[i]) for i, h in enumerate(headers))
    separator = "-+-".join("-" * w for w in widths)
    row_lines = [
        " | ".join(cell.ljust(widths[i]) for i, cell in enumerate(line))
        for line in table
    ]
    return "\n".join([header_line, separator, *row_lines])


def _run_grid(args: argparse.Namespace) -> int:
    entries = schedule.parse_entries(_load_records(args.entries))
    index = schedule.index_entries(entries)
    slots = grid.default_slots()
    _log(f"grid: {len(entries)} entries, {len(slots)} slots")

    if args.table:
        print(_format_table(grid.table_rows(index, slots)))
        return 0

    layout = grid.plan(index, slots)
    continuations = grid.continuation_cells(index, slots)
    output = {
        "slots": [slot.label for slot in slots],
        "cells": [
            {
                "day": day,
                "slot": slots[slot_index].label,
                "entries": [p.model_dump(mode="json") for p in placed],
            }
            for (day, slot_index), placed in layout.items()
            if placed
        ],
        "continuations": [
            {"day": day, "slot": slots[slot_index].label}
            for day, slot_index in sorted(
                continuations, key=lambda k: (WEEKDAYS.index(k[0]), k[1])
            )
        ],
    }
    print(json.dumps(output, indent=2))
    return 0


def _run_hours(args: argparse.Namespace) -> int:
    bookings = parse_records(Booking, _load_records(args.bookings), "booking")
    reference = args.date or date.today()
    print(stats.weekly_hours_label(bookings, reference))
    return 0


def _run_search(args: argparse.Namespace) -> int:
    query = availability.validate_query(
        args.date, args.start, args.end, args.capacity, args.type
    )
    rooms = parse_records(Room, _load_records(args.rooms), "room")
    bookings = parse_records(Booking, _load_records(args.bookings), "booking")
    timetable = (
        schedule.parse_entries(_load_records(args.entries)) if args.entries else []
    )
    available = availability.search(rooms, bookings, query, timetable)
    _log(f"search: {len(available)} of {len(rooms)} rooms available")
    print(json.dumps([room.model_dump(mode="json") for room in available], indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)

    args = _parse_args(argv)
    try:
        return args.handler(args)
    except ValidationError as e:
        for problem in e.problems:
            _log(f"ERROR: {problem}")
        return 2
    except (OSError, ValueError) as e:
        _log(f"ERROR: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
