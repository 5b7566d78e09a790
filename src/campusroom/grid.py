"""Grid layout planner for the weekly timetable.

Two render models are computed from the same schedule index:

* plan() - the interactive grid. Each entry is placed only in the cell of the
  hourly slot it starts in, with a fractional height (span_hours) and a
  sub-hour offset (top_offset_fraction), so it can overlay the following
  rows without re-flowing them. Entries that start in the same hour stack
  in that cell in index order.
* table_rows() - the tabular (export-style) layout. A multi-hour entry
  becomes one cell with a row span; the cells it covers in later rows are
  suppressed entirely.

Example: Monday 9:00-10:30 is placed in the 9:00 slot with span 1.5 and
offset 0; in the table it spans two rows and the 10:00 Monday cell is
suppressed.
"""

from campusroom.config import get_config
from campusroom.logging import get_logger
from campusroom.models import PlacedEntry, ScheduleEntry, TableCell, TableRow, TimeSlot
from campusroom.schedule import ScheduleIndex

log = get_logger(__name__)

GridPlan = dict[tuple[str, int], list[PlacedEntry]]


def default_slots(
    first_hour: int | None = None, last_hour: int | None = None
) -> list[TimeSlot]:
    """Hourly slots covering the working day (8:00 - 18:00 unless configured)."""
    config = get_config()
    first = config.first_slot_hour if first_hour is None else first_hour
    last = config.last_slot_hour if last_hour is None else last_hour
    return [TimeSlot(start_hour=h, end_hour=h + 1) for h in range(first, last)]


def _start_hour(entry: ScheduleEntry) -> int:
    return entry.start_minutes // 60


def _actual_end_hour(entry: ScheduleEntry) -> int:
    """End hour rounded up to the next full hour when minutes are non-zero."""
    hours, minutes = divmod(entry.end_minutes, 60)
    return hours + 1 if minutes > 0 else hours


def place(entry: ScheduleEntry) -> PlacedEntry:
    """Compute the visual height and offset of an entry within its starting cell."""
    start_minute = entry.start_minutes % 60
    return PlacedEntry(
        entry=entry,
        span_hours=entry.duration_hours,
        top_offset_fraction=start_minute / 60,
    )


def row_span(entry: ScheduleEntry) -> int:
    """Number of hourly table rows an entry occupies (partial hours round up)."""
    return _actual_end_hour(entry) - _start_hour(entry)


def is_continuation(entry: ScheduleEntry, slot_start_hour: int) -> bool:
    """True if the slot lies strictly inside an entry that started earlier."""
    return _start_hour(entry) < slot_start_hour < _actual_end_hour(entry)


def plan(index: ScheduleIndex, slots: list[TimeSlot]) -> GridPlan:
    """Place every entry in the cell of the slot it starts in.

    Args:
        index: Output of schedule.index_entries().
        slots: Ordered hourly slots (see default_slots()).

    Returns:
        Dict keyed by (day, slot_index) for every day and slot. Each value
        lists the entries starting in that cell, in index order; cells
        covered only by continuation are empty.
    """
    grid: GridPlan = {}
    slot_hours = {slot.start_hour for slot in slots}
    for day, entries in index.items():
        for slot_index, slot in enumerate(slots):
            grid[(day, slot_index)] = [
                place(e) for e in entries if _start_hour(e) == slot.start_hour
            ]
        for entry in entries:
            if _start_hour(entry) not in slot_hours:
                log.debug(
                    "entry_outside_grid",
                    entry_id=entry.id,
                    day=day,
                    start_time=entry.start_time,
                )
    return grid


def continuation_cells(
    index: ScheduleIndex, slots: list[TimeSlot]
) -> set[tuple[str, int]]:
    """(day, slot_index) keys covered by an entry that started in an earlier slot."""
    return {
        (day, slot_index)
        for day, entries in index.items()
        for slot_index, slot in enumerate(slots)
        if any(is_continuation(e, slot.start_hour) for e in entries)
    }


def table_rows(index: ScheduleIndex, slots: list[TimeSlot]) -> list[TableRow]:
    """Tabular layout with merged cells for multi-hour entries.

    For each slot row and each day: a continuation cell is omitted; a slot
    with no starting entry yields one empty cell; otherwise one cell per
    starting entry, carrying its row span.
    """
    rows: list[TableRow] = []
    for slot in slots:
        cells: list[TableCell] = []
        for day, entries in index.items():
            if any(is_continuation(e, slot.start_hour) for e in entries):
                continue
            starting = [e for e in entries if _start_hour(e) == slot.start_hour]
            if not starting:
                cells.append(TableCell(day=day))
                continue
            cells.extend(
                TableCell(day=day, entry=e, row_span=row_span(e)) for e in starting
            )
        rows.append(TableRow(slot=slot, cells=cells))
    return rows
