"""Screen session: fetches a user's collections and feeds them to the engine.

TimetableSession owns the collections one screen works with. refresh()
fetches reservations, timetable and rooms concurrently, falls back to the
cached snapshots when the live service fails, and swaps the whole snapshot in
at once. Each refresh takes a generation number; a refresh that finishes
after a newer one has started is discarded, so the latest fetch always wins.
"""

import asyncio
from collections.abc import Callable, Mapping
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from campusroom import availability, grid, lifecycle, schedule, stats
from campusroom.client import DataService
from campusroom.config import get_config
from campusroom.errors import CacheWriteError, DataServiceError
from campusroom.logging import get_logger, log_context
from campusroom.models import (
    Booking,
    DashboardStats,
    Role,
    Room,
    ScheduleEntry,
    SearchQuery,
    TableRow,
    TimeSlot,
)
from campusroom.repository import FallbackRepository

logger = get_logger(__name__)


class Snapshot(BaseModel):
    """One fetch generation's worth of data; replaced whole, never patched."""

    model_config = ConfigDict(frozen=True)

    generation: int = 0
    entries: list[ScheduleEntry] = []
    bookings: list[Booking] = []
    rooms: list[Room] = []
    bookings_from_cache: bool = False
    rooms_from_cache: bool = False


def parse_records(model, raws: list[Any], kind: str) -> list:
    """Build models from raw records with ``model.from_raw``.

    Records that are not JSON objects or fail validation are dropped and logged.
    """
    parsed = []
    for raw in raws:
        if not isinstance(raw, Mapping):
            logger.warning(
                "record_dropped",
                kind=kind,
                record_type=type(raw).__name__,
                reason="not an object",
            )
            continue
        try:
            parsed.append(model.from_raw(raw))
        except PydanticValidationError as e:
            logger.warning(
                "record_dropped",
                kind=kind,
                record_id=raw.get("id"),
                reason=e.errors()[0]["msg"],
            )
    return parsed


class TimetableSession:
    """Per-screen controller around the timetable engine."""

    def __init__(
        self,
        role: Role,
        service: DataService,
        repository: FallbackRepository,
        *,
        slots: list[TimeSlot] | None = None,
    ) -> None:
        self.role = role
        self.service = service
        self.repository = repository
        self.slots = slots if slots is not None else grid.default_slots()
        self.snapshot = Snapshot()
        self._generation = 0

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------
    async def _fetch_bookings(self) -> tuple[list[Booking], bool]:
        try:
            raws = await asyncio.to_thread(self.service.get_bookings)
        except DataServiceError as e:
            cached = self.repository.load_reservations(self.role)
            logger.warning(
                "bookings_fetch_failed",
                error=str(e),
                fallback_count=len(cached),
            )
            return cached, True
        return parse_records(Booking, raws, "booking"), False

    async def _fetch_rooms(self) -> tuple[list[Room], bool]:
        try:
            raws = await asyncio.to_thread(self.service.get_rooms)
        except DataServiceError as e:
            cached = self.repository.load_rooms()
            logger.warning("rooms_fetch_failed", error=str(e), fallback_count=len(cached))
            return cached, True
        return parse_records(Room, raws, "room"), False

    async def _fetch_entries(self) -> list[ScheduleEntry]:
        try:
            raws = await asyncio.to_thread(self.service.get_timetable_entries)
        except DataServiceError as e:
            logger.warning("timetable_fetch_failed", error=str(e))
            return []
        return schedule.parse_entries(raws)

    def _store_fetched(
        self,
        bookings: list[Booking],
        bookings_cached: bool,
        rooms: list[Room],
        rooms_cached: bool,
    ) -> None:
        """Overwrite the fallback snapshots with freshly fetched collections.

        A failed write leaves the previous snapshot on disk; the fetched data
        is still installed in memory.
        """
        try:
            if not bookings_cached:
                self.repository.save_reservations(self.role, bookings)
            if not rooms_cached:
                self.repository.save_rooms(rooms)
        except CacheWriteError as e:
            logger.warning("fallback_snapshot_stale", error=str(e))

    async def refresh(self) -> Snapshot:
        """Fetch all collections concurrently and install them if still current.

        Returns:
            The snapshot in effect afterwards (the previous one if this
            refresh was superseded while in flight).
        """
        self._generation += 1
        generation = self._generation

        with log_context(role=self.role.value, generation=generation):
            (bookings, bookings_cached), entries, (rooms, rooms_cached) = (
                await asyncio.gather(
                    self._fetch_bookings(),
                    self._fetch_entries(),
                    self._fetch_rooms(),
                )
            )

        if generation != self._generation:
            logger.info(
                "refresh_superseded",
                generation=generation,
                current=self._generation,
            )
            return self.snapshot

        self._store_fetched(bookings, bookings_cached, rooms, rooms_cached)
        self.snapshot = Snapshot(
            generation=generation,
            entries=entries,
            bookings=bookings,
            rooms=rooms,
            bookings_from_cache=bookings_cached,
            rooms_from_cache=rooms_cached,
        )
        logger.info(
            "refresh_applied",
            generation=generation,
            entries=len(entries),
            bookings=len(bookings),
            rooms=len(rooms),
            bookings_from_cache=bookings_cached,
            rooms_from_cache=rooms_cached,
        )
        return self.snapshot

    # ------------------------------------------------------------------
    # Engine views over the current snapshot
    # ------------------------------------------------------------------
    def index(self) -> schedule.ScheduleIndex:
        return schedule.index_entries(self.snapshot.entries)

    def grid_plan(self) -> grid.GridPlan:
        return grid.plan(self.index(), self.slots)

    def table_layout(self) -> list[TableRow]:
        return grid.table_rows(self.index(), self.slots)

    def weekly_hours(self, reference: date) -> str:
        return stats.weekly_hours_label(self.snapshot.bookings, reference)

    def dashboard(self, today: date) -> DashboardStats:
        return stats.dashboard_stats(
            self.snapshot.bookings, self.snapshot.entries, today, self.role
        )

    def upcoming(self, now: datetime, limit: int | None = None) -> list[ScheduleEntry]:
        if limit is None:
            limit = get_config().upcoming_limit
        return schedule.upcoming_classes(self.index(), now, limit)

    def search(self, query: SearchQuery) -> list[Room]:
        return availability.search(
            self.snapshot.rooms, self.snapshot.bookings, query, self.snapshot.entries
        )

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------
    async def cancel(self, booking_id: str, confirm: Callable[[Booking], bool]) -> bool:
        """Cancel a reservation after user confirmation.

        The cancellation is sent to the service, the reduced collection is
        persisted to the fallback cache, and only then does the in-memory
        snapshot change.

        Returns:
            True if the booking was cancelled; False if it is unknown, not
            cancellable (already Cancelled or Rejected), or the user declined.

        Raises:
            DataServiceError: If the service refuses the cancellation.
            CacheWriteError: If the cache cannot be updated; memory is left unchanged.
        """
        current = self.snapshot
        booking = next((b for b in current.bookings if b.id == booking_id), None)
        if booking is None:
            logger.info("cancel_skipped", booking_id=booking_id, reason="not_found")
            return False
        if not lifecycle.can_cancel(booking):
            logger.info(
                "cancel_skipped",
                booking_id=booking_id,
                reason="not_cancellable",
                status=booking.status.value,
            )
            return False
        if not confirm(booking):
            logger.info("cancel_skipped", booking_id=booking_id, reason="not_confirmed")
            return False

        await asyncio.to_thread(self.service.cancel_booking, booking_id)

        current = self.snapshot
        remaining = lifecycle.without_booking(current.bookings, booking_id)
        self.repository.save_reservations(self.role, remaining)
        # A refresh already in flight must not restore the booking
        self._generation += 1
        self.snapshot = current.model_copy(
            update={"bookings": remaining, "generation": self._generation}
        )
        logger.info("reservation_cancelled", booking_id=booking_id, role=self.role.value)
        return True
