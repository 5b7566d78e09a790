"""Fallback snapshot repository for offline use.

Each collection (a role's reservations, the room list) is stored as one JSON
snapshot under a fixed key. Snapshots are overwritten wholesale after every
successful live fetch and read only when the live fetch fails.

Snapshot files (<cache_dir>/<key>.json) look like:
    {"saved_at": "2026-10-19T08:00:00+00:00", "items": [...]}
"""

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from campusroom.errors import CacheWriteError
from campusroom.logging import get_logger
from campusroom.models import Booking, Role, Room

logger = get_logger(__name__)

RESERVATION_KEYS: dict[Role, str] = {
    Role.PROFESSOR: "professorReservations",
    Role.STUDENT: "studentReservations",
}
ROOMS_KEY = "availableClassrooms"


class SnapshotStore:
    """Reads and writes whole-collection JSON snapshots in a directory."""

    def __init__(self, cache_dir: str | Path = "data/cache") -> None:
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        return self.cache_dir / f"{key}.json"

    def load(self, key: str) -> list[dict[str, Any]] | None:
        """Load a snapshot's items.

        Returns:
            The stored list, or None if no snapshot exists or it is unreadable.
        """
        path = self.path_for(key)
        if not path.exists():
            logger.debug("snapshot_missing", key=key)
            return None
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("snapshot_unreadable", key=key, error=str(e))
            return None
        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            logger.warning("snapshot_malformed", key=key)
            return None
        return items

    def save(self, key: str, items: list[dict[str, Any]]) -> Path:
        """Atomically replace a snapshot.

        Raises:
            CacheWriteError: If the snapshot cannot be written.
        """
        path = self.path_for(key)
        state = {
            "saved_at": datetime.now(timezone.utc).isoformat(),
            "items": items,
        }
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self.cache_dir, prefix=f".{key}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(state, f, indent=2, ensure_ascii=False)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error("snapshot_write_failed", key=key, error=str(e))
            raise CacheWriteError(f"Could not write snapshot {key!r}: {e}") from e
        logger.debug("snapshot_saved", key=key, items=len(items))
        return path

    def clear(self, key: str) -> None:
        path = self.path_for(key)
        if path.exists():
            path.unlink()
            logger.info("snapshot_cleared", key=key)


class FallbackRepository:
    """Typed access to the cached collections of a portal user."""

    def __init__(self, store: SnapshotStore) -> None:
        self.store = store

    def load_reservations(self, role: Role) -> list[Booking]:
        return [
            b
            for b in (
                _restore(Booking, item, RESERVATION_KEYS[role])
                for item in self.store.load(RESERVATION_KEYS[role]) or []
            )
            if b is not None
        ]

    def save_reservations(self, role: Role, bookings: list[Booking]) -> None:
        self.store.save(
            RESERVATION_KEYS[role], [b.model_dump(mode="json") for b in bookings]
        )

    def load_rooms(self) -> list[Room]:
        return [
            r
            for r in (
                _restore(Room, item, ROOMS_KEY)
                for item in self.store.load(ROOMS_KEY) or []
            )
            if r is not None
        ]

    def save_rooms(self, rooms: list[Room]) -> None:
        self.store.save(ROOMS_KEY, [r.model_dump(mode="json") for r in rooms])


def _restore(model, item: dict[str, Any], key: str):
    """Rebuild a model from its JSON dump, skipping records that no longer validate."""
    try:
        return model.model_validate(item)
    except PydanticValidationError as e:
        logger.warning("snapshot_item_skipped", key=key, error=e.errors()[0]["msg"])
        return None
