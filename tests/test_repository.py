import json
import shutil

import pytest
from structlog.testing import capture_logs

from campusroom.errors import CacheWriteError
from campusroom.models import BookingStatus, Role
from campusroom.repository import ROOMS_KEY, FallbackRepository, SnapshotStore


def test_missing_snapshot_loads_empty(repository):
    assert repository.load_reservations(Role.STUDENT) == []
    assert repository.load_rooms() == []


def test_reservations_survive_a_save(repository, bookings):
    repository.save_reservations(Role.PROFESSOR, bookings)

    restored = repository.load_reservations(Role.PROFESSOR)

    assert [b.id for b in restored] == ["b1", "b2", "b3", "b4"]
    assert restored[0].status is BookingStatus.APPROVED
    assert restored[0].date == bookings[0].date
    assert repository.load_reservations(Role.STUDENT) == []


def test_snapshot_file_layout(repository, rooms):
    path = repository.store.save(ROOMS_KEY, [r.model_dump(mode="json") for r in rooms])

    assert path.name == "availableClassrooms.json"
    data = json.loads(path.read_text(encoding="utf-8"))
    assert set(data) == {"saved_at", "items"}
    assert len(data["items"]) == 3


def test_save_overwrites_whole_snapshot(repository, rooms):
    repository.save_rooms(rooms)
    repository.save_rooms(rooms[:1])

    assert [r.id for r in repository.load_rooms()] == ["1"]


def test_corrupt_snapshot_treated_as_absent(tmp_path):
    store = SnapshotStore(tmp_path)
    store.path_for("studentReservations").write_text("{not json", encoding="utf-8")

    with capture_logs() as logs:
        assert FallbackRepository(store).load_reservations(Role.STUDENT) == []

    assert logs[0]["event"] == "snapshot_unreadable"


def test_invalid_items_are_skipped(tmp_path):
    store = SnapshotStore(tmp_path)
    store.save(
        ROOMS_KEY,
        [
            {"id": "1", "room_number": "A101", "capacity": 0},
            {"id": "2", "room_number": "B202", "capacity": 4},
        ],
    )

    with capture_logs() as logs:
        rooms = FallbackRepository(store).load_rooms()

    assert [r.id for r in rooms] == ["2"]
    assert any(log["event"] == "snapshot_item_skipped" for log in logs)


def test_write_failure_raises_cache_write_error(tmp_path, rooms):
    store = SnapshotStore(tmp_path / "cache")
    shutil.rmtree(tmp_path / "cache")

    with pytest.raises(CacheWriteError):
        FallbackRepository(store).save_rooms(rooms)


def test_clear(tmp_path, rooms):
    store = SnapshotStore(tmp_path)
    FallbackRepository(store).save_rooms(rooms)

    store.clear(ROOMS_KEY)

    assert store.load(ROOMS_KEY) is None
