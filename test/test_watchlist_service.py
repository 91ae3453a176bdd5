import json
import sys
import threading
import unittest
from pathlib import Path

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from application.watchlist import WatchlistService
from domain.watchlist import (
    WATCHLIST_STORAGE_KEY,
    MovieItem,
    TvShowItem,
    WatchlistErrorType,
    WatchStatus,
)
from infrastructure.persistence.local_storage import InMemoryBackend, InMemoryLocalStorage


class _FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def _entry(item_id: str, **overrides):
    entry = {
        "id": item_id,
        "displayTitle": f"Title {item_id}",
        "average": 6.5,
        "mediaType": "movie",
        "watchStatus": "plan_to_watch",
        "dateAdded": "2024-05-01T12:00:00.000Z",
    }
    entry.update(overrides)
    return entry


class TestWatchlistService(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = _FakeClock()
        self.storage = InMemoryLocalStorage()
        self.service = WatchlistService(self.storage, error_dismiss_s=5.0, clock=self.clock)

    def tearDown(self) -> None:
        self.service.close()

    def test_round_trip_through_storage(self) -> None:
        self.service.add(MovieItem(id="1", title="Heat", vote_average=8.0))
        self.service.add(TvShowItem(id="2", name="Dark", vote_average=9.0), WatchStatus.CURRENTLY_WATCHING)
        self.service.update_status("1", WatchStatus.WATCHED)

        reopened = WatchlistService(InMemoryLocalStorage(backend=self.storage.backend))
        try:
            self.assertEqual(reopened.items, self.service.items)
        finally:
            reopened.close()

        stats = self.service.stats
        self.assertEqual(stats.total, 2)
        self.assertEqual(stats.watched, 1)
        self.assertEqual(stats.currently_watching, 1)
        self.assertEqual(stats.average_rating, 8.5)
        self.assertEqual([i.id for i in self.service.get_movies()], ["1"])
        self.assertEqual([i.id for i in self.service.get_tv_shows()], ["2"])
        self.assertTrue(self.service.is_in_watchlist("2"))
        self.assertIsNone(self.service.get_item("3"))

    def test_error_auto_dismisses(self) -> None:
        self.service.add(MovieItem(id="1", title="Heat"))
        result = self.service.add(MovieItem(id="1", title="Heat"))
        self.assertFalse(result.success)
        self.assertEqual(self.service.last_error.type, WatchlistErrorType.DUPLICATE_ITEM)

        self.clock.now += 4.9
        self.assertIsNotNone(self.service.last_error)
        self.clock.now += 0.1
        self.assertIsNone(self.service.last_error)

    def test_success_clears_previous_error(self) -> None:
        self.service.remove("missing")
        self.assertEqual(self.service.last_error.type, WatchlistErrorType.ITEM_NOT_FOUND)
        self.service.add(MovieItem(id="1", title="Heat"))
        self.assertIsNone(self.service.last_error)

    def test_warning_near_capacity(self) -> None:
        for i in range(45):
            self.service.add(MovieItem(id=str(i), title=f"Movie {i}"))
        self.assertIsNone(self.service.last_warning)
        self.service.add(MovieItem(id="45", title="One more"))
        self.assertEqual(self.service.last_warning, "You're approaching the watchlist limit (45/50 items)")
        self.assertTrue(self.service.capacity.is_near_full)

    def test_other_handle_changes_are_picked_up(self) -> None:
        other = WatchlistService(InMemoryLocalStorage(backend=self.storage.backend))
        try:
            other.add(MovieItem(id="9", title="From elsewhere"))
            self.assertEqual([i.id for i in self.service.items], ["9"])

            other.clear()
            self.assertEqual(self.service.items, ())
        finally:
            other.close()

    def test_closed_service_stops_listening(self) -> None:
        backend = self.storage.backend
        self.service.close()
        InMemoryLocalStorage(backend=backend).set_item(WATCHLIST_STORAGE_KEY, json.dumps([_entry("1")]))
        self.assertEqual(self.service.items, ())


class TestWatchlistServiceRecovery(unittest.TestCase):
    def test_corrupt_data_falls_back_to_recovery(self) -> None:
        storage = InMemoryLocalStorage()
        storage.set_item(WATCHLIST_STORAGE_KEY, json.dumps([_entry("1"), _entry("2")]) + ",")
        service = WatchlistService(storage)
        try:
            self.assertEqual(service.last_error.type, WatchlistErrorType.INVALID_DATA)
            self.assertEqual(service.items, ())
        finally:
            service.close()

    def test_attempt_recovery_writes_cleaned_list_back(self) -> None:
        storage = InMemoryLocalStorage()
        raw = "[" + json.dumps(_entry("1")) + ", {'id': '2', 'displayTitle': 'Two', 'mediaType': 'tv'},]"
        storage.set_item(WATCHLIST_STORAGE_KEY, raw)
        service = WatchlistService(storage)
        try:
            # The loader already fell back to the recovered items.
            self.assertEqual([i.id for i in service.items], ["1"])
            recovery = service.attempt_recovery()
            self.assertTrue(recovery.success)
            self.assertEqual(recovery.message, "Recovered 1 valid items from 2 total items")
            self.assertEqual([e["id"] for e in json.loads(storage.get_item(WATCHLIST_STORAGE_KEY))], ["1"])
            self.assertIsNone(service.last_error)
        finally:
            service.close()

    def test_backup_uses_service_key(self) -> None:
        storage = InMemoryLocalStorage()
        service = WatchlistService(storage, key="custom")
        try:
            service.add(MovieItem(id="1", title="Heat"))
            backup = service.create_backup()
            self.assertTrue(backup.data.startswith("custom_backup_"))
            self.assertEqual(storage.get_item(backup.data), storage.get_item("custom"))
        finally:
            service.close()

    def test_deeply_nested_data_falls_back_to_empty(self) -> None:
        storage = InMemoryLocalStorage()
        storage.set_item(WATCHLIST_STORAGE_KEY, "[" * 100000 + "]" * 100000)
        service = WatchlistService(storage)
        try:
            self.assertEqual(service.items, ())
            self.assertEqual(service.last_error.type, WatchlistErrorType.INVALID_DATA)
            self.assertFalse(service.attempt_recovery().success)
            service.add(MovieItem(id="1", title="Heat"))
            self.assertEqual([i.id for i in service.items], ["1"])
        finally:
            service.close()

    def test_malformed_stored_entry_keeps_valid_ones(self) -> None:
        storage = InMemoryLocalStorage()
        raw = [_entry("1", mediaType=["movie"]), _entry("2", average=10**400), _entry("3")]
        storage.set_item(WATCHLIST_STORAGE_KEY, json.dumps(raw))
        service = WatchlistService(storage)
        try:
            self.assertEqual([i.id for i in service.items], ["2", "3"])
            self.assertEqual(service.items[0].average, 10.0)
            self.assertEqual(service.last_warning, "Dropped 1 invalid watchlist entries")
        finally:
            service.close()


class TestWatchlistServiceConcurrency(unittest.TestCase):
    def test_two_handles_writing_from_threads_do_not_deadlock(self) -> None:
        backend = InMemoryBackend()
        first = WatchlistService(InMemoryLocalStorage(backend=backend))
        second = WatchlistService(InMemoryLocalStorage(backend=backend))
        failures: list[BaseException] = []

        def churn(service: WatchlistService, prefix: str) -> None:
            try:
                for i in range(200):
                    item_id = f"{prefix}{i}"
                    service.add(MovieItem(id=item_id, title=f"Film {item_id}"))
                    service.remove(item_id)
            except BaseException as exc:
                failures.append(exc)

        threads = [
            threading.Thread(target=churn, args=(first, "a"), daemon=True),
            threading.Thread(target=churn, args=(second, "b"), daemon=True),
        ]
        try:
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join(timeout=30)
            self.assertFalse(any(thread.is_alive() for thread in threads))
            self.assertEqual(failures, [])

            persisted = [e["id"] for e in json.loads(backend.data.get(WATCHLIST_STORAGE_KEY) or "[]")]
            self.assertEqual([i.id for i in first.items], persisted)
            self.assertEqual([i.id for i in second.items], persisted)
        finally:
            first.close()
            second.close()

    def test_mixed_mutations_keep_service_bounded_and_unique(self) -> None:
        service = WatchlistService(InMemoryLocalStorage())
        try:
            for step in range(160):
                item_id = str(step % 70)
                if step % 7 == 3:
                    service.remove(str((step * 3) % 70))
                elif step % 5 == 4:
                    service.update_status(item_id, WatchStatus.WATCHED)
                else:
                    service.add(MovieItem(id=item_id, title=f"Film {item_id}"))
                ids = [i.id for i in service.items]
                self.assertLessEqual(len(ids), 50)
                self.assertEqual(len(ids), len(set(ids)))
            for i in range(60):
                service.add(MovieItem(id=f"fill{i}", title=f"Filler {i}"))
            self.assertEqual(len(service.items), 50)
            self.assertTrue(service.capacity.is_full)
            rejected = service.add(MovieItem(id="extra", title="Extra"))
            self.assertEqual(rejected.error.type, WatchlistErrorType.CAPACITY_EXCEEDED)
            self.assertEqual(len({i.id for i in service.items}), 50)
        finally:
            service.close()


if __name__ == "__main__":
    unittest.main()
