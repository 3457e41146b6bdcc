"""
Unit tests for the event store.

Store contract:
- missing data -> empty calendar; malformed data -> empty calendar + warning
- upsert replaces by id or appends with a minted id
- remove drops exactly one event
- every mutation rewrites the whole collection
"""

import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from casecalendar.errors import StorageError
from casecalendar.model import CalendarEvent, copy_event
from casecalendar.notify import NotificationCenter
from casecalendar.storage import JsonFileRepository, MemoryRepository
from casecalendar.store import EventStore


def _event(event_id=None, title="Deposition", event_type="court") -> CalendarEvent:
    return CalendarEvent(
        id=event_id,
        title=title,
        type=event_type,
        start=datetime(2025, 3, 1, 10, 0),
        end=datetime(2025, 3, 1, 11, 0),
    )


class FixedIds:
    """Id clock that always returns the same millisecond."""

    def __init__(self, value: int = 1740823200000) -> None:
        self.value = value

    def __call__(self) -> int:
        return self.value


class TestLoad(unittest.TestCase):
    def test_load_missing_is_empty(self) -> None:
        store = EventStore(MemoryRepository())
        self.assertEqual(store.load(), [])
        self.assertEqual(len(store), 0)

    def test_load_invalid_json_is_empty_and_warns(self) -> None:
        store = EventStore(MemoryRepository("{definitely not json"))
        with self.assertLogs("casecalendar.store", level="WARNING"):
            self.assertEqual(store.load(), [])

    def test_load_non_list_is_empty_and_warns(self) -> None:
        store = EventStore(MemoryRepository('{"events": []}'))
        with self.assertLogs("casecalendar.store", level="WARNING"):
            self.assertEqual(store.load(), [])

    def test_load_bad_entry_is_empty_and_warns(self) -> None:
        store = EventStore(MemoryRepository('[{"id": 1, "title": "x", "start": "soon", "end": "later"}]'))
        with self.assertLogs("casecalendar.store", level="WARNING"):
            self.assertEqual(store.load(), [])

    def test_load_does_not_rewrite_malformed_data(self) -> None:
        repo = MemoryRepository("garbage")
        with self.assertLogs("casecalendar.store", level="WARNING"):
            EventStore(repo).load()
        self.assertEqual(repo.text, "garbage")
        self.assertEqual(repo.writes, 0)


class TestMutations(unittest.TestCase):
    def setUp(self) -> None:
        self.repo = MemoryRepository()
        self.store = EventStore(self.repo, id_clock=FixedIds())
        self.store.load()

    def test_upsert_new_event_gets_id_and_is_persisted(self) -> None:
        ev = self.store.upsert(_event())
        self.assertEqual(ev.id, 1740823200000)
        self.assertEqual(len(self.store), 1)
        self.assertEqual(self.repo.writes, 1)

    def test_upsert_does_not_mutate_argument(self) -> None:
        draft = _event()
        self.store.upsert(draft)
        self.assertIsNone(draft.id)

    def test_minted_ids_are_unique_within_same_millisecond(self) -> None:
        a = self.store.upsert(_event(title="a"))
        b = self.store.upsert(_event(title="b"))
        self.assertNotEqual(a.id, b.id)

    def test_upsert_twice_is_idempotent(self) -> None:
        ev = self.store.upsert(_event())
        self.store.upsert(ev)
        self.store.upsert(copy_event(ev))
        self.assertEqual(len(self.store), 1)

    def test_upsert_replaces_in_place(self) -> None:
        a = self.store.upsert(_event(title="a"))
        b = self.store.upsert(_event(title="b"))
        self.store.upsert(copy_event(a, title="a2"))
        self.assertEqual([ev.title for ev in self.store.events], ["a2", "b"])
        self.assertEqual(self.store.get(b.id).title, "b")

    def test_upsert_with_unknown_id_appends(self) -> None:
        self.store.upsert(_event(event_id="imported-1"))
        self.assertEqual(self.store.get("imported-1").title, "Deposition")

    def test_remove_drops_exactly_one(self) -> None:
        ids = [self.store.upsert(_event(title=str(i))).id for i in range(5)]
        removed = self.store.remove(ids[2])

        self.assertEqual(removed.title, "2")
        self.assertEqual(len(self.store), 4)
        self.assertNotIn(ids[2], [ev.id for ev in self.store.events])

    def test_remove_unknown_id_is_noop(self) -> None:
        self.store.upsert(_event())
        writes = self.repo.writes
        self.assertIsNone(self.store.remove(424242))
        self.assertEqual(len(self.store), 1)
        self.assertEqual(self.repo.writes, writes)

    def test_events_is_a_copy(self) -> None:
        self.store.upsert(_event())
        self.store.events.clear()
        self.assertEqual(len(self.store), 1)

    def test_failed_write_notifies_and_raises(self) -> None:
        received = []
        store = EventStore(self.repo, notifications=NotificationCenter(sink=received.append))
        store.load()
        self.repo.close()

        with self.assertLogs("casecalendar.store", level="ERROR"):
            with self.assertRaises(StorageError):
                store.upsert(_event())
        self.assertEqual([n.level for n in received], ["error"])


class TestScenario(unittest.TestCase):
    def test_create_then_reload_from_file(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "events.json"
            store = EventStore(JsonFileRepository(p))
            store.load()
            before = len(store)

            created = store.upsert(
                CalendarEvent(
                    id=None,
                    title="Deposition",
                    type="court",
                    start=datetime.fromisoformat("2025-03-01T10:00"),
                    end=datetime.fromisoformat("2025-03-01T11:00"),
                )
            )
            self.assertEqual(len(store), before + 1)
            store.close()

            reloaded = EventStore(JsonFileRepository(p))
            events = reloaded.load()
            self.assertEqual(events, [created])
            self.assertIsNot(events[0], created)


if __name__ == "__main__":
    unittest.main()
