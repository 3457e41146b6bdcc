"""
Unit tests for the calendar view adapter.

Filter rule: an event is visible iff filter == "all" or event.type == filter.
"""

import io
import unittest
from datetime import date, datetime, timedelta

from rich.console import Console

from casecalendar.editor import Creating, Editing, EventEditor
from casecalendar.model import EVENT_TYPES, CalendarEvent
from casecalendar.storage import MemoryRepository
from casecalendar.store import EventStore
from casecalendar.view import DEFAULT_EVENT_COLOR, CalendarView, event_color, event_style, matches_filter


def _event(title: str, event_type: str, day: int, hour: int = 10, **kw) -> CalendarEvent:
    start = datetime(2025, 3, day, hour, 0)
    return CalendarEvent(id=None, title=title, type=event_type, start=start, end=start + timedelta(hours=1), **kw)


class ViewTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.repo = MemoryRepository()
        self.store = EventStore(self.repo)
        self.store.load()
        self.editor = EventEditor(self.store)
        self.view = CalendarView(self.store, self.editor, current_date=date(2025, 3, 15))

        self.hearing = self.store.upsert(_event("Hearing", "court", 3))
        self.meeting = self.store.upsert(_event("Client meeting", "meeting", 1, description="Bring the file"))
        self.task = self.store.upsert(_event("File motion", "task", 20, reminder=datetime(2025, 3, 20, 9, 0)))
        self.odd = self.store.upsert(_event("Lunch", "lunch", 15))


class TestFilter(ViewTestCase):
    def test_all_shows_everything_sorted(self) -> None:
        titles = [ev.title for ev in self.view.visible_events()]
        self.assertEqual(titles, ["Client meeting", "Hearing", "Lunch", "File motion"])

    def test_filter_property_holds_for_every_type(self) -> None:
        for f in ["all", *EVENT_TYPES]:
            self.view.set_filter(f)
            visible = {ev.id for ev in self.view.visible_events()}
            for ev in self.store.events:
                self.assertEqual(ev.id in visible, f == "all" or ev.type == f, (f, ev.title))

    def test_unknown_filter_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.view.set_filter("lunch")

    def test_matches_filter(self) -> None:
        self.assertTrue(matches_filter(self.hearing, "all"))
        self.assertTrue(matches_filter(self.hearing, "court"))
        self.assertFalse(matches_filter(self.hearing, "task"))


class TestColors(unittest.TestCase):
    def test_lookup_table(self) -> None:
        self.assertEqual(event_color("court"), "#f87171")
        self.assertEqual(event_color("meeting"), "#60a5fa")
        self.assertEqual(event_color("task"), "#34d399")
        self.assertEqual(event_color("reminder"), "#fbbf24")

    def test_fallback(self) -> None:
        self.assertEqual(event_color("other"), DEFAULT_EVENT_COLOR)
        self.assertEqual(event_color("something-else"), DEFAULT_EVENT_COLOR)

    def test_style(self) -> None:
        ev = _event("x", "court", 1)
        style = event_style(ev)
        self.assertEqual(style["backgroundColor"], "#f87171")
        self.assertEqual(style["color"], "white")


class TestNavigation(ViewTestCase):
    def test_month_range_covers_whole_weeks(self) -> None:
        first, last = self.view.visible_range()
        # March 2025 starts on a Saturday and ends on a Monday
        self.assertEqual(first, datetime(2025, 2, 23, 0, 0))
        self.assertEqual(last.date(), date(2025, 4, 5))

    def test_week_range_starts_sunday(self) -> None:
        self.view.set_view("week")
        first, last = self.view.visible_range()
        self.assertEqual(first.date(), date(2025, 3, 9))
        self.assertEqual(last.date(), date(2025, 3, 15))

    def test_next_prev(self) -> None:
        self.view.navigate("next")
        self.assertEqual(self.view.current_date, date(2025, 4, 15))
        self.view.set_view("week")
        self.view.navigate("prev")
        self.assertEqual(self.view.current_date, date(2025, 4, 8))
        self.view.set_view("day")
        self.view.navigate("next")
        self.assertEqual(self.view.current_date, date(2025, 4, 9))

    def test_month_step_clamps_day(self) -> None:
        self.view.current_date = date(2025, 1, 31)
        self.view.navigate("next")
        self.assertEqual(self.view.current_date, date(2025, 2, 28))

    def test_today(self) -> None:
        self.view.navigate("today", today=date(2030, 1, 1))
        self.assertEqual(self.view.current_date, date(2030, 1, 1))

    def test_events_in_range(self) -> None:
        self.view.set_view("day")
        self.assertEqual([ev.title for ev in self.view.events_in_range()], ["Lunch"])

    def test_bad_view_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.view.set_view("year")

    def test_view_state_is_not_persisted(self) -> None:
        writes = self.repo.writes
        self.view.set_view("agenda")
        self.view.set_filter("court")
        self.view.navigate("next")
        self.assertEqual(self.repo.writes, writes)


class TestGestures(ViewTestCase):
    def test_select_slot_opens_creating(self) -> None:
        draft = self.view.select_slot(datetime(2025, 3, 4, 14, 0), datetime(2025, 3, 4, 14, 30))
        self.assertIsInstance(self.editor.state, Creating)
        self.assertEqual(draft.end, datetime(2025, 3, 4, 15, 0))

    def test_select_event_opens_editing(self) -> None:
        draft = self.view.select_event(self.task.id)
        self.assertIsInstance(self.editor.state, Editing)
        self.assertEqual(draft.reminder, datetime(2025, 3, 20, 9, 0))

    def test_select_unknown_event(self) -> None:
        with self.assertRaises(KeyError):
            self.view.select_event("nope")


class TestRender(ViewTestCase):
    def _render(self) -> str:
        out = io.StringIO()
        Console(file=out, width=200, color_system=None).print(self.view.render())
        return out.getvalue()

    def test_month(self) -> None:
        text = self._render()
        self.assertIn("March 2025", text)
        self.assertIn("Hearing", text)
        self.assertNotIn("Bring the file", text)

    def test_week_shows_descriptions(self) -> None:
        self.view.current_date = date(2025, 3, 1)
        self.view.set_view("week")
        text = self._render()
        self.assertIn("Client meeting", text)
        self.assertIn("Bring the file", text)

    def test_agenda_respects_filter(self) -> None:
        self.view.current_date = date(2025, 3, 1)
        self.view.set_view("agenda")
        self.view.set_filter("task")
        text = self._render()
        self.assertIn("File motion", text)
        self.assertNotIn("Hearing", text)


if __name__ == "__main__":
    unittest.main()
