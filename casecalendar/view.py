"""
Calendar view: projects the event store onto month / week / day / agenda
views and turns user gestures into editor transitions.

The view only reads from the store. It keeps its own UI state (current
view, current date, type filter) which is never persisted.
"""

from __future__ import annotations

import calendar
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Any, Optional

from rich import box
from rich.console import RenderableType
from rich.table import Table
from rich.text import Text

from casecalendar.config import AGENDA_DAYS
from casecalendar.editor import Draft, EventEditor
from casecalendar.model import EVENT_TYPES, CalendarEvent, EventId
from casecalendar.store import EventStore

VIEWS = ("month", "week", "day", "agenda")

FILTER_ALL = "all"

FILTER_LABELS = {
    "all": "All Events",
    "court": "Court Hearings",
    "meeting": "Meetings",
    "task": "Tasks",
    "reminder": "Reminders",
    "other": "Other",
}

EVENT_COLORS = {
    "court": "#f87171",  # red
    "meeting": "#60a5fa",  # blue
    "task": "#34d399",  # green
    "reminder": "#fbbf24",  # yellow
}
DEFAULT_EVENT_COLOR = "#a78bfa"  # purple

WEEKDAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

BELL = "\U0001F514"


def event_color(event_type: str) -> str:
    return EVENT_COLORS.get(event_type, DEFAULT_EVENT_COLOR)


def event_style(event: CalendarEvent) -> dict[str, Any]:
    return {
        "backgroundColor": event_color(event.type),
        "borderRadius": "4px",
        "opacity": 0.8,
        "color": "white",
        "border": "0px",
        "display": "block",
        "fontSize": "0.8rem",
    }


def matches_filter(event: CalendarEvent, selected_filter: str) -> bool:
    return selected_filter == FILTER_ALL or event.type == selected_filter


def _week_start(d: date) -> date:
    # weeks start on Sunday
    return d - timedelta(days=(d.weekday() + 1) % 7)


def _add_months(d: date, months: int) -> date:
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


class CalendarView:
    def __init__(
        self,
        store: EventStore,
        editor: EventEditor,
        current_view: str = "month",
        current_date: Optional[date] = None,
    ) -> None:
        self.store = store
        self.editor = editor
        self.current_view = "month"
        self.current_date = current_date or date.today()
        self.selected_filter = FILTER_ALL
        self.set_view(current_view)

    # ------------------------------------------------------------------
    # UI state
    # ------------------------------------------------------------------

    def set_view(self, view: str) -> None:
        if view not in VIEWS:
            raise ValueError(f"Unknown view: {view!r} (expected one of {', '.join(VIEWS)})")
        self.current_view = view

    def set_filter(self, selected_filter: str) -> None:
        if selected_filter != FILTER_ALL and selected_filter not in EVENT_TYPES:
            raise ValueError(f"Unknown event type filter: {selected_filter!r}")
        self.selected_filter = selected_filter

    def navigate(self, action: str, today: Optional[date] = None) -> date:
        """
        Move the current date: 'today', 'next' or 'prev' by one view unit.
        """
        if action == "today":
            self.current_date = today or date.today()
            return self.current_date
        if action not in ("next", "prev"):
            raise ValueError(f"Unknown navigation action: {action!r}")

        step = 1 if action == "next" else -1
        if self.current_view == "month":
            self.current_date = _add_months(self.current_date, step)
        elif self.current_view == "week":
            self.current_date += timedelta(weeks=step)
        elif self.current_view == "day":
            self.current_date += timedelta(days=step)
        else:
            self.current_date += timedelta(days=step * AGENDA_DAYS)
        return self.current_date

    def visible_range(self) -> tuple[datetime, datetime]:
        """
        First and last instant shown by the current view.

        The month view covers whole weeks, so it can start in the previous
        month and end in the next one.
        """
        d = self.current_date
        if self.current_view == "month":
            first = _week_start(d.replace(day=1))
            last_of_month = d.replace(day=calendar.monthrange(d.year, d.month)[1])
            last = _week_start(last_of_month) + timedelta(days=6)
        elif self.current_view == "week":
            first = _week_start(d)
            last = first + timedelta(days=6)
        elif self.current_view == "day":
            first = last = d
        else:
            first = d
            last = d + timedelta(days=AGENDA_DAYS - 1)
        return datetime.combine(first, time.min), datetime.combine(last, time.max)

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    def visible_events(self) -> list[CalendarEvent]:
        """
        All store events passing the type filter, sorted by start.
        """
        events = [ev for ev in self.store.events if matches_filter(ev, self.selected_filter)]
        return sorted(events, key=lambda ev: ev.start)

    def events_in_range(self) -> list[CalendarEvent]:
        first, last = self.visible_range()
        return [ev for ev in self.visible_events() if ev.start <= last and ev.end >= first]

    # ------------------------------------------------------------------
    # Gestures
    # ------------------------------------------------------------------

    def select_slot(self, start: datetime, end: Optional[datetime] = None) -> Draft:
        return self.editor.open_for_create(start, end)

    def select_event(self, event_id: EventId) -> Draft:
        event = self.store.get(event_id)
        if event is None:
            raise KeyError(event_id)
        return self.editor.open_for_edit(event)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def event_label(self, event: CalendarEvent, with_time: bool = True) -> Text:
        text = Text()
        if event.reminder is not None:
            text.append(BELL + " ")
        if with_time:
            text.append(f"{event.start:%H:%M} ")
        text.append(event.title or "(untitled)", style=f"bold {event_color(event.type)}")
        if self.current_view != "month" and event.description:
            text.append(f"\n{event.description}", style="dim")
        return text

    def render(self) -> RenderableType:
        if self.current_view == "month":
            return self._render_month()
        if self.current_view == "agenda":
            return self._render_agenda()
        return self._render_days()

    def title(self) -> str:
        d = self.current_date
        label = FILTER_LABELS.get(self.selected_filter, self.selected_filter)
        if self.current_view == "month":
            head = f"{d:%B %Y}"
        elif self.current_view == "week":
            first, last = self.visible_range()
            head = f"{first:%b %d} - {last:%b %d %Y}"
        elif self.current_view == "day":
            head = f"{d:%A, %b %d %Y}"
        else:
            first, last = self.visible_range()
            head = f"Agenda {first:%b %d} - {last:%b %d %Y}"
        return f"{head} ({label})"

    def _events_by_day(self) -> dict[date, list[CalendarEvent]]:
        by_day: dict[date, list[CalendarEvent]] = defaultdict(list)
        first, last = self.visible_range()
        for ev in self.events_in_range():
            day = max(ev.start.date(), first.date())
            end_day = min(ev.end.date(), last.date())
            while day <= end_day:
                by_day[day].append(ev)
                day += timedelta(days=1)
        return by_day

    def _render_month(self) -> Table:
        first, last = self.visible_range()
        by_day = self._events_by_day()

        table = Table(title=self.title(), box=box.SQUARE, show_lines=True, expand=True)
        for name in WEEKDAY_NAMES:
            table.add_column(name, ratio=1)

        day = first.date()
        while day <= last.date():
            row = []
            for _ in range(7):
                cell = Text(str(day.day), style="bold" if day.month == self.current_date.month else "dim")
                for ev in by_day.get(day, []):
                    cell.append("\n")
                    cell.append_text(self.event_label(ev, with_time=False))
                row.append(cell)
                day += timedelta(days=1)
            table.add_row(*row)
        return table

    def _render_days(self) -> Table:
        first, last = self.visible_range()
        by_day = self._events_by_day()

        table = Table(title=self.title(), box=box.SIMPLE, expand=True)
        days = []
        day = first.date()
        while day <= last.date():
            days.append(day)
            table.add_column(f"{WEEKDAY_NAMES[(day.weekday() + 1) % 7]} {day:%m/%d}", ratio=1)
            day += timedelta(days=1)

        max_len = max((len(by_day.get(d, [])) for d in days), default=0)
        for r in range(max_len):
            row = []
            for d in days:
                evs = by_day.get(d, [])
                row.append(self.event_label(evs[r]) if r < len(evs) else Text(""))
            table.add_row(*row)
        return table

    def _render_agenda(self) -> Table:
        table = Table(title=self.title(), box=box.SIMPLE, expand=True)
        table.add_column("Date")
        table.add_column("Time")
        table.add_column("Event")
        table.add_column("Type")
        table.add_column("ID", justify="right", style="dim")

        for ev in self.events_in_range():
            table.add_row(
                f"{ev.start:%a %b %d}",
                f"{ev.start:%H:%M}-{ev.end:%H:%M}",
                self.event_label(ev, with_time=False),
                Text(ev.type, style=event_color(ev.type)),
                str(ev.id),
            )
        return table
