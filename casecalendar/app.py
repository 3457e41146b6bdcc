"""
Wiring: builds the notification center, reminder scheduler, store, editor
and view that the CLI and the interactive mode share.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from casecalendar.config import Settings
from casecalendar.editor import EventEditor
from casecalendar.notify import NotificationCenter, Sink, console_sink
from casecalendar.reminders import ReminderScheduler
from casecalendar.storage import EventRepository, JsonFileRepository
from casecalendar.store import EventStore
from casecalendar.view import CalendarView


@dataclass
class CalendarApp:
    notifications: NotificationCenter
    scheduler: ReminderScheduler
    store: EventStore
    editor: EventEditor
    view: CalendarView

    def close(self) -> None:
        self.store.close()


def build_app(
    settings: Settings,
    repository: Optional[EventRepository] = None,
    sink: Optional[Sink] = console_sink,
) -> CalendarApp:
    """
    Create all components and load the stored events.
    """
    notifications = NotificationCenter(sink=sink)
    scheduler = ReminderScheduler(notifications, toast_seconds=settings.reminder_seconds)
    store = EventStore(
        repository if repository is not None else JsonFileRepository(settings.events_file),
        scheduler=scheduler,
        notifications=notifications,
    )
    editor = EventEditor(store, notifications=notifications, default_duration=settings.event_duration)
    view = CalendarView(store, editor)

    store.load()
    return CalendarApp(notifications=notifications, scheduler=scheduler, store=store, editor=editor, view=view)
