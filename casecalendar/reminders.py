"""
Reminder scheduling.

Every event whose `reminder` lies in the future gets exactly one timer.
Timers are tracked per event id, so editing or deleting an event cancels
the timer that was scheduled for its previous version.

Timers run on their own threads (threading.Timer by default); the callback
only pushes a notification, it never touches the event store.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable, Optional

from casecalendar.config import REMINDER_TOAST_SECONDS
from casecalendar.model import CalendarEvent, EventId
from casecalendar.notify import NotificationCenter

logger = logging.getLogger(__name__)

# (delay_seconds, callback) -> object with start() and cancel()
TimerFactory = Callable[[float, Callable[[], None]], Any]


def _thread_timer(delay: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay, callback)
    # never keep the process alive just for a pending reminder
    timer.daemon = True
    return timer


def reminder_message(title: str) -> str:
    return f"Reminder: {title} is starting soon!"


@dataclass
class ScheduledReminder:
    event_id: EventId
    title: str
    fire_at: datetime
    delay: float
    handle: Any


class ReminderScheduler:
    def __init__(
        self,
        notifications: NotificationCenter,
        timer_factory: TimerFactory = _thread_timer,
        clock: Callable[[], datetime] = datetime.now,
        toast_seconds: float = REMINDER_TOAST_SECONDS,
    ) -> None:
        self._notifications = notifications
        self._timer_factory = timer_factory
        self._clock = clock
        self._toast_seconds = toast_seconds
        self._scheduled: dict[EventId, ScheduledReminder] = {}
        self._lock = threading.Lock()

    def schedule(self, event: CalendarEvent, now: Optional[datetime] = None) -> Optional[ScheduledReminder]:
        """
        Replace whatever was scheduled for this event.

        Returns the new ScheduledReminder, or None if the event has no
        reminder or the reminder time is not strictly in the future.
        """
        if event.id is None:
            return None

        self.cancel(event.id)

        if event.reminder is None:
            return None

        now = now or self._clock()
        delay = (event.reminder - now).total_seconds()
        if delay <= 0:
            logger.debug("Reminder for %r is in the past, not scheduled", event.id)
            return None

        event_id = event.id
        entry = ScheduledReminder(
            event_id=event_id, title=event.title, fire_at=event.reminder, delay=delay, handle=None
        )
        entry.handle = self._timer_factory(delay, lambda: self._fire(entry))
        with self._lock:
            self._scheduled[event_id] = entry
        entry.handle.start()

        logger.debug("Scheduled reminder for %r in %.1fs", event_id, delay)
        return entry

    def cancel(self, event_id: EventId) -> bool:
        with self._lock:
            entry = self._scheduled.pop(event_id, None)
        if entry is None:
            return False
        entry.handle.cancel()
        logger.debug("Cancelled reminder for %r", event_id)
        return True

    def sync(self, events: Iterable[CalendarEvent], now: Optional[datetime] = None) -> None:
        """
        Bring the timers in line with the current collection.

        Timers of removed events are cancelled, unchanged ones are kept,
        changed or new ones are (re)scheduled.
        """
        now = now or self._clock()
        events = [ev for ev in events if ev.id is not None]
        current_ids = {ev.id for ev in events}

        with self._lock:
            stale = [eid for eid in self._scheduled if eid not in current_ids]
        for eid in stale:
            self.cancel(eid)

        for ev in events:
            with self._lock:
                entry = self._scheduled.get(ev.id)
            if entry is not None and entry.fire_at == ev.reminder and entry.title == ev.title:
                continue
            self.schedule(ev, now=now)

    def pending(self) -> list[ScheduledReminder]:
        with self._lock:
            return sorted(self._scheduled.values(), key=lambda e: e.fire_at)

    def shutdown(self) -> None:
        with self._lock:
            ids = list(self._scheduled)
        for eid in ids:
            self.cancel(eid)

    def _fire(self, entry: ScheduledReminder) -> None:
        with self._lock:
            # cancelled or replaced between the timer expiring and this callback running
            if self._scheduled.get(entry.event_id) is not entry:
                return
            del self._scheduled[entry.event_id]
        self._notifications.info(reminder_message(entry.title), duration=self._toast_seconds)
