"""
The event store: the one authoritative list of CalendarEvents.

Every mutation rewrites the whole collection through the repository and
re-synchronises the reminder timers. Readers (the calendar view, the CLI)
only ever get copies of the list.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Callable, Iterator, Optional

from casecalendar.errors import EventDecodeError, StorageError
from casecalendar.model import CalendarEvent, EventId, copy_event, event_from_dict, event_to_dict
from casecalendar.notify import NotificationCenter
from casecalendar.reminders import ReminderScheduler
from casecalendar.storage import EventRepository

logger = logging.getLogger(__name__)


def _millis() -> int:
    return int(time.time() * 1000)


class EventStore:
    def __init__(
        self,
        repository: EventRepository,
        scheduler: Optional[ReminderScheduler] = None,
        notifications: Optional[NotificationCenter] = None,
        id_clock: Callable[[], int] = _millis,
    ) -> None:
        self._repository = repository
        self._scheduler = scheduler
        self._notifications = notifications
        self._id_clock = id_clock
        self._events: list[CalendarEvent] = []
        self._last_id = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self) -> list[CalendarEvent]:
        """
        Read the stored collection.

        Missing data means an empty calendar. Malformed data (invalid JSON,
        not a list, an unreadable entry) is logged and also treated as an
        empty calendar; it is not rewritten until the next mutation.
        """
        self._repository.open()
        try:
            raw = self._repository.read_all()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Stored events are not valid JSON, starting empty: %s", e)
            raw = None

        events: list[CalendarEvent] = []
        if raw is None:
            pass
        elif not isinstance(raw, list):
            logger.warning("Stored events are not a list (got %s), starting empty", type(raw).__name__)
        else:
            try:
                events = [event_from_dict(item) for item in raw]
            except EventDecodeError as e:
                logger.warning("Stored events could not be decoded, starting empty: %s", e)
                events = []

        self._events = events
        logger.info("Loaded %d events", len(events))
        if self._scheduler is not None:
            self._scheduler.sync(self._events)
        return self.events

    def close(self) -> None:
        if self._scheduler is not None:
            self._scheduler.shutdown()
        self._repository.close()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def events(self) -> list[CalendarEvent]:
        return list(self._events)

    def get(self, event_id: EventId) -> Optional[CalendarEvent]:
        for ev in self._events:
            if ev.id == event_id:
                return ev
        return None

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[CalendarEvent]:
        return iter(self.events)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def mint_id(self) -> int:
        """
        Timestamp-derived id, bumped so two events created in the same
        millisecond still get different ids.
        """
        taken = {ev.id for ev in self._events}
        candidate = max(self._id_clock(), self._last_id + 1)
        while candidate in taken:
            candidate += 1
        self._last_id = candidate
        return candidate

    def save_all(self) -> None:
        """
        Persist the whole collection and update the reminder timers.
        """
        payload = [event_to_dict(ev) for ev in self._events]
        try:
            self._repository.write_all(payload)
        except (OSError, StorageError) as e:
            logger.error("Could not save %d events: %s", len(payload), e)
            if self._notifications is not None:
                self._notifications.error(f"Could not save events: {e}")
            raise

        if self._scheduler is not None:
            self._scheduler.sync(self._events)

    def upsert(self, event: CalendarEvent) -> CalendarEvent:
        """
        Replace the event with the same id, or append it as a new event.

        Events without an id get one minted here. No field validation
        happens at this level (see EventEditor.save).
        """
        if event.id is None:
            event = copy_event(event, id=self.mint_id())

        for i, ev in enumerate(self._events):
            if ev.id == event.id:
                self._events[i] = event
                break
        else:
            self._events.append(event)

        self.save_all()
        return event

    def remove(self, event_id: EventId) -> Optional[CalendarEvent]:
        removed = self.get(event_id)
        if removed is None:
            logger.debug("Nothing to remove for id %r", event_id)
            return None

        self._events = [ev for ev in self._events if ev.id != event_id]
        self.save_all()
        return removed
