"""
Event editor: the create / edit / delete flow for a single event.

The editor is always in exactly one of these states:

    Closed
    Creating(draft)          empty slot or "New Event" selected
    Editing(draft)           existing event selected
    ConfirmingDelete(draft)  "Delete" pressed while editing, waiting for yes/no

Transitions:

    Closed           --open_for_create--> Creating
    Closed           --open_for_edit----> Editing
    Creating/Editing --save/cancel------> Closed
    Editing          --request_delete---> ConfirmingDelete
    ConfirmingDelete --confirm_delete---> Closed
    ConfirmingDelete --cancel_delete----> Editing

Anything else raises InvalidTransitionError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Union

from casecalendar.config import DEFAULT_EVENT_DURATION, DEFAULT_REMINDER_AMOUNT, DEFAULT_REMINDER_UNIT
from casecalendar.errors import EventValidationError, InvalidTransitionError
from casecalendar.model import DEFAULT_EVENT_TYPE, EVENT_TYPES, CalendarEvent, EventId
from casecalendar.notify import NotificationCenter
from casecalendar.store import EventStore

logger = logging.getLogger(__name__)

REMINDER_UNITS = {
    "minutes": 1,
    "hours": 60,
    "days": 60 * 24,
}


@dataclass
class Draft:
    """
    The editable copy of an event shown in the dialog.
    """

    start: datetime
    end: datetime
    title: str = ""
    description: str = ""
    type: str = DEFAULT_EVENT_TYPE
    reminder: Optional[datetime] = None
    id: Optional[EventId] = None

    @classmethod
    def from_event(cls, event: CalendarEvent) -> "Draft":
        return cls(
            id=event.id,
            title=event.title,
            description=event.description,
            type=event.type,
            start=event.start,
            end=event.end,
            reminder=event.reminder,
        )

    def to_event(self) -> CalendarEvent:
        return CalendarEvent(
            id=self.id,
            title=self.title,
            description=self.description,
            type=self.type,
            start=self.start,
            end=self.end,
            reminder=self.reminder,
        )


@dataclass(frozen=True)
class Closed:
    pass


@dataclass(frozen=True)
class Creating:
    draft: Draft


@dataclass(frozen=True)
class Editing:
    draft: Draft


@dataclass(frozen=True)
class ConfirmingDelete:
    draft: Draft


EditorState = Union[Closed, Creating, Editing, ConfirmingDelete]


def validate_draft(draft: Draft) -> None:
    """
    Raise EventValidationError if the draft cannot be saved.
    """
    if not draft.title.strip():
        raise EventValidationError("Please enter a title for the event")
    if draft.type not in EVENT_TYPES:
        raise EventValidationError(f"Unknown event type: {draft.type!r} (expected one of {', '.join(EVENT_TYPES)})")
    if draft.end < draft.start:
        raise EventValidationError("End time cannot be before start time")


def reminder_from_offset(start: datetime, amount: int, unit: str = DEFAULT_REMINDER_UNIT) -> datetime:
    """
    Reminder time for "amount unit before start", e.g. (start, 2, "hours").
    """
    if unit not in REMINDER_UNITS:
        raise EventValidationError(f"Unknown reminder unit: {unit!r}")
    if amount < 0:
        raise EventValidationError("Reminder offset cannot be negative")
    return start - timedelta(minutes=amount * REMINDER_UNITS[unit])


def reminder_offset(start: datetime, reminder: datetime) -> tuple[int, str]:
    """
    Inverse of reminder_from_offset, expressed in the largest whole unit:
    under an hour in minutes, under a day in hours, otherwise days.
    """
    minutes = int((start - reminder).total_seconds() // 60)
    if minutes < 60:
        return minutes, "minutes"
    if minutes < 60 * 24:
        return minutes // 60, "hours"
    return minutes // (60 * 24), "days"


def deleted_message(title: str) -> str:
    return f'Event "{title or "Untitled"}" has been deleted.'


class EventEditor:
    def __init__(
        self,
        store: EventStore,
        notifications: Optional[NotificationCenter] = None,
        clock: Callable[[], datetime] = datetime.now,
        default_duration: timedelta = DEFAULT_EVENT_DURATION,
    ) -> None:
        self.store = store
        self.notifications = notifications
        self._clock = clock
        self._default_duration = default_duration
        self.state: EditorState = Closed()

    @property
    def draft(self) -> Optional[Draft]:
        if isinstance(self.state, Closed):
            return None
        return self.state.draft

    @property
    def is_open(self) -> bool:
        return not isinstance(self.state, Closed)

    def _require(self, *allowed: type, action: str) -> None:
        if not isinstance(self.state, allowed):
            raise InvalidTransitionError(f"Cannot {action} while {type(self.state).__name__}")

    # ------------------------------------------------------------------
    # Opening
    # ------------------------------------------------------------------

    def open_for_create(self, start: datetime, end: Optional[datetime] = None) -> Draft:
        """
        Start a new event at `start`.

        The selected slot's end is ignored: new events always get the
        default duration.
        """
        self._require(Closed, action="create an event")
        draft = Draft(start=start, end=start + self._default_duration)
        self.state = Creating(draft)
        return draft

    def open_new(self, now: Optional[datetime] = None) -> Draft:
        return self.open_for_create(now or self._clock())

    def open_for_edit(self, event: CalendarEvent) -> Draft:
        self._require(Closed, action="edit an event")
        draft = Draft.from_event(event)
        self.state = Editing(draft)
        return draft

    # ------------------------------------------------------------------
    # Draft helpers
    # ------------------------------------------------------------------

    def set_reminder_offset(self, amount: int = DEFAULT_REMINDER_AMOUNT, unit: str = DEFAULT_REMINDER_UNIT) -> datetime:
        self._require(Creating, Editing, action="set a reminder")
        draft = self.state.draft
        draft.reminder = reminder_from_offset(draft.start, amount, unit)
        return draft.reminder

    def move_start(self, start: datetime) -> Draft:
        """
        Move the draft to a new start, keeping its duration and the
        reminder's distance before the start.
        """
        self._require(Creating, Editing, action="move an event")
        draft = self.state.draft
        shift = start - draft.start
        draft.start = start
        draft.end += shift
        if draft.reminder is not None:
            draft.reminder += shift
        return draft

    def clear_reminder(self) -> None:
        self._require(Creating, Editing, action="clear a reminder")
        self.state.draft.reminder = None

    # ------------------------------------------------------------------
    # Closing
    # ------------------------------------------------------------------

    def save(self, draft: Optional[Draft] = None) -> CalendarEvent:
        """
        Validate and store the draft, then close.

        On a validation error the editor stays open so the user can fix the draft.
        """
        self._require(Creating, Editing, action="save")
        draft = draft or self.state.draft
        validate_draft(draft)

        event = draft.to_event()
        if event.id is None:
            event.id = self.store.mint_id()

        saved = self.store.upsert(event)
        logger.info("Saved event %r (%s)", saved.id, saved.title)
        self.state = Closed()
        return saved

    def cancel(self) -> None:
        self._require(Creating, Editing, action="cancel")
        self.state = Closed()

    def request_delete(self, event_id: Optional[EventId] = None) -> None:
        self._require(Editing, action="delete")
        draft = self.state.draft
        if event_id is not None and event_id != draft.id:
            raise InvalidTransitionError(f"Event {event_id!r} is not the one being edited")
        self.state = ConfirmingDelete(draft)

    def confirm_delete(self) -> Optional[CalendarEvent]:
        self._require(ConfirmingDelete, action="confirm a delete")
        draft = self.state.draft

        removed = self.store.remove(draft.id)
        title = removed.title if removed is not None else draft.title
        if self.notifications is not None:
            self.notifications.success(deleted_message(title))
        logger.info("Deleted event %r", draft.id)

        self.state = Closed()
        return removed

    def cancel_delete(self) -> None:
        self._require(ConfirmingDelete, action="cancel a delete")
        self.state = Editing(self.state.draft)

    def discard(self) -> None:
        """
        Close the dialog from any state, dropping the draft.
        """
        if self.is_open:
            logger.debug("Discarding %s draft", type(self.state).__name__)
        self.state = Closed()
