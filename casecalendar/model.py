"""
Central data model definitions used across the project.

This module defines the canonical CalendarEvent so that:
- the store, editor, view and exporters share the same field names
- the JSON format written to disk stays stable

Stored format (one JSON array, one object per event):

    {"id": 1740823200000, "title": "...", "description": "...",
     "type": "court", "start": "2025-03-01T10:00:00",
     "end": "2025-03-01T11:00:00", "reminder": null}
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Optional, Union

from casecalendar.errors import EventDecodeError

EventId = Union[int, str]

EVENT_TYPES = ("court", "meeting", "task", "reminder", "other")

DEFAULT_EVENT_TYPE = "meeting"


@dataclass
class CalendarEvent:
    """
    One calendar entry. `type` only affects how the event is displayed.
    """

    id: Optional[EventId]
    title: str
    start: datetime
    end: datetime
    type: str = DEFAULT_EVENT_TYPE
    description: str = ""
    reminder: Optional[datetime] = None


def copy_event(event: CalendarEvent, **changes: Any) -> CalendarEvent:
    """
    Return a new event with `changes` applied (full replace, never a patch in place).
    """
    return replace(event, **changes)


def parse_timestamp(value: Any) -> datetime:
    """
    Convert a stored timestamp into a naive local datetime.

    Accepts datetimes and ISO-8601 strings. Browser-written values such as
    '2025-03-01T09:00:00.000Z' carry UTC; they are converted to local time
    so every datetime in memory can be compared with datetime.now().
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError as e:
            raise EventDecodeError(f"Invalid timestamp: {value!r}") from e
    else:
        raise EventDecodeError(f"Invalid timestamp: {value!r}")

    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def format_timestamp(value: datetime) -> str:
    return value.isoformat()


def event_to_dict(event: CalendarEvent) -> dict[str, Any]:
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "type": event.type,
        "start": format_timestamp(event.start),
        "end": format_timestamp(event.end),
        "reminder": format_timestamp(event.reminder) if event.reminder is not None else None,
    }


def event_from_dict(data: Any) -> CalendarEvent:
    """
    Rebuild a CalendarEvent from its stored dict.

    Raises EventDecodeError if the entry is not an object or lacks start/end.
    Unknown types are kept as-is (they render with the fallback colour).
    """
    if not isinstance(data, dict):
        raise EventDecodeError(f"Event entry is not an object: {data!r}")

    for key in ("start", "end"):
        if data.get(key) in (None, ""):
            raise EventDecodeError(f"Event entry is missing {key!r}: {data!r}")

    reminder_raw = data.get("reminder")
    event_id = data.get("id")
    if event_id is not None and not isinstance(event_id, (int, str)):
        raise EventDecodeError(f"Invalid event id: {event_id!r}")

    return CalendarEvent(
        id=event_id,
        title=str(data.get("title") or ""),
        description=str(data.get("description") or ""),
        type=str(data.get("type") or DEFAULT_EVENT_TYPE),
        start=parse_timestamp(data["start"]),
        end=parse_timestamp(data["end"]),
        reminder=parse_timestamp(reminder_raw) if reminder_raw not in (None, "") else None,
    )
