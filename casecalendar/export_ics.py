"""
iCalendar (.ics) export.

Events are written with local floating times so they can be imported into
Google Calendar, Outlook or Apple Calendar. Reminders become a VALARM
triggered relative to the event start.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from casecalendar.model import CalendarEvent


def _ics_escape(text: str) -> str:
    """
    Escape text for ICS fields (very small subset, sufficient for our use).
    """
    return (
        text.replace("\\", "\\\\").replace("\r\n", "\\n").replace("\n", "\\n").replace(";", "\\;").replace(",", "\\,")
    )


def _dt_local(value: datetime) -> str:
    return value.strftime("%Y%m%dT%H%M%S")


def _trigger(start: datetime, reminder: datetime) -> str:
    """
    Duration from start back to the reminder, e.g. '-PT30M'.
    """
    minutes = int((start - reminder).total_seconds() // 60)
    sign = "-" if minutes >= 0 else ""
    return f"{sign}PT{abs(minutes)}M"


def export_events_to_ics(events: Iterable[CalendarEvent], out_path: str | Path) -> int:
    """
    Export events to an .ics file. Returns number of exported events.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    lines: list[str] = []
    lines.append("BEGIN:VCALENDAR")
    lines.append("VERSION:2.0")
    lines.append("PRODID:-//casecalendar//EN")
    lines.append("CALSCALE:GREGORIAN")

    dtstamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    count = 0
    for ev in events:
        title = ev.title.strip() or "Untitled"
        uid = f"{ev.id}@casecalendar" if ev.id is not None else f"{_dt_local(ev.start)}@casecalendar"

        lines.append("BEGIN:VEVENT")
        lines.append(f"UID:{_ics_escape(uid)}")
        lines.append(f"DTSTAMP:{dtstamp}")
        lines.append(f"DTSTART:{_dt_local(ev.start)}")
        lines.append(f"DTEND:{_dt_local(ev.end)}")
        lines.append(f"SUMMARY:{_ics_escape(title)}")
        lines.append(f"CATEGORIES:{ev.type.upper()}")
        if ev.description.strip():
            lines.append(f"DESCRIPTION:{_ics_escape(ev.description.strip())}")
        if ev.reminder is not None:
            lines.append("BEGIN:VALARM")
            lines.append("ACTION:DISPLAY")
            lines.append(f"DESCRIPTION:{_ics_escape('Reminder: ' + title)}")
            lines.append(f"TRIGGER:{_trigger(ev.start, ev.reminder)}")
            lines.append("END:VALARM")
        lines.append("END:VEVENT")
        count += 1

    lines.append("END:VCALENDAR")

    # ICS standard uses CRLF
    out.write_text("\r\n".join(lines) + "\r\n", encoding="utf-8")
    return count
