"""
Conflict detection.

Two events conflict when their time ranges overlap:
    start < other_end AND end > other_start

Touching endpoints (one ends exactly when the next starts) is not a conflict.
"""

from __future__ import annotations

from typing import Iterable

from casecalendar.model import CalendarEvent


def _overlaps(a: CalendarEvent, b: CalendarEvent) -> bool:
    return a.start < b.end and a.end > b.start


def find_conflicts(events: Iterable[CalendarEvent]) -> list[tuple[CalendarEvent, CalendarEvent]]:
    """
    Find overlapping event pairs (A, B), each pair once, A starting first.
    Events with end <= start are skipped.
    """
    # sorted by start, so the inner loop can stop at the first event starting after a ends
    parsed = sorted((ev for ev in events if ev.end > ev.start), key=lambda ev: (ev.start, ev.end))

    conflicts: list[tuple[CalendarEvent, CalendarEvent]] = []
    for i, a in enumerate(parsed):
        for b in parsed[i + 1 :]:
            if b.start >= a.end:
                break
            if _overlaps(a, b):
                conflicts.append((a, b))
    return conflicts
