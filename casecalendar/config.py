"""
Configuration: default paths and fixed durations.

Paths are returned by functions instead of module constants so tests can
point everything at a temporary directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

ENV_EVENTS_FILE = "CASECALENDAR_EVENTS_FILE"

# Default length of a freshly created event
DEFAULT_EVENT_DURATION = timedelta(minutes=60)

# Reminder offset pre-filled when the user switches a reminder on
DEFAULT_REMINDER_AMOUNT = 30
DEFAULT_REMINDER_UNIT = "minutes"

# How long transient notifications stay visible
REMINDER_TOAST_SECONDS = 10.0
SUCCESS_TOAST_SECONDS = 5.0
ERROR_TOAST_SECONDS = 5.0

# Agenda view shows this many days from the current date
AGENDA_DAYS = 30


def _default_events_path() -> Path:
    """
    Return the default path of events.json inside the package data folder.
    """
    base_dir = Path(__file__).resolve().parent
    return base_dir / "data" / "events.json"


def events_path(override: str | Path | None = None) -> Path:
    """
    Resolve the events file: explicit override, then environment, then default.
    """
    if override:
        return Path(override).expanduser()
    env = os.environ.get(ENV_EVENTS_FILE, "").strip()
    if env:
        return Path(env).expanduser()
    return _default_events_path()


@dataclass
class Settings:
    events_file: Path
    event_duration: timedelta = DEFAULT_EVENT_DURATION
    reminder_seconds: float = REMINDER_TOAST_SECONDS


def load_settings(events_file: str | Path | None = None) -> Settings:
    return Settings(events_file=events_path(events_file))
