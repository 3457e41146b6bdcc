"""
Transient user notifications ("toasts").

A notification is fire-and-forget: it is shown once, stays in the list of
active notifications for a fixed duration and then disappears on its own.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from rich.console import Console
from rich.panel import Panel

from casecalendar.config import ERROR_TOAST_SECONDS, SUCCESS_TOAST_SECONDS

logger = logging.getLogger(__name__)

_console = Console(stderr=True)

LEVELS = ("info", "success", "error")

LEVEL_STYLES = {
    "info": "bold blue",
    "success": "bold green",
    "error": "bold red",
}


@dataclass
class Notification:
    message: str
    level: str
    created_at: datetime
    duration: float

    @property
    def expires_at(self) -> datetime:
        return self.created_at + timedelta(seconds=self.duration)


Sink = Callable[[Notification], None]


def console_sink(notification: Notification) -> None:
    """
    Print a notification to the terminal using rich.
    """
    style = LEVEL_STYLES.get(notification.level, "bold")
    _console.print(Panel(notification.message, border_style=style, expand=False))


class NotificationCenter:
    """
    Collects notifications and forwards each one to a sink when pushed.

    Reminder timers push from their own thread, so the list is guarded by a lock.
    """

    def __init__(self, sink: Optional[Sink] = None, clock: Callable[[], datetime] = datetime.now) -> None:
        self._sink = sink
        self._clock = clock
        self._items: list[Notification] = []
        self._lock = threading.Lock()

    def push(self, message: str, level: str = "info", duration: float = SUCCESS_TOAST_SECONDS) -> Notification:
        if level not in LEVELS:
            raise ValueError(f"Unknown notification level: {level!r}")

        notification = Notification(message=message, level=level, created_at=self._clock(), duration=duration)
        with self._lock:
            self._items.append(notification)

        if level == "error":
            logger.error(message)
        else:
            logger.info(message)

        if self._sink is not None:
            self._sink(notification)
        return notification

    def info(self, message: str, duration: float = SUCCESS_TOAST_SECONDS) -> Notification:
        return self.push(message, "info", duration)

    def success(self, message: str, duration: float = SUCCESS_TOAST_SECONDS) -> Notification:
        return self.push(message, "success", duration)

    def error(self, message: str, duration: float = ERROR_TOAST_SECONDS) -> Notification:
        return self.push(message, "error", duration)

    def active(self, now: Optional[datetime] = None) -> list[Notification]:
        """
        Return notifications that have not expired yet and drop the rest.
        """
        now = now or self._clock()
        with self._lock:
            self._items = [n for n in self._items if n.expires_at > now]
            return list(self._items)
