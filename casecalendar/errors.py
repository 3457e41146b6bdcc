"""
Exceptions raised by the calendar core.

All of them derive from CaseCalendarError so the CLI can catch one type
and turn it into a readable message plus a non-zero exit code.
"""


class CaseCalendarError(Exception):
    """Base class for all casecalendar errors."""


class EventDecodeError(CaseCalendarError):
    """A stored event could not be turned back into a CalendarEvent."""


class EventValidationError(CaseCalendarError):
    """A draft was rejected by the editor (missing title, end before start, ...)."""


class InvalidTransitionError(CaseCalendarError):
    """The editor was asked to do something its current state does not allow."""


class StorageError(CaseCalendarError):
    """The event repository could not be used (closed, unwritable, ...)."""
