"""
CLI (Command Line Interface).

Quick terminal commands for power users and for testing, e.g.:

    casecalendar list [--type court]
    casecalendar show --view week --date 2025-03-01
    casecalendar add "Deposition" --start 2025-03-01T10:00 --type court --remind 30
    casecalendar edit <id> --title "Deposition (moved)"
    casecalendar delete <id> --yes
    casecalendar conflicts
    casecalendar export <file.ics>
    casecalendar reminders
    casecalendar watch
    casecalendar interactive

Every command accepts --data <events.json> to work on another file.

Note:
- The interactive UI lives in casecalendar/interactive.py
- list/conflicts/reminders print plain text; show renders a rich calendar
"""

from __future__ import annotations

import argparse
import logging
import time
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Confirm

from casecalendar.app import CalendarApp, build_app
from casecalendar.config import DEFAULT_REMINDER_UNIT, load_settings
from casecalendar.conflicts import find_conflicts
from casecalendar.editor import REMINDER_UNITS
from casecalendar.errors import CaseCalendarError
from casecalendar.export_ics import export_events_to_ics
from casecalendar.model import EVENT_TYPES, CalendarEvent, EventId, parse_timestamp
from casecalendar.view import FILTER_ALL, VIEWS

logger = logging.getLogger(__name__)

console = Console()


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _timestamp_arg(value: str) -> datetime:
    try:
        return parse_timestamp(value)
    except CaseCalendarError as e:
        raise argparse.ArgumentTypeError(f"expected a date/time like 2025-03-01T10:00, got {value!r}") from e


def _date_arg(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected a date like 2025-03-01, got {value!r}") from e


def _event_id_arg(value: str) -> EventId:
    """
    Ids minted by this tool are integers; ids written by other tools may be strings.
    """
    value = value.strip()
    return int(value) if value.lstrip("-").isdigit() else value


def _event_line(ev: CalendarEvent) -> str:
    bits = [str(ev.id), f"{ev.start:%Y-%m-%d %H:%M}-{ev.end:%H:%M}", ev.type, ev.title or "(untitled)"]
    if ev.reminder is not None:
        bits.append(f"reminder {ev.reminder:%Y-%m-%d %H:%M}")
    return " | ".join(bits)


def _cmd_list(args: argparse.Namespace, app: CalendarApp) -> int:
    """
    Print all events (optionally of one type) in start order.
    """
    app.view.set_filter(args.type)
    events = app.view.visible_events()
    if not events:
        print("No events.")
        return 0
    for ev in events:
        print(_event_line(ev))
    return 0


def _cmd_show(args: argparse.Namespace, app: CalendarApp) -> int:
    """
    Render the calendar for one view and date.
    """
    app.view.set_filter(args.type)
    app.view.set_view(args.view)
    if args.date is not None:
        app.view.current_date = args.date
    console.print(app.view.render())
    return 0


def _apply_reminder(args: argparse.Namespace, app: CalendarApp) -> None:
    if args.no_remind:
        app.editor.clear_reminder()
    elif args.remind is not None:
        app.editor.set_reminder_offset(args.remind, args.unit)


def _cmd_add(args: argparse.Namespace, app: CalendarApp) -> int:
    """
    Create a new event. Without --end the event lasts one hour.
    """
    draft = app.view.select_slot(args.start)
    draft.title = args.title
    draft.type = args.type
    draft.description = args.description or ""
    if args.end is not None:
        draft.end = args.end
    _apply_reminder(args, app)

    ev = app.editor.save()
    print(f"Added: {_event_line(ev)}")
    return 0


def _cmd_edit(args: argparse.Namespace, app: CalendarApp) -> int:
    """
    Change fields of an existing event. Moving the start keeps the duration
    and moves the reminder along with it.
    """
    try:
        draft = app.view.select_event(args.event_id)
    except KeyError:
        print(f"No event with id {args.event_id}")
        return 1

    if args.title is not None:
        draft.title = args.title
    if args.description is not None:
        draft.description = args.description
    if args.type is not None:
        draft.type = args.type
    if args.start is not None:
        app.editor.move_start(args.start)
    if args.end is not None:
        draft.end = args.end
    _apply_reminder(args, app)

    ev = app.editor.save()
    print(f"Updated: {_event_line(ev)}")
    return 0


def _cmd_delete(args: argparse.Namespace, app: CalendarApp) -> int:
    try:
        draft = app.view.select_event(args.event_id)
    except KeyError:
        print(f"No event with id {args.event_id}")
        return 1

    app.editor.request_delete(draft.id)
    if not args.yes and not Confirm.ask(f"Delete \"{draft.title or 'Untitled'}\"? This cannot be undone"):
        app.editor.cancel_delete()
        app.editor.cancel()
        print("Not deleted.")
        return 0

    app.editor.confirm_delete()
    print(f"Deleted: {args.event_id}")
    return 0


def _cmd_conflicts(args: argparse.Namespace, app: CalendarApp) -> int:
    """
    Print all overlapping event pairs.
    """
    confs = find_conflicts(app.store.events)
    if not confs:
        print("No conflicts found.")
        return 0

    print(f"Conflicts found: {len(confs)}")
    for a, b in confs:
        print(f"- {_event_line(a)}  <->  {_event_line(b)}")
    return 0


def _cmd_export(args: argparse.Namespace, app: CalendarApp) -> int:
    """
    Export events into an iCalendar (.ics) file.
    """
    app.view.set_filter(args.type)
    events = app.view.visible_events()
    if not events:
        print("No events to export.")
        return 0

    out_path = (args.out or "").strip()
    if not out_path:
        print("Please provide output .ics path.")
        return 1

    n = export_events_to_ics(events, out_path)
    print(f"Exported {n} events to: {out_path}")
    return 0


def _cmd_reminders(args: argparse.Namespace, app: CalendarApp) -> int:
    """
    Print reminders that are still going to fire.
    """
    pending = app.scheduler.pending()
    if not pending:
        print("No upcoming reminders.")
        return 0
    for entry in pending:
        print(f"{entry.fire_at:%Y-%m-%d %H:%M} | {entry.event_id} | {entry.title}")
    return 0


def _mtime(path: Path) -> Optional[int]:
    try:
        return path.stat().st_mtime_ns
    except FileNotFoundError:
        return None


def _cmd_watch(args: argparse.Namespace, app: CalendarApp) -> int:
    """
    Stay in the foreground so scheduled reminders can fire. Ctrl+C stops.

    The events file is re-read whenever it changes, so events added by
    other casecalendar commands get their reminders here too.
    """
    path = load_settings(args.data).events_file
    seen = _mtime(path)
    print(f"Watching {len(app.scheduler.pending())} reminders (Ctrl+C to stop)...")
    try:
        while True:
            time.sleep(args.poll)
            current = _mtime(path)
            if current != seen:
                seen = current
                app.store.load()
                logger.info("Reloaded %s, %d reminders pending", path, len(app.scheduler.pending()))
    except KeyboardInterrupt:
        print("Stopped.")
    return 0


def _add_event_fields(p: argparse.ArgumentParser, editing: bool) -> None:
    p.add_argument("--start", type=_timestamp_arg, required=not editing, default=None, help="Start, e.g. 2025-03-01T10:00")
    p.add_argument("--end", type=_timestamp_arg, default=None, help="End (default: one hour after start)")
    p.add_argument(
        "--type", choices=EVENT_TYPES, default=None if editing else "meeting", help="Event type (default: meeting)"
    )
    p.add_argument("--description", type=str, default=None, help="Longer description")
    p.add_argument("--remind", type=int, default=None, metavar="N", help="Remind N units before start")
    p.add_argument("--unit", choices=sorted(REMINDER_UNITS), default=DEFAULT_REMINDER_UNIT, help="Unit for --remind")
    p.add_argument("--no-remind", action="store_true", help="Remove the reminder")


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="casecalendar", description="Calendar for court dates, meetings and tasks")
    parser.add_argument("--data", type=str, default=None, help="Path to events.json")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    type_filter = [FILTER_ALL, *EVENT_TYPES]

    p_list = sub.add_parser("list", help="List events")
    p_list.add_argument("--type", choices=type_filter, default=FILTER_ALL, help="Only events of this type")

    p_show = sub.add_parser("show", help="Show the calendar")
    p_show.add_argument("--view", choices=VIEWS, default="month")
    p_show.add_argument("--date", type=_date_arg, default=None, help="Any date inside the period to show")
    p_show.add_argument("--type", choices=type_filter, default=FILTER_ALL)

    p_add = sub.add_parser("add", help="Add an event")
    p_add.add_argument("title", type=str, help="Event title")
    _add_event_fields(p_add, editing=False)

    p_edit = sub.add_parser("edit", help="Edit an event")
    p_edit.add_argument("event_id", type=_event_id_arg, help="Event id (see list)")
    p_edit.add_argument("--title", type=str, default=None)
    _add_event_fields(p_edit, editing=True)

    p_delete = sub.add_parser("delete", help="Delete an event")
    p_delete.add_argument("event_id", type=_event_id_arg, help="Event id (see list)")
    p_delete.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")

    sub.add_parser("conflicts", help="Show overlapping events")

    p_export = sub.add_parser("export", help="Export events to .ics")
    p_export.add_argument("out", type=str, help="Output file path (e.g. out.ics)")
    p_export.add_argument("--type", choices=type_filter, default=FILTER_ALL)

    sub.add_parser("reminders", help="Show upcoming reminders")

    p_watch = sub.add_parser("watch", help="Run in the foreground and fire reminders")
    p_watch.add_argument("--poll", type=float, default=1.0, help=argparse.SUPPRESS)

    sub.add_parser("interactive", help="Interactive menu mode")

    return parser


COMMANDS = {
    "list": _cmd_list,
    "show": _cmd_show,
    "add": _cmd_add,
    "edit": _cmd_edit,
    "delete": _cmd_delete,
    "conflicts": _cmd_conflicts,
    "export": _cmd_export,
    "reminders": _cmd_reminders,
    "watch": _cmd_watch,
}


def main(argv: Optional[list[str]] = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    app = build_app(load_settings(args.data))
    try:
        if args.command == "interactive":
            from casecalendar.interactive import run_interactive

            run_interactive(app)
            raise SystemExit(0)

        handler = COMMANDS.get(args.command)
        if handler is None:
            raise SystemExit(2)
        raise SystemExit(handler(args, app))
    except CaseCalendarError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e}")
        raise SystemExit(1)
    finally:
        app.close()
