from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from casecalendar.app import CalendarApp
from casecalendar.conflicts import find_conflicts
from casecalendar.editor import REMINDER_UNITS, reminder_offset
from casecalendar.errors import CaseCalendarError, EventValidationError
from casecalendar.export_ics import export_events_to_ics
from casecalendar.model import EVENT_TYPES, EventId, parse_timestamp
from casecalendar.notify import LEVEL_STYLES
from casecalendar.view import FILTER_ALL, FILTER_LABELS, VIEWS, event_color

console = Console()


def _println(msg: str = "") -> None:
    console.print(msg)


def _prompt(msg: str) -> str:
    return console.input(msg)


def _ask_datetime(label: str, default: Optional[datetime]) -> Optional[datetime]:
    """
    Ask for a date/time; blank keeps the default, invalid input asks again.
    """
    while True:
        shown = f"{default:%Y-%m-%d %H:%M}" if default else ""
        raw = _prompt(f"{label} [{shown}]: ").strip()
        if not raw:
            return default
        try:
            return parse_timestamp(raw.replace(" ", "T", 1))
        except CaseCalendarError:
            _println("Invalid date/time, use e.g. 2025-03-01 10:00")


def run_interactive(app: CalendarApp) -> None:
    """
    Interactive menu loop around the calendar view and the event editor.
    """
    while True:
        _print_header(app)

        choice = _prompt(
            "\n[1] Month  [2] Week  [3] Day  [4] Agenda\n"
            "[n] Next  [p] Previous  [t] Today\n"
            "[5] Filter by type\n"
            "[6] New event\n"
            "[7] Open event (edit / delete)\n"
            "[8] Show conflicts\n"
            "[9] Upcoming reminders\n"
            "[e] Export .ics\n"
            "[0] Exit\n"
            "Select: "
        ).strip().lower()

        if choice == "0":
            _println("Bye.")
            return

        try:
            if choice in ("1", "2", "3", "4"):
                app.view.set_view(VIEWS[int(choice) - 1])
                console.print(app.view.render())
            elif choice == "n":
                app.view.navigate("next")
                console.print(app.view.render())
            elif choice == "p":
                app.view.navigate("prev")
                console.print(app.view.render())
            elif choice == "t":
                app.view.navigate("today")
                console.print(app.view.render())
            elif choice == "5":
                _flow_filter(app)
            elif choice == "6":
                _flow_new_event(app)
            elif choice == "7":
                _flow_open_event(app)
            elif choice == "8":
                _flow_conflicts(app)
            elif choice == "9":
                _flow_reminders(app)
            elif choice == "e":
                _flow_export(app)
            else:
                _println("Invalid choice.")
        except (CaseCalendarError, OSError) as e:
            _println(f"[red]Error:[/] {e}")
            app.editor.discard()


def _print_header(app: CalendarApp) -> None:
    _println("\n=== Case Calendar ===")
    label = FILTER_LABELS.get(app.view.selected_filter, app.view.selected_filter)
    _println(
        f"Events: {len(app.store)} | Showing: {label} | View: {app.view.current_view} "
        f"| Date: {app.view.current_date:%Y-%m-%d} | Reminders pending: {len(app.scheduler.pending())}"
    )
    for n in app.notifications.active():
        _println(f"[{LEVEL_STYLES.get(n.level, 'bold')}]{n.message}[/]")


def _flow_filter(app: CalendarApp) -> None:
    options = [FILTER_ALL, *EVENT_TYPES]
    for i, opt in enumerate(options, start=1):
        _println(f"{i}) {FILTER_LABELS.get(opt, opt)}")
    pick = _prompt("Choose filter [blank = all]: ").strip()
    if not pick:
        app.view.set_filter(FILTER_ALL)
    elif pick.isdigit() and 1 <= int(pick) <= len(options):
        app.view.set_filter(options[int(pick) - 1])
    else:
        _println("Out of range.")
        return
    console.print(app.view.render())


def _edit_draft_fields(app: CalendarApp) -> None:
    """
    Prompt for every field of the open draft; blank answers keep the current value.
    """
    draft = app.editor.draft
    assert draft is not None

    title = _prompt(f"Title * [{draft.title}]: ").strip()
    if title:
        draft.title = title

    description = _prompt(f"Description [{draft.description}]: ").strip()
    if description:
        draft.description = description

    start = _ask_datetime("Start", draft.start)
    if start is not None and start != draft.start:
        app.editor.move_start(start)
    end = _ask_datetime("End", draft.end)
    if end is not None:
        draft.end = end

    types = "/".join(EVENT_TYPES)
    event_type = _prompt(f"Type ({types}) [{draft.type}]: ").strip().lower()
    if event_type:
        draft.type = event_type


def _edit_reminder(app: CalendarApp) -> None:
    draft = app.editor.draft
    assert draft is not None

    if draft.reminder is not None:
        amount, unit = reminder_offset(draft.start, draft.reminder)
        current = f"{amount} {unit} before"
    else:
        current = "off"

    raw = _prompt(f"Reminder ({current}) – e.g. '30 minutes', '2 hours', 'off' [blank = keep]: ").strip().lower()
    if not raw:
        return
    if raw == "off":
        app.editor.clear_reminder()
        return

    parts = raw.split()
    if not parts[0].isdigit():
        _println("Not a number, reminder unchanged.")
        return
    unit = parts[1] if len(parts) > 1 else "minutes"
    if unit not in REMINDER_UNITS:
        _println(f"Unit must be one of: {', '.join(REMINDER_UNITS)}")
        return
    app.editor.set_reminder_offset(int(parts[0]), unit)


def _save_with_retry(app: CalendarApp) -> None:
    """
    Save the open draft; on a validation error let the user fix it or give up.
    """
    while True:
        try:
            ev = app.editor.save()
            _println(f"Saved: {ev.title} ({ev.id})")
            return
        except EventValidationError as e:
            _println(f"[red]{e}[/]")
            again = _prompt("Fix and try again? [Y/n]: ").strip().lower()
            if again == "n":
                app.editor.cancel()
                _println("Discarded.")
                return
            _edit_draft_fields(app)


def _flow_new_event(app: CalendarApp) -> None:
    start = _ask_datetime("Start (blank = now)", None)
    if start is not None:
        app.view.select_slot(start)
    else:
        app.editor.open_new()
    _edit_draft_fields(app)
    _edit_reminder(app)
    _save_with_retry(app)


def _pick_event_id(app: CalendarApp) -> Optional[EventId]:
    events = app.view.visible_events()
    if not events:
        _println("No events.")
        return None

    table = Table(title="Events", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("When")
    table.add_column("Event")
    table.add_column("Type")
    for i, ev in enumerate(events, start=1):
        table.add_row(
            str(i), f"{ev.start:%Y-%m-%d %H:%M}", ev.title or "(untitled)", f"[{event_color(ev.type)}]{ev.type}[/]"
        )
    console.print(table)

    pick = _prompt("Enter number [blank = back]: ").strip()
    if not pick:
        return None
    if not pick.isdigit() or not (1 <= int(pick) <= len(events)):
        _println("Out of range.")
        return None
    return events[int(pick) - 1].id


def _flow_open_event(app: CalendarApp) -> None:
    event_id = _pick_event_id(app)
    if event_id is None:
        return

    draft = app.view.select_event(event_id)
    _println(f"\n{draft.title} | {draft.start:%Y-%m-%d %H:%M}-{draft.end:%H:%M} | {draft.type}")
    if draft.description:
        _println(draft.description)

    action = _prompt("[e] Edit  [d] Delete  [blank] Back: ").strip().lower()
    if action == "e":
        _edit_draft_fields(app)
        _edit_reminder(app)
        _save_with_retry(app)
    elif action == "d":
        app.editor.request_delete(event_id)
        sure = _prompt("Are you sure you want to delete this event? This action cannot be undone. [y/N]: ")
        if sure.strip().lower() == "y":
            app.editor.confirm_delete()
        else:
            app.editor.cancel_delete()
            app.editor.cancel()
    else:
        app.editor.cancel()


def _flow_conflicts(app: CalendarApp) -> None:
    confs = find_conflicts(app.view.visible_events())
    if not confs:
        _println("No conflicts found.")
        return

    table = Table(title=f"Conflicts ({len(confs)})", box=box.SIMPLE)
    table.add_column("Event")
    table.add_column("Overlaps with")
    for a, b in confs:
        table.add_row(
            f"{a.start:%Y-%m-%d %H:%M}-{a.end:%H:%M} {a.title}",
            f"{b.start:%Y-%m-%d %H:%M}-{b.end:%H:%M} {b.title}",
        )
    console.print(table)


def _flow_reminders(app: CalendarApp) -> None:
    pending = app.scheduler.pending()
    if not pending:
        _println("No upcoming reminders.")
        return
    for entry in pending:
        _println(f"  - {entry.fire_at:%Y-%m-%d %H:%M} | {entry.title}")


def _flow_export(app: CalendarApp) -> None:
    events = app.view.visible_events()
    if not events:
        _println("No events to export.")
        return

    downloads = Path.home() / "Downloads"
    default_name = "casecalendar.ics"

    out_in = _prompt(f"Please enter desired file name, default is [{default_name}]: ").strip()
    out_path = downloads / (out_in or default_name)

    if out_path.suffix.lower() != ".ics":
        out_path = out_path.with_suffix(".ics")

    n = export_events_to_ics(events, out_path)
    _println(f"\nExported {n} events.")
    _println(f"Saved to: {out_path.resolve()}")
