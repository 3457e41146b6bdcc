"""
Tests for CLI entry points.

Every test points --data at a temporary events.json so real user data is
never touched.
"""

import argparse
import contextlib
import io
import json
import tempfile
import unittest
from datetime import datetime, timedelta
from pathlib import Path
from unittest import mock

from casecalendar.app import build_app
from casecalendar.cli import _cmd_watch, main
from casecalendar.config import load_settings


class TestCLI(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.dir = Path(tmp.name)
        self.data = self.dir / "events.json"

    def run_cli(self, *argv: str) -> tuple[int, str]:
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            with self.assertRaises(SystemExit) as ctx:
                main(["--data", str(self.data), *argv])
        return ctx.exception.code, out.getvalue()

    def stored(self) -> list:
        return json.loads(self.data.read_text(encoding="utf-8"))

    def test_cli_requires_command(self) -> None:
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                main([])
        self.assertNotEqual(ctx.exception.code, 0)

    def test_add_list_delete_roundtrip(self) -> None:
        code, out = self.run_cli("add", "Deposition", "--start", "2025-03-01T10:00", "--type", "court")
        self.assertEqual(code, 0)
        self.assertIn("Added:", out)

        stored = self.stored()
        self.assertEqual(len(stored), 1)
        self.assertEqual(stored[0]["title"], "Deposition")
        self.assertEqual(stored[0]["end"], "2025-03-01T11:00:00")
        self.assertIsNone(stored[0]["reminder"])
        event_id = stored[0]["id"]

        code, out = self.run_cli("list", "--type", "court")
        self.assertEqual(code, 0)
        self.assertIn("Deposition", out)

        code, out = self.run_cli("list", "--type", "task")
        self.assertIn("No events.", out)

        code, out = self.run_cli("delete", str(event_id), "--yes")
        self.assertEqual(code, 0)
        self.assertEqual(self.stored(), [])

    def test_add_with_reminder(self) -> None:
        code, _ = self.run_cli(
            "add", "Hearing", "--start", "2025-03-01T10:00", "--remind", "2", "--unit", "hours", "--type", "court"
        )
        self.assertEqual(code, 0)
        self.assertEqual(self.stored()[0]["reminder"], "2025-03-01T08:00:00")

    def test_add_rejects_end_before_start(self) -> None:
        code, out = self.run_cli("add", "Backwards", "--start", "2025-03-01T10:00", "--end", "2025-03-01T09:00")
        self.assertEqual(code, 1)
        self.assertIn("End time cannot be before start time", out)
        self.assertFalse(self.data.exists())

    def test_edit_moves_event_and_keeps_duration(self) -> None:
        self.run_cli("add", "Call", "--start", "2025-03-01T10:00", "--end", "2025-03-01T10:30")
        event_id = self.stored()[0]["id"]

        code, out = self.run_cli("edit", str(event_id), "--start", "2025-03-02T15:00", "--title", "Call (moved)")
        self.assertEqual(code, 0)

        stored = self.stored()
        self.assertEqual(len(stored), 1)
        self.assertEqual(stored[0]["title"], "Call (moved)")
        self.assertEqual(stored[0]["start"], "2025-03-02T15:00:00")
        self.assertEqual(stored[0]["end"], "2025-03-02T15:30:00")

    def test_edit_moving_start_moves_reminder(self) -> None:
        self.run_cli("add", "Hearing", "--start", "2025-03-01T10:00", "--remind", "30")
        event_id = self.stored()[0]["id"]

        code, _ = self.run_cli("edit", str(event_id), "--start", "2025-03-02T15:00")
        self.assertEqual(code, 0)

        stored = self.stored()[0]
        self.assertEqual(stored["start"], "2025-03-02T15:00:00")
        self.assertEqual(stored["reminder"], "2025-03-02T14:30:00")

    def test_edit_start_with_new_reminder_uses_new_start(self) -> None:
        self.run_cli("add", "Hearing", "--start", "2025-03-01T10:00", "--remind", "30")
        event_id = self.stored()[0]["id"]

        self.run_cli("edit", str(event_id), "--start", "2025-03-02T15:00", "--remind", "1", "--unit", "days")
        self.assertEqual(self.stored()[0]["reminder"], "2025-03-01T15:00:00")

    def test_watch_reloads_when_file_changes(self) -> None:
        app = build_app(load_settings(self.data), sink=None)
        self.addCleanup(app.close)
        self.assertEqual(app.scheduler.pending(), [])

        start = datetime.now().replace(microsecond=0) + timedelta(hours=2)
        added = {
            "id": 1,
            "title": "Added elsewhere",
            "type": "court",
            "start": start.isoformat(),
            "end": (start + timedelta(hours=1)).isoformat(),
            "reminder": (start - timedelta(minutes=30)).isoformat(),
        }
        sleeps = []

        def fake_sleep(seconds: float) -> None:
            sleeps.append(seconds)
            if len(sleeps) == 1:
                self.data.write_text(json.dumps([added]), encoding="utf-8")
            else:
                raise KeyboardInterrupt

        args = argparse.Namespace(data=str(self.data), poll=0.0)
        with contextlib.redirect_stdout(io.StringIO()):
            with mock.patch("casecalendar.cli.time.sleep", side_effect=fake_sleep):
                code = _cmd_watch(args, app)

        self.assertEqual(code, 0)
        self.assertEqual(len(sleeps), 2)
        self.assertEqual([r.title for r in app.scheduler.pending()], ["Added elsewhere"])

    def test_edit_unknown_id(self) -> None:
        code, out = self.run_cli("edit", "12345", "--title", "x")
        self.assertEqual(code, 1)
        self.assertIn("No event with id 12345", out)

    def test_conflicts_and_export(self) -> None:
        self.run_cli("add", "A", "--start", "2025-03-01T10:00")
        self.run_cli("add", "B", "--start", "2025-03-01T10:30")

        code, out = self.run_cli("conflicts")
        self.assertEqual(code, 0)
        self.assertIn("Conflicts found: 1", out)

        ics = self.dir / "out.ics"
        code, out = self.run_cli("export", str(ics))
        self.assertEqual(code, 0)
        self.assertIn("Exported 2 events", out)
        self.assertTrue(ics.exists())

    def test_malformed_file_lists_nothing(self) -> None:
        self.data.write_text("not json", encoding="utf-8")
        code, out = self.run_cli("list")
        self.assertEqual(code, 0)
        self.assertIn("No events.", out)


if __name__ == "__main__":
    unittest.main()
