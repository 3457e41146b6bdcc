"""
Persistent storage for the calendar events.

The whole collection is the unit of persistence: every write replaces the
stored JSON array. Storage is hidden behind a small repository interface
with an explicit lifecycle:

    open() -> read_all() / write_all(payload) -> close()

JsonFileRepository writes data/events.json (or a configured path).
MemoryRepository keeps the serialized text in memory for tests.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional, Protocol

from casecalendar.errors import StorageError

logger = logging.getLogger(__name__)


class EventRepository(Protocol):
    def open(self) -> None: ...

    def read_all(self) -> Optional[Any]: ...

    def write_all(self, payload: list[dict[str, Any]]) -> None: ...

    def close(self) -> None: ...


def _dumps(payload: list[dict[str, Any]]) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


class JsonFileRepository:
    """
    Stores the collection as one JSON array in a file.

    read_all() returns None when nothing was stored yet. Invalid JSON is
    not handled here; json.JSONDecodeError propagates to the caller.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._open = False

    def open(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._open = True
        logger.debug("Opened event file %s", self.path)

    def read_all(self) -> Optional[Any]:
        self._require_open()
        if not self.path.exists():
            return None
        return json.loads(self.path.read_text(encoding="utf-8"))

    def write_all(self, payload: list[dict[str, Any]]) -> None:
        self._require_open()
        # write to a temp file first so a crash never leaves half a file behind
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(_dumps(payload), encoding="utf-8")
        os.replace(tmp, self.path)
        logger.debug("Wrote %d events to %s", len(payload), self.path)

    def close(self) -> None:
        self._open = False

    def _require_open(self) -> None:
        if not self._open:
            raise StorageError(f"Repository for {self.path} is not open")


class MemoryRepository:
    """
    In-memory stand-in for JsonFileRepository.

    Keeps the JSON text (not the list) so reads go through the same
    serialize/deserialize path as the file repository.
    """

    def __init__(self, text: Optional[str] = None) -> None:
        self.text = text
        self.writes = 0
        self._open = False

    def open(self) -> None:
        self._open = True

    def read_all(self) -> Optional[Any]:
        self._require_open()
        if self.text is None:
            return None
        return json.loads(self.text)

    def write_all(self, payload: list[dict[str, Any]]) -> None:
        self._require_open()
        self.text = _dumps(payload)
        self.writes += 1

    def close(self) -> None:
        self._open = False

    def _require_open(self) -> None:
        if not self._open:
            raise StorageError("Memory repository is not open")
