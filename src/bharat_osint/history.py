"""Session collaborators: the recently-used identifier list and the activity log."""
from __future__ import annotations

import datetime
import json
import logging
from pathlib import Path
from typing import Callable, List, Optional

LOGGER = logging.getLogger(__name__)

RECENT_SEARCHES_KEY = "bharat_osint_recent_searches_v2"
MAX_RECENT_SEARCHES = 5
ACTIVITY_LOG_SIZE = 10
READY_MESSAGE = "System Ready. Waiting for target acquisition..."


class RecentStore:
    """Most-recent-first, deduplicated, capped list of normalised identifiers.

    The list is persisted as JSON under :data:`RECENT_SEARCHES_KEY` inside
    *path*; other keys in that file are left alone.  Missing or corrupt data
    reads as an empty list.  With ``path=None`` nothing touches the disk.
    """

    def __init__(self, path: Optional[str | Path] = None, *, limit: int = MAX_RECENT_SEARCHES) -> None:
        self._path = Path(path).expanduser() if path else None
        self._limit = limit
        self._entries: List[str] = self._load()

    @property
    def entries(self) -> List[str]:
        return list(self._entries)

    def add(self, identifier: str) -> List[str]:
        """Move *identifier* to the front, dropping the oldest beyond the cap."""
        remaining = [entry for entry in self._entries if entry != identifier]
        self._entries = [identifier, *remaining][: self._limit]
        self._save()
        return self.entries

    def clear(self) -> None:
        self._entries = []
        self._save()

    # ------------------------------------------------------------------
    def _read_document(self) -> dict:
        if self._path is None or not self._path.exists():
            return {}
        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            LOGGER.warning("Ignoring unreadable recent-search file %s: %s", self._path, exc)
            return {}
        return document if isinstance(document, dict) else {}

    def _load(self) -> List[str]:
        stored = self._read_document().get(RECENT_SEARCHES_KEY)
        if not isinstance(stored, list):
            return []
        unique = dict.fromkeys(entry for entry in stored if isinstance(entry, str))
        return list(unique)[: self._limit]

    def _save(self) -> None:
        if self._path is None:
            return
        document = self._read_document()
        document[RECENT_SEARCHES_KEY] = self._entries
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        except OSError as exc:  # persistence must never break a run
            LOGGER.warning("Failed to persist recent searches to %s: %s", self._path, exc)


def _wall_clock() -> str:
    return datetime.datetime.now().strftime("%H:%M:%S")


class ActivityLog:
    """Append-only, most-recent-first, capped sequence of timestamped lines."""

    def __init__(
        self,
        *,
        limit: int = ACTIVITY_LOG_SIZE,
        clock: Callable[[], str] = _wall_clock,
    ) -> None:
        self._limit = limit
        self._clock = clock
        self._lines: List[str] = [READY_MESSAGE]

    @property
    def lines(self) -> List[str]:
        return list(self._lines)

    def add(self, message: str) -> str:
        line = f"[{self._clock()}] {message}"
        self._lines = [line, *self._lines][: self._limit]
        LOGGER.info(message)
        return line
