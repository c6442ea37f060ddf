"""Persistent command history helpers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from prompt_toolkit.history import InMemoryHistory

LOGGER = logging.getLogger("bofh.history")

class HistoryStore:
    """File-backed history list with size limits.

    Entries are appended one line at a time; the backing file is only open
    for the duration of a single write.  ``close`` compacts the file down to
    ``limit`` entries.  I/O failures are logged and otherwise ignored.
    """

    def __init__(self, path: Optional[str], *, limit: int = 1000) -> None:
        self.limit = max(1, int(limit or 1))
        self.path = Path(path).expanduser() if path else None
        self.entries: List[str] = []
        self._closed = False
        if self.path:
            self._load()

    def __enter__(self) -> "HistoryStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _load(self) -> None:
        if not self.path:
            return
        try:
            data = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.warning("could not read history %s: %s", self.path, exc)
            return
        lines = [line.strip() for line in data.splitlines() if line.strip()]
        self.entries = lines[-self.limit :]

    def append(self, line: str) -> bool:
        """Record *line*; returns False for blanks and consecutive repeats."""
        text = line.strip()
        if not text:
            return False
        if self.entries and self.entries[-1] == text:
            return False
        self.entries.append(text)
        if len(self.entries) > self.limit:
            self.entries = self.entries[-self.limit :]
        self._write(text)
        return True

    def extend(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.append(line)

    def _write(self, text: str) -> None:
        if not self.path or self._closed:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(text + "\n")
                handle.flush()
        except OSError as exc:
            LOGGER.warning("could not append to history %s: %s", self.path, exc)

    def load_recent(self, limit: Optional[int] = None) -> List[str]:
        if limit is None:
            return list(self.entries)
        if limit <= 0:
            return []
        return self.entries[-limit:]

    def snapshot(self) -> List[str]:
        return list(self.entries)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if not self.path:
            return
        try:
            if not self.path.exists():
                return
            on_disk = self.path.read_text(encoding="utf-8").splitlines()
            if len(on_disk) > self.limit:
                self.path.write_text("\n".join(self.entries) + "\n", encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.warning("could not compact history %s: %s", self.path, exc)


class SessionHistory(InMemoryHistory):
    """Line-editor history that writes accepted lines through to a store.

    The line editor appends every accepted buffer verbatim. Here the text is
    stripped once and the same result goes to both the in-memory list and
    the ``HistoryStore``; blanks and consecutive repeats are skipped.
    """

    def __init__(self, store: Optional[HistoryStore] = None) -> None:
        super().__init__()
        self.store = store
        if store is not None:
            for entry in store.snapshot():
                super().append_string(entry)

    def append_string(self, string: str) -> None:
        text = string.strip()
        if not text:
            return
        if self.get_strings()[-1:] == [text]:
            return
        super().append_string(text)
        if self.store is not None:
            self.store.append(text)


__all__ = ["HistoryStore", "SessionHistory"]
