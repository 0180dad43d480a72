"""History of query inputs with substring-filtered navigation."""

from __future__ import annotations

import logging
import os
from pathlib import Path

log = logging.getLogger("albert")


class InputHistory:
    """Past inputs, oldest first, stored one per line in a file."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        try:
            with self.path.open(encoding="utf-8") as f:
                self._lines = [line.rstrip("\n") for line in f]
        except OSError:
            log.warning("Opening history file failed: %s", self.path)
            self._lines = []
        self.reset_iterator()

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def add(self, text: str) -> None:
        """Append ``text`` (moving an existing copy to the end) and reset."""
        if text:
            self._lines = [line for line in self._lines if line != text]
            self._lines.append(text)
        self.reset_iterator()

    def next(self, substring: str = "") -> str | None:
        """Step to the next older entry containing ``substring``."""
        needle = substring.lower()
        for index in range(self._current - 1, -1, -1):
            line = self._lines[index]
            if needle in line.lower() and substring != line:
                self._current = index
                return line
        return None

    def prev(self, substring: str = "") -> str | None:
        """Step to the next newer entry containing ``substring``."""
        needle = substring.lower()
        for index in range(self._current + 1, len(self._lines)):
            line = self._lines[index]
            if needle in line.lower():
                self._current = index
                return line
        return None

    def reset_iterator(self) -> None:
        self._current = len(self._lines)

    def save(self) -> None:
        """Write the history to its file."""
        with self.path.open("w", encoding="utf-8") as f:
            f.writelines(f"{line}\n" for line in self._lines)

    def __enter__(self) -> InputHistory:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.save()
        except OSError:
            log.warning("Writing history file failed: %s", self.path)