"""Reader for freedesktop icon theme index files."""

from __future__ import annotations

import configparser
import logging
import os

log = logging.getLogger("albert")

_THEME = "Icon Theme"


def _to_list(value: str | None) -> list[str]:
    if value is None:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _to_int(value: str | None) -> int:
    try:
        return int(value.strip()) if value is not None else 0
    except ValueError:
        return 0


def _to_bool(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() not in ("", "0", "false")


class ThemeFileParser:
    """Values of an ``index.theme`` file. A missing file reads as empty."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = os.fspath(path)
        self._ini = configparser.ConfigParser(interpolation=None, strict=False)
        self._ini.optionxform = str  # keys are case sensitive
        try:
            self._ini.read(self._path, encoding="utf-8")
        except (configparser.Error, UnicodeDecodeError) as e:
            log.warning("Failed parsing theme file %s: %s", self._path, e)

    def _get(self, section: str, key: str) -> str | None:
        return self._ini.get(section, key, fallback=None)

    def _has(self, section: str, key: str) -> bool:
        return self._ini.has_option(section, key)

    @property
    def path(self) -> str:
        return self._path

    @property
    def name(self) -> str:
        return self._get(_THEME, "Name") or ""

    @property
    def comment(self) -> str:
        return self._get(_THEME, "Comment") or ""

    @property
    def hidden(self) -> bool:
        return _to_bool(self._get(_THEME, "Hidden"))

    def inherits(self) -> list[str]:
        """Parent themes as listed in the file."""
        return _to_list(self._get(_THEME, "Inherits"))

    def directories(self) -> list[str]:
        return _to_list(self._get(_THEME, "Directories"))

    def size(self, directory: str) -> int:
        return _to_int(self._get(directory, "Size"))

    def context(self, directory: str) -> str:
        return self._get(directory, "Context") or ""

    def type(self, directory: str) -> str:
        if self._has(directory, "Type"):
            return self._get(directory, "Type") or ""
        return "Threshold"

    def max_size(self, directory: str) -> int:
        if self._has(directory, "MaxSize"):
            return _to_int(self._get(directory, "MaxSize"))
        return self.size(directory)

    def min_size(self, directory: str) -> int:
        if self._has(directory, "MinSize"):
            return _to_int(self._get(directory, "MinSize"))
        return self.size(directory)

    def threshold(self, directory: str) -> int:
        if self._has(directory, "Threshold"):
            return _to_int(self._get(directory, "Threshold"))
        return 2