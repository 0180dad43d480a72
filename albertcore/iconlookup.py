"""Icon lookup following the freedesktop icon theme specification."""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from .themefileparser import ThemeFileParser

ICON_EXTENSIONS = ("png", "svg", "xpm")


def _generic_data_locations() -> list[str]:
    data_home = os.environ.get("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    data_dirs = os.environ.get("XDG_DATA_DIRS") or "/usr/local/share:/usr/share"
    locations: list[str] = []
    for location in [data_home, *data_dirs.split(":")]:
        if location and location not in locations:
            locations.append(location)
    return locations


def default_icon_dirs() -> list[str]:
    """Existing icon base directories in lookup order."""
    dirs: list[str] = []
    home_icons = Path.home() / ".icons"
    if home_icons.exists():
        dirs.append(str(home_icons))
    for base in _generic_data_locations():
        path = Path(base) / "icons"
        if path.exists():
            dirs.append(str(path))
    for pixmaps in ("/usr/local/share/pixmaps", "/usr/share/pixmaps"):
        if Path(pixmaps).exists():
            dirs.append(pixmaps)
    return dirs


class IconLookup:
    """Resolves icon names to file paths, caching the results."""

    def __init__(self, icon_dirs: Iterable[str] | None = None, theme_name: str = "hicolor") -> None:
        self.icon_dirs = list(icon_dirs) if icon_dirs is not None else default_icon_dirs()
        self.theme_name = theme_name
        self._cache: dict[str, str | None] = {}

    def theme_icon_path(self, icon_name: str, theme_name: str | None = None) -> str | None:
        """Path of the icon ``icon_name``, or None if there is none."""
        if not icon_name:
            return None
        theme_name = theme_name or self.theme_name

        if icon_name.startswith("/"):
            return icon_name if os.path.exists(icon_name) else None

        for ext in ICON_EXTENSIONS:
            if icon_name.endswith("." + ext):
                icon_name = icon_name[:-4]

        if icon_name in self._cache:
            return self._cache[icon_name]

        checked: list[str] = []
        path = self._recursive_lookup(icon_name, theme_name, checked)
        if path is None and "hicolor" not in checked:
            path = self._recursive_lookup(icon_name, "hicolor", checked)
        if path is None:
            path = self._unsorted_lookup(icon_name)

        self._cache[icon_name] = path
        return path

    def lookup_theme_file(self, theme_name: str) -> str | None:
        """Path of the first ``index.theme`` of ``theme_name``."""
        for icon_dir in self.icon_dirs:
            index_file = os.path.join(icon_dir, theme_name, "index.theme")
            if os.path.exists(index_file):
                return index_file
        return None

    def _recursive_lookup(self, icon_name: str, theme_name: str, checked: list[str]) -> str | None:
        if theme_name in checked:
            return None
        checked.append(theme_name)

        theme_file = self.lookup_theme_file(theme_name)
        if theme_file is None:
            return None

        path = self._theme_lookup(icon_name, theme_file)
        if path is not None:
            return path

        for parent in ThemeFileParser(theme_file).inherits():
            path = self._recursive_lookup(icon_name, parent, checked)
            if path is not None:
                return path
        return None

    def _theme_lookup(self, icon_name: str, theme_file: str) -> str | None:
        parser = ThemeFileParser(theme_file)
        theme_dir_name = Path(theme_file).parent.name
        subdirs = sorted(parser.directories(), key=parser.size, reverse=True)
        for subdir in subdirs:
            for icon_dir in self.icon_dirs:
                for ext in ICON_EXTENSIONS:
                    filename = os.path.join(icon_dir, theme_dir_name, subdir, f"{icon_name}.{ext}")
                    if os.path.exists(filename):
                        return filename
        return None

    def _unsorted_lookup(self, icon_name: str) -> str | None:
        for icon_dir in self.icon_dirs:
            for ext in ICON_EXTENSIONS:
                filename = os.path.join(icon_dir, f"{icon_name}.{ext}")
                if os.path.exists(filename):
                    return filename
        return None