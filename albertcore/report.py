"""Diagnostic report about the app, the system and the environment."""

from __future__ import annotations

import locale
import os
import platform
import sys
from collections.abc import Sequence

_LABEL_WIDTH = 21


def format_line(label: str, value: str) -> str:
    """A report line with ``label`` right-aligned."""
    return f"{label:>{_LABEL_WIDTH}}: {value}"


def _os_info() -> tuple[str, str, str]:
    try:
        release = platform.freedesktop_os_release()
    except OSError:
        return platform.platform(), platform.system().lower(), platform.version()
    return (
        release.get("PRETTY_NAME", release.get("NAME", "")),
        release.get("ID", ""),
        release.get("VERSION_ID", ""),
    )


def report(version: str, arguments: Sequence[str]) -> list[str]:
    """Lines describing the app, the system and the environment."""
    os_name, os_type, os_version = _os_info()
    locale_name = locale.getlocale()[0] or "C"

    lines = [
        format_line("Albert version", version),
        format_line("Python version", platform.python_version()),
        format_line("Python implementation", platform.python_implementation()),
        format_line("Build architecture", platform.architecture()[0]),
        format_line("CPU architecture", platform.machine()),
        format_line("Kernel type", platform.system().lower()),
        format_line("Kernel version", platform.release()),
        format_line("OS", os_name),
        format_line("OS type", os_type),
        format_line("OS version", os_version),
        format_line("Language", locale_name.split("_")[0]),
        format_line("Locale", locale_name),
        format_line("Binary location", sys.executable),
        format_line("Working dir", os.getcwd()),
        format_line("Arguments", " ".join(arguments)),
        "ENVIRONMENT:",
    ]
    lines.extend(format_line(key, value) for key, value in sorted(os.environ.items()))
    return lines


def print_report(version: str, arguments: Sequence[str]) -> None:
    """Print the report to stdout, one line each."""
    for line in report(version, arguments):
        print(line)