"""Anonymous usage reports sent at most every few hours."""

from __future__ import annotations

import hashlib
import json
import logging
import platform
import threading
import time
import urllib.error
import urllib.request
import uuid
from collections.abc import Callable, MutableMapping
from pathlib import Path
from typing import Any

log = logging.getLogger("albert")

CFG_LAST_REPORT = "last_report"
REPORT_INTERVAL = 10800  # three hours, in seconds
CHECK_INTERVAL = 60.0

Sender = Callable[[dict[str, Any]], bool]


def _machine_id() -> bytes:
    for candidate in ("/etc/machine-id", "/var/lib/dbus/machine-id"):
        try:
            data = Path(candidate).read_bytes().strip()
        except OSError:
            continue
        if data:
            return data
    return uuid.getnode().to_bytes(6, "big")


def _pretty_os_name() -> str:
    try:
        release = platform.freedesktop_os_release()
    except OSError:
        return platform.platform()
    return release.get("PRETTY_NAME", release.get("NAME", platform.platform()))


def _http_put(url: str, report: dict[str, Any]) -> bool:
    body = json.dumps(report, separators=(",", ":")).encode("utf-8")
    request = urllib.request.Request(
        url, data=body, method="PUT", headers={"Content-Type": "application/json"}
    )
    try:
        with urllib.request.urlopen(request, timeout=10) as response:
            return 200 <= response.status < 300
    except (urllib.error.URLError, OSError):
        return False


class Telemetry:
    """Builds the anonymous report and sends it when one is due.

    Reports go to ``send`` if given, else are PUT to ``url``. Without
    either nothing is sent. The time of the last successful report is kept
    in ``state``.
    """

    def __init__(
        self,
        state: MutableMapping[str, Any],
        version: str = "",
        url: str | None = None,
        send: Sender | None = None,
        machine_id: bytes | None = None,
        os_name: str | None = None,
        clock: Callable[[], float] = time.time,
        check_interval: float = CHECK_INTERVAL,
    ) -> None:
        self.state = state
        self.version = version
        self.url = url
        self._send = send
        self._machine_id = machine_id if machine_id is not None else _machine_id()
        self._os_name = os_name if os_name is not None else _pretty_os_name()
        self._clock = clock
        self.check_interval = check_interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def build_report(self) -> dict[str, Any]:
        """The data that is sent."""
        return {
            "report": 1,
            "version": self.version,
            "os": self._os_name,
            "id": hashlib.sha1(self._machine_id).hexdigest()[:12],
        }

    def build_report_string(self) -> str:
        """The report as indented JSON, for display."""
        return json.dumps(self.build_report(), indent=4) + "\n"

    def report_due(self, now: float | None = None) -> bool:
        """Whether the last report is older than the reporting interval."""
        now = self._clock() if now is None else now
        try:
            last = int(self.state.get(CFG_LAST_REPORT, 0))
        except (TypeError, ValueError):
            last = 0
        return last < now - REPORT_INTERVAL

    def _deliver(self, report: dict[str, Any]) -> bool:
        if self._send is not None:
            return bool(self._send(report))
        if self.url:
            return _http_put(self.url, report)
        return False

    def try_send_report(self) -> bool:
        """Send a report if one is due. Returns whether one was sent."""
        now = self._clock()
        if not self.report_due(now):
            return False
        if not self._deliver(self.build_report()):
            return False
        log.debug("Report sent.")
        self.state[CFG_LAST_REPORT] = int(now)
        return True

    def _loop(self) -> None:
        while not self._stop.wait(self.check_interval):
            try:
                self.try_send_report()
            except Exception:
                log.exception("Sending telemetry report failed")

    def start(self) -> None:
        """Check for due reports periodically in the background."""
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="telemetry", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop the periodic checks."""
        if self._thread is None:
            return
        self._stop.set()
        self._thread.join()
        self._thread = None