"""Turns termination signals into an orderly quit."""

from __future__ import annotations

import logging
import signal
from collections.abc import Callable, Iterable
from typing import Any, ClassVar

log = logging.getLogger("albert")

HANDLED_SIGNALS: tuple[int, ...] = tuple(
    getattr(signal, name)
    for name in ("SIGTERM", "SIGINT", "SIGHUP", "SIGPIPE")
    if hasattr(signal, name)
)


def _exit(signum: int) -> None:
    raise SystemExit(0)


class SignalHandler:
    """Calls ``on_signal`` once for each handled signal, then resets it.

    Only one handler may be installed at a time. Each signal falls back to
    its default disposition after it was received once; :meth:`restore`
    puts back the handlers that were active before :meth:`install`.
    """

    _active: ClassVar[SignalHandler | None] = None

    def __init__(
        self,
        on_signal: Callable[[int], None] | None = None,
        signals: Iterable[int] = HANDLED_SIGNALS,
    ) -> None:
        self.on_signal = on_signal or _exit
        self.signals = tuple(signals)
        self.received: list[int] = []
        self._previous: dict[int, Any] = {}

    def _handle(self, signum: int, frame: Any) -> None:
        signal.signal(signum, signal.SIG_DFL)
        self.received.append(signum)
        log.info("Received signal %d. Quit.", signum)
        self.on_signal(signum)

    def install(self) -> None:
        """Install the handler on all configured signals."""
        if SignalHandler._active is not None:
            raise RuntimeError("Signal handler has to be unique.")
        try:
            for sig in self.signals:
                self._previous[sig] = signal.signal(sig, self._handle)
        except (ValueError, OSError) as e:
            self._put_back()
            raise RuntimeError(f"Failed installing signal handler: {e}") from e
        SignalHandler._active = self

    def _put_back(self) -> None:
        for sig, previous in self._previous.items():
            signal.signal(sig, previous if previous is not None else signal.SIG_DFL)
        self._previous.clear()

    def restore(self) -> None:
        """Restore the previous signal handlers."""
        if SignalHandler._active is not self:
            return
        self._put_back()
        SignalHandler._active = None

    def __enter__(self) -> SignalHandler:
        self.install()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore()