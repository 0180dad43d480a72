"""Local socket server that runs named commands for other processes."""

from __future__ import annotations

import contextlib
import logging
import os
import select
import socket
import threading
from collections.abc import Callable, Mapping

log = logging.getLogger("albert")

Command = Callable[[str], str]

SEND_CONNECT_TIMEOUT = 0.5
SEND_READ_TIMEOUT = 1.0


class InstanceRunningError(RuntimeError):
    """Another instance already listens on the socket."""


class RPCServer:
    """Listens on a Unix socket and answers ``<command> <params>`` messages."""

    def __init__(
        self,
        socket_path: str | os.PathLike[str],
        read_timeout: float = 0.05,
        connect_timeout: float = 1.0,
    ) -> None:
        self.socket_path = os.fspath(socket_path)
        self.read_timeout = read_timeout
        self._commands: dict[str, Command] = {}
        self.set_commands({})
        self._closed = threading.Event()

        log.debug("Checking for a running instance…")
        self._check_running_instance(connect_timeout)

        log.debug("Creating local server %s", self.socket_path)
        self._socket = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            self._socket.bind(self.socket_path)
            self._socket.listen()
        except OSError:
            self._socket.close()
            raise

    def _check_running_instance(self, timeout: float) -> None:
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as probe:
            probe.settimeout(timeout)
            try:
                probe.connect(self.socket_path)
            except FileNotFoundError:
                return
            except ConnectionRefusedError:
                log.critical(
                    "Albert has not been terminated properly. "
                    "Please check your logs and report an issue."
                )
                with contextlib.suppress(FileNotFoundError):
                    os.unlink(self.socket_path)
                return
        raise InstanceRunningError("There is another instance of albert running.")

    def set_commands(self, commands: Mapping[str, Command]) -> None:
        """Replace the commands. A ``commands`` command listing them is added."""
        self._commands = dict(commands)
        self._commands.setdefault("commands", lambda _param: "\n".join(sorted(self._commands)))

    def handle_message(self, message: str) -> str:
        """Run the command named by the first word of ``message``."""
        message = message.lstrip()
        op, _, param = message.partition(" ")
        command = self._commands.get(op)
        if command is None:
            log.info("Received invalid RPC command: %s", message)
            lines = [f"Invalid RPC command: '{message}'. Use these", *sorted(self._commands)]
            return "\n".join(lines)
        return command(param)

    def _handle_connection(self, conn: socket.socket) -> None:
        with conn:
            conn.settimeout(self.read_timeout)
            try:
                data = conn.recv(65536)
            except TimeoutError:
                data = b""
            if not data:
                return
            message = data.decode("utf-8", errors="replace")
            log.debug("Received message: %s", message)
            try:
                reply = self.handle_message(message)
            except Exception:
                log.exception("RPC command failed: %s", message)
                return
            with contextlib.suppress(OSError):
                conn.sendall(reply.encode("utf-8"))

    def serve_forever(self) -> None:
        """Answer connections until :meth:`close` is called."""
        while not self._closed.is_set():
            try:
                readable, _, _ = select.select([self._socket], [], [], 0.1)
            except (OSError, ValueError):
                break
            if not readable:
                continue
            try:
                conn, _ = self._socket.accept()
            except OSError:
                if self._closed.is_set():
                    break
                continue
            self._handle_connection(conn)

    def close(self) -> None:
        """Stop serving and remove the socket file."""
        if self._closed.is_set():
            return
        log.debug("Closing local RPC server.")
        self._closed.set()
        self._socket.close()
        with contextlib.suppress(FileNotFoundError):
            os.unlink(self.socket_path)

    def __enter__(self) -> RPCServer:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def send_message(message: str, socket_path: str | os.PathLike[str]) -> str:
    """Send ``message`` to a running instance and return its reply.

    Raises ConnectionError if no instance answers the connection and
    TimeoutError if no reply arrives in time.
    """
    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
        sock.settimeout(SEND_CONNECT_TIMEOUT)
        try:
            sock.connect(os.fspath(socket_path))
        except OSError as e:
            raise ConnectionError("Failed to connect to albert.") from e
        sock.sendall(message.encode("utf-8"))
        sock.settimeout(SEND_READ_TIMEOUT)
        chunks = []
        try:
            while chunk := sock.recv(65536):
                chunks.append(chunk)
        except TimeoutError:
            if not chunks:
                raise TimeoutError("Read timed out. Albert busy?") from None
        return b"".join(chunks).decode("utf-8", errors="replace")