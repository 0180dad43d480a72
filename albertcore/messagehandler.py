"""Coloured log output for the terminal."""

from __future__ import annotations

import datetime
import enum
import logging
import sys
from typing import TextIO


class MessageLevel(enum.IntEnum):
    """Severity of a log message, using logging's numeric levels."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    CRITICAL = logging.CRITICAL
    FATAL = logging.CRITICAL + 10

    @classmethod
    def from_levelno(cls, levelno: int) -> MessageLevel:
        if levelno >= cls.FATAL:
            return cls.FATAL
        if levelno >= logging.ERROR:
            return cls.CRITICAL
        if levelno >= logging.WARNING:
            return cls.WARNING
        if levelno >= logging.INFO:
            return cls.INFO
        return cls.DEBUG


def format_message(
    level: MessageLevel,
    category: str,
    message: str,
    function: str = "",
    time: datetime.time | None = None,
) -> str:
    """Render one log line, without the trailing newline."""
    stamp = (time or datetime.datetime.now().time()).strftime("%H:%M:%S")
    if level is MessageLevel.DEBUG:
        return f"{stamp} \x1b[34m[debg:{category}]\x1b[0m {message}\x1b[0m"
    if level is MessageLevel.INFO:
        return f"{stamp} \x1b[32m[info:{category}]\x1b[0m {message}"
    if level is MessageLevel.WARNING:
        return f"{stamp} \x1b[33m[warn:{category}]\x1b[0m {message}\x1b[0m"
    if level is MessageLevel.CRITICAL:
        return f"{stamp} \x1b[31m[crit:{category}] {message}\x1b[0m"
    return (
        f"{stamp} \x1b[41;30;4m[fatal:{category}]\x1b[0;1m {message}"
        f"  --  [{function}]\x1b[0m"
    )


class ColorHandler(logging.Handler):
    """Writes coloured records to stdout; fatal ones to stderr, then exits."""

    def __init__(
        self,
        stream: TextIO | None = None,
        error_stream: TextIO | None = None,
        level: int = logging.NOTSET,
    ) -> None:
        super().__init__(level)
        self._stream = stream
        self._error_stream = error_stream

    def emit(self, record: logging.LogRecord) -> None:
        level = MessageLevel.from_levelno(record.levelno)
        line = format_message(
            level,
            record.name,
            record.getMessage(),
            record.funcName or "",
            datetime.datetime.fromtimestamp(record.created).time(),
        )
        if level is MessageLevel.FATAL:
            stream = self._error_stream or sys.stderr
            stream.write(line + "\n")
            stream.flush()
            raise SystemExit(1)
        stream = self._stream or sys.stdout
        stream.write(line + "\n")
        stream.flush()