"""Severity-filtered logging to a file and to standard error."""

from __future__ import annotations

import sys
import threading
from datetime import datetime
from enum import IntEnum
from typing import Any


class LoggerError(Exception):
    """Raised when the logger cannot be configured."""


class LogLevel(IntEnum):
    """Message severities, in increasing order."""

    DEBUG = 1
    INFO = 2
    WARNING = 3
    ERROR = 4
    FATAL = 5

    @property
    def label(self) -> str:
        return self.name.lower()


def parse_log_level(text: str) -> LogLevel:
    """Return the level named by ``text``, ignoring case."""
    try:
        return LogLevel[text.upper()]
    except KeyError:
        raise LoggerError(f"Invalid log level: {text}") from None


class Logger:
    """Writes ``[timestamp] [severity] message`` lines to a file and stderr."""

    def __init__(self, config: Any) -> None:
        if config.log_file is None:
            raise LoggerError("Log file path not specified in config")
        if config.log_level is None:
            raise LoggerError("Log level not specified in config")

        self.min_level = parse_log_level(config.log_level)
        self._lock = threading.Lock()
        self._file = open(config.log_file, "a", encoding="utf-8")
        self.info("Logger initialized")

    def __enter__(self) -> Logger:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def debug(self, message: str) -> None:
        self.log(LogLevel.DEBUG, message)

    def info(self, message: str) -> None:
        self.log(LogLevel.INFO, message)

    def warning(self, message: str) -> None:
        self.log(LogLevel.WARNING, message)

    def error(self, message: str) -> None:
        self.log(LogLevel.ERROR, message)

    def fatal(self, message: str) -> None:
        self.log(LogLevel.FATAL, message)

    def log(self, level: LogLevel, message: str) -> None:
        """Write ``message`` if ``level`` is at or above the minimum level."""
        if level < self.min_level:
            return
        stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")
        line = f"[{stamp}] [{level.label}] {message}\n"
        with self._lock:
            if not self._file.closed:
                self._file.write(line)
                self._file.flush()
            sys.stderr.write(line)

    def close(self) -> None:
        """Log the shutdown and close the log file."""
        if self._file.closed:
            return
        self.info("Logger destroyed")
        with self._lock:
            self._file.close()