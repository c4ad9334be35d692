"""Structured loggers that write one JSON object per line."""

from __future__ import annotations

import copy
import json
import logging
import sys
import time
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Any, Mapping, NoReturn, TextIO


class Logger(ABC):
    """A logger that carries structured fields."""

    @abstractmethod
    def info(self, message: str, *args: Any) -> None:
        """Log at info level; ``args`` fill ``%`` placeholders."""

    @abstractmethod
    def warning(self, message: str, *args: Any) -> None:
        """Log at warning level."""

    @abstractmethod
    def error(self, message: str, *args: Any) -> None:
        """Log at error level."""

    @abstractmethod
    def fatal(self, *args: Any) -> NoReturn:
        """Log at fatal level and stop the program with status 1."""

    @abstractmethod
    def with_fields(self, fields: Mapping[str, Any]) -> Logger:
        """Return a logger that adds ``fields`` to every entry."""

    @abstractmethod
    def with_error(self, error: BaseException) -> Logger:
        """Return a logger that records ``error`` on every entry."""


def _field_items(record: logging.LogRecord) -> list[tuple[str, Any]]:
    return [(str(key), value) for key, value in getattr(record, "fields", {}).items()]


class JsonFormatter(logging.Formatter):
    """Render records as sorted JSON with ``level``, ``msg`` and ``time`` keys."""

    TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
    _RESERVED = frozenset({"level", "msg", "time"})
    _LEVELS = {
        logging.DEBUG: "debug",
        logging.INFO: "info",
        logging.WARNING: "warning",
        logging.ERROR: "error",
        logging.CRITICAL: "fatal",
    }

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {}
        for key, value in _field_items(record):
            entry[f"fields.{key}" if key in self._RESERVED else key] = value
        entry["level"] = self._LEVELS.get(record.levelno, record.levelname.lower())
        entry["msg"] = record.getMessage()
        entry["time"] = time.strftime(
            self.TIMESTAMP_FORMAT, self.converter(record.created)
        )
        return json.dumps(entry, sort_keys=True, default=str)


class _KeyValueFormatter(logging.Formatter):
    """Render records as JSON with ``level``, ``ts`` and ``msg`` first, then fields."""

    _LEVELS = {
        logging.DEBUG: "debug",
        logging.INFO: "info",
        logging.WARNING: "warn",
        logging.ERROR: "error",
        logging.CRITICAL: "fatal",
    }

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "level": self._LEVELS.get(record.levelno, record.levelname.lower()),
            "ts": record.created,
            "msg": record.getMessage(),
        }
        for key, value in _field_items(record):
            entry.setdefault(key, value)
        return json.dumps(entry, default=str)


class _StreamLogger(Logger):
    """Shared plumbing: a private stdlib logger writing to one stream."""

    _formatter_class: type[logging.Formatter] = logging.Formatter

    def __init__(self, stream: TextIO | None = None) -> None:
        handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
        handler.setFormatter(self._formatter_class())
        self._target = logging.Logger(f"{__name__}.{type(self).__name__}", logging.INFO)
        self._target.addHandler(handler)
        self._target.propagate = False
        self._fields: dict[str, Any] = {}

    def _log(self, level: int, message: str, args: tuple[Any, ...]) -> None:
        self._target.log(level, message, *args, extra={"fields": dict(self._fields)})

    def _fatal(self, args: tuple[Any, ...]) -> NoReturn:
        self._log(logging.CRITICAL, " ".join(str(arg) for arg in args), ())
        raise SystemExit(1)

    def _child(self, fields: Mapping[str, Any]) -> Logger:
        child = copy.copy(self)
        child._fields = {**self._fields, **fields}
        return child


class JsonLogger(_StreamLogger):
    """Logger writing sorted JSON entries stamped with a local date and time."""

    _formatter_class = JsonFormatter

    def info(self, message: str, *args: Any) -> None:
        self._log(logging.INFO, message, args)

    def warning(self, message: str, *args: Any) -> None:
        self._log(logging.WARNING, message, args)

    def error(self, message: str, *args: Any) -> None:
        self._log(logging.ERROR, message, args)

    def fatal(self, *args: Any) -> NoReturn:
        self._fatal(args)

    def with_fields(self, fields: Mapping[str, Any]) -> Logger:
        return self._child(fields)

    def with_error(self, error: BaseException) -> Logger:
        return self._child({"error": str(error)})


class KeyValueLogger(_StreamLogger):
    """Logger writing JSON entries stamped with epoch seconds, fields in order of addition."""

    _formatter_class = _KeyValueFormatter

    def info(self, message: str, *args: Any) -> None:
        self._log(logging.INFO, message, args)

    def warning(self, message: str, *args: Any) -> None:
        self._log(logging.WARNING, message, args)

    def error(self, message: str, *args: Any) -> None:
        self._log(logging.ERROR, message, args)

    def fatal(self, *args: Any) -> NoReturn:
        self._fatal(args)

    def with_fields(self, fields: Mapping[str, Any]) -> Logger:
        return self._child(fields)

    def with_error(self, error: BaseException) -> Logger:
        return self._child({"error": str(error)})


class LoggerInstance(IntEnum):
    """Available logger implementations."""

    KEY_VALUE = 0
    JSON = 1


class InvalidLoggerInstanceError(ValueError):
    """Raised for an unknown logger instance."""

    def __init__(self, message: str = "invalid log instance") -> None:
        super().__init__(message)


def new_logger(instance: int) -> Logger:
    """Build the logger selected by ``instance``, writing to standard error."""
    try:
        kind = LoggerInstance(instance)
    except ValueError:
        raise InvalidLoggerInstanceError() from None
    if kind is LoggerInstance.KEY_VALUE:
        return KeyValueLogger()
    return JsonLogger()