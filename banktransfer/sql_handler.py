"""Relational database access over any DB-API 2.0 connection."""

from __future__ import annotations

import re
import sqlite3
import threading
from collections.abc import Callable, Sequence
from enum import IntEnum
from typing import Any

from .database_config import DatabaseConfig

_TOKENS = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|\$(\d+)")
_TX_DONE = "sql: transaction has already been committed or rolled back"


def _bind(query: str, args: Sequence[Any], paramstyle: str) -> tuple[str, Any]:
    """Rewrite ``$N`` placeholders into ``paramstyle`` and arrange the arguments."""
    positional: list[Any] = []
    named: dict[str, Any] = {}

    def replace(match: re.Match[str]) -> str:
        number = match.group(1)
        if number is None:
            return match.group(0)
        index = int(number)
        if not 1 <= index <= len(args):
            raise ValueError(f"no argument for placeholder ${index}")
        value = args[index - 1]
        if paramstyle == "qmark":
            positional.append(value)
            return "?"
        if paramstyle in ("format", "pyformat"):
            positional.append(value)
            return "%s"
        if paramstyle == "numeric":
            return f":{index}"
        if paramstyle == "named":
            named[f"p{index}"] = value
            return f":p{index}"
        raise ValueError(f"unsupported paramstyle {paramstyle!r}")

    text = _TOKENS.sub(replace, query)
    if paramstyle == "numeric":
        return text, tuple(args)
    if paramstyle == "named":
        return text, named
    return text, tuple(positional)


def _run(connection: Any, paramstyle: str, query: str, args: Sequence[Any]) -> Any:
    text, params = _bind(query, args, paramstyle)
    cursor = connection.cursor()
    cursor.execute(text, params)
    return cursor


class SQLHandler:
    """A relational database; plain statements are committed as they run."""

    def __init__(self, connect: Callable[[], Any], paramstyle: str = "qmark") -> None:
        self._connect = connect
        self.paramstyle = paramstyle
        self._connection = connect()
        self._lock = threading.RLock()

    def _perform(self, query: str, args: Sequence[Any], fetch: Callable[[Any], Any]) -> Any:
        with self._lock:
            try:
                cursor = _run(self._connection, self.paramstyle, query, args)
                result = fetch(cursor)
                cursor.close()
                self._connection.commit()
            except Exception:
                self._connection.rollback()
                raise
            return result

    def execute(self, query: str, *args: Any) -> None:
        self._perform(query, args, lambda cursor: None)

    def query(self, query: str, *args: Any) -> list[tuple[Any, ...]]:
        return self._perform(query, args, lambda c: [tuple(row) for row in c.fetchall()])

    def query_row(self, query: str, *args: Any) -> tuple[Any, ...] | None:
        def first(cursor: Any) -> tuple[Any, ...] | None:
            row = cursor.fetchone()
            return None if row is None else tuple(row)

        return self._perform(query, args, first)

    def begin(self) -> SQLTransaction:
        """Open a transaction on a connection of its own."""
        return SQLTransaction(self._connect(), self.paramstyle)

    def close(self) -> None:
        """Close the shared connection."""
        with self._lock:
            self._connection.close()


class SQLTransaction:
    """A transaction owning its connection, closed when committed or rolled back."""

    def __init__(self, connection: Any, paramstyle: str = "qmark") -> None:
        self._connection = connection
        self.paramstyle = paramstyle
        self._done = False

    def _check(self) -> None:
        if self._done:
            raise RuntimeError(_TX_DONE)

    def execute(self, query: str, *args: Any) -> None:
        self._check()
        _run(self._connection, self.paramstyle, query, args).close()

    def query(self, query: str, *args: Any) -> list[tuple[Any, ...]]:
        self._check()
        cursor = _run(self._connection, self.paramstyle, query, args)
        rows = [tuple(row) for row in cursor.fetchall()]
        cursor.close()
        return rows

    def query_row(self, query: str, *args: Any) -> tuple[Any, ...] | None:
        self._check()
        cursor = _run(self._connection, self.paramstyle, query, args)
        row = cursor.fetchone()
        cursor.close()
        return None if row is None else tuple(row)

    def _finish(self, action: Callable[[], None]) -> None:
        self._check()
        self._done = True
        try:
            action()
        finally:
            self._connection.close()

    def commit(self) -> None:
        self._finish(self._connection.commit)

    def rollback(self) -> None:
        self._finish(self._connection.rollback)


class SQLInstance(IntEnum):
    """Available relational database implementations."""

    POSTGRES = 0


class InvalidSQLInstanceError(ValueError):
    """Raised for an unknown relational database instance."""

    def __init__(self, message: str = "invalid sql db instance") -> None:
        super().__init__(message)


def _sqlite(config: DatabaseConfig) -> SQLHandler:
    timeout = config.timeout or 5.0

    def connect() -> sqlite3.Connection:
        return sqlite3.connect(config.database, timeout=timeout, check_same_thread=False)

    return SQLHandler(connect, sqlite3.paramstyle)


_DRIVERS: dict[str, Callable[[DatabaseConfig], SQLHandler]] = {
    "sqlite3": _sqlite,
    "sqlite": _sqlite,
}


def connect_sql(config: DatabaseConfig) -> SQLHandler:
    """Open the database named by ``config`` with its driver and check it answers."""
    opener = _DRIVERS.get(config.driver)
    if opener is None:
        raise ValueError(f'sql: unknown driver "{config.driver}" (forgotten import?)')
    handler = opener(config)
    try:
        handler.query_row("SELECT 1")
    except Exception:
        handler.close()
        raise
    return handler


def new_sql_database(instance: int, config: DatabaseConfig | None = None) -> SQLHandler:
    """Build the relational database selected by ``instance``."""
    try:
        SQLInstance(instance)
    except ValueError:
        raise InvalidSQLInstanceError() from None
    return connect_sql(config if config is not None else DatabaseConfig.postgres_from_env())