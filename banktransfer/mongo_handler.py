"""Document database access through a MongoDB client."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from contextvars import ContextVar
from enum import IntEnum
from typing import Any, TypeVar

from pymongo import MongoClient

from .database_config import DatabaseConfig

T = TypeVar("T")

_current_session: ContextVar[Any] = ContextVar("banktransfer_mongo_session", default=None)


class MongoSession:
    """A client session; operations run inside its transactions join them."""

    def __init__(self, session: Any) -> None:
        self._session = session

    def with_transaction(self, fn: Callable[[], T]) -> T:
        def callback(session: Any) -> T:
            token = _current_session.set(session)
            try:
                return fn()
            finally:
                _current_session.reset(token)

        return self._session.with_transaction(callback)

    def end_session(self) -> None:
        self._session.end_session()


class MongoHandler:
    """Store and fetch documents in one database of a MongoDB client."""

    def __init__(self, client: Any, database: Any) -> None:
        self.client = client
        self.database = database

    def store(self, collection: str, document: Mapping[str, Any]) -> None:
        self.database[collection].insert_one(dict(document), session=_current_session.get())

    def update(
        self, collection: str, query: Mapping[str, Any], update: Mapping[str, Any]
    ) -> None:
        self.database[collection].update_one(
            dict(query), dict(update), session=_current_session.get()
        )

    def find_all(self, collection: str, query: Mapping[str, Any]) -> list[dict[str, Any]]:
        cursor = self.database[collection].find(dict(query), session=_current_session.get())
        return [dict(document) for document in cursor]

    def find_one(
        self,
        collection: str,
        query: Mapping[str, Any],
        projection: Mapping[str, Any] | None,
    ) -> dict[str, Any] | None:
        document = self.database[collection].find_one(
            dict(query),
            projection=dict(projection) if projection is not None else None,
            session=_current_session.get(),
        )
        return None if document is None else dict(document)

    def start_session(self) -> MongoSession:
        return MongoSession(self.client.start_session())

    def close(self) -> None:
        """Close the client."""
        self.client.close()


class NoSQLInstance(IntEnum):
    """Available document database implementations."""

    MONGODB = 0


class InvalidNoSQLInstanceError(ValueError):
    """Raised for an unknown document database instance."""

    def __init__(self, message: str = "invalid nosql db instance") -> None:
        super().__init__(message)


def connect_mongodb(config: DatabaseConfig) -> MongoHandler:
    """Connect to the database named by ``config`` and check it answers."""
    options: dict[str, Any] = {}
    if config.timeout:
        options["serverSelectionTimeoutMS"] = int(config.timeout * 1000)
    client = MongoClient(config.mongodb_uri(), **options)
    try:
        client.admin.command("ping")
    except Exception:
        client.close()
        raise
    return MongoHandler(client, client[config.database])


def new_nosql_database(instance: int, config: DatabaseConfig | None = None) -> MongoHandler:
    """Build the document database selected by ``instance``."""
    try:
        NoSQLInstance(instance)
    except ValueError:
        raise InvalidNoSQLInstanceError() from None
    return connect_mongodb(config if config is not None else DatabaseConfig.mongodb_from_env())