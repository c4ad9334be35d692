"""Account and transfer storage on a document database."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any, Protocol, TypeVar

from .domain import ZERO_TIME, Account, AccountNotFoundError, Money, Transfer
from .sql_repository import RepositoryError

T = TypeVar("T")

Document = dict[str, Any]


class Session(Protocol):
    """A client session able to run transactions."""

    def with_transaction(self, fn: Callable[[], T]) -> T:
        """Run ``fn`` in a transaction and return its result."""

    def end_session(self) -> None:
        """Release the session."""


class NoSQLDatabase(Protocol):
    """A document database; failures are raised as exceptions."""

    def store(self, collection: str, document: Mapping[str, Any]) -> None:
        """Insert one document."""

    def update(
        self, collection: str, query: Mapping[str, Any], update: Mapping[str, Any]
    ) -> None:
        """Apply ``update`` to the first document matching ``query``."""

    def find_all(self, collection: str, query: Mapping[str, Any]) -> list[Document]:
        """Return every document matching ``query``."""

    def find_one(
        self,
        collection: str,
        query: Mapping[str, Any],
        projection: Mapping[str, Any] | None,
    ) -> Document | None:
        """Return the first document matching ``query``, or None when there is none."""

    def start_session(self) -> Session:
        """Open a client session."""


def _moment(value: Any) -> datetime:
    if not isinstance(value, datetime):
        return ZERO_TIME
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _account(document: Mapping[str, Any]) -> Account:
    return Account(
        id=str(document.get("id", "")),
        name=str(document.get("name", "")),
        cpf=str(document.get("cpf", "")),
        balance=Money(document.get("balance", 0)),
        created_at=_moment(document.get("created_at")),
    )


def _transfer(document: Mapping[str, Any]) -> Transfer:
    return Transfer(
        id=str(document.get("id", "")),
        account_origin_id=str(document.get("account_origin_id", "")),
        account_destination_id=str(document.get("account_destination_id", "")),
        amount=Money(document.get("amount", 0)),
        created_at=_moment(document.get("created_at")),
    )


class AccountNoSQL:
    """Accounts kept in the ``accounts`` collection."""

    collection = "accounts"

    def __init__(self, db: NoSQLDatabase) -> None:
        self.db = db

    def create(self, account: Account) -> Account:
        document = {
            "id": account.id,
            "name": account.name,
            "cpf": account.cpf,
            "balance": int(account.balance),
            "created_at": account.created_at,
        }
        try:
            self.db.store(self.collection, document)
        except Exception as exc:
            raise RepositoryError("error creating account", exc) from exc
        return account

    def update_balance(self, account_id: str, balance: Money) -> None:
        try:
            self.db.update(
                self.collection,
                {"id": account_id},
                {"$set": {"balance": int(balance)}},
            )
        except Exception as exc:
            raise RepositoryError("error updating account balance", exc) from exc

    def find_all(self) -> list[Account]:
        try:
            documents = self.db.find_all(self.collection, {})
        except Exception as exc:
            raise RepositoryError("error listing accounts", exc) from exc
        return [_account(document) for document in documents]

    def find_by_id(self, account_id: str) -> Account:
        try:
            document = self.db.find_one(self.collection, {"id": account_id}, None)
        except Exception as exc:
            raise RepositoryError("error fetching account", exc) from exc
        if document is None:
            raise AccountNotFoundError()
        return _account(document)

    def find_balance(self, account_id: str) -> Account:
        try:
            document = self.db.find_one(
                self.collection, {"id": account_id}, {"balance": 1, "_id": 0}
            )
        except Exception as exc:
            raise RepositoryError("error fetching account balance", exc) from exc
        if document is None:
            raise AccountNotFoundError()
        return Account(balance=Money(document.get("balance", 0)))


class TransferNoSQL:
    """Transfers kept in the ``transfers`` collection."""

    collection = "transfers"

    def __init__(self, db: NoSQLDatabase) -> None:
        self.db = db

    def create(self, transfer: Transfer) -> Transfer:
        document = {
            "id": transfer.id,
            "account_origin_id": transfer.account_origin_id,
            "account_destination_id": transfer.account_destination_id,
            "amount": int(transfer.amount),
            "created_at": transfer.created_at,
        }
        try:
            self.db.store(self.collection, document)
        except Exception as exc:
            raise RepositoryError("error creating transfer", exc) from exc
        return transfer

    def find_all(self) -> list[Transfer]:
        try:
            documents = self.db.find_all(self.collection, {})
        except Exception as exc:
            raise RepositoryError("error listing transfers", exc) from exc
        return [_transfer(document) for document in documents]

    def with_transaction(self, fn: Callable[[], T]) -> T:
        """Run ``fn`` in a session transaction, ending the session afterwards."""
        session = self.db.start_session()
        try:
            return session.with_transaction(fn)
        finally:
            session.end_session()