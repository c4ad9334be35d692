"""Account and transfer storage on a relational database."""

from __future__ import annotations

import contextlib
from collections.abc import Callable, Iterable, Iterator
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Protocol, TypeVar

from .domain import Account, AccountNotFoundError, Money, Transfer

T = TypeVar("T")
R = TypeVar("R")


class RepositoryError(Exception):
    """A storage operation failed; ``cause`` holds the underlying error."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(f"{message}: {cause}" if cause is not None else message)


class SQLTransactionPort(Protocol):
    """An open transaction on a relational database."""

    def execute(self, query: str, *args: Any) -> None:
        """Run a statement that returns no rows."""

    def query(self, query: str, *args: Any) -> Iterable[tuple[Any, ...]]:
        """Run a query and return its rows."""

    def query_row(self, query: str, *args: Any) -> tuple[Any, ...] | None:
        """Run a query and return its first row, or None when there is none."""

    def commit(self) -> None:
        """Make the changes of the transaction permanent."""

    def rollback(self) -> None:
        """Discard the changes of the transaction."""


class SQLDatabase(Protocol):
    """A relational database."""

    def execute(self, query: str, *args: Any) -> None:
        """Run a statement that returns no rows."""

    def query(self, query: str, *args: Any) -> Iterable[tuple[Any, ...]]:
        """Run a query and return its rows."""

    def query_row(self, query: str, *args: Any) -> tuple[Any, ...] | None:
        """Run a query and return its first row, or None when there is none."""

    def begin(self) -> SQLTransactionPort:
        """Open a transaction."""


_current_transaction: ContextVar[SQLTransactionPort | None] = ContextVar(
    "banktransfer_sql_transaction", default=None
)


@contextlib.contextmanager
def _transaction(db: SQLDatabase, message: str) -> Iterator[SQLTransactionPort]:
    """Yield the transaction in progress, or a new one committed on success."""
    current = _current_transaction.get()
    if current is not None:
        yield current
        return
    try:
        tx = db.begin()
    except Exception as exc:
        raise RepositoryError(message, exc) from exc
    try:
        yield tx
    except BaseException:
        with contextlib.suppress(Exception):
            tx.rollback()
        raise
    tx.commit()


def _collect(
    db: SQLDatabase, query: str, message: str, build: Callable[..., R]
) -> list[R]:
    try:
        rows = db.query(query)
    except Exception as exc:
        raise RepositoryError(message, exc) from exc
    try:
        result = []
        for row in rows:
            try:
                result.append(build(*row))
            except (TypeError, ValueError) as exc:
                raise RepositoryError(message, exc) from exc
        return result
    finally:
        close = getattr(rows, "close", None)
        if close is not None:
            close()


def _account(
    account_id: Any, name: Any, cpf: Any, balance: Any, created_at: datetime
) -> Account:
    return Account(
        id=str(account_id),
        name=str(name),
        cpf=str(cpf),
        balance=Money(balance),
        created_at=created_at,
    )


def _transfer(
    transfer_id: Any,
    origin_id: Any,
    destination_id: Any,
    amount: Any,
    created_at: datetime,
) -> Transfer:
    return Transfer(
        id=str(transfer_id),
        account_origin_id=str(origin_id),
        account_destination_id=str(destination_id),
        amount=Money(amount),
        created_at=created_at,
    )


class AccountSQL:
    """Accounts kept in the ``accounts`` table."""

    _INSERT = (
        "INSERT INTO accounts (id, name, cpf, balance, created_at) "
        "VALUES ($1, $2, $3, $4, $5)"
    )
    _UPDATE_BALANCE = "UPDATE accounts SET balance = $1 WHERE id = $2"
    _SELECT_ALL = "SELECT * FROM accounts"
    _SELECT_BY_ID = "SELECT * FROM accounts WHERE id = $1 LIMIT 1 FOR NO KEY UPDATE"
    _SELECT_BALANCE = "SELECT balance FROM accounts WHERE id = $1"

    def __init__(self, db: SQLDatabase) -> None:
        self.db = db

    def create(self, account: Account) -> Account:
        try:
            self.db.execute(
                self._INSERT,
                account.id,
                account.name,
                account.cpf,
                int(account.balance),
                account.created_at,
            )
        except Exception as exc:
            raise RepositoryError("error creating account", exc) from exc
        return account

    def update_balance(self, account_id: str, balance: Money) -> None:
        message = "error updating account balance"
        with _transaction(self.db, message) as tx:
            try:
                tx.execute(self._UPDATE_BALANCE, int(balance), account_id)
            except Exception as exc:
                raise RepositoryError(message, exc) from exc

    def find_all(self) -> list[Account]:
        return _collect(self.db, self._SELECT_ALL, "error listing accounts", _account)

    def find_by_id(self, account_id: str) -> Account:
        with _transaction(self.db, "error find account by id") as tx:
            row = tx.query_row(self._SELECT_BY_ID, account_id)
        if row is None:
            raise AccountNotFoundError()
        return _account(*row)

    def find_balance(self, account_id: str) -> Account:
        row = self.db.query_row(self._SELECT_BALANCE, account_id)
        if row is None:
            raise AccountNotFoundError()
        (balance,) = row
        return Account(balance=Money(balance))


class TransferSQL:
    """Transfers kept in the ``transfers`` table."""

    _INSERT = (
        "INSERT INTO transfers "
        "(id, account_origin_id, account_destination_id, amount, created_at) "
        "VALUES ($1, $2, $3, $4, $5)"
    )
    _SELECT_ALL = "SELECT * FROM transfers"

    def __init__(self, db: SQLDatabase) -> None:
        self.db = db

    def create(self, transfer: Transfer) -> Transfer:
        message = "error creating transfer"
        with _transaction(self.db, message) as tx:
            try:
                tx.execute(
                    self._INSERT,
                    transfer.id,
                    transfer.account_origin_id,
                    transfer.account_destination_id,
                    int(transfer.amount),
                    transfer.created_at,
                )
            except Exception as exc:
                raise RepositoryError(message, exc) from exc
        return transfer

    def find_all(self) -> list[Transfer]:
        return _collect(self.db, self._SELECT_ALL, "error listing transfers", _transfer)

    def with_transaction(self, fn: Callable[[], T]) -> T:
        """Run ``fn`` in one transaction shared by every SQL repository it calls."""
        try:
            tx = self.db.begin()
        except Exception as exc:
            raise RepositoryError("error begin tx", exc) from exc

        token = _current_transaction.set(tx)
        try:
            result = fn()
        except Exception as exc:
            try:
                tx.rollback()
            except Exception:
                raise RepositoryError("rollback error", exc) from exc
            raise
        finally:
            _current_transaction.reset(token)

        tx.commit()
        return result