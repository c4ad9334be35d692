"""Core banking entities, domain errors and repository ports."""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Protocol, TypeVar

T = TypeVar("T")

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
"""Creation time of an account or transfer that was never stamped."""


class DomainError(Exception):
    """Base class of the errors raised by the domain rules."""

    default_message = "domain error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.default_message)


class AccountNotFoundError(DomainError):
    """No account has the requested identifier."""

    default_message = "account not found"


class AccountOriginNotFoundError(DomainError):
    """The account a transfer draws from does not exist."""

    default_message = "account origin not found"


class AccountDestinationNotFoundError(DomainError):
    """The account a transfer pays into does not exist."""

    default_message = "account destination not found"


class InsufficientBalanceError(DomainError):
    """The origin account cannot cover the amount."""

    default_message = "origin account does not have sufficient balance"


class Money(int):
    """An amount of money counted in cents."""

    __slots__ = ()

    def to_float(self) -> float:
        """Return the amount in whole currency units."""
        return int(self) / 100

    def __repr__(self) -> str:
        return f"Money({int(self)})"


@dataclass
class Account:
    """A bank account holding a balance in cents."""

    id: str = ""
    name: str = ""
    cpf: str = ""
    balance: Money = Money(0)
    created_at: datetime = ZERO_TIME

    def __post_init__(self) -> None:
        self.balance = Money(self.balance)

    def deposit(self, amount: int) -> None:
        """Add ``amount`` to the balance."""
        self.balance = Money(self.balance + amount)

    def withdraw(self, amount: int) -> None:
        """Take ``amount`` from the balance, refusing to go below zero."""
        if self.balance < amount:
            raise InsufficientBalanceError()
        self.balance = Money(self.balance - amount)


def account_balance(balance: int) -> Account:
    """Return an account that carries nothing but a balance."""
    return Account(balance=Money(balance))


@dataclass(frozen=True)
class Transfer:
    """A movement of money from one account to another."""

    id: str = ""
    account_origin_id: str = ""
    account_destination_id: str = ""
    amount: Money = Money(0)
    created_at: datetime = ZERO_TIME

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", Money(self.amount))


class AccountRepository(Protocol):
    """Storage of accounts."""

    def create(self, account: Account) -> Account:
        """Persist a new account and return it."""

    def update_balance(self, account_id: str, balance: Money) -> None:
        """Set the balance of an existing account."""

    def find_all(self) -> list[Account]:
        """Return every stored account."""

    def find_by_id(self, account_id: str) -> Account:
        """Return one account; raise AccountNotFoundError when absent."""

    def find_balance(self, account_id: str) -> Account:
        """Return an account carrying its balance; raise AccountNotFoundError when absent."""


class TransferRepository(Protocol):
    """Storage of transfers."""

    def create(self, transfer: Transfer) -> Transfer:
        """Persist a new transfer and return it."""

    def find_all(self) -> list[Transfer]:
        """Return every stored transfer."""

    def with_transaction(self, fn: Callable[[], T]) -> T:
        """Run ``fn`` in a transaction, committed when it returns and rolled back when it raises."""


def new_uuid() -> str:
    """Return a new random (version 4) UUID in canonical text form."""
    return str(uuid.uuid4())


_CANONICAL = (
    "[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)
_UUID_TEXT = re.compile(
    "|".join(
        (
            _CANONICAL,
            r"\{" + _CANONICAL + r"\}",
            "urn:uuid:" + _CANONICAL,
            "[0-9a-fA-F]{32}",
        )
    )
)


def is_valid_uuid(value: object) -> bool:
    """Tell whether ``value`` is a UUID in canonical, braced, URN or bare-hex form."""
    return isinstance(value, str) and _UUID_TEXT.fullmatch(value) is not None