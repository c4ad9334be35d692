"""Account use cases: open an account, list accounts and read a balance."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol

from .domain import Account, AccountRepository, Money, new_uuid


@dataclass
class CreateAccountInput:
    """Data needed to open an account; the balance is in cents."""

    name: str = field(default="", metadata={"validate": "required", "label": "Name"})
    cpf: str = field(default="", metadata={"validate": "required", "label": "CPF"})
    balance: int = field(
        default=0, metadata={"validate": "gt=0,required", "label": "Balance"}
    )


@dataclass
class CreateAccountOutput:
    """An opened account as shown to clients."""

    id: str = ""
    name: str = ""
    cpf: str = ""
    balance: float = 0.0
    created_at: str = ""


class CreateAccountOutputPort(Protocol):
    """Turns a created account into output data."""

    def output(self, account: Account) -> CreateAccountOutput:
        """Present ``account``."""


@dataclass(frozen=True)
class CreateAccountInteractor:
    """Open a new account with a fresh identifier."""

    repo: AccountRepository
    presenter: CreateAccountOutputPort
    timeout: float

    def execute(self, data: CreateAccountInput) -> CreateAccountOutput:
        account = Account(
            id=new_uuid(),
            name=data.name,
            cpf=data.cpf,
            balance=Money(data.balance),
            created_at=datetime.now(timezone.utc),
        )
        return self.presenter.output(self.repo.create(account))


@dataclass
class FindAccountBalanceOutput:
    """A balance as shown to clients."""

    balance: float = 0.0


class FindAccountBalanceOutputPort(Protocol):
    """Turns a balance into output data."""

    def output(self, balance: Money) -> FindAccountBalanceOutput:
        """Present ``balance``."""


@dataclass(frozen=True)
class FindAccountBalanceInteractor:
    """Read the balance of one account."""

    repo: AccountRepository
    presenter: FindAccountBalanceOutputPort
    timeout: float

    def execute(self, account_id: str) -> FindAccountBalanceOutput:
        account = self.repo.find_balance(account_id)
        return self.presenter.output(account.balance)


@dataclass
class FindAllAccountOutput:
    """One listed account as shown to clients."""

    id: str = ""
    name: str = ""
    cpf: str = ""
    balance: float = 0.0
    created_at: str = ""


class FindAllAccountOutputPort(Protocol):
    """Turns accounts into output data."""

    def output(self, accounts: list[Account]) -> list[FindAllAccountOutput]:
        """Present ``accounts``."""


@dataclass(frozen=True)
class FindAllAccountInteractor:
    """List every account."""

    repo: AccountRepository
    presenter: FindAllAccountOutputPort
    timeout: float

    def execute(self) -> list[FindAllAccountOutput]:
        return self.presenter.output(self.repo.find_all())