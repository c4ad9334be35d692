"""Transfer use cases: move money between accounts and list transfers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol

from .domain import (
    AccountDestinationNotFoundError,
    AccountNotFoundError,
    AccountOriginNotFoundError,
    AccountRepository,
    Money,
    Transfer,
    TransferRepository,
    new_uuid,
)


@dataclass
class CreateTransferInput:
    """Data needed to move money; the amount is in cents."""

    account_origin_id: str = field(
        default="", metadata={"validate": "required,uuid4", "label": "AccountOriginID"}
    )
    account_destination_id: str = field(
        default="",
        metadata={"validate": "required,uuid4", "label": "AccountDestinationID"},
    )
    amount: int = field(
        default=0, metadata={"validate": "gt=0,required", "label": "Amount"}
    )


@dataclass
class CreateTransferOutput:
    """A completed transfer as shown to clients."""

    id: str = ""
    account_origin_id: str = ""
    account_destination_id: str = ""
    amount: float = 0.0
    created_at: str = ""


class CreateTransferOutputPort(Protocol):
    """Turns a created transfer into output data."""

    def output(self, transfer: Transfer) -> CreateTransferOutput:
        """Present ``transfer``."""


@dataclass(frozen=True)
class CreateTransferInteractor:
    """Move an amount from one account to another inside one transaction."""

    transfer_repo: TransferRepository
    account_repo: AccountRepository
    presenter: CreateTransferOutputPort
    timeout: float

    def execute(self, data: CreateTransferInput) -> CreateTransferOutput:
        def run() -> Transfer:
            self._move_money(data)
            transfer = Transfer(
                id=new_uuid(),
                account_origin_id=data.account_origin_id,
                account_destination_id=data.account_destination_id,
                amount=Money(data.amount),
                created_at=datetime.now(timezone.utc),
            )
            return self.transfer_repo.create(transfer)

        transfer = self.transfer_repo.with_transaction(run)
        return self.presenter.output(transfer)

    def _move_money(self, data: CreateTransferInput) -> None:
        amount = Money(data.amount)

        try:
            origin = self.account_repo.find_by_id(data.account_origin_id)
        except AccountNotFoundError as exc:
            raise AccountOriginNotFoundError() from exc

        origin.withdraw(amount)

        try:
            destination = self.account_repo.find_by_id(data.account_destination_id)
        except AccountNotFoundError as exc:
            raise AccountDestinationNotFoundError() from exc

        destination.deposit(amount)

        self.account_repo.update_balance(origin.id, origin.balance)
        self.account_repo.update_balance(destination.id, destination.balance)


@dataclass
class FindAllTransferOutput:
    """One listed transfer as shown to clients."""

    id: str = ""
    account_origin_id: str = ""
    account_destination_id: str = ""
    amount: float = 0.0
    created_at: str = ""


class FindAllTransferOutputPort(Protocol):
    """Turns transfers into output data."""

    def output(self, transfers: list[Transfer]) -> list[FindAllTransferOutput]:
        """Present ``transfers``."""


@dataclass(frozen=True)
class FindAllTransferInteractor:
    """List every transfer."""

    repo: TransferRepository
    presenter: FindAllTransferOutputPort
    timeout: float

    def execute(self) -> list[FindAllTransferOutput]:
        return self.presenter.output(self.repo.find_all())