"""Presenters that turn domain entities into client-facing output data."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from .account_usecases import (
    CreateAccountOutput,
    FindAccountBalanceOutput,
    FindAllAccountOutput,
)
from .domain import Account, Money, Transfer
from .transfer_usecases import CreateTransferOutput, FindAllTransferOutput


def _rfc3339(moment: datetime) -> str:
    """Format ``moment`` as RFC 3339 with whole seconds; naive times count as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = moment.replace(microsecond=0).isoformat()
    if moment.utcoffset() == timedelta(0):
        return text[: -len("+00:00")] + "Z"
    return text


class CreateAccountPresenter:
    """Present a newly created account."""

    def output(self, account: Account) -> CreateAccountOutput:
        return CreateAccountOutput(
            id=str(account.id),
            name=account.name,
            cpf=account.cpf,
            balance=Money(account.balance).to_float(),
            created_at=_rfc3339(account.created_at),
        )


class CreateTransferPresenter:
    """Present a newly created transfer."""

    def output(self, transfer: Transfer) -> CreateTransferOutput:
        return CreateTransferOutput(
            id=str(transfer.id),
            account_origin_id=str(transfer.account_origin_id),
            account_destination_id=str(transfer.account_destination_id),
            amount=Money(transfer.amount).to_float(),
            created_at=_rfc3339(transfer.created_at),
        )


class FindAccountBalancePresenter:
    """Present an account balance."""

    def output(self, balance: Money) -> FindAccountBalanceOutput:
        return FindAccountBalanceOutput(balance=Money(balance).to_float())


class FindAllAccountPresenter:
    """Present a list of accounts."""

    def output(self, accounts: list[Account]) -> list[FindAllAccountOutput]:
        return [
            FindAllAccountOutput(
                id=str(account.id),
                name=account.name,
                cpf=account.cpf,
                balance=Money(account.balance).to_float(),
                created_at=_rfc3339(account.created_at),
            )
            for account in accounts
        ]


class FindAllTransferPresenter:
    """Present a list of transfers."""

    def output(self, transfers: list[Transfer]) -> list[FindAllTransferOutput]:
        return [
            FindAllTransferOutput(
                id=str(transfer.id),
                account_origin_id=str(transfer.account_origin_id),
                account_destination_id=str(transfer.account_destination_id),
                amount=Money(transfer.amount).to_float(),
                created_at=_rfc3339(transfer.created_at),
            )
            for transfer in transfers
        ]