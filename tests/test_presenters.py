from datetime import datetime, timedelta, timezone

from banktransfer.account_usecases import (
    CreateAccountOutput,
    FindAccountBalanceOutput,
    FindAllAccountOutput,
)
from banktransfer.domain import ZERO_TIME, Account, Money, Transfer
from banktransfer.presenters import (
    CreateAccountPresenter,
    CreateTransferPresenter,
    FindAccountBalancePresenter,
    FindAllAccountPresenter,
    FindAllTransferPresenter,
)
from banktransfer.transfer_usecases import CreateTransferOutput, FindAllTransferOutput

ID_0 = "3c096a40-ccba-4b58-93ed-57379ab04680"
ID_1 = "3c096a40-ccba-4b58-93ed-57379ab04681"
ID_2 = "3c096a40-ccba-4b58-93ed-57379ab04682"
ZERO_RFC3339 = "0001-01-01T00:00:00Z"


def test_create_account_output():
    account = Account(ID_0, "Testing", "07091054965", 1000, ZERO_TIME)

    got = CreateAccountPresenter().output(account)

    assert got == CreateAccountOutput(ID_0, "Testing", "07091054965", 10, ZERO_RFC3339)


def test_create_transfer_output():
    transfer = Transfer(ID_0, ID_1, ID_2, 1000, ZERO_TIME)

    got = CreateTransferPresenter().output(transfer)

    assert got == CreateTransferOutput(ID_0, ID_1, ID_2, 10, ZERO_RFC3339)


def test_find_account_balance_output():
    got = FindAccountBalancePresenter().output(Money(1099))

    assert got == FindAccountBalanceOutput(balance=10.99)


def test_find_all_account_output():
    accounts = [
        Account(ID_0, "Testing", "07091054965", 1000, ZERO_TIME),
        Account(ID_2, "Testing", "07091054965", 99, ZERO_TIME),
    ]

    got = FindAllAccountPresenter().output(accounts)

    assert got == [
        FindAllAccountOutput(ID_0, "Testing", "07091054965", 10, ZERO_RFC3339),
        FindAllAccountOutput(ID_2, "Testing", "07091054965", 0.99, ZERO_RFC3339),
    ]


def test_find_all_transfer_output():
    transfers = [
        Transfer(ID_0, ID_1, ID_2, 1000, ZERO_TIME),
        Transfer(ID_0, ID_1, ID_2, 99, ZERO_TIME),
    ]

    got = FindAllTransferPresenter().output(transfers)

    assert got == [
        FindAllTransferOutput(ID_0, ID_1, ID_2, 10, ZERO_RFC3339),
        FindAllTransferOutput(ID_0, ID_1, ID_2, 0.99, ZERO_RFC3339),
    ]


def test_empty_lists_present_as_empty_lists():
    assert FindAllAccountPresenter().output([]) == []
    assert FindAllTransferPresenter().output([]) == []


def test_created_at_keeps_offset_and_drops_fraction():
    moment = datetime(2020, 5, 1, 12, 30, 15, 123456, tzinfo=timezone(timedelta(hours=-3)))
    account = Account(ID_0, "Testing", "07091054965", 1, moment)

    got = CreateAccountPresenter().output(account)

    assert got.created_at == "2020-05-01T12:30:15-03:00"


def test_naive_created_at_is_utc():
    moment = datetime(2020, 5, 1, 12, 30, 15)
    transfer = Transfer(ID_0, ID_1, ID_2, 1, moment)

    got = CreateTransferPresenter().output(transfer)

    assert got.created_at.endswith("Z")
    assert datetime.fromisoformat(got.created_at[:-1]) == moment