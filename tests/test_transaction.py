from datetime import datetime

import pytest

from cofre.models import ErrorKind, Transaction, TransactionKind


def test_create_generates_id_and_short_code() -> None:
    t = Transaction.create(12.5, "vault-1", TransactionKind.EXPENSE, "bread")

    assert t.id
    assert len(t.code) == 4
    int(t.code, 16)
    assert t.vault_id == "vault-1"
    assert t.is_committed is False
    assert t.date == t.created_at


def test_date_defaults_to_given_value() -> None:
    when = datetime(2026, 1, 5, 10, 30)
    t = Transaction.create(10, "v", date=when)

    assert t.date == when


def test_commit_succeeds_once() -> None:
    t = Transaction.create(50, "v")

    first = t.commit()
    second = t.commit()

    assert first.ok
    assert not second.ok
    assert second.error.kind == ErrorKind.ALREADY_COMMITTED
    assert t.is_committed is True


def test_signed_amount_follows_kind() -> None:
    income = Transaction.create(30, "v", TransactionKind.INCOME)
    expense = Transaction.create(30, "v", TransactionKind.EXPENSE)

    assert income.signed_amount == 30
    assert expense.signed_amount == -30

    expense.set_kind(TransactionKind.INCOME)
    assert expense.signed_amount == 30


def test_negative_amount_is_rejected() -> None:
    with pytest.raises(ValueError):
        Transaction.create(-1, "v")

    t = Transaction.create(1, "v")
    with pytest.raises(ValueError):
        t.set_amount(-5)


def test_identity_fields_are_read_only() -> None:
    t = Transaction.create(1, "v")

    with pytest.raises(AttributeError):
        t.code = "ffff"  # type: ignore[misc]
    with pytest.raises(AttributeError):
        t.id = "other"  # type: ignore[misc]


def test_to_dict_serializes_kind_and_dates() -> None:
    t = Transaction.create(5, "v", TransactionKind.INCOME, date=datetime(2026, 2, 1))

    data = t.to_dict()

    assert data["kind"] == "income"
    assert data["date"] == "2026-02-01T00:00:00"
    assert data["is_committed"] is False
