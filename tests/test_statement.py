from datetime import datetime

import pytest

from cofre.models import TransactionKind
from cofre.services import StatementError, StatementParser

STATEMENT = (
    "Data,Valor,Identificador,Descrição\n"
    "01/03/2026,-45.90,a1,UBER RIDE\n"
    "05/03/2026,3000.00,b2,SALARY MARCH\n"
    "not a date,10,c3,broken row\n"
    "07/03/2026,,d4,missing value\n"
    "09/03/2026,-12,e5,\n"
).encode("utf-8")


def test_rows_become_draft_transactions() -> None:
    transactions = StatementParser.parse(STATEMENT, "vault-1")

    assert len(transactions) == 3
    uber, salary, blank = transactions
    assert uber.kind == TransactionKind.EXPENSE
    assert uber.amount == pytest.approx(45.9)
    assert uber.description == "UBER RIDE"
    assert uber.date == datetime(2026, 3, 1)
    assert salary.kind == TransactionKind.INCOME
    assert salary.amount == 3000
    assert blank.description == ""
    assert all(not t.is_committed and t.category_id is None for t in transactions)
    assert {t.vault_id for t in transactions} == {"vault-1"}


def test_reads_from_path(tmp_path) -> None:
    path = tmp_path / "statement.csv"
    path.write_bytes(STATEMENT)

    assert len(StatementParser.parse(path, "v")) == 3


def test_two_column_statement_has_empty_descriptions() -> None:
    data = b"date,value\n02/01/2026,-5.5\n"

    [transaction] = StatementParser.parse(data, "v")

    assert transaction.amount == 5.5
    assert transaction.description == ""


def test_empty_file_is_an_error() -> None:
    with pytest.raises(StatementError):
        StatementParser.parse(b"", "v")


def test_single_column_is_an_error() -> None:
    with pytest.raises(StatementError):
        StatementParser.parse(b"date\n01/01/2026\n", "v")


def test_header_only_statement_is_empty() -> None:
    assert StatementParser.parse(b"date,value,id,description\n", "v") == []


def test_values_with_thousands_separators() -> None:
    data = (
        "date,value,id,description\n"
        '01/03/2026,"-1.234,56",a1,RENT\n'
        "02/03/2026,-12.50,b2,BREAD\n"
        '03/03/2026,"2,500.00",c3,SALARY\n'
    ).encode("utf-8")

    rent, bread, salary = StatementParser.parse(data, "v")

    assert rent.kind == TransactionKind.EXPENSE
    assert rent.amount == pytest.approx(1234.56)
    assert bread.amount == pytest.approx(12.5)
    assert salary.kind == TransactionKind.INCOME
    assert salary.amount == pytest.approx(2500)
