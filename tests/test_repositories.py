from datetime import datetime

import pytest

from cofre.db import Chat, get_repositories
from cofre.models import (
    Action,
    ActionPayload,
    ActionStatus,
    ActionType,
    Transaction,
    TransactionKind,
    Vault,
)

from conftest import HOUSING, SHOPPING


@pytest.fixture(params=["sqlite", "memory"])
def repositories(request, tmp_path):
    if request.param == "sqlite":
        return get_repositories("sqlite", tmp_path / "cofre.db")
    return get_repositories("memory")


def new_vault(repositories) -> Vault:
    return repositories.vaults.create(Vault.create())


def test_unknown_backend() -> None:
    with pytest.raises(ValueError):
        get_repositories("postgres")


def test_categories_are_seeded_in_code_order(repositories) -> None:
    categories = repositories.categories.find_all()

    assert [c.code for c in categories] == [str(i) for i in range(1, 12)]
    assert repositories.categories.find_by_code("2") == SHOPPING
    assert repositories.categories.find_by_id(HOUSING.id) == HOUSING
    assert repositories.categories.find_by_code("99") is None


def test_seeding_twice_is_idempotent(repositories) -> None:
    repositories.categories.seed()

    assert len(repositories.categories.find_all()) == 11


def test_create_and_load_by_id_or_token(repositories) -> None:
    vault = new_vault(repositories)

    by_id = repositories.vaults.load(vault.id)
    by_token = repositories.vaults.load(vault.token)

    assert by_id.id == vault.id
    assert by_token.id == vault.id
    assert by_id.token == vault.token
    assert by_id.budget_start_day == 1
    assert repositories.vaults.load("missing") is None


def test_save_round_trip(repositories) -> None:
    vault = new_vault(repositories)
    committed = Transaction.create(
        100, vault.id, TransactionKind.INCOME, "salary", date=datetime(2026, 2, 5)
    )
    draft = Transaction.create(
        40, vault.id, TransactionKind.EXPENSE, "groceries", category_id=SHOPPING.id
    )
    vault.add_transaction(committed)
    vault.add_transaction(draft)
    vault.commit_transaction(committed.id)
    vault.set_budget(HOUSING, 900)
    vault.edit_custom_prompt("padaria: 2")
    vault.set_budget_start_day(5)

    repositories.vaults.save(vault)
    loaded = repositories.vaults.load(vault.id)

    assert not vault.has_changes
    assert loaded.get_balance() == 100
    assert loaded.custom_prompt == "padaria: 2"
    assert loaded.budget_start_day == 5
    assert loaded.budgets[HOUSING.id].amount == 900
    assert loaded.budgets[HOUSING.id].category == HOUSING
    restored = loaded.find_transaction_by_code(draft.code)
    assert restored.id == draft.id
    assert restored.category_id == SHOPPING.id
    assert restored.is_committed is False
    assert loaded.find_transaction_by_code(committed.code).date == datetime(2026, 2, 5)


def test_edits_and_deletes_are_flushed(repositories) -> None:
    vault = new_vault(repositories)
    keep = Transaction.create(10, vault.id)
    gone = Transaction.create(20, vault.id)
    vault.add_transaction(keep)
    vault.add_transaction(gone)
    vault.set_budget(HOUSING, 100)
    repositories.vaults.save(vault)

    vault = repositories.vaults.load(vault.id)
    vault.edit_transaction(keep.code, amount=15, description="edited")
    vault.commit_transaction(keep.id)
    vault.delete_transaction(gone.code)
    vault.set_budget(HOUSING, 250)
    repositories.vaults.save(vault)

    loaded = repositories.vaults.load(vault.id)
    edited = loaded.find_transaction_by_code(keep.code)
    assert edited.amount == 15
    assert edited.description == "edited"
    assert edited.is_committed is True
    assert loaded.find_transaction_by_code(gone.code) is None
    assert loaded.budgets[HOUSING.id].amount == 250


def test_added_then_deleted_before_save_is_never_written(repositories) -> None:
    vault = new_vault(repositories)
    t = Transaction.create(10, vault.id)
    vault.add_transaction(t)
    vault.delete_transaction(t.code)

    repositories.vaults.save(vault)

    assert repositories.vaults.load(vault.id).transactions == {}


def test_saving_twice_is_harmless(repositories) -> None:
    vault = new_vault(repositories)
    t = Transaction.create(10, vault.id)
    vault.add_transaction(t)
    repositories.vaults.save(vault)

    repositories.vaults.save(vault)

    assert len(repositories.vaults.load(vault.id).transactions) == 1


def test_listing_is_paginated_newest_first(repositories) -> None:
    vault = new_vault(repositories)
    for day in range(1, 8):
        vault.add_transaction(
            Transaction.create(day, vault.id, description=f"d{day}", date=datetime(2026, 3, day))
        )
    repositories.vaults.save(vault)

    first = repositories.transactions.find_by_vault(vault.id, page=1, page_size=3)
    last = repositories.transactions.find_by_vault(vault.id, page=3, page_size=3)

    assert [t.description for t in first.items] == ["d7", "d6", "d5"]
    assert first.total == 7
    assert first.total_pages == 3
    assert first.has_next
    assert [t.description for t in last.items] == ["d1"]
    assert not last.has_next


def test_listing_filters_by_period_and_day(repositories) -> None:
    vault = new_vault(repositories)
    vault.set_budget_start_day(10)
    dates = [datetime(2026, 3, 9), datetime(2026, 3, 10), datetime(2026, 4, 9, 23), datetime(2026, 4, 10)]
    for when in dates:
        vault.add_transaction(Transaction.create(1, vault.id, date=when))
    repositories.vaults.save(vault)

    march = repositories.transactions.find_by_vault(vault.id, month=3, year=2026)
    one_day = repositories.transactions.find_by_vault(vault.id, month=4, year=2026, day=9)

    assert [t.date for t in march.items] == [datetime(2026, 4, 9, 23), datetime(2026, 3, 10)]
    assert [t.date for t in one_day.items] == [datetime(2026, 4, 9, 23)]


def test_listing_unknown_vault_is_empty(repositories) -> None:
    page = repositories.transactions.find_by_vault("missing")

    assert page.items == []
    assert page.total == 0


def test_page_size_is_capped(repositories) -> None:
    vault = new_vault(repositories)

    page = repositories.transactions.find_by_vault(vault.id, page=0, page_size=500)

    assert page.page == 1
    assert page.page_size == 50


def test_action_round_trip(repositories) -> None:
    vault = new_vault(repositories)
    action = Action.create(
        ActionType.EXPENSE, ActionPayload(12.5, "bread", SHOPPING.id)
    )
    repositories.actions.upsert(vault.id, action)

    action.mark_executed()
    repositories.actions.upsert(vault.id, action)
    loaded = repositories.actions.find_by_id(action.id)

    assert loaded.status == ActionStatus.EXECUTED
    assert loaded.payload.amount == 12.5
    assert loaded.payload.category_id == SHOPPING.id
    assert repositories.actions.find_by_id(action.id, vault_id="other") is None


def test_chat_binding(repositories) -> None:
    vault = new_vault(repositories)
    other = new_vault(repositories)

    repositories.chats.upsert(Chat("chat-1", vault.id))
    repositories.chats.upsert(Chat("chat-1", other.id))

    assert repositories.chats.find_by_chat_id("chat-1").vault_id == other.id
    assert repositories.chats.find_by_chat_id("chat-2") is None
