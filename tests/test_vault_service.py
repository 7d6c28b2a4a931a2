from datetime import datetime

import pytest

from cofre.models import ActionStatus, ErrorKind, ParsedAction, TransactionKind
from cofre.services import (
    AccessTokenStore,
    CategorizationPipeline,
    ClassifierError,
    ClassifierUnavailableError,
    VaultService,
)

from conftest import HOUSING, SHOPPING, TRANSPORT, FakeClassifier

STATEMENT = (
    "date,value,id,description\n"
    + "".join(f"{day:02d}/03/2026,-{day}.50,x{day},item {day}\n" for day in range(1, 13))
).encode("utf-8")


async def new_vault(service: VaultService, chat_id: str = "chat-1"):
    return (await service.create_vault(chat_id)).unwrap()


# =============================================================================
# Vaults and chats
# =============================================================================


@pytest.mark.asyncio
async def test_create_binds_chat(service) -> None:
    vault = await new_vault(service)

    found = await service.get_vault_for_chat("chat-1")

    assert found.value.id == vault.id


@pytest.mark.asyncio
async def test_chat_without_vault(service) -> None:
    result = await service.get_vault_for_chat("nobody")

    assert result.error.kind == ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_join_with_vault_token(service) -> None:
    vault = await new_vault(service)

    joined = await service.join_vault("chat-2", vault.token)

    assert joined.value.id == vault.id
    assert (await service.get_vault_for_chat("chat-2")).value.id == vault.id


@pytest.mark.asyncio
async def test_join_with_invite_code_works_once(service) -> None:
    vault = await new_vault(service)
    code = (await service.create_invite("chat-1")).unwrap()

    first = await service.join_vault("chat-2", code)
    second = await service.join_vault("chat-3", code)

    assert first.value.id == vault.id
    assert second.error.kind == ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_expired_invite_is_rejected(memory_repositories, fake_classifier) -> None:
    now = [0.0]
    service = VaultService(
        memory_repositories,
        fake_classifier,
        token_store=AccessTokenStore(ttl_seconds=10, clock=lambda: now[0]),
    )
    await new_vault(service)
    code = (await service.create_invite("chat-1")).unwrap()

    now[0] = 11

    result = await service.join_vault("chat-2", code)
    assert result.error.kind == ErrorKind.NOT_FOUND


@pytest.mark.asyncio
@pytest.mark.parametrize("token", ["", "   ", "deadbeef"])
async def test_join_with_bad_token(service, token) -> None:
    await new_vault(service)

    result = await service.join_vault("chat-2", token)

    assert result.error.kind == ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_invite_needs_a_vault(service) -> None:
    result = await service.create_invite("nobody")

    assert result.error.kind == ErrorKind.NOT_FOUND


# =============================================================================
# Actions
# =============================================================================


@pytest.mark.asyncio
async def test_action_is_executed_exactly_once(service, memory_repositories) -> None:
    vault = await new_vault(service)
    action = (await service.parse_vault_action(vault.id, "bread 25")).unwrap()

    first = await service.handle_vault_action(vault.id, action.id)
    second = await service.handle_vault_action(vault.id, action.id)

    assert first.ok
    assert first.value.is_committed
    assert first.value.category_id == SHOPPING.id
    assert second.error.kind == ErrorKind.ACTION_NOT_PENDING
    stored = memory_repositories.actions.find_by_id(action.id)
    assert stored.status == ActionStatus.EXECUTED
    assert (await service.get_vault(vault.id)).value.get_balance() == -25


@pytest.mark.asyncio
async def test_forced_kind_reaches_classifier(service) -> None:
    vault = await new_vault(service)

    action = (
        await service.parse_vault_action(vault.id, "50 back", TransactionKind.INCOME)
    ).unwrap()
    await service.handle_vault_action(vault.id, action.id)

    assert (await service.get_vault(vault.id)).value.get_balance() == 25


@pytest.mark.asyncio
async def test_cancelled_action_cannot_run(service) -> None:
    vault = await new_vault(service)
    action = (await service.parse_vault_action(vault.id, "bread 25")).unwrap()

    cancelled = await service.cancel_vault_action(vault.id, action.id)
    handled = await service.handle_vault_action(vault.id, action.id)
    cancelled_again = await service.cancel_vault_action(vault.id, action.id)

    assert cancelled.value.status == ActionStatus.CANCELLED
    assert handled.error.kind == ErrorKind.ACTION_NOT_PENDING
    assert cancelled_again.error.kind == ErrorKind.ACTION_NOT_PENDING
    assert (await service.get_vault(vault.id)).value.transactions == {}


@pytest.mark.asyncio
async def test_action_of_another_vault_is_not_found(service) -> None:
    vault = await new_vault(service)
    other = await new_vault(service, "chat-2")
    action = (await service.parse_vault_action(vault.id, "bread 25")).unwrap()

    result = await service.handle_vault_action(other.id, action.id)

    assert result.error.kind == ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_message_without_transaction(memory_repositories) -> None:
    classifier = FakeClassifier(parsed=ParsedAction(matched=False, raw_text="hello"))
    service = VaultService(memory_repositories, classifier)
    vault = await new_vault(service)

    result = await service.parse_vault_action(vault.id, "hello")

    assert result.error.kind == ErrorKind.INVALID_INPUT


@pytest.mark.asyncio
async def test_classifier_error_while_parsing(memory_repositories) -> None:
    class BrokenClassifier(FakeClassifier):
        async def parse_action(self, *args, **kwargs):
            raise ClassifierError("bad answer")

    service = VaultService(memory_repositories, BrokenClassifier())
    vault = await new_vault(service)

    result = await service.parse_vault_action(vault.id, "bread 25")

    assert result.error.kind == ErrorKind.CLASSIFICATION_FAILED


# =============================================================================
# Transactions
# =============================================================================


@pytest.mark.asyncio
async def test_add_commit_edit_delete(service) -> None:
    vault = await new_vault(service)

    draft = (
        await service.add_transaction_to_vault(
            vault.id, 80, "expense", "bus pass", should_commit=False
        )
    ).unwrap()
    assert (await service.get_vault(vault.id)).value.get_balance() == 0

    assert (await service.commit_transaction(vault.id, draft.code)).ok
    again = await service.commit_transaction(vault.id, draft.code)
    assert again.error.kind == ErrorKind.ALREADY_COMMITTED

    edited = await service.edit_transaction_in_vault(
        vault.id, draft.code, amount=90, category_code="3", date=datetime(2026, 5, 2)
    )
    assert edited.ok
    loaded = (await service.get_vault(vault.id)).value
    transaction = loaded.find_transaction_by_code(draft.code)
    assert transaction.amount == 90
    assert transaction.category_id == TRANSPORT.id
    assert transaction.description == "bus pass"
    assert loaded.get_balance() == -90

    assert (await service.delete_transaction(vault.id, draft.code)).ok
    assert (await service.get_vault(vault.id)).value.get_balance() == 0


@pytest.mark.asyncio
async def test_add_rejects_bad_input(service) -> None:
    vault = await new_vault(service)

    bad_kind = await service.add_transaction_to_vault(vault.id, 10, "transfer")
    zero = await service.add_transaction_to_vault(vault.id, 0, "expense")
    unknown_category = await service.add_transaction_to_vault(
        vault.id, 10, "expense", category_id="nope"
    )
    unknown_vault = await service.add_transaction_to_vault("nope", 10, "expense")

    assert bad_kind.error.kind == ErrorKind.INVALID_KIND
    assert zero.error.kind == ErrorKind.INVALID_INPUT
    assert unknown_category.error.kind == ErrorKind.NOT_FOUND
    assert unknown_vault.error.kind == ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_edit_with_unknown_category_changes_nothing(service) -> None:
    vault = await new_vault(service)
    t = (await service.add_transaction_to_vault(vault.id, 10, "expense")).unwrap()

    result = await service.edit_transaction_in_vault(
        vault.id, t.code, amount=99, category_code="42"
    )

    assert result.error.kind == ErrorKind.NOT_FOUND
    loaded = (await service.get_vault(vault.id)).value
    assert loaded.find_transaction_by_code(t.code).amount == 10


@pytest.mark.asyncio
async def test_get_transactions_defaults_to_current_period(service) -> None:
    vault = await new_vault(service)
    await service.add_transaction_to_vault(vault.id, 10, "expense", "now")
    await service.add_transaction_to_vault(
        vault.id, 20, "expense", "old", date=datetime(2020, 1, 1)
    )

    current = (await service.get_transactions(vault.id)).unwrap()
    old = (await service.get_transactions(vault.id, month=1, year=2020)).unwrap()
    invalid = await service.get_transactions(vault.id, month=2, year=2026, day=30)

    assert [t.description for t in current.items] == ["now"]
    assert [t.description for t in old.items] == ["old"]
    assert invalid.error.kind == ErrorKind.INVALID_INPUT


# =============================================================================
# Budgets and settings
# =============================================================================


@pytest.mark.asyncio
async def test_set_budgets_by_code(service) -> None:
    vault = await new_vault(service)

    result = await service.set_budgets(vault.id, {"1": 1000, "2": 300, "99": 50})
    await service.add_transaction_to_vault(
        vault.id, 500, "expense", category_id=HOUSING.id
    )
    today = datetime.now()
    summary = (
        await service.get_budgets_summary(vault.id, today.month, today.year)
    ).unwrap()

    assert result.ok
    by_category = {s.category.id: s for s in summary}
    assert set(by_category) == {HOUSING.id, SHOPPING.id}
    assert by_category[HOUSING.id].percentage_used == 50


@pytest.mark.asyncio
async def test_negative_budget_saves_nothing(service) -> None:
    vault = await new_vault(service)

    result = await service.set_budgets(vault.id, {"1": 100, "2": -5})

    assert result.error.kind == ErrorKind.NEGATIVE_BUDGET
    assert (await service.get_vault(vault.id)).value.budgets == {}


@pytest.mark.asyncio
async def test_custom_prompt_and_start_day(service) -> None:
    vault = await new_vault(service)

    assert (await service.edit_custom_prompt(vault.id, "padaria: 2")).ok
    assert (await service.set_budget_start_day(vault.id, 15)).ok
    too_long = await service.edit_custom_prompt(vault.id, "x" * 1001)
    bad_day = await service.set_budget_start_day(vault.id, 31)

    loaded = (await service.get_vault(vault.id)).value
    assert loaded.custom_prompt == "padaria: 2"
    assert loaded.budget_start_day == 15
    assert too_long.error.kind == ErrorKind.INVALID_INPUT
    assert bad_day.error.kind == ErrorKind.INVALID_START_DAY


@pytest.mark.asyncio
async def test_categories_listed(service) -> None:
    categories = await service.get_categories()

    assert len(categories) == 11


# =============================================================================
# Statement import
# =============================================================================


@pytest.mark.asyncio
async def test_import_statement_categorizes_and_commits(service, fake_classifier) -> None:
    vault = await new_vault(service)

    result = await service.import_statement(vault.id, STATEMENT)

    imported = result.unwrap()
    assert len(imported) == 12
    assert [len(c) for c in fake_classifier.classify_calls] == [5, 5, 2]
    loaded = (await service.get_vault(vault.id)).value
    assert len(loaded.transactions) == 12
    assert all(t.is_committed for t in loaded.transactions.values())
    assert all(t.category_id == SHOPPING.id for t in loaded.transactions.values())
    assert loaded.get_balance() == pytest.approx(-sum(d + 0.5 for d in range(1, 13)))


@pytest.mark.asyncio
async def test_import_keeps_transactions_of_failed_chunk_uncategorized(
    memory_repositories,
) -> None:
    class FlakyClassifier(FakeClassifier):
        async def classify_transactions(self, samples, categories, context_prompt=""):
            if any(s.description == "item 6" for s in samples):
                raise ClassifierError("bad answer")
            return await super().classify_transactions(samples, categories, context_prompt)

    classifier = FlakyClassifier()
    service = VaultService(
        memory_repositories,
        classifier,
        pipeline=CategorizationPipeline(classifier, chunk_size=5, concurrency=5),
    )
    vault = await new_vault(service)

    imported = (await service.import_statement(vault.id, STATEMENT)).unwrap()

    uncategorized = [t.description for t in imported if t.category_id is None]
    assert uncategorized == [f"item {d}" for d in range(6, 11)]


@pytest.mark.asyncio
async def test_import_aborts_when_classifier_unreachable(memory_repositories) -> None:
    class DownClassifier(FakeClassifier):
        async def classify_transactions(self, samples, categories, context_prompt=""):
            raise ClassifierUnavailableError("connection refused")

    service = VaultService(memory_repositories, DownClassifier())
    vault = await new_vault(service)

    result = await service.import_statement(vault.id, STATEMENT)

    assert result.error.kind == ErrorKind.PIPELINE_FAILED
    assert (await service.get_vault(vault.id)).value.transactions == {}


@pytest.mark.asyncio
async def test_import_rejects_unreadable_or_empty_statement(service) -> None:
    vault = await new_vault(service)

    unreadable = await service.import_statement(vault.id, b"")
    empty = await service.import_statement(vault.id, b"date,value\n")

    assert unreadable.error.kind == ErrorKind.INVALID_INPUT
    assert empty.error.kind == ErrorKind.INVALID_INPUT


def test_injected_collaborators_are_kept(memory_repositories, fake_classifier) -> None:
    store = AccessTokenStore(ttl_seconds=10)
    pipeline = CategorizationPipeline(fake_classifier, chunk_size=2)

    service = VaultService(
        memory_repositories, fake_classifier, pipeline=pipeline, token_store=store
    )

    assert len(store) == 0
    assert service.token_store is store
    assert service.pipeline is pipeline
