import pytest
import spacy

from cofre.models import TransactionKind
from cofre.services import CategoryNLPService, TransactionSample

from conftest import HOUSING, OTHERS, SHOPPING, TRANSPORT, WORK


@pytest.fixture(scope="module")
def nlp_service() -> CategoryNLPService:
    return CategoryNLPService(nlp=spacy.blank("en"))


def test_parse_expense_with_category(nlp_service, categories) -> None:
    parsed = nlp_service.parse("spent 45.90 on uber", categories)

    assert parsed.is_valid()
    assert parsed.kind == TransactionKind.EXPENSE
    assert parsed.amount == pytest.approx(45.9)
    assert parsed.description == "uber"
    assert parsed.category_id == TRANSPORT.id


def test_parse_income_keyword(nlp_service, categories) -> None:
    parsed = nlp_service.parse("received 3000 salary", categories)

    assert parsed.kind == TransactionKind.INCOME
    assert parsed.amount == 3000
    assert parsed.category_id == WORK.id


def test_plural_matches_category_keyword(nlp_service, categories) -> None:
    parsed = nlp_service.parse("groceries 120", categories)

    assert parsed.category_id == SHOPPING.id


def test_unknown_words_fall_back_to_catch_all(nlp_service, categories) -> None:
    parsed = nlp_service.parse("paid 30 for a zorblax", categories)

    assert parsed.category_id == OTHERS.id


def test_forced_kind_restricts_categories(nlp_service, categories) -> None:
    parsed = nlp_service.parse(
        "50 rent", categories, force_kind=TransactionKind.INCOME
    )

    assert parsed.kind == TransactionKind.INCOME
    # Housing only accepts expenses
    assert parsed.category_id != HOUSING.id


def test_custom_prompt_hints_win(nlp_service, categories) -> None:
    prompt = "netflix: 2\npadaria: 🛒 Shopping"

    netflix = nlp_service.parse("netflix 40", categories, prompt)
    padaria = nlp_service.parse("padaria 12", categories, prompt)

    assert netflix.category_id == SHOPPING.id
    assert padaria.category_id == SHOPPING.id


@pytest.mark.parametrize("text", ["", "   ", "lunch with friends", "x" * 600 + " 10"])
def test_parse_without_usable_amount(nlp_service, categories, text) -> None:
    parsed = nlp_service.parse(text, categories)

    assert not parsed.matched
    assert not parsed.is_valid()


def test_classify_assigns_each_sample(nlp_service, categories) -> None:
    samples = [
        TransactionSample("a", "UBER RIDE", 22.0, TransactionKind.EXPENSE),
        TransactionSample("b", "Salary March", 3000.0, TransactionKind.INCOME),
        TransactionSample("c", "rent", 1500.0, TransactionKind.EXPENSE),
    ]

    assignments = nlp_service.classify(samples, categories)

    assert {a.transaction_id: a.category_id for a in assignments} == {
        "a": TRANSPORT.id,
        "b": WORK.id,
        "c": HOUSING.id,
    }


@pytest.mark.asyncio
async def test_async_contract_runs_in_thread(nlp_service, categories) -> None:
    parsed = await nlp_service.parse_action("spent 10 on bread", categories)
    assignments = await nlp_service.classify_transactions(
        [TransactionSample("t", "bread", 10.0, TransactionKind.EXPENSE)], categories
    )

    assert parsed.category_id == SHOPPING.id
    assert assignments[0].category_id == SHOPPING.id


def test_negative_amount_is_not_a_valid_action(nlp_service, categories) -> None:
    parsed = nlp_service.parse("spent -50 on uber", categories)

    assert parsed.amount == -50
    assert not parsed.is_valid()
