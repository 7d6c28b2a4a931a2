import asyncio
from typing import Optional, Sequence

import pytest

from cofre.models import Category, ErrorKind, ParsedAction, Transaction, TransactionKind
from cofre.services import (
    CategorizationPipeline,
    CategoryAssignment,
    ClassifierError,
    ClassifierUnavailableError,
    TransactionClassifier,
    TransactionSample,
    chunk,
)

from conftest import SHOPPING, TRANSPORT


class ScriptedClassifier(TransactionClassifier):
    """Answers per call number; an exception instance in the script is raised."""

    def __init__(self, script: dict[int, object], category: Category = SHOPPING):
        self.script = script
        self.category = category
        self.calls = 0
        self.in_flight = 0
        self.peak = 0

    async def parse_action(self, text, categories, context_prompt="", force_kind=None):
        return ParsedAction(matched=False, raw_text=text)

    async def classify_transactions(
        self,
        samples: Sequence[TransactionSample],
        categories: Sequence[Category],
        context_prompt: str = "",
    ) -> Optional[list[CategoryAssignment]]:
        call = self.calls
        self.calls += 1
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            answer = self.script.get(call, "ok")
            if isinstance(answer, Exception):
                raise answer
            if answer is None:
                return None
            if answer == "ok":
                return [CategoryAssignment(s.id, self.category.id) for s in samples]
            return answer  # type: ignore[return-value]
        finally:
            self.in_flight -= 1


def make_transactions(n: int) -> list[Transaction]:
    return [
        Transaction.create(10 + i, "vault", TransactionKind.EXPENSE, f"item {i}")
        for i in range(n)
    ]


def test_chunk_splits_into_fixed_sizes() -> None:
    assert chunk(list(range(12)), 5) == [
        [0, 1, 2, 3, 4],
        [5, 6, 7, 8, 9],
        [10, 11],
    ]
    assert chunk([], 5) == []
    with pytest.raises(ValueError):
        chunk([1], 0)


@pytest.mark.asyncio
async def test_failing_chunk_leaves_only_its_transactions_uncategorized(categories) -> None:
    transactions = make_transactions(12)
    classifier = ScriptedClassifier({1: ClassifierError("bad answer")})
    pipeline = CategorizationPipeline(classifier, chunk_size=5, concurrency=5)

    result = await pipeline.categorize(transactions, categories)

    assert result.ok
    assigned = CategorizationPipeline.apply(transactions, result.value)
    assert assigned == 7
    # Chunks start in order, so the second call carries items 5..9
    assert [t.category_id for t in transactions[5:10]] == [None] * 5
    assert all(t.category_id == SHOPPING.id for t in transactions[:5] + transactions[10:])
    assert classifier.calls == 3


@pytest.mark.asyncio
async def test_no_parsed_result_counts_as_failed_chunk(categories) -> None:
    transactions = make_transactions(7)
    classifier = ScriptedClassifier({0: None})
    pipeline = CategorizationPipeline(classifier, chunk_size=5, concurrency=2)

    result = await pipeline.categorize(transactions, categories)

    assert result.ok
    assert set(result.value) == {t.id for t in transactions[5:]}


@pytest.mark.asyncio
async def test_unreachable_classifier_fails_the_pipeline(categories) -> None:
    transactions = make_transactions(6)
    down = ClassifierUnavailableError("connection refused")
    classifier = ScriptedClassifier({0: down, 1: down})
    pipeline = CategorizationPipeline(classifier, chunk_size=5, concurrency=5)

    result = await pipeline.categorize(transactions, categories)

    assert not result.ok
    assert result.error.kind == ErrorKind.PIPELINE_FAILED


@pytest.mark.asyncio
async def test_partially_unreachable_classifier_still_succeeds(categories) -> None:
    transactions = make_transactions(6)
    classifier = ScriptedClassifier({0: ClassifierUnavailableError("timeout")})
    pipeline = CategorizationPipeline(classifier, chunk_size=5, concurrency=5)

    result = await pipeline.categorize(transactions, categories)

    assert result.ok
    assert list(result.value) == [transactions[5].id]


@pytest.mark.asyncio
async def test_invalid_assignments_are_dropped(categories) -> None:
    transactions = make_transactions(3)
    answer = [
        CategoryAssignment(transactions[0].id, TRANSPORT.id),
        CategoryAssignment(transactions[1].id, ""),
        CategoryAssignment(transactions[2].id, "not-a-category"),
        CategoryAssignment("someone-else", SHOPPING.id),
    ]
    classifier = ScriptedClassifier({0: answer})
    pipeline = CategorizationPipeline(classifier, chunk_size=5)

    result = await pipeline.categorize(transactions, categories)

    assert result.value == {transactions[0].id: TRANSPORT.id}


@pytest.mark.asyncio
async def test_chunks_respect_concurrency(categories) -> None:
    transactions = make_transactions(40)
    classifier = ScriptedClassifier({})
    pipeline = CategorizationPipeline(classifier, chunk_size=2, concurrency=3)

    result = await pipeline.categorize(transactions, categories)

    assert len(result.value) == 40
    assert classifier.peak == 3


@pytest.mark.asyncio
async def test_empty_batch(categories) -> None:
    classifier = ScriptedClassifier({})
    pipeline = CategorizationPipeline(classifier)

    result = await pipeline.categorize([], categories)

    assert result.ok
    assert result.value == {}
    assert classifier.calls == 0
