from typing import Optional, Sequence

import pytest

from cofre.db import DEFAULT_CATEGORIES, get_repositories
from cofre.models import Category, ParsedAction, TransactionKind
from cofre.services import (
    AccessTokenStore,
    CategorizationPipeline,
    CategoryAssignment,
    TransactionClassifier,
    TransactionSample,
    VaultService,
)


def category_by_code(code: str) -> Category:
    return next(c for c in DEFAULT_CATEGORIES if c.code == code)


HOUSING = category_by_code("1")
SHOPPING = category_by_code("2")
TRANSPORT = category_by_code("3")
OTHERS = category_by_code("10")
WORK = category_by_code("11")


class FakeClassifier(TransactionClassifier):
    """Classifier with canned answers: everything goes to ``category``."""

    def __init__(
        self,
        category: Category = SHOPPING,
        parsed: Optional[ParsedAction] = None,
    ):
        self.category = category
        self.parsed = parsed
        self.parse_calls: list[str] = []
        self.classify_calls: list[list[TransactionSample]] = []

    async def parse_action(
        self,
        text: str,
        categories: Sequence[Category],
        context_prompt: str = "",
        force_kind: Optional[TransactionKind] = None,
    ) -> ParsedAction:
        self.parse_calls.append(text)
        if self.parsed is not None:
            return self.parsed
        return ParsedAction(
            matched=True,
            kind=force_kind or TransactionKind.EXPENSE,
            amount=25.0,
            description=text,
            category_id=self.category.id,
            raw_text=text,
        )

    async def classify_transactions(
        self,
        samples: Sequence[TransactionSample],
        categories: Sequence[Category],
        context_prompt: str = "",
    ) -> Optional[list[CategoryAssignment]]:
        self.classify_calls.append(list(samples))
        return [CategoryAssignment(s.id, self.category.id) for s in samples]


@pytest.fixture
def categories() -> list[Category]:
    return list(DEFAULT_CATEGORIES)


@pytest.fixture
def memory_repositories():
    return get_repositories("memory")


@pytest.fixture
def sqlite_repositories(tmp_path):
    return get_repositories("sqlite", tmp_path / "cofre.db")


@pytest.fixture
def fake_classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture
def service(memory_repositories, fake_classifier) -> VaultService:
    return VaultService(
        memory_repositories,
        fake_classifier,
        pipeline=CategorizationPipeline(fake_classifier, chunk_size=5, concurrency=5),
        token_store=AccessTokenStore(ttl_seconds=60),
    )
