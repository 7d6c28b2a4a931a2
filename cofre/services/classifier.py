"""
Contract of the transaction classifier consumed by the ledger.

The classifier is a fallible collaborator: it turns free text into a proposed
transaction and assigns categories to batches of transactions. No retry is
built into this contract.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from cofre.models import Category, ParsedAction, Transaction, TransactionKind


class ClassifierError(Exception):
    """A single classification call failed."""


class ClassifierUnavailableError(ClassifierError):
    """The classification backend cannot be reached at all."""


@dataclass(frozen=True)
class TransactionSample:
    """What the classifier gets to see of a transaction."""

    id: str
    description: str
    amount: float
    kind: TransactionKind

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> "TransactionSample":
        return cls(
            id=transaction.id,
            description=transaction.description or "",
            amount=transaction.amount,
            kind=transaction.kind,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "amount": self.amount,
            "type": self.kind.value,
        }


@dataclass(frozen=True)
class CategoryAssignment:
    transaction_id: str
    category_id: str


class TransactionClassifier(ABC):
    """Interface implemented by every classification backend."""

    @abstractmethod
    async def parse_action(
        self,
        text: str,
        categories: Sequence[Category],
        context_prompt: str = "",
        force_kind: Optional[TransactionKind] = None,
    ) -> ParsedAction:
        """Interpret a free-text message as an income or expense."""

    @abstractmethod
    async def classify_transactions(
        self,
        samples: Sequence[TransactionSample],
        categories: Sequence[Category],
        context_prompt: str = "",
    ) -> Optional[list[CategoryAssignment]]:
        """
        Assign a category to each sample.

        Returns None when the backend produced no usable answer.
        """
