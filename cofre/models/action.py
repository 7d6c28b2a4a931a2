import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .category import TransactionKind
from .result import ErrorKind, Result


class ActionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"

    @property
    def transaction_kind(self) -> TransactionKind:
        return TransactionKind(self.value)


class ActionStatus(str, Enum):
    PENDING = "pending"
    EXECUTED = "executed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class ActionPayload:
    """Transaction proposed by the classifier, awaiting confirmation."""

    amount: float
    description: Optional[str] = None
    category_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "amount": self.amount,
            "description": self.description,
            "category_id": self.category_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ActionPayload":
        return cls(
            amount=float(data["amount"]),
            description=data.get("description"),
            category_id=data.get("category_id"),
        )


@dataclass
class Action:
    """
    A pending ledger operation detected from free text.

    ``pending`` is the only non-terminal status. An action is consumed once:
    any transition out of ``pending`` is final.
    """

    id: str
    type: ActionType
    payload: ActionPayload
    created_at: datetime = field(default_factory=datetime.now)
    status: ActionStatus = ActionStatus.PENDING

    @classmethod
    def create(cls, type: ActionType, payload: ActionPayload) -> "Action":
        return cls(
            id=str(uuid.uuid4()),
            type=ActionType(type),
            payload=payload,
            created_at=datetime.now(),
            status=ActionStatus.PENDING,
        )

    @classmethod
    def restore(
        cls,
        id: str,
        type: str,
        payload: dict,
        created_at: str,
        status: str,
    ) -> "Action":
        return cls(
            id=id,
            type=ActionType(type),
            payload=ActionPayload.from_dict(payload),
            created_at=datetime.fromisoformat(created_at),
            status=ActionStatus(status),
        )

    @property
    def is_pending(self) -> bool:
        return self.status == ActionStatus.PENDING

    def mark_executed(self) -> Result[bool]:
        return self._finish(ActionStatus.EXECUTED)

    def mark_failed(self) -> Result[bool]:
        return self._finish(ActionStatus.FAILED)

    def cancel(self) -> Result[bool]:
        return self._finish(ActionStatus.CANCELLED)

    def _finish(self, status: ActionStatus) -> Result[bool]:
        if not self.is_pending:
            return Result.failure(
                ErrorKind.ACTION_NOT_PENDING,
                f"Action was already handled ({self.status.value})",
            )
        self.status = status
        return Result.success(True)


@dataclass
class ParsedAction:
    """Structured output of free-text parsing."""

    matched: bool
    kind: TransactionKind = TransactionKind.EXPENSE
    amount: Optional[float] = None
    description: Optional[str] = None
    category_id: Optional[str] = None
    raw_text: str = ""

    def is_valid(self) -> bool:
        """Check if the parse produced something that can become an Action."""
        return self.matched and self.amount is not None and self.amount > 0

    def to_action(self) -> Action:
        return Action.create(
            ActionType(self.kind.value),
            ActionPayload(
                amount=self.amount or 0.0,
                description=self.description,
                category_id=self.category_id,
            ),
        )
