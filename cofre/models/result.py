"""
Result type returned by ledger operations.

Ledger operations never raise for expected outcomes (missing transaction,
double commit, negative budget...). They return a ``Result`` that callers
inspect and branch on.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    ALREADY_COMMITTED = "already_committed"
    NEGATIVE_BUDGET = "negative_budget"
    INVALID_KIND = "invalid_kind"
    INVALID_START_DAY = "invalid_start_day"
    INVALID_INPUT = "invalid_input"
    ACTION_NOT_PENDING = "action_not_pending"
    CLASSIFICATION_FAILED = "classification_failed"
    PIPELINE_FAILED = "pipeline_failed"


@dataclass(frozen=True)
class LedgerError:
    """An expected failure of a ledger operation."""

    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return self.message


class LedgerOperationError(Exception):
    """Raised by ``Result.unwrap`` when the result holds an error."""

    def __init__(self, error: LedgerError):
        super().__init__(error.message)
        self.error = error


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a ``LedgerError``, never both."""

    value: Optional[T] = None
    error: Optional[LedgerError] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "Result[T]":
        return cls(error=LedgerError(kind, message))

    @classmethod
    def from_error(cls, error: LedgerError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, raising ``LedgerOperationError`` on failure."""
        if self.error is not None:
            raise LedgerOperationError(self.error)
        return self.value  # type: ignore[return-value]
