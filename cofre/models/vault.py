"""
Vault aggregate: the ledger of one chat group.

The vault owns its transactions and budgets, enforces the ledger rules and
records every mutation in two change trackers so that a persistence adapter
can flush a minimal diff.
"""

import logging
import secrets
import uuid
from datetime import date as date_type
from datetime import datetime
from typing import Any, Optional, Union

from cofre.config import (
    DEFAULT_BUDGET_START_DAY,
    MAX_BUDGET_START_DAY,
    MIN_BUDGET_START_DAY,
)

from .budget import Budget, BudgetSummary
from .category import Category, TransactionKind
from .changes import ChangeTracker
from .result import ErrorKind, Result
from .transaction import Transaction

logger = logging.getLogger(__name__)

_UNSET: Any = object()

DateLike = Union[datetime, date_type]


class Vault:
    """Ledger aggregate holding one group's transactions and budgets."""

    def __init__(
        self,
        id: Optional[str] = None,
        token: Optional[str] = None,
        created_at: Optional[datetime] = None,
        transactions: Optional[dict[str, Transaction]] = None,
        budgets: Optional[dict[str, Budget]] = None,
        custom_prompt: str = "",
        budget_start_day: int = DEFAULT_BUDGET_START_DAY,
    ):
        self._id = id or self.generate_id()
        self._token = token or self.generate_token()
        self._created_at = created_at or datetime.now()
        self.transactions: dict[str, Transaction] = transactions or {}
        self.budgets: dict[str, Budget] = budgets or {}
        self._custom_prompt = custom_prompt or ""
        self._budget_start_day = budget_start_day
        self.is_dirty = False
        self.transactions_tracker: ChangeTracker[Transaction] = ChangeTracker()
        self.budgets_tracker: ChangeTracker[Budget] = ChangeTracker()

    @staticmethod
    def generate_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def generate_token() -> str:
        """128-bit random bearer credential, hex encoded."""
        return secrets.token_hex(16)

    @classmethod
    def create(cls) -> "Vault":
        return cls(cls.generate_id(), cls.generate_token(), datetime.now())

    @property
    def id(self) -> str:
        return self._id

    @property
    def token(self) -> str:
        return self._token

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def custom_prompt(self) -> str:
        return self._custom_prompt

    @property
    def budget_start_day(self) -> int:
        return self._budget_start_day

    def edit_custom_prompt(self, prompt: str):
        self._custom_prompt = prompt or ""
        self.is_dirty = True

    def set_budget_start_day(self, day: int) -> Result[int]:
        if day < MIN_BUDGET_START_DAY or day > MAX_BUDGET_START_DAY:
            return Result.failure(
                ErrorKind.INVALID_START_DAY,
                f"Budget start day must be between {MIN_BUDGET_START_DAY} "
                f"and {MAX_BUDGET_START_DAY}",
            )
        self._budget_start_day = day
        self.is_dirty = True
        return Result.success(day)

    # =========================================================================
    # Budget periods
    # =========================================================================

    def get_budget_period(self, month: int, year: int) -> tuple[datetime, datetime]:
        """
        Return the half-open ``[start, end)`` period of a budget month.

        With a start day of 10, the period of January 2026 runs from
        2026-01-10 up to (excluding) 2026-02-10.
        """
        return budget_period(self._budget_start_day, month, year)

    def is_date_in_budget_period(self, value: DateLike, month: int, year: int) -> bool:
        start, end = self.get_budget_period(month, year)
        moment = _as_datetime(value)
        return start <= moment < end

    def get_current_budget_period(
        self, today: Optional[DateLike] = None
    ) -> tuple[int, int]:
        """Return ``(month, year)`` of the budget period containing ``today``."""
        now = _as_datetime(today) if today else datetime.now()
        month, year = now.month, now.year
        if now.day < self._budget_start_day:
            month -= 1
            if month < 1:
                month = 12
                year -= 1
        return month, year

    # =========================================================================
    # Transactions
    # =========================================================================

    def add_transaction(self, transaction: Transaction):
        self.transactions[transaction.id] = transaction
        self.transactions_tracker.register_new(transaction)

    def commit_transaction(self, transaction_id: str) -> Result[bool]:
        transaction = self.transactions.get(transaction_id)
        if transaction is None:
            return Result.failure(
                ErrorKind.NOT_FOUND, f"Transaction #{transaction_id} not found"
            )
        result = transaction.commit()
        if not result.ok:
            return result
        self.transactions_tracker.register_dirty(transaction)
        return Result.success(True)

    def edit_transaction(
        self,
        code: str,
        amount: Optional[float] = _UNSET,
        description: Optional[str] = _UNSET,
        category_id: Optional[str] = _UNSET,
        date: Optional[DateLike] = _UNSET,
        kind: Optional[Union[TransactionKind, str]] = _UNSET,
    ) -> Result[Transaction]:
        """Apply only the given fields to the transaction with ``code``."""
        transaction = self.find_transaction_by_code(code)
        if transaction is None:
            return Result.failure(ErrorKind.NOT_FOUND, f"Transaction #{code} not found")

        if kind is not _UNSET:
            try:
                new_kind = TransactionKind(kind)
            except ValueError:
                return Result.failure(
                    ErrorKind.INVALID_KIND,
                    'Invalid transaction kind. Must be "income" or "expense".',
                )
        if amount is not _UNSET and (amount is None or amount < 0):
            return Result.failure(
                ErrorKind.INVALID_INPUT, "Amount must be a non-negative number"
            )

        if amount is not _UNSET:
            transaction.set_amount(amount)
        if description is not _UNSET:
            transaction.set_description(description)
        if category_id is not _UNSET:
            transaction.set_category(category_id)
        if date is not _UNSET and date is not None:
            transaction.set_date(_as_datetime(date))
        if kind is not _UNSET:
            transaction.set_kind(new_kind)

        self.transactions_tracker.register_dirty(transaction)
        return Result.success(transaction)

    def delete_transaction(self, code: str) -> Result[bool]:
        transaction = self.find_transaction_by_code(code)
        if transaction is None:
            return Result.failure(ErrorKind.NOT_FOUND, f"Transaction #{code} not found")
        del self.transactions[transaction.id]
        self.transactions_tracker.register_deleted(transaction)
        return Result.success(True)

    def find_transaction_by_code(self, code: str) -> Optional[Transaction]:
        for transaction in self.transactions.values():
            if transaction.code == code:
                return transaction
        return None

    def get_balance(self) -> float:
        """Sum of signed amounts of committed transactions."""
        total = 0.0
        for transaction in self.transactions.values():
            if not transaction.is_committed:
                continue
            total += transaction.signed_amount
        return total

    # =========================================================================
    # Budgets
    # =========================================================================

    def set_budget(self, category: Category, amount: float) -> Result[bool]:
        if amount < 0:
            return Result.failure(
                ErrorKind.NEGATIVE_BUDGET, "Budget amount cannot be negative"
            )
        existing = self.budgets.get(category.id)
        budget = Budget(category=category, amount=float(amount))
        self.budgets[category.id] = budget
        if existing:
            self.budgets_tracker.register_dirty(budget)
        else:
            self.budgets_tracker.register_new(budget)
        return Result.success(True)

    def get_budgets_summary(
        self, month: Optional[int] = None, year: Optional[int] = None
    ) -> list[BudgetSummary]:
        """
        Spending per budget category.

        Counts expense transactions of the category whatever their commit
        state. When both ``month`` and ``year`` are given only transactions
        dated inside that budget period are counted.
        """
        summary = []
        for category_id, budget in self.budgets.items():
            spent = 0.0
            for transaction in self.transactions.values():
                if (
                    transaction.category_id != category_id
                    or transaction.kind != TransactionKind.EXPENSE
                ):
                    continue
                if month and year and not self.is_date_in_budget_period(
                    transaction.date, month, year
                ):
                    continue
                spent += abs(transaction.amount)

            percentage_used = (spent / budget.amount) * 100 if budget.amount > 0 else 0
            summary.append(
                BudgetSummary(
                    category=budget.category,
                    spent=spent,
                    amount=budget.amount,
                    percentage_used=percentage_used,
                )
            )
        return summary

    def total_budgeted_amount(self) -> float:
        return sum(budget.amount for budget in self.budgets.values())

    def total_spent_amount(self) -> float:
        """All-time expense total. Not filtered by period, unlike the budgets summary."""
        return sum(
            abs(t.amount)
            for t in self.transactions.values()
            if t.kind == TransactionKind.EXPENSE
        )

    def percentage_total_budgeted_amount(self) -> float:
        total_budgeted = self.total_budgeted_amount()
        total_spent = self.total_spent_amount()
        return (total_spent / total_budgeted) * 100 if total_budgeted > 0 else 0

    def total_spent_in_period(
        self, month: Optional[int] = None, year: Optional[int] = None
    ) -> float:
        return self._total_in_period(TransactionKind.EXPENSE, month, year)

    def total_income_in_period(
        self, month: Optional[int] = None, year: Optional[int] = None
    ) -> float:
        return self._total_in_period(TransactionKind.INCOME, month, year)

    def _total_in_period(
        self, kind: TransactionKind, month: Optional[int], year: Optional[int]
    ) -> float:
        if not (month and year):
            month, year = self.get_current_budget_period()
        return sum(
            abs(t.amount)
            for t in self.transactions.values()
            if t.kind == kind and self.is_date_in_budget_period(t.date, month, year)
        )

    # =========================================================================
    # Persistence support
    # =========================================================================

    @property
    def has_changes(self) -> bool:
        return (
            self.is_dirty
            or self.transactions_tracker.has_changes
            or self.budgets_tracker.has_changes
        )

    def clear_changes(self):
        self.transactions_tracker.clear_changes()
        self.budgets_tracker.clear_changes()
        self.is_dirty = False

    def to_dict(self, month: Optional[int] = None, year: Optional[int] = None) -> dict:
        """Serialized snapshot of the vault with its computed totals."""
        return {
            "id": self.id,
            "token": self.token,
            "custom_prompt": self.custom_prompt,
            "created_at": self.created_at.isoformat(),
            "budget_start_day": self.budget_start_day,
            "transactions": [t.to_dict() for t in self.transactions.values()],
            "budgets": [
                {"category": b.category.to_dict(), "amount": b.amount}
                for b in self.budgets.values()
            ],
            "balance": self.get_balance(),
            "total_budgeted_amount": self.total_budgeted_amount(),
            "percentage_total_budgeted_amount": self.percentage_total_budgeted_amount(),
            "total_spent_amount": self.total_spent_amount(),
            "total_spent_in_period": self.total_spent_in_period(month, year),
            "total_income_in_period": self.total_income_in_period(month, year),
            "budgets_summary": [
                s.to_dict() for s in self.get_budgets_summary(month, year)
            ],
        }

    def __repr__(self) -> str:
        return f"Vault(id={self.id!r}, transactions={len(self.transactions)})"


def _as_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def budget_period(start_day: int, month: int, year: int) -> tuple[datetime, datetime]:
    """Half-open ``[start, end)`` range of the budget month ``month``/``year``."""
    start = datetime(year, month, start_day)
    if month == 12:
        end = datetime(year + 1, 1, start_day)
    else:
        end = datetime(year, month + 1, start_day)
    return start, end
