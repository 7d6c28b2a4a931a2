from .action import Action, ActionPayload, ActionStatus, ActionType, ParsedAction
from .budget import Budget, BudgetSummary
from .category import Category, CategoryKind, TransactionKind
from .changes import Changes, ChangeTracker
from .result import ErrorKind, LedgerError, LedgerOperationError, Result
from .transaction import Transaction
from .vault import Vault

__all__ = [
    "Action",
    "ActionPayload",
    "ActionStatus",
    "ActionType",
    "Budget",
    "BudgetSummary",
    "Category",
    "CategoryKind",
    "ChangeTracker",
    "Changes",
    "ErrorKind",
    "LedgerError",
    "LedgerOperationError",
    "ParsedAction",
    "Result",
    "Transaction",
    "TransactionKind",
    "Vault",
]
