"""
Cofre - shared finance vault

A ledger shared by chat groups: free-text transaction capture, budgets per
category and batch categorization of imported bank statements.
"""

from .config import VERSION
from .models import Category, Result, Transaction, TransactionKind, Vault
from .services import CategorizationPipeline, ConcurrencyQueue, VaultService

__version__ = VERSION

__all__ = [
    "CategorizationPipeline",
    "Category",
    "ConcurrencyQueue",
    "Result",
    "Transaction",
    "TransactionKind",
    "Vault",
    "VaultService",
]
