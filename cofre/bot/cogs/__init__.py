from .base import VaultCog
from .budget import BudgetCog
from .general import GeneralCog
from .ledger import LedgerCog
from .parsing import ActionView, ParsingCog
from .statement import StatementCog

__all__ = [
    "ActionView",
    "BudgetCog",
    "GeneralCog",
    "LedgerCog",
    "ParsingCog",
    "StatementCog",
    "VaultCog",
]
