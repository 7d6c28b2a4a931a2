from .client import CofreBot, create_bot
from .cogs import (
    ActionView,
    BudgetCog,
    GeneralCog,
    LedgerCog,
    ParsingCog,
    StatementCog,
)
from .runner import run

__all__ = [
    # Bot
    "CofreBot",
    "create_bot",
    "run",
    # Cogs
    "ActionView",
    "BudgetCog",
    "GeneralCog",
    "LedgerCog",
    "ParsingCog",
    "StatementCog",
]
