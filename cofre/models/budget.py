from dataclasses import dataclass

from .category import Category


@dataclass
class Budget:
    """Monthly spending cap for one category inside a vault."""

    category: Category
    amount: float

    @property
    def category_id(self) -> str:
        return self.category.id


@dataclass
class BudgetSummary:
    """Utilization of one budget over a period."""

    category: Category
    spent: float
    amount: float
    percentage_used: float

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "category": self.category.to_dict(),
            "spent": self.spent,
            "amount": self.amount,
            "percentage_used": self.percentage_used,
        }
