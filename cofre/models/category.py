from dataclasses import dataclass
from enum import Enum


class TransactionKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class CategoryKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    BOTH = "both"

    def accepts(self, kind: TransactionKind) -> bool:
        """Check whether transactions of ``kind`` may use this category."""
        return self == CategoryKind.BOTH or self.value == kind.value


@dataclass
class Category:
    """Reference data used to classify transactions and key budgets."""

    id: str
    name: str
    code: str
    description: str = ""
    transaction_kind: CategoryKind = CategoryKind.EXPENSE

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "description": self.description,
            "transaction_kind": self.transaction_kind.value,
        }

    @classmethod
    def from_row(cls, row: tuple) -> "Category":
        """Create a Category from a database row."""
        return cls(
            id=row[0],
            name=row[1],
            code=row[2],
            description=row[3] or "",
            transaction_kind=CategoryKind(row[4]),
        )
