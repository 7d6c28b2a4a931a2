import secrets
import uuid
from datetime import datetime
from typing import Optional

from .category import TransactionKind
from .result import ErrorKind, Result


class Transaction:
    """
    A single income/expense line of a vault.

    ``amount`` is always stored as a magnitude; the sign is derived from
    ``kind`` when balances are computed. A transaction starts uncommitted and
    can be committed exactly once. Every other field may be edited at any time.
    """

    def __init__(
        self,
        id: str,
        code: str,
        vault_id: str,
        amount: float,
        kind: TransactionKind = TransactionKind.EXPENSE,
        is_committed: bool = False,
        description: Optional[str] = None,
        created_at: Optional[datetime] = None,
        date: Optional[datetime] = None,
        category_id: Optional[str] = None,
    ):
        self._id = id
        self._code = code
        self._vault_id = vault_id
        self.amount = _magnitude(amount)
        self.kind = TransactionKind(kind)
        self.is_committed = is_committed
        self.description = description
        self.created_at = created_at or datetime.now()
        self.date = date or self.created_at
        self.category_id = category_id

    @classmethod
    def create(
        cls,
        amount: float,
        vault_id: str,
        kind: TransactionKind = TransactionKind.EXPENSE,
        description: Optional[str] = None,
        category_id: Optional[str] = None,
        date: Optional[datetime] = None,
    ) -> "Transaction":
        """Create a new, uncommitted transaction with fresh id and code."""
        return cls(
            id=str(uuid.uuid4()),
            code=secrets.token_hex(2),
            vault_id=vault_id,
            amount=amount,
            kind=kind,
            is_committed=False,
            description=description,
            date=date,
            category_id=category_id,
        )

    @classmethod
    def restore(
        cls,
        id: str,
        code: str,
        vault_id: str,
        amount: float,
        kind: TransactionKind = TransactionKind.EXPENSE,
        is_committed: bool = False,
        description: Optional[str] = None,
        created_at: Optional[datetime] = None,
        date: Optional[datetime] = None,
        category_id: Optional[str] = None,
    ) -> "Transaction":
        """Rebuild a persisted transaction."""
        return cls(
            id=id,
            code=code,
            vault_id=vault_id,
            amount=amount,
            kind=kind,
            is_committed=is_committed,
            description=description,
            created_at=created_at,
            date=date,
            category_id=category_id,
        )

    @property
    def id(self) -> str:
        return self._id

    @property
    def code(self) -> str:
        return self._code

    @property
    def vault_id(self) -> str:
        return self._vault_id

    @property
    def signed_amount(self) -> float:
        return self.amount if self.kind == TransactionKind.INCOME else -self.amount

    def commit(self) -> Result[bool]:
        """Mark the transaction as contributing to the balance."""
        if self.is_committed:
            return Result.failure(
                ErrorKind.ALREADY_COMMITTED,
                f"Transaction #{self.code} is already committed",
            )
        self.is_committed = True
        return Result.success(True)

    def set_amount(self, amount: float):
        self.amount = _magnitude(amount)

    def set_description(self, description: Optional[str]):
        self.description = description

    def set_category(self, category_id: Optional[str]):
        self.category_id = category_id

    def set_date(self, date: datetime):
        self.date = date

    def set_kind(self, kind: TransactionKind):
        self.kind = TransactionKind(kind)

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "code": self.code,
            "vault_id": self.vault_id,
            "amount": self.amount,
            "kind": self.kind.value,
            "is_committed": self.is_committed,
            "description": self.description,
            "created_at": self.created_at.isoformat(),
            "date": self.date.isoformat(),
            "category_id": self.category_id,
        }

    def __repr__(self) -> str:
        return (
            f"Transaction(code={self.code!r}, kind={self.kind.value}, "
            f"amount={self.amount}, committed={self.is_committed})"
        )


def _magnitude(amount: float) -> float:
    if amount is None or amount < 0:
        raise ValueError(f"amount must be a non-negative magnitude, got {amount}")
    return float(amount)
