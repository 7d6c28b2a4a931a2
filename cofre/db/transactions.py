"""
Transaction query module.

Read-only, paginated listing of a vault's transactions. Mutations always go
through the vault aggregate and ``VaultRepository.save``.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Generic, Optional, TypeVar

from cofre.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from cofre.models import Transaction
from cofre.models.vault import budget_period

from .base import BaseRepository
from .vaults import transaction_from_row

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of a listing."""

    items: list[T] = field(default_factory=list)
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    total: int = 0

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total / self.page_size)) if self.page_size else 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def clamp_page(page: int, page_size: int) -> tuple[int, int]:
    return max(1, page), min(max(1, page_size), MAX_PAGE_SIZE)


def date_range(
    start_day: int,
    month: Optional[int] = None,
    year: Optional[int] = None,
    day: Optional[int] = None,
) -> Optional[tuple[datetime, datetime]]:
    """
    Resolve listing filters into a half-open date range.

    ``month`` and ``year`` select a budget period; adding ``day`` narrows it to
    that calendar day of ``month``. Without ``month`` and ``year`` nothing is
    filtered.
    """
    if not (month and year):
        return None
    if day:
        start = datetime(year, month, day)
        return start, start + timedelta(days=1)
    return budget_period(start_day, month, year)


class TransactionQueryRepository(BaseRepository):
    """Repository for listing transactions."""

    def __init__(self, db_path=None, init_schema: bool = False):
        super().__init__(db_path, init_schema=init_schema)

    def find_by_vault(
        self,
        vault_id: str,
        month: Optional[int] = None,
        year: Optional[int] = None,
        day: Optional[int] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Page[Transaction]:
        """
        List a vault's transactions, newest first.

        Args:
            vault_id: Vault to list
            month: Budget month filter (requires ``year``)
            year: Budget year filter
            day: Calendar day of ``month`` filter
            page: 1-based page number
            page_size: Items per page, capped at MAX_PAGE_SIZE

        Returns:
            Page of transactions
        """
        page, page_size = clamp_page(page, page_size)

        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT budget_start_day FROM vault WHERE id = ?", (vault_id,)
            ).fetchone()
            if not row:
                return Page(page=page, page_size=page_size)

            where = "vault_id = ?"
            params: list = [vault_id]
            period = date_range(row["budget_start_day"], month, year, day)
            if period:
                where += " AND date >= ? AND date < ?"
                params += [period[0].isoformat(), period[1].isoformat()]

            total = conn.execute(
                f'SELECT COUNT(*) FROM "transaction" WHERE {where}', params
            ).fetchone()[0]

            cursor = conn.execute(
                f"""
                SELECT id, code, vault_id, amount, type, category_id, description,
                       created_at, committed, date
                FROM "transaction"
                WHERE {where}
                ORDER BY date DESC, created_at DESC
                LIMIT ? OFFSET ?
                """,
                params + [page_size, (page - 1) * page_size],
            )
            items = [transaction_from_row(r) for r in cursor.fetchall()]

        return Page(items=items, page=page, page_size=page_size, total=total)
