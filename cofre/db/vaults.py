"""
Vault repository module.

Loads a vault aggregate with its transactions and budgets, and flushes the
changes recorded by the vault's trackers back to SQLite.
"""

import logging
import sqlite3
from datetime import datetime
from typing import Optional

from cofre.models import Budget, Category, Transaction, TransactionKind, Vault

from .base import BaseRepository

logger = logging.getLogger(__name__)


class VaultRepository(BaseRepository):
    """
    Repository for the vault aggregate.

    ``save`` writes the tracked diff inside a single SQL transaction and only
    clears the vault's trackers once that transaction committed. Inserts and
    updates are both upserts, so a change registered more than once is
    harmless.
    """

    def __init__(self, db_path=None, init_schema: bool = False):
        super().__init__(db_path, init_schema=init_schema)

    # =========================================================================
    # Create Operations
    # =========================================================================

    def create(self, vault: Vault) -> Vault:
        """Persist a brand-new vault together with anything it already holds."""
        with self._get_connection() as conn:
            self._upsert_vault(conn, vault)
            self._flush(conn, vault)
        vault.clear_changes()
        logger.info(f"Created vault {vault.id}")
        return vault

    # =========================================================================
    # Read Operations
    # =========================================================================

    def find_by_id(self, vault_id: str) -> Optional[Vault]:
        return self._find_one("id", vault_id)

    def find_by_token(self, token: str) -> Optional[Vault]:
        return self._find_one("token", token)

    def load(self, key: str) -> Optional[Vault]:
        """Load a vault by id or by its bearer token."""
        return self.find_by_id(key) or self.find_by_token(key)

    def _find_one(self, column: str, value: str) -> Optional[Vault]:
        with self._get_connection() as conn:
            row = conn.execute(
                f"""
                SELECT id, token, created_at, custom_prompt, budget_start_day
                FROM vault WHERE {column} = ?
                """,
                (value,),
            ).fetchone()
            if not row:
                return None

            vault_id = row["id"]
            transactions = {
                t.id: t for t in self._load_transactions(conn, vault_id)
            }
            budgets = {
                b.category_id: b for b in self._load_budgets(conn, vault_id)
            }

        return Vault(
            id=vault_id,
            token=row["token"],
            created_at=datetime.fromisoformat(row["created_at"]),
            transactions=transactions,
            budgets=budgets,
            custom_prompt=row["custom_prompt"] or "",
            budget_start_day=row["budget_start_day"],
        )

    def _load_transactions(
        self, conn: sqlite3.Connection, vault_id: str
    ) -> list[Transaction]:
        cursor = conn.execute(
            """
            SELECT id, code, vault_id, amount, type, category_id, description,
                   created_at, committed, date
            FROM "transaction"
            WHERE vault_id = ?
            ORDER BY date, created_at
            """,
            (vault_id,),
        )
        return [transaction_from_row(row) for row in cursor.fetchall()]

    def _load_budgets(self, conn: sqlite3.Connection, vault_id: str) -> list[Budget]:
        cursor = conn.execute(
            """
            SELECT c.id, c.name, c.code, c.description, c.transaction_kind, b.amount
            FROM budget b
            JOIN category c ON c.id = b.category_id
            WHERE b.vault_id = ?
            """,
            (vault_id,),
        )
        return [
            Budget(category=Category.from_row(tuple(row)[:5]), amount=row["amount"])
            for row in cursor.fetchall()
        ]

    # =========================================================================
    # Update Operations
    # =========================================================================

    def save(self, vault: Vault) -> Vault:
        """
        Flush the vault's pending changes.

        Raises:
            sqlite3.Error: If the write failed. The vault keeps its changes so
                the save can be retried.
        """
        if not vault.has_changes:
            logger.debug(f"Vault {vault.id} has no changes to save")
            return vault

        with self._get_connection() as conn:
            if vault.is_dirty:
                self._upsert_vault(conn, vault)
            self._flush(conn, vault)

        vault.clear_changes()
        logger.debug(f"Saved vault {vault.id}")
        return vault

    def _upsert_vault(self, conn: sqlite3.Connection, vault: Vault):
        conn.execute(
            """
            INSERT INTO vault (id, token, created_at, custom_prompt, budget_start_day)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                custom_prompt = excluded.custom_prompt,
                budget_start_day = excluded.budget_start_day
            """,
            (
                vault.id,
                vault.token,
                vault.created_at.isoformat(),
                vault.custom_prompt,
                vault.budget_start_day,
            ),
        )

    def _flush(self, conn: sqlite3.Connection, vault: Vault):
        transactions = vault.transactions_tracker.get_changes()
        deleted_ids = {t.id for t in transactions.deleted}
        for transaction in transactions.new + transactions.dirty:
            if transaction.id in deleted_ids:
                continue
            self._upsert_transaction(conn, transaction)
        for transaction in transactions.deleted:
            conn.execute(
                'DELETE FROM "transaction" WHERE id = ? AND vault_id = ?',
                (transaction.id, vault.id),
            )

        budgets = vault.budgets_tracker.get_changes()
        for budget in budgets.new + budgets.dirty:
            conn.execute(
                """
                INSERT INTO budget (vault_id, category_id, amount)
                VALUES (?, ?, ?)
                ON CONFLICT(vault_id, category_id) DO UPDATE SET
                    amount = excluded.amount
                """,
                (vault.id, budget.category_id, budget.amount),
            )
        for budget in budgets.deleted:
            conn.execute(
                "DELETE FROM budget WHERE vault_id = ? AND category_id = ?",
                (vault.id, budget.category_id),
            )

    def _upsert_transaction(self, conn: sqlite3.Connection, t: Transaction):
        conn.execute(
            """
            INSERT INTO "transaction" (
                id, code, vault_id, amount, type, category_id, description,
                created_at, committed, date
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                amount = excluded.amount,
                type = excluded.type,
                category_id = excluded.category_id,
                description = excluded.description,
                committed = excluded.committed,
                date = excluded.date
            """,
            (
                t.id,
                t.code,
                t.vault_id,
                t.amount,
                t.kind.value,
                t.category_id,
                t.description,
                t.created_at.isoformat(),
                1 if t.is_committed else 0,
                t.date.isoformat(),
            ),
        )


def transaction_from_row(row: sqlite3.Row) -> Transaction:
    """Rebuild a transaction from a ``"transaction"`` table row."""
    return Transaction.restore(
        id=row["id"],
        code=row["code"],
        vault_id=row["vault_id"],
        amount=row["amount"],
        kind=TransactionKind(row["type"]),
        is_committed=bool(row["committed"]),
        description=row["description"],
        created_at=datetime.fromisoformat(row["created_at"]),
        date=datetime.fromisoformat(row["date"]),
        category_id=row["category_id"],
    )
