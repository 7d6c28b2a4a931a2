"""
Base repository module with connection management and schema initialization.

Provides the foundation for all SQLite operations of the Cofre ledger.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from cofre.config import DB_TIMEOUT, DEFAULT_DB_PATH

logger = logging.getLogger(__name__)


class BaseRepository:
    """
    Base repository class with SQLite connection management.

    Provides schema initialization and the connection context manager used by
    every SQLite repository.
    """

    def __init__(self, db_path: Optional[Path] = None, init_schema: bool = True):
        """
        Initialize the base repository.

        Args:
            db_path: Path to the SQLite database file. Defaults to data/cofre.db
            init_schema: Whether to initialize the schema on startup
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self._ensure_db_directory()
        if init_schema:
            self._init_schema()

    def _ensure_db_directory(self):
        """Ensure the database directory exists."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Database directory ensured: {self.db_path.parent}")
        except Exception as e:
            logger.error(f"Failed to create database directory: {e}", exc_info=True)
            raise

    @contextmanager
    def _get_connection(self):
        """
        Context manager for database connections with proper error handling.

        Everything executed inside the block is committed at once, or rolled
        back if any statement fails.
        """
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=DB_TIMEOUT)
            conn.row_factory = sqlite3.Row
            # Enable foreign keys
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
            conn.commit()
        except sqlite3.OperationalError as e:
            logger.error(f"Database locked or operational error: {e}", exc_info=True)
            if conn:
                conn.rollback()
            raise
        except Exception as e:
            logger.error(f"Database error: {e}", exc_info=True)
            if conn:
                conn.rollback()
            raise
        finally:
            if conn:
                conn.close()

    def _init_schema(self):
        """Initialize the database schema for vaults, transactions and budgets."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS category (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    code TEXT NOT NULL UNIQUE,
                    description TEXT NOT NULL DEFAULT '',
                    transaction_kind TEXT NOT NULL DEFAULT 'expense' CHECK(
                        transaction_kind IN ('income', 'expense', 'both')
                    )
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS vault (
                    id TEXT PRIMARY KEY,
                    token TEXT NOT NULL UNIQUE,
                    created_at TEXT NOT NULL,
                    custom_prompt TEXT NOT NULL DEFAULT '',
                    budget_start_day INTEGER NOT NULL DEFAULT 1 CHECK(
                        budget_start_day BETWEEN 1 AND 28
                    )
                )
            """)

            # Chat groups bound to a vault
            conn.execute("""
                CREATE TABLE IF NOT EXISTS chat (
                    chat_id TEXT PRIMARY KEY CHECK(length(chat_id) > 0),
                    vault_id TEXT REFERENCES vault(id) ON DELETE SET NULL,
                    created_at TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS "transaction" (
                    id TEXT PRIMARY KEY,
                    code TEXT NOT NULL,
                    vault_id TEXT NOT NULL REFERENCES vault(id) ON DELETE CASCADE,
                    amount REAL NOT NULL CHECK(amount >= 0),
                    type TEXT NOT NULL CHECK(type IN ('income', 'expense')),
                    category_id TEXT REFERENCES category(id) ON DELETE SET NULL,
                    description TEXT,
                    created_at TEXT NOT NULL,
                    committed INTEGER NOT NULL DEFAULT 0 CHECK(committed IN (0, 1)),
                    date TEXT NOT NULL
                )
            """)

            # One budget per (vault, category)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS budget (
                    vault_id TEXT NOT NULL REFERENCES vault(id) ON DELETE CASCADE,
                    category_id TEXT NOT NULL REFERENCES category(id) ON DELETE CASCADE,
                    amount REAL NOT NULL CHECK(amount >= 0),
                    PRIMARY KEY (vault_id, category_id)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS action (
                    id TEXT PRIMARY KEY,
                    vault_id TEXT NOT NULL REFERENCES vault(id) ON DELETE CASCADE,
                    type TEXT NOT NULL CHECK(type IN ('income', 'expense')),
                    payload TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'pending' CHECK(
                        status IN ('pending', 'executed', 'failed', 'cancelled')
                    )
                )
            """)

            self._create_indexes(conn)

            logger.debug("Vault ledger schema initialized successfully")

    def _create_indexes(self, conn):
        """Create database indexes for query performance."""
        indexes = [
            ("idx_chat_vault_id", "chat", "vault_id"),
            ("idx_transaction_vault_id", '"transaction"', "vault_id"),
            ("idx_transaction_vault_date", '"transaction"', "vault_id, date DESC"),
            ("idx_transaction_vault_code", '"transaction"', "vault_id, code"),
            ("idx_budget_vault_id", "budget", "vault_id"),
            ("idx_action_vault_id", "action", "vault_id"),
        ]

        for index_name, table, columns in indexes:
            conn.execute(f"""
                CREATE INDEX IF NOT EXISTS {index_name}
                ON {table}({columns})
            """)
