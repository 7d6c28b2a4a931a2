"""
Database module for the Cofre ledger.

Structure:
- base.py: Base repository with connection management and schema
- seed.py: Default categories
- categories.py: Category reference data
- vaults.py: Vault aggregate load/save with change tracking
- transactions.py: Paginated transaction listing
- actions.py: Pending actions proposed from free text
- chats.py: Chat to vault bindings
- memory.py: In-memory versions of every repository
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from cofre.config import DEFAULT_DB_PATH, STORAGE_BACKEND, STORAGE_BACKENDS

from .actions import ActionRepository
from .base import BaseRepository
from .categories import CategoryRepository
from .chats import Chat, ChatRepository
from .memory import (
    InMemoryActionRepository,
    InMemoryCategoryRepository,
    InMemoryChatRepository,
    InMemoryStore,
    InMemoryTransactionQueryRepository,
    InMemoryVaultRepository,
)
from .seed import DEFAULT_CATEGORIES
from .transactions import Page, TransactionQueryRepository
from .vaults import VaultRepository

logger = logging.getLogger(__name__)


@dataclass
class Repositories:
    """Every repository the application service needs, on one backend."""

    vaults: Any
    categories: Any
    actions: Any
    transactions: Any
    chats: Any


def get_repositories(
    backend: Optional[str] = None, db_path: Optional[Path] = None
) -> Repositories:
    """
    Build the repository bundle for a storage backend.

    Args:
        backend: "sqlite" or "memory". Defaults to STORAGE_BACKEND
        db_path: SQLite database file. Defaults to DEFAULT_DB_PATH

    Returns:
        Repositories with the default categories seeded

    Raises:
        ValueError: If the backend is unknown
    """
    backend = (backend or STORAGE_BACKEND).lower()
    if backend not in STORAGE_BACKENDS:
        raise ValueError(
            f"Unknown storage backend '{backend}'. Choose one of: {', '.join(STORAGE_BACKENDS)}"
        )

    if backend == "memory":
        store = InMemoryStore()
        repositories = Repositories(
            vaults=InMemoryVaultRepository(store),
            categories=InMemoryCategoryRepository(store),
            actions=InMemoryActionRepository(store),
            transactions=InMemoryTransactionQueryRepository(store),
            chats=InMemoryChatRepository(store),
        )
    else:
        path = Path(db_path) if db_path else DEFAULT_DB_PATH
        # First repository creates the schema, the rest reuse it
        repositories = Repositories(
            vaults=VaultRepository(path, init_schema=True),
            categories=CategoryRepository(path),
            actions=ActionRepository(path),
            transactions=TransactionQueryRepository(path),
            chats=ChatRepository(path),
        )

    repositories.categories.seed(DEFAULT_CATEGORIES)
    logger.info(f"Repositories ready on '{backend}' backend")
    return repositories


__all__ = [
    # Base
    "BaseRepository",
    "Repositories",
    "get_repositories",
    # Models
    "Chat",
    "Page",
    "DEFAULT_CATEGORIES",
    # SQLite repositories
    "ActionRepository",
    "CategoryRepository",
    "ChatRepository",
    "TransactionQueryRepository",
    "VaultRepository",
    # In-memory repositories
    "InMemoryActionRepository",
    "InMemoryCategoryRepository",
    "InMemoryChatRepository",
    "InMemoryStore",
    "InMemoryTransactionQueryRepository",
    "InMemoryVaultRepository",
]
