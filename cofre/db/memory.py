"""
In-memory persistence adapters.

Same method signatures as the SQLite repositories. Entities are stored as
row snapshots, never as the live objects handed to ``save``, so that only the
changes recorded by the vault's trackers ever reach the store.
"""

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from cofre.config import DEFAULT_PAGE_SIZE
from cofre.models import Action, Budget, Category, Transaction, TransactionKind, Vault

from .chats import Chat
from .seed import DEFAULT_CATEGORIES
from .transactions import Page, clamp_page, date_range

logger = logging.getLogger(__name__)


@dataclass
class InMemoryStore:
    """Tables shared by the in-memory repositories."""

    categories: dict[str, Category] = field(default_factory=dict)
    vaults: dict[str, dict] = field(default_factory=dict)
    transactions: dict[str, dict] = field(default_factory=dict)
    budgets: dict[tuple[str, str], float] = field(default_factory=dict)
    chats: dict[str, Chat] = field(default_factory=dict)
    actions: dict[str, tuple[str, Action]] = field(default_factory=dict)


def _transaction_row(t: Transaction) -> dict:
    return {
        "id": t.id,
        "code": t.code,
        "vault_id": t.vault_id,
        "amount": t.amount,
        "kind": t.kind.value,
        "is_committed": t.is_committed,
        "description": t.description,
        "created_at": t.created_at,
        "date": t.date,
        "category_id": t.category_id,
    }


def _transaction_from_row(row: dict) -> Transaction:
    return Transaction.restore(
        id=row["id"],
        code=row["code"],
        vault_id=row["vault_id"],
        amount=row["amount"],
        kind=TransactionKind(row["kind"]),
        is_committed=row["is_committed"],
        description=row["description"],
        created_at=row["created_at"],
        date=row["date"],
        category_id=row["category_id"],
    )


class InMemoryCategoryRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def find_all(self) -> list[Category]:
        return sorted(
            self.store.categories.values(),
            key=lambda c: (int(c.code) if c.code.isdigit() else 0, c.code),
        )

    def find_by_id(self, category_id: str) -> Optional[Category]:
        return self.store.categories.get(category_id)

    def find_by_code(self, code: str) -> Optional[Category]:
        for category in self.store.categories.values():
            if category.code == code.strip():
                return category
        return None

    def seed(self, categories: Sequence[Category] = DEFAULT_CATEGORIES) -> int:
        for category in categories:
            self.store.categories[category.id] = category
        return len(categories)


class InMemoryVaultRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def create(self, vault: Vault) -> Vault:
        self._upsert_vault(vault)
        self._flush(vault)
        vault.clear_changes()
        logger.info(f"Created vault {vault.id}")
        return vault

    def find_by_id(self, vault_id: str) -> Optional[Vault]:
        row = self.store.vaults.get(vault_id)
        return self._build(row) if row else None

    def find_by_token(self, token: str) -> Optional[Vault]:
        for row in self.store.vaults.values():
            if row["token"] == token:
                return self._build(row)
        return None

    def load(self, key: str) -> Optional[Vault]:
        """Load a vault by id or by its bearer token."""
        return self.find_by_id(key) or self.find_by_token(key)

    def save(self, vault: Vault) -> Vault:
        if not vault.has_changes:
            return vault
        if vault.is_dirty:
            self._upsert_vault(vault)
        self._flush(vault)
        vault.clear_changes()
        return vault

    def _build(self, row: dict) -> Vault:
        vault_id = row["id"]
        transactions = {
            r["id"]: _transaction_from_row(r)
            for r in self.store.transactions.values()
            if r["vault_id"] == vault_id
        }
        budgets = {}
        for (budget_vault_id, category_id), amount in self.store.budgets.items():
            category = self.store.categories.get(category_id)
            if budget_vault_id == vault_id and category is not None:
                budgets[category_id] = Budget(category=category, amount=amount)
        return Vault(
            id=vault_id,
            token=row["token"],
            created_at=row["created_at"],
            transactions=transactions,
            budgets=budgets,
            custom_prompt=row["custom_prompt"],
            budget_start_day=row["budget_start_day"],
        )

    def _upsert_vault(self, vault: Vault):
        existing = self.store.vaults.get(vault.id, {})
        self.store.vaults[vault.id] = {
            "id": vault.id,
            "token": existing.get("token", vault.token),
            "created_at": existing.get("created_at", vault.created_at),
            "custom_prompt": vault.custom_prompt,
            "budget_start_day": vault.budget_start_day,
        }

    def _flush(self, vault: Vault):
        transactions = vault.transactions_tracker.get_changes()
        deleted_ids = {t.id for t in transactions.deleted}
        for transaction in transactions.new + transactions.dirty:
            if transaction.id not in deleted_ids:
                self.store.transactions[transaction.id] = _transaction_row(transaction)
        for transaction in transactions.deleted:
            self.store.transactions.pop(transaction.id, None)

        budgets = vault.budgets_tracker.get_changes()
        for budget in budgets.new + budgets.dirty:
            self.store.budgets[(vault.id, budget.category_id)] = budget.amount
        for budget in budgets.deleted:
            self.store.budgets.pop((vault.id, budget.category_id), None)


class InMemoryActionRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def upsert(self, vault_id: str, action: Action) -> Action:
        self.store.actions[action.id] = (vault_id, copy.deepcopy(action))
        return action

    def find_by_id(
        self, action_id: str, vault_id: Optional[str] = None
    ) -> Optional[Action]:
        entry = self.store.actions.get(action_id)
        if entry is None:
            return None
        stored_vault_id, action = entry
        if vault_id is not None and stored_vault_id != vault_id:
            return None
        return copy.deepcopy(action)


class InMemoryTransactionQueryRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def find_by_vault(
        self,
        vault_id: str,
        month: Optional[int] = None,
        year: Optional[int] = None,
        day: Optional[int] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Page[Transaction]:
        page, page_size = clamp_page(page, page_size)
        vault_row = self.store.vaults.get(vault_id)
        if vault_row is None:
            return Page(page=page, page_size=page_size)

        rows = [r for r in self.store.transactions.values() if r["vault_id"] == vault_id]
        period = date_range(vault_row["budget_start_day"], month, year, day)
        if period:
            start, end = period
            rows = [r for r in rows if start <= r["date"] < end]

        rows.sort(key=lambda r: (r["date"], r["created_at"]), reverse=True)
        offset = (page - 1) * page_size
        items = [_transaction_from_row(r) for r in rows[offset : offset + page_size]]
        return Page(items=items, page=page, page_size=page_size, total=len(rows))


class InMemoryChatRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def find_by_chat_id(self, chat_id: str) -> Optional[Chat]:
        chat = self.store.chats.get(chat_id)
        return copy.copy(chat) if chat else None

    def upsert(self, chat: Chat) -> Chat:
        existing = self.store.chats.get(chat.chat_id)
        created_at: datetime = existing.created_at if existing else chat.created_at
        self.store.chats[chat.chat_id] = Chat(chat.chat_id, chat.vault_id, created_at)
        return chat
