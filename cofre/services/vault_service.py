"""
Application service for vaults.

Every use case loads the vault aggregate, applies ledger operations through
its API and saves it once. Expected failures come back as ``Result`` values;
the bot layer decides how to present them.
"""

import logging
from datetime import datetime
from typing import Optional, Union

from cofre.config import MAX_CUSTOM_PROMPT_LENGTH
from cofre.db import Chat, Page, Repositories
from cofre.models import (
    Action,
    BudgetSummary,
    Category,
    ErrorKind,
    Result,
    Transaction,
    TransactionKind,
    Vault,
)

from .access_tokens import AccessTokenStore
from .categorization import CategorizationPipeline
from .classifier import ClassifierError, TransactionClassifier
from .statement import StatementError, StatementParser, StatementSource

logger = logging.getLogger(__name__)

VAULT_NOT_FOUND = "Vault not found"


class VaultService:
    """Use cases of the shared ledger."""

    def __init__(
        self,
        repositories: Repositories,
        classifier: TransactionClassifier,
        pipeline: Optional[CategorizationPipeline] = None,
        token_store: Optional[AccessTokenStore] = None,
    ):
        """
        Initialize the service.

        Args:
            repositories: Repository bundle from ``get_repositories``
            classifier: Classifier used for free text and statement imports
            pipeline: Batch categorization pipeline. Defaults to one over
                ``classifier`` with the configured chunk size and concurrency
            token_store: Store for short-lived invitation codes
        """
        self.repositories = repositories
        self.classifier = classifier
        self.pipeline = (
            pipeline if pipeline is not None else CategorizationPipeline(classifier)
        )
        self.token_store = (
            token_store if token_store is not None else AccessTokenStore()
        )

    # =========================================================================
    # Vaults and chats
    # =========================================================================

    async def create_vault(self, chat_id: str) -> Result[Vault]:
        """Create a vault and bind ``chat_id`` to it."""
        vault = Vault.create()
        self.repositories.vaults.create(vault)
        self._bind_chat(chat_id, vault.id)
        logger.info(f"Chat {chat_id} created vault {vault.id}")
        return Result.success(vault)

    async def join_vault(self, chat_id: str, token_or_code: str) -> Result[Vault]:
        """
        Bind ``chat_id`` to an existing vault.

        Accepts the vault's permanent token or a short-lived invitation code.
        """
        key = (token_or_code or "").strip()
        vault = None
        grant = self.token_store.resolve(key) if key else None
        if grant is not None:
            vault = self.repositories.vaults.find_by_id(grant.vault_id)
            self.token_store.revoke(key)
        elif key:
            vault = self.repositories.vaults.find_by_token(key)

        if vault is None:
            return Result.failure(ErrorKind.NOT_FOUND, "Invalid or expired vault token")

        self._bind_chat(chat_id, vault.id)
        logger.info(f"Chat {chat_id} joined vault {vault.id}")
        return Result.success(vault)

    async def get_vault_for_chat(self, chat_id: str) -> Result[Vault]:
        chat = self.repositories.chats.find_by_chat_id(chat_id)
        if chat is None or not chat.vault_id:
            return Result.failure(ErrorKind.NOT_FOUND, "This chat has no vault")
        return self._load(chat.vault_id)

    async def get_vault(self, vault_id: str) -> Result[Vault]:
        return self._load(vault_id)

    async def create_invite(self, chat_id: str) -> Result[str]:
        """Issue a short-lived code other chats can use to join this chat's vault."""
        result = await self.get_vault_for_chat(chat_id)
        if not result.ok:
            return Result.from_error(result.error)
        return Result.success(self.token_store.issue(chat_id, result.value.id))

    def _bind_chat(self, chat_id: str, vault_id: str):
        chat = self.repositories.chats.find_by_chat_id(chat_id) or Chat(chat_id)
        chat.assign_to_vault(vault_id)
        self.repositories.chats.upsert(chat)

    def _load(self, vault_id: str) -> Result[Vault]:
        vault = self.repositories.vaults.find_by_id(vault_id)
        if vault is None:
            return Result.failure(ErrorKind.NOT_FOUND, VAULT_NOT_FOUND)
        return Result.success(vault)

    # =========================================================================
    # Actions from free text
    # =========================================================================

    async def parse_vault_action(
        self,
        vault_id: str,
        message: str,
        force_kind: Optional[TransactionKind] = None,
    ) -> Result[Action]:
        """
        Turn a chat message into a pending action awaiting confirmation.

        Returns:
            Result with the stored pending action, INVALID_INPUT when no
            transaction could be read from the message
        """
        loaded = self._load(vault_id)
        if not loaded.ok:
            return Result.from_error(loaded.error)
        vault = loaded.value

        categories = self.repositories.categories.find_all()
        try:
            parsed = await self.classifier.parse_action(
                message, categories, vault.custom_prompt, force_kind
            )
        except ClassifierError as e:
            logger.error(f"Classifier failed to parse message: {e}", exc_info=True)
            return Result.failure(
                ErrorKind.CLASSIFICATION_FAILED, "Could not understand that message"
            )

        if not parsed.is_valid():
            return Result.failure(
                ErrorKind.INVALID_INPUT, "No income or expense found in that message"
            )

        action = parsed.to_action()
        self.repositories.actions.upsert(vault_id, action)
        logger.debug(f"Stored pending action {action.id} for vault {vault_id}")
        return Result.success(action)

    async def handle_vault_action(
        self, vault_id: str, action_id: str
    ) -> Result[Transaction]:
        """
        Execute a pending action exactly once.

        Adds and commits the proposed transaction. The action becomes
        ``executed`` on success and ``failed`` otherwise; either way it can
        not be handled again.
        """
        action = self.repositories.actions.find_by_id(action_id, vault_id)
        if action is None:
            return Result.failure(ErrorKind.NOT_FOUND, "Action not found")
        if not action.is_pending:
            return Result.failure(
                ErrorKind.ACTION_NOT_PENDING,
                f"Action was already handled ({action.status.value})",
            )

        result = await self.add_transaction_to_vault(
            vault_id,
            amount=action.payload.amount,
            kind=action.type.transaction_kind,
            description=action.payload.description,
            category_id=action.payload.category_id,
            should_commit=True,
        )
        if result.ok:
            action.mark_executed()
        else:
            action.mark_failed()
        self.repositories.actions.upsert(vault_id, action)
        return result

    async def cancel_vault_action(self, vault_id: str, action_id: str) -> Result[Action]:
        action = self.repositories.actions.find_by_id(action_id, vault_id)
        if action is None:
            return Result.failure(ErrorKind.NOT_FOUND, "Action not found")
        cancelled = action.cancel()
        if not cancelled.ok:
            return Result.from_error(cancelled.error)
        self.repositories.actions.upsert(vault_id, action)
        return Result.success(action)

    # =========================================================================
    # Transactions
    # =========================================================================

    async def add_transaction_to_vault(
        self,
        vault_id: str,
        amount: float,
        kind: Union[TransactionKind, str],
        description: Optional[str] = None,
        category_id: Optional[str] = None,
        date: Optional[datetime] = None,
        should_commit: bool = True,
    ) -> Result[Transaction]:
        loaded = self._load(vault_id)
        if not loaded.ok:
            return Result.from_error(loaded.error)
        vault = loaded.value

        try:
            kind = TransactionKind(kind)
        except ValueError:
            return Result.failure(
                ErrorKind.INVALID_KIND,
                'Invalid transaction kind. Must be "income" or "expense".',
            )
        if amount is None or amount <= 0:
            return Result.failure(ErrorKind.INVALID_INPUT, "Amount must be positive")
        if category_id and self.repositories.categories.find_by_id(category_id) is None:
            return Result.failure(ErrorKind.NOT_FOUND, "Category not found")

        transaction = Transaction.create(
            amount=amount,
            vault_id=vault.id,
            kind=kind,
            description=description,
            category_id=category_id,
            date=date,
        )
        vault.add_transaction(transaction)
        if should_commit:
            committed = vault.commit_transaction(transaction.id)
            if not committed.ok:
                return Result.from_error(committed.error)

        self.repositories.vaults.save(vault)
        logger.info(
            f"Added {kind.value} #{transaction.code} of {transaction.amount:.2f} "
            f"to vault {vault.id}"
        )
        return Result.success(transaction)

    async def commit_transaction(self, vault_id: str, code: str) -> Result[Transaction]:
        loaded = self._load(vault_id)
        if not loaded.ok:
            return Result.from_error(loaded.error)
        vault = loaded.value

        transaction = vault.find_transaction_by_code(code)
        if transaction is None:
            return Result.failure(ErrorKind.NOT_FOUND, f"Transaction #{code} not found")
        committed = vault.commit_transaction(transaction.id)
        if not committed.ok:
            return Result.from_error(committed.error)

        self.repositories.vaults.save(vault)
        return Result.success(transaction)

    async def edit_transaction_in_vault(
        self,
        vault_id: str,
        code: str,
        amount: Optional[float] = None,
        description: Optional[str] = None,
        category_code: Optional[str] = None,
        date: Optional[datetime] = None,
        kind: Optional[Union[TransactionKind, str]] = None,
    ) -> Result[Transaction]:
        """Edit the given fields of a transaction; None leaves a field untouched."""
        loaded = self._load(vault_id)
        if not loaded.ok:
            return Result.from_error(loaded.error)
        vault = loaded.value

        patch: dict = {}
        if category_code:
            category = self.repositories.categories.find_by_code(category_code)
            if category is None:
                return Result.failure(ErrorKind.NOT_FOUND, "Category not found")
            patch["category_id"] = category.id
        if amount is not None:
            patch["amount"] = amount
        if description is not None:
            patch["description"] = description
        if date is not None:
            patch["date"] = date
        if kind is not None:
            patch["kind"] = kind

        edited = vault.edit_transaction(code, **patch)
        if not edited.ok:
            return edited

        self.repositories.vaults.save(vault)
        return edited

    async def delete_transaction(self, vault_id: str, code: str) -> Result[bool]:
        loaded = self._load(vault_id)
        if not loaded.ok:
            return Result.from_error(loaded.error)
        vault = loaded.value

        deleted = vault.delete_transaction(code)
        if not deleted.ok:
            return deleted
        self.repositories.vaults.save(vault)
        return deleted

    async def get_transactions(
        self,
        vault_id: str,
        month: Optional[int] = None,
        year: Optional[int] = None,
        day: Optional[int] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Result[Page[Transaction]]:
        """
        List transactions of a budget period, newest first.

        Defaults to the vault's current budget period.
        """
        loaded = self._load(vault_id)
        if not loaded.ok:
            return Result.from_error(loaded.error)
        vault = loaded.value

        if not (month and year):
            month, year = vault.get_current_budget_period()
        try:
            datetime(year, month, day or 1)
        except ValueError:
            return Result.failure(ErrorKind.INVALID_INPUT, "Invalid date filter")

        return Result.success(
            self.repositories.transactions.find_by_vault(
                vault_id, month, year, day, page, page_size
            )
        )

    # =========================================================================
    # Budgets and settings
    # =========================================================================

    async def set_budgets(
        self, vault_id: str, budgets: dict[str, float]
    ) -> Result[Vault]:
        """
        Set budgets keyed by category code.

        Unknown category codes are skipped. A negative amount aborts the whole
        update without saving.
        """
        loaded = self._load(vault_id)
        if not loaded.ok:
            return Result.from_error(loaded.error)
        vault = loaded.value

        categories = {c.code: c for c in self.repositories.categories.find_all()}
        for code, amount in budgets.items():
            category = categories.get(code.strip())
            if category is None:
                logger.warning(f"Skipping budget for unknown category code {code}")
                continue
            result = vault.set_budget(category, amount)
            if not result.ok:
                return Result.from_error(result.error)

        self.repositories.vaults.save(vault)
        return Result.success(vault)

    async def get_budgets_summary(
        self,
        vault_id: str,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> Result[list[BudgetSummary]]:
        loaded = self._load(vault_id)
        if not loaded.ok:
            return Result.from_error(loaded.error)
        return Result.success(loaded.value.get_budgets_summary(month, year))

    async def get_categories(self) -> list[Category]:
        return self.repositories.categories.find_all()

    async def edit_custom_prompt(self, vault_id: str, prompt: str) -> Result[Vault]:
        if len(prompt or "") > MAX_CUSTOM_PROMPT_LENGTH:
            return Result.failure(
                ErrorKind.INVALID_INPUT,
                f"Prompt is too long (max {MAX_CUSTOM_PROMPT_LENGTH} characters)",
            )
        loaded = self._load(vault_id)
        if not loaded.ok:
            return loaded
        vault = loaded.value
        vault.edit_custom_prompt(prompt)
        self.repositories.vaults.save(vault)
        return Result.success(vault)

    async def set_budget_start_day(self, vault_id: str, day: int) -> Result[Vault]:
        loaded = self._load(vault_id)
        if not loaded.ok:
            return loaded
        vault = loaded.value
        result = vault.set_budget_start_day(day)
        if not result.ok:
            return Result.from_error(result.error)
        self.repositories.vaults.save(vault)
        return Result.success(vault)

    # =========================================================================
    # Statement import
    # =========================================================================

    async def import_statement(
        self, vault_id: str, source: StatementSource
    ) -> Result[list[Transaction]]:
        """
        Import a bank statement into the vault.

        Rows are parsed, categorized in batch, then added and committed
        through the vault. Nothing is saved if categorization fails as a
        whole; individual transactions the classifier could not place stay
        uncategorized.
        """
        loaded = self._load(vault_id)
        if not loaded.ok:
            return Result.from_error(loaded.error)
        vault = loaded.value

        try:
            transactions = StatementParser.parse(source, vault.id)
        except StatementError as e:
            return Result.failure(ErrorKind.INVALID_INPUT, str(e))
        if not transactions:
            return Result.failure(
                ErrorKind.INVALID_INPUT, "No transactions found in statement"
            )

        categories = self.repositories.categories.find_all()
        categorized = await self.pipeline.categorize(
            transactions, categories, vault.custom_prompt
        )
        if not categorized.ok:
            logger.error(
                f"Aborting statement import for vault {vault.id}: {categorized.error}"
            )
            return Result.from_error(categorized.error)

        assigned = CategorizationPipeline.apply(transactions, categorized.value)

        for transaction in transactions:
            vault.add_transaction(transaction)
            committed = vault.commit_transaction(transaction.id)
            if not committed.ok:
                logger.warning(
                    f"Could not commit imported transaction #{transaction.code}: "
                    f"{committed.error}"
                )

        self.repositories.vaults.save(vault)
        logger.info(
            f"Imported {len(transactions)} transactions into vault {vault.id}, "
            f"{assigned} categorized"
        )
        return Result.success(transactions)
