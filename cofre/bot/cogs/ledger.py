"""
Ledger Cog for viewing and managing vault transactions.

Handles /balance, /summary, /transactions, /commit, /edit and /delete.
"""

import logging
from datetime import datetime
from typing import Optional

import discord
from discord import app_commands

from cofre.config import DEFAULT_PAGE_SIZE
from cofre.models import TransactionKind
from cofre.services import AmountParser

from ..formatting import (
    format_budgets,
    format_money,
    format_transaction,
    format_transactions_page,
    format_vault_summary,
    split_message,
)
from .base import VaultCog

logger = logging.getLogger(__name__)


class LedgerCog(VaultCog):
    """Cog for ledger viewing and management commands."""

    @app_commands.command(name="balance", description="Show the vault balance")
    async def balance_command(self, interaction: discord.Interaction):
        try:
            vault = await self._require_vault(interaction)
            if vault is None:
                return
            pending = sum(1 for t in vault.transactions.values() if not t.is_committed)
            content = f"💵 **Balance:** {format_money(vault.get_balance())}"
            if pending:
                content += f"\n⏳ {pending} pending transaction(s) not counted"
            await interaction.response.send_message(
                content, ephemeral=not self._is_dm(interaction)
            )
        except Exception as e:
            await self._send_error(interaction, "balance_command", e)

    @app_commands.command(name="summary", description="Summary of a budget period")
    @app_commands.describe(month="Month (1-12)", year="Year, e.g. 2026")
    async def summary_command(
        self,
        interaction: discord.Interaction,
        month: Optional[app_commands.Range[int, 1, 12]] = None,
        year: Optional[app_commands.Range[int, 2000, 2100]] = None,
    ):
        try:
            vault = await self._require_vault(interaction)
            if vault is None:
                return
            if not (month and year):
                month, year = vault.get_current_budget_period()
            content = (
                format_vault_summary(vault, month, year)
                + "\n\n🎯 **Budgets**\n"
                + format_budgets(vault.get_budgets_summary(month, year))
            )
            await interaction.response.send_message(
                content, ephemeral=not self._is_dm(interaction)
            )
        except Exception as e:
            await self._send_error(interaction, "summary_command", e)

    @app_commands.command(name="transactions", description="List transactions")
    @app_commands.describe(
        month="Month (1-12)",
        year="Year, e.g. 2026",
        day="Day of the month",
        page="Page number",
    )
    async def transactions_command(
        self,
        interaction: discord.Interaction,
        month: Optional[app_commands.Range[int, 1, 12]] = None,
        year: Optional[app_commands.Range[int, 2000, 2100]] = None,
        day: Optional[app_commands.Range[int, 1, 31]] = None,
        page: app_commands.Range[int, 1, 1000] = 1,
    ):
        try:
            vault = await self._require_vault(interaction)
            if vault is None:
                return
            result = await self.vault_service.get_transactions(
                vault.id, month, year, day, page, DEFAULT_PAGE_SIZE
            )
            if not result.ok:
                await self._send(interaction, f"❌ {result.error}", ephemeral=True)
                return
            categories = {c.id: c for c in await self.vault_service.get_categories()}
            content = format_transactions_page(result.value, categories)
            ephemeral = not self._is_dm(interaction)
            for part in split_message(content):
                await self._send(interaction, part, ephemeral=ephemeral)
        except Exception as e:
            await self._send_error(interaction, "transactions_command", e)

    @app_commands.command(name="commit", description="Count a pending transaction")
    @app_commands.describe(code="Transaction code, e.g. a1b2")
    async def commit_command(self, interaction: discord.Interaction, code: str):
        try:
            vault = await self._require_vault(interaction)
            if vault is None:
                return
            result = await self.vault_service.commit_transaction(
                vault.id, code.strip().lstrip("#")
            )
            if not result.ok:
                await self._send(interaction, f"❌ {result.error}", ephemeral=True)
                return
            await self._send(
                interaction,
                f"✅ Transaction `#{result.value.code}` committed.",
                ephemeral=not self._is_dm(interaction),
            )
        except Exception as e:
            await self._send_error(interaction, "commit_command", e)

    @app_commands.command(name="edit", description="Edit a transaction")
    @app_commands.describe(
        code="Transaction code",
        amount="New amount",
        description="New description",
        category="New category code (see /categories)",
        date="New date (YYYY-MM-DD)",
        kind="Income or expense",
    )
    @app_commands.choices(
        kind=[
            app_commands.Choice(name="Income", value="income"),
            app_commands.Choice(name="Expense", value="expense"),
        ]
    )
    async def edit_command(
        self,
        interaction: discord.Interaction,
        code: str,
        amount: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
        date: Optional[str] = None,
        kind: Optional[str] = None,
    ):
        try:
            vault = await self._require_vault(interaction)
            if vault is None:
                return

            new_amount = None
            if amount:
                new_amount = AmountParser.parse(amount)
                if new_amount is None or new_amount <= 0:
                    await self._send(
                        interaction, "❌ Amount must be a positive number.", ephemeral=True
                    )
                    return

            new_date = None
            if date:
                try:
                    new_date = datetime.strptime(date.strip(), "%Y-%m-%d")
                except ValueError:
                    await self._send(
                        interaction, "❌ Date must look like 2026-01-31.", ephemeral=True
                    )
                    return

            if all(v is None for v in (new_amount, description, category, new_date, kind)):
                await self._send(interaction, "ℹ️ Nothing to change.", ephemeral=True)
                return

            result = await self.vault_service.edit_transaction_in_vault(
                vault.id,
                code.strip().lstrip("#"),
                amount=new_amount,
                description=description,
                category_code=category,
                date=new_date,
                kind=TransactionKind(kind) if kind else None,
            )
            if not result.ok:
                await self._send(interaction, f"❌ {result.error}", ephemeral=True)
                return

            transaction = result.value
            category_obj = None
            if transaction.category_id:
                categories = await self.vault_service.get_categories()
                category_obj = next(
                    (c for c in categories if c.id == transaction.category_id), None
                )
            await self._send(
                interaction,
                f"✏️ Updated:\n{format_transaction(transaction, category_obj)}",
                ephemeral=not self._is_dm(interaction),
            )
        except Exception as e:
            await self._send_error(interaction, "edit_command", e)

    @app_commands.command(name="delete", description="Delete a transaction")
    @app_commands.describe(code="Transaction code")
    async def delete_command(self, interaction: discord.Interaction, code: str):
        try:
            vault = await self._require_vault(interaction)
            if vault is None:
                return
            code = code.strip().lstrip("#")
            result = await self.vault_service.delete_transaction(vault.id, code)
            if not result.ok:
                await self._send(interaction, f"❌ {result.error}", ephemeral=True)
                return
            await self._send(
                interaction,
                f"🗑️ Transaction `#{code}` deleted.",
                ephemeral=not self._is_dm(interaction),
            )
        except Exception as e:
            await self._send_error(interaction, "delete_command", e)
