"""
Budget Cog for monthly category budgets.

Handles /setbudget and /budgets.
"""

import logging
from typing import Optional

import discord
from discord import app_commands

from cofre.services import AmountParser

from ..formatting import format_budgets, format_money
from .base import VaultCog

logger = logging.getLogger(__name__)


class BudgetCog(VaultCog):
    """Cog for budget commands."""

    @app_commands.command(name="setbudget", description="Set a monthly category budget")
    @app_commands.describe(
        category="Category code (see /categories)",
        amount="Monthly budget, e.g. 800 or 1.200,00",
    )
    async def setbudget_command(
        self, interaction: discord.Interaction, category: str, amount: str
    ):
        try:
            vault = await self._require_vault(interaction)
            if vault is None:
                return

            value = AmountParser.parse(amount)
            if value is None:
                await self._send(interaction, "❌ Invalid amount.", ephemeral=True)
                return

            code = category.strip()
            known = {c.code: c for c in await self.vault_service.get_categories()}
            if code not in known:
                await self._send(
                    interaction,
                    f"❌ Unknown category code `{code}`. Use `/categories`.",
                    ephemeral=True,
                )
                return

            result = await self.vault_service.set_budgets(vault.id, {code: value})
            if not result.ok:
                await self._send(interaction, f"❌ {result.error}", ephemeral=True)
                return

            await self._send(
                interaction,
                f"🎯 Budget for {known[code].name} set to {format_money(value)}.",
                ephemeral=not self._is_dm(interaction),
            )
            logger.info(f"Budget {code}={value} set for vault {vault.id}")
        except Exception as e:
            await self._send_error(interaction, "setbudget_command", e)

    @app_commands.command(name="budgets", description="Show budget utilization")
    @app_commands.describe(month="Month (1-12)", year="Year, e.g. 2026")
    async def budgets_command(
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

            result = await self.vault_service.get_budgets_summary(vault.id, month, year)
            if not result.ok:
                await self._send(interaction, f"❌ {result.error}", ephemeral=True)
                return

            total = vault.total_budgeted_amount()
            spent = sum(s.spent for s in result.value)
            content = (
                f"🎯 **Budgets {month:02d}/{year}**\n"
                f"{format_budgets(result.value)}\n"
                f"Spent {format_money(spent)} of {format_money(total)} budgeted"
            )
            await self._send(
                interaction, content, ephemeral=not self._is_dm(interaction)
            )
        except Exception as e:
            await self._send_error(interaction, "budgets_command", e)
