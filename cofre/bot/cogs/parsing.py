"""
Parsing Cog for recording transactions from chat messages.

Handles /income, /expense and mentions of the bot. Every parsed message
becomes a pending action that a channel member confirms or cancels.
"""

import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from cofre.config import CONFIRMATION_TIMEOUT, ERROR_MESSAGES, MAX_TRANSACTION_TEXT_LENGTH
from cofre.models import Action, Category, ErrorKind, TransactionKind
from cofre.services import VaultService

from ..formatting import format_action, format_money, format_transaction
from .base import VaultCog

logger = logging.getLogger(__name__)


class ActionView(discord.ui.View):
    """Confirm/Cancel buttons for a pending action."""

    def __init__(
        self,
        vault_service: VaultService,
        vault_id: str,
        action: Action,
        category: Optional[Category],
    ):
        super().__init__(timeout=CONFIRMATION_TIMEOUT)
        self.vault_service = vault_service
        self.vault_id = vault_id
        self.action = action
        self.category = category

    @discord.ui.button(label="✓ Confirm", style=discord.ButtonStyle.success)
    async def confirm_button(
        self, interaction: discord.Interaction, button: discord.ui.Button
    ):
        """Execute the pending action."""
        try:
            result = await self.vault_service.handle_vault_action(
                self.vault_id, self.action.id
            )
            if not result.ok:
                content = f"❌ {result.error}"
            else:
                vault = (await self.vault_service.get_vault(self.vault_id)).unwrap()
                content = (
                    "✅ Recorded!\n"
                    f"{format_transaction(result.value, self.category)}\n"
                    f"💵 **Balance:** {format_money(vault.get_balance())}"
                )
            await interaction.response.edit_message(content=content, view=None)
            logger.info(
                f"User {interaction.user.id} confirmed action {self.action.id}: "
                f"{'ok' if result.ok else result.error}"
            )
        except Exception as e:
            logger.error(f"Error in confirm_button: {e}", exc_info=True)
            await interaction.response.edit_message(
                content=f"❌ {ERROR_MESSAGES['internal_error']}", view=None
            )
        finally:
            self.stop()

    @discord.ui.button(label="✗ Cancel", style=discord.ButtonStyle.danger)
    async def cancel_button(
        self, interaction: discord.Interaction, button: discord.ui.Button
    ):
        """Cancel the pending action."""
        try:
            result = await self.vault_service.cancel_vault_action(
                self.vault_id, self.action.id
            )
            content = "🗑️ Cancelled." if result.ok else f"❌ {result.error}"
            await interaction.response.edit_message(content=content, view=None)
        except Exception as e:
            logger.error(f"Error in cancel_button: {e}", exc_info=True)
        finally:
            self.stop()

    async def on_timeout(self):
        """Called when the view times out."""
        await self.vault_service.cancel_vault_action(self.vault_id, self.action.id)
        logger.info(f"Action {self.action.id} timed out and was cancelled")


class ParsingCog(VaultCog):
    """Cog for transaction parsing functionality."""

    async def _propose(
        self, vault_id: str, text: str, force_kind: Optional[TransactionKind] = None
    ) -> tuple[str, Optional[ActionView]]:
        """Parse ``text`` into a pending action and build its confirmation message."""
        if len(text) > MAX_TRANSACTION_TEXT_LENGTH:
            return (
                f"❌ Message is too long (max {MAX_TRANSACTION_TEXT_LENGTH} characters).",
                None,
            )

        result = await self.vault_service.parse_vault_action(vault_id, text, force_kind)
        if not result.ok:
            if result.error.kind == ErrorKind.INVALID_INPUT:
                return (
                    "❓ I couldn't find an amount in your message.\n"
                    "Try something like `spent 45,90 on groceries`. Use `/help` for examples.",
                    None,
                )
            return f"❌ {result.error}", None

        action = result.value
        category = None
        if action.payload.category_id:
            categories = await self.vault_service.get_categories()
            category = next(
                (c for c in categories if c.id == action.payload.category_id), None
            )
        view = ActionView(self.vault_service, vault_id, action, category)
        return format_action(action, category), view

    async def _record(
        self,
        interaction: discord.Interaction,
        message: str,
        kind: TransactionKind,
    ):
        vault = await self._require_vault(interaction)
        if vault is None:
            return
        if not message or not message.strip():
            await interaction.response.send_message(
                "❌ Please describe the transaction.", ephemeral=True
            )
            return

        content, view = await self._propose(vault.id, message.strip(), kind)
        if view is None:
            await interaction.response.send_message(content, ephemeral=True)
            return
        await interaction.response.send_message(content, view=view)

    @app_commands.command(name="income", description="Record an income")
    @app_commands.describe(message="e.g. 'salary 5.000'")
    async def income_command(self, interaction: discord.Interaction, message: str):
        try:
            await self._record(interaction, message, TransactionKind.INCOME)
        except Exception as e:
            await self._send_error(interaction, "income_command", e)

    @app_commands.command(name="expense", description="Record an expense")
    @app_commands.describe(message="e.g. 'groceries 45,90'")
    async def expense_command(self, interaction: discord.Interaction, message: str):
        try:
            await self._record(interaction, message, TransactionKind.EXPENSE)
        except Exception as e:
            await self._send_error(interaction, "expense_command", e)

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        """Handle messages that mention the bot (or any DM) as transactions."""
        try:
            if message.author.bot or self.bot.user is None:
                return

            is_dm = isinstance(message.channel, discord.DMChannel)
            is_mentioned = self.bot.user in message.mentions
            if not is_dm and not is_mentioned:
                return

            content = message.content
            if is_mentioned:
                content = (
                    content.replace(f"<@{self.bot.user.id}>", "")
                    .replace(f"<@!{self.bot.user.id}>", "")
                    .strip()
                )
            if not content:
                return

            vault_result = await self.vault_service.get_vault_for_chat(
                str(message.channel.id)
            )
            if not vault_result.ok:
                await message.reply(f"🔒 {ERROR_MESSAGES['no_vault']}")
                return

            reply, view = await self._propose(vault_result.value.id, content)
            if view is None:
                await message.reply(reply)
            else:
                await message.reply(reply, view=view)
        except discord.HTTPException as e:
            logger.error(f"Discord API error in on_message: {e}", exc_info=True)
        except Exception as e:
            logger.error(f"Error in on_message: {e}", exc_info=True)
            try:
                await message.reply(f"❌ {ERROR_MESSAGES['internal_error']}")
            except discord.HTTPException:
                logger.error("Could not send error message to user")
