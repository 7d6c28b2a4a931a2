"""
General Cog for help, vault membership and settings commands.

Handles /help, /ping, /create, /join, /invite, /prompt, /startday and
/categories.
"""

import logging

import discord
from discord import app_commands

from cofre.config import ACCESS_TOKEN_TTL, MAX_BUDGET_START_DAY, MIN_BUDGET_START_DAY

from .base import VaultCog

logger = logging.getLogger(__name__)

HELP_TEXT = """
**Cofre - shared finance vault** 🏦

Every channel is bound to one vault. Everyone in the channel shares its ledger.

**🔑 Vault**
• `/create` - Create a vault for this channel
• `/join <token>` - Join an existing vault with its token or an invite code
• `/invite` - Get a short-lived invite code for another channel
• `/prompt <text>` - Set hints for categorization, one `phrase: category` per line
• `/startday <day>` - Day of the month your budget period starts

**📝 Recording**
• `/income <message>` / `/expense <message>` - Record a transaction
• Or mention me with a message like `spent 45,90 on groceries`

**📊 Viewing**
• `/balance` - Current balance
• `/summary [month] [year]` - Income, expenses and budgets of a period
• `/transactions [month] [year] [day] [page]` - List transactions
• `/budgets [month] [year]` - Budget utilization
• `/categories` - Category codes

**✏️ Managing**
• `/commit <code>` - Count a pending transaction in the balance
• `/edit <code> ...` - Edit a transaction
• `/delete <code>` - Delete a transaction
• `/setbudget <category> <amount>` - Set a monthly budget
• `/import <file>` - Import a CSV bank statement
• `/export [format] [month] [year]` - Export to XLSX or CSV

**Amounts:** `50`, `12,50`, `1.234,56`, `R$ 30`, `1.5k`
"""


class GeneralCog(VaultCog):
    """Cog for general bot commands and vault membership."""

    @app_commands.command(name="help", description="Show help for using Cofre bot")
    async def help_command(self, interaction: discord.Interaction):
        """Show help information."""
        await interaction.response.send_message(
            HELP_TEXT.strip(), ephemeral=not self._is_dm(interaction)
        )

    @app_commands.command(name="ping", description="Check if the bot is responsive")
    async def ping_command(self, interaction: discord.Interaction):
        """Check bot latency."""
        latency = round(self.bot.latency * 1000)
        await interaction.response.send_message(
            f"🏓 Pong! Latency: {latency}ms",
            ephemeral=not self._is_dm(interaction),
        )

    @app_commands.command(name="create", description="Create a vault for this channel")
    async def create_command(self, interaction: discord.Interaction):
        try:
            chat_id = self._chat_id(interaction)
            existing = await self.vault_service.get_vault_for_chat(chat_id)
            if existing.ok:
                await interaction.response.send_message(
                    "ℹ️ This channel already has a vault. Use `/join` to switch vaults.",
                    ephemeral=True,
                )
                return

            result = await self.vault_service.create_vault(chat_id)
            vault = result.unwrap()
            await interaction.response.send_message(
                "✅ Vault created!\n"
                f"Token (keep it secret, it grants full access): ||`{vault.token}`||",
                ephemeral=True,
            )
        except Exception as e:
            await self._send_error(interaction, "create_command", e)

    @app_commands.command(name="join", description="Join an existing vault")
    @app_commands.describe(token="Vault token or invite code")
    async def join_command(self, interaction: discord.Interaction, token: str):
        try:
            result = await self.vault_service.join_vault(self._chat_id(interaction), token)
            if not result.ok:
                await interaction.response.send_message(f"❌ {result.error}", ephemeral=True)
                return
            await interaction.response.send_message(
                "✅ This channel now uses the shared vault.", ephemeral=True
            )
        except Exception as e:
            await self._send_error(interaction, "join_command", e)

    @app_commands.command(name="invite", description="Create a short-lived invite code")
    async def invite_command(self, interaction: discord.Interaction):
        try:
            result = await self.vault_service.create_invite(self._chat_id(interaction))
            if not result.ok:
                await interaction.response.send_message(f"❌ {result.error}", ephemeral=True)
                return
            minutes = int(ACCESS_TOKEN_TTL // 60)
            await interaction.response.send_message(
                f"🎟️ Invite code: `{result.value}`\n"
                f"Use `/join {result.value}` in another channel within {minutes} minutes.",
                ephemeral=True,
            )
        except Exception as e:
            await self._send_error(interaction, "invite_command", e)

    @app_commands.command(name="prompt", description="Set categorization hints")
    @app_commands.describe(text="One 'phrase: category' hint per line, empty to clear")
    async def prompt_command(self, interaction: discord.Interaction, text: str = ""):
        try:
            vault = await self._require_vault(interaction)
            if vault is None:
                return
            # Slash command options are single-line; allow ";" as a separator
            prompt = "\n".join(part.strip() for part in text.split(";") if part.strip())
            result = await self.vault_service.edit_custom_prompt(vault.id, prompt)
            if not result.ok:
                await interaction.response.send_message(f"❌ {result.error}", ephemeral=True)
                return
            await interaction.response.send_message(
                "✅ Categorization hints updated." if prompt else "✅ Hints cleared.",
                ephemeral=not self._is_dm(interaction),
            )
        except Exception as e:
            await self._send_error(interaction, "prompt_command", e)

    @app_commands.command(name="startday", description="Set the budget period start day")
    @app_commands.describe(day="Day of the month the budget period starts")
    async def startday_command(
        self,
        interaction: discord.Interaction,
        day: app_commands.Range[int, MIN_BUDGET_START_DAY, MAX_BUDGET_START_DAY],
    ):
        try:
            vault = await self._require_vault(interaction)
            if vault is None:
                return
            result = await self.vault_service.set_budget_start_day(vault.id, day)
            if not result.ok:
                await interaction.response.send_message(f"❌ {result.error}", ephemeral=True)
                return
            await interaction.response.send_message(
                f"✅ Budget periods now start on day {day}.",
                ephemeral=not self._is_dm(interaction),
            )
        except Exception as e:
            await self._send_error(interaction, "startday_command", e)

    @app_commands.command(name="categories", description="List category codes")
    async def categories_command(self, interaction: discord.Interaction):
        try:
            categories = await self.vault_service.get_categories()
            lines = ["**Categories**", "```"]
            for category in categories:
                lines.append(
                    f"{category.code:>3}  {category.name} ({category.transaction_kind.value})"
                )
            lines.append("```")
            await interaction.response.send_message(
                "\n".join(lines), ephemeral=not self._is_dm(interaction)
            )
        except Exception as e:
            await self._send_error(interaction, "categories_command", e)
