"""
Shared helpers for cogs that operate on the vault of the current channel.
"""

import logging
from typing import Optional

import discord
from discord.ext import commands

from cofre.config import ERROR_MESSAGES
from cofre.models import Vault
from cofre.services import VaultService

logger = logging.getLogger(__name__)


class VaultCog(commands.Cog):
    """Base cog: one Discord channel maps to one chat, bound to one vault."""

    def __init__(self, bot: commands.Bot, vault_service: VaultService):
        self.bot = bot
        self.vault_service = vault_service

    def _is_dm(self, interaction: discord.Interaction) -> bool:
        """Check if interaction is in a DM."""
        return interaction.guild is None

    def _chat_id(self, interaction: discord.Interaction) -> str:
        return str(interaction.channel_id)

    async def _send(self, interaction: discord.Interaction, content: str, **kwargs):
        """Reply whether or not the interaction was already answered or deferred."""
        if interaction.response.is_done():
            await interaction.followup.send(content, **kwargs)
        else:
            await interaction.response.send_message(content, **kwargs)

    async def _require_vault(
        self, interaction: discord.Interaction
    ) -> Optional[Vault]:
        """Return the channel's vault, or tell the user how to get one."""
        result = await self.vault_service.get_vault_for_chat(self._chat_id(interaction))
        if not result.ok:
            await self._send(interaction, f"🔒 {ERROR_MESSAGES['no_vault']}", ephemeral=True)
            return None
        return result.value

    async def _send_error(self, interaction: discord.Interaction, command: str, error: Exception):
        logger.error(f"Error in {command}: {error}", exc_info=True)
        try:
            await self._send(
                interaction, f"❌ {ERROR_MESSAGES['internal_error']}", ephemeral=True
            )
        except discord.HTTPException:
            logger.error("Could not send error message to user")
