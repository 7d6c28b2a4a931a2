"""
Statement Cog for importing bank statements and exporting the vault.

Handles /import and /export.
"""

import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from cofre.config import ERROR_MESSAGES, MAX_STATEMENT_SIZE
from cofre.models import ErrorKind
from cofre.services import ExportFormat, ExportService, VaultService

from ..formatting import format_money
from .base import VaultCog

logger = logging.getLogger(__name__)


class StatementCog(VaultCog):
    """Cog for statement import and export."""

    def __init__(
        self,
        bot: commands.Bot,
        vault_service: VaultService,
        export_service: ExportService,
    ):
        super().__init__(bot, vault_service)
        self.export_service = export_service

    @app_commands.command(name="import", description="Import a CSV bank statement")
    @app_commands.describe(file="CSV with date (dd/mm/yyyy), value, id, description")
    async def import_command(
        self, interaction: discord.Interaction, file: discord.Attachment
    ):
        try:
            vault = await self._require_vault(interaction)
            if vault is None:
                return

            if not file.filename.lower().endswith(".csv"):
                await self._send(interaction, "❌ Please upload a .csv file.", ephemeral=True)
                return
            if file.size > MAX_STATEMENT_SIZE:
                await self._send(
                    interaction,
                    f"❌ File too large (max {MAX_STATEMENT_SIZE // 1_000_000} MB).",
                    ephemeral=True,
                )
                return

            # Categorization can take a while
            await interaction.response.defer(ephemeral=not self._is_dm(interaction))
            data = await file.read()

            result = await self.vault_service.import_statement(vault.id, data)
            if not result.ok:
                if result.error.kind == ErrorKind.PIPELINE_FAILED:
                    message = ERROR_MESSAGES["pipeline_failed"]
                else:
                    message = str(result.error)
                await self._send(interaction, f"❌ {message}", ephemeral=True)
                return

            transactions = result.value
            categorized = sum(1 for t in transactions if t.category_id)
            net = sum(t.signed_amount for t in transactions)
            await self._send(
                interaction,
                f"📥 Imported **{len(transactions)}** transactions "
                f"({categorized} categorized), net {format_money(net)}.",
                ephemeral=not self._is_dm(interaction),
            )
            logger.info(
                f"Imported {len(transactions)} transactions from {file.filename} "
                f"into vault {vault.id}"
            )
        except Exception as e:
            await self._send_error(interaction, "import_command", e)

    @app_commands.command(name="export", description="Export the vault to a file")
    @app_commands.describe(
        format="Export format (xlsx or csv)",
        month="Budget month to export (all time if empty)",
        year="Budget year to export",
    )
    @app_commands.choices(
        format=[
            app_commands.Choice(name="Excel (XLSX)", value="xlsx"),
            app_commands.Choice(name="CSV", value="csv"),
        ]
    )
    async def export_command(
        self,
        interaction: discord.Interaction,
        format: str = "xlsx",
        month: Optional[app_commands.Range[int, 1, 12]] = None,
        year: Optional[app_commands.Range[int, 2000, 2100]] = None,
    ):
        try:
            vault = await self._require_vault(interaction)
            if vault is None:
                return
            is_dm = self._is_dm(interaction)
            await interaction.response.defer(ephemeral=not is_dm)

            if not vault.transactions:
                await self._send(
                    interaction,
                    "📭 No transactions found to export.",
                    ephemeral=not is_dm,
                )
                return

            export_format = ExportFormat(format)
            categories = await self.vault_service.get_categories()
            if export_format == ExportFormat.XLSX:
                buffer = self.export_service.export_to_xlsx(vault, categories, month, year)
            else:
                buffer = self.export_service.export_to_csv(vault, categories, month, year)

            filename = self.export_service.get_filename(export_format, month, year)
            try:
                await interaction.followup.send(
                    "📁 Here's your vault export:",
                    file=discord.File(buffer, filename=filename),
                    ephemeral=not is_dm,
                )
            except discord.HTTPException as e:
                logger.error(f"Discord API error sending file: {e}", exc_info=True)
                await self._send(
                    interaction,
                    "❌ Error uploading file. The export may be too large.",
                    ephemeral=True,
                )
            finally:
                buffer.close()
        except Exception as e:
            await self._send_error(interaction, "export_command", e)
