"""
Discord Bot Client for the Cofre shared vault.

This module provides the Discord bot interface using a cogs-based architecture
for better separation of concerns.
"""

import logging
from typing import Optional

import discord
from discord.ext import commands

from cofre.db import Repositories, get_repositories
from cofre.services import (
    AccessTokenStore,
    CategorizationPipeline,
    ExportService,
    TransactionClassifier,
    VaultService,
    get_nlp_service,
)

from .cogs import BudgetCog, GeneralCog, LedgerCog, ParsingCog, StatementCog

logger = logging.getLogger(__name__)


class CofreBot(commands.Bot):
    """Discord bot client for the shared vault using cogs architecture."""

    def __init__(
        self,
        repositories: Optional[Repositories] = None,
        classifier: Optional[TransactionClassifier] = None,
    ):
        intents = discord.Intents.default()
        intents.message_content = True

        super().__init__(command_prefix="!", intents=intents)

        try:
            self.repositories = repositories or get_repositories()
            logger.info("Repositories initialized")

            self.classifier = classifier or get_nlp_service()
            logger.info("Classifier initialized")

            self.token_store = AccessTokenStore()
            self.vault_service = VaultService(
                self.repositories,
                self.classifier,
                pipeline=CategorizationPipeline(self.classifier),
                token_store=self.token_store,
            )
            logger.info("Vault service initialized")

            self.export_service = ExportService()
            logger.info("Export service initialized")
        except Exception as e:
            logger.error(f"Failed to initialize bot services: {e}", exc_info=True)
            raise

    async def setup_hook(self):
        """Called when the bot is ready to set up cogs and commands."""
        try:
            logger.info("Starting bot setup...")

            await self.add_cog(GeneralCog(self, self.vault_service))
            logger.info("Added GeneralCog")

            await self.add_cog(ParsingCog(self, self.vault_service))
            logger.info("Added ParsingCog")

            await self.add_cog(LedgerCog(self, self.vault_service))
            logger.info("Added LedgerCog")

            await self.add_cog(BudgetCog(self, self.vault_service))
            logger.info("Added BudgetCog")

            await self.add_cog(
                StatementCog(self, self.vault_service, self.export_service)
            )
            logger.info("Added StatementCog")

            # Sync commands with Discord
            await self.tree.sync()
            logger.info("Synced command tree with Discord")
        except Exception as e:
            logger.error(f"Error in setup_hook: {e}", exc_info=True)
            raise

    async def on_ready(self):
        """Called when the bot has successfully connected."""
        try:
            if self.user:
                message = f"Logged in as {self.user} (ID: {self.user.id})"
                cogs_message = f"Loaded cogs: {', '.join(self.cogs.keys())}"

                logger.info(message)
                logger.info(cogs_message)
                logger.info("Bot is ready to receive commands")

                print(message)
                print(cogs_message)
                print("------")
            else:
                logger.warning("Bot user is None in on_ready")
        except Exception as e:
            logger.error(f"Error in on_ready: {e}", exc_info=True)

    async def on_error(self, event_method: str, *args, **kwargs):
        """Called when an event handler raises an exception."""
        logger.error(
            f"Error in event handler '{event_method}'",
            exc_info=True,
            extra={"args": args, "kwargs": kwargs},
        )


def create_bot(
    repositories: Optional[Repositories] = None,
    classifier: Optional[TransactionClassifier] = None,
) -> CofreBot:
    """
    Create and configure the Discord bot.

    Args:
        repositories: Optional repository bundle. If not provided, one is
                      built for the configured storage backend.
        classifier: Optional classifier. Defaults to the local spaCy service.

    Returns:
        Configured CofreBot instance ready to run.
    """
    return CofreBot(repositories=repositories, classifier=classifier)
