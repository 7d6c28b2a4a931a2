"""
Chat repository module.

A chat is a group conversation (a Discord channel) bound to at most one vault.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .base import BaseRepository

logger = logging.getLogger(__name__)


@dataclass
class Chat:
    """Chat group and the vault it currently uses."""

    chat_id: str
    vault_id: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)

    def assign_to_vault(self, vault_id: str):
        self.vault_id = vault_id

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "chat_id": self.chat_id,
            "vault_id": self.vault_id,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: tuple) -> "Chat":
        """Create a Chat from a database row."""
        return cls(
            chat_id=row[0],
            vault_id=row[1],
            created_at=datetime.fromisoformat(row[2]),
        )


class ChatRepository(BaseRepository):
    """Repository for chat to vault bindings."""

    def __init__(self, db_path=None, init_schema: bool = False):
        super().__init__(db_path, init_schema=init_schema)

    def find_by_chat_id(self, chat_id: str) -> Optional[Chat]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT chat_id, vault_id, created_at FROM chat WHERE chat_id = ?",
                (chat_id,),
            ).fetchone()
            return Chat.from_row(tuple(row)) if row else None

    def upsert(self, chat: Chat) -> Chat:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO chat (chat_id, vault_id, created_at)
                VALUES (?, ?, ?)
                ON CONFLICT(chat_id) DO UPDATE SET vault_id = excluded.vault_id
                """,
                (chat.chat_id, chat.vault_id, chat.created_at.isoformat()),
            )
        logger.debug(f"Chat {chat.chat_id} bound to vault {chat.vault_id}")
        return chat
