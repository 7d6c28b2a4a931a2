"""
Action repository module.

Stores pending actions proposed from free text until they are confirmed or
cancelled.
"""

import json
import logging
from typing import Optional

from cofre.models import Action

from .base import BaseRepository

logger = logging.getLogger(__name__)


class ActionRepository(BaseRepository):
    """Repository for pending and handled actions."""

    def __init__(self, db_path=None, init_schema: bool = False):
        super().__init__(db_path, init_schema=init_schema)

    def upsert(self, vault_id: str, action: Action) -> Action:
        """Insert the action or update its status and payload."""
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO action (id, vault_id, type, payload, created_at, status)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    payload = excluded.payload,
                    status = excluded.status
                """,
                (
                    action.id,
                    vault_id,
                    action.type.value,
                    json.dumps(action.payload.to_dict()),
                    action.created_at.isoformat(),
                    action.status.value,
                ),
            )
        logger.debug(f"Stored action {action.id} ({action.status.value})")
        return action

    def find_by_id(
        self, action_id: str, vault_id: Optional[str] = None
    ) -> Optional[Action]:
        """
        Find an action by id.

        Args:
            action_id: Action id
            vault_id: When given, only an action of this vault is returned
        """
        query = "SELECT id, type, payload, created_at, status FROM action WHERE id = ?"
        params: tuple = (action_id,)
        if vault_id is not None:
            query += " AND vault_id = ?"
            params = (action_id, vault_id)

        with self._get_connection() as conn:
            row = conn.execute(query, params).fetchone()
            if not row:
                return None
            return Action.restore(
                id=row["id"],
                type=row["type"],
                payload=json.loads(row["payload"]),
                created_at=row["created_at"],
                status=row["status"],
            )
