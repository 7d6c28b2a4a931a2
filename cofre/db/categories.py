"""
Category repository module.

Categories are global reference data: every vault classifies against the
same list.
"""

import logging
from typing import Optional, Sequence

from cofre.models import Category

from .base import BaseRepository
from .seed import DEFAULT_CATEGORIES

logger = logging.getLogger(__name__)

_COLUMNS = "id, name, code, description, transaction_kind"


class CategoryRepository(BaseRepository):
    """Repository for reading and seeding categories."""

    def __init__(self, db_path=None, init_schema: bool = False):
        super().__init__(db_path, init_schema=init_schema)

    def find_all(self) -> list[Category]:
        with self._get_connection() as conn:
            cursor = conn.execute(
                f"SELECT {_COLUMNS} FROM category ORDER BY CAST(code AS INTEGER), code"
            )
            return [Category.from_row(tuple(row)) for row in cursor.fetchall()]

    def find_by_id(self, category_id: str) -> Optional[Category]:
        with self._get_connection() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM category WHERE id = ?", (category_id,)
            ).fetchone()
            return Category.from_row(tuple(row)) if row else None

    def find_by_code(self, code: str) -> Optional[Category]:
        with self._get_connection() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM category WHERE code = ?", (code.strip(),)
            ).fetchone()
            return Category.from_row(tuple(row)) if row else None

    def seed(self, categories: Sequence[Category] = DEFAULT_CATEGORIES) -> int:
        """
        Insert or refresh the given categories.

        Returns:
            Number of categories written
        """
        with self._get_connection() as conn:
            conn.executemany(
                """
                INSERT INTO category (id, name, code, description, transaction_kind)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    code = excluded.code,
                    description = excluded.description,
                    transaction_kind = excluded.transaction_kind
                """,
                [
                    (c.id, c.name, c.code, c.description, c.transaction_kind.value)
                    for c in categories
                ],
            )
        logger.info(f"Seeded {len(categories)} categories")
        return len(categories)
