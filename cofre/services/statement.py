"""
Bank statement import.

Reads a CSV statement and turns every row into a draft, uncommitted
transaction. Expected columns, by position: date (dd/mm/yyyy), signed value,
bank identifier and description, which is the layout of common Brazilian
bank exports.
"""

import io
import logging
from pathlib import Path
from typing import BinaryIO, Union

import pandas as pd

from cofre.models import Transaction, TransactionKind

from .amount_parser import AmountParser

logger = logging.getLogger(__name__)

StatementSource = Union[bytes, str, Path, BinaryIO]


class StatementError(Exception):
    """The statement file could not be read."""


class StatementParser:
    """Parser for CSV bank statements."""

    DATE_FORMAT = "%d/%m/%Y"
    MIN_COLUMNS = 2

    @classmethod
    def parse(cls, source: StatementSource, vault_id: str) -> list[Transaction]:
        """
        Parse a statement into draft transactions.

        Args:
            source: Raw CSV bytes, a file path or a binary file object
            vault_id: Vault the transactions will belong to

        Returns:
            Uncommitted, uncategorized transactions in file order

        Raises:
            StatementError: If the file cannot be read as CSV
        """
        df = cls._read(source)
        if df.shape[1] < cls.MIN_COLUMNS:
            raise StatementError(
                f"Statement needs at least {cls.MIN_COLUMNS} columns, got {df.shape[1]}"
            )

        dates = pd.to_datetime(df.iloc[:, 0].str.strip(), format=cls.DATE_FORMAT, errors="coerce")
        # Values use either separator convention: -1.234,56 or -1,234.56
        values = pd.to_numeric(
            df.iloc[:, 1].map(lambda v: AmountParser.parse(v) if isinstance(v, str) else None),
            errors="coerce",
        )
        descriptions = (
            df.iloc[:, 3].fillna("").str.strip()
            if df.shape[1] > 3
            else pd.Series([""] * len(df), index=df.index)
        )

        transactions = []
        for row_number, (when, value, description) in enumerate(
            zip(dates, values, descriptions), start=2
        ):
            if pd.isna(when) or pd.isna(value):
                logger.warning(f"Skipping invalid statement row {row_number}")
                continue
            transactions.append(
                Transaction.create(
                    amount=abs(float(value)),
                    vault_id=vault_id,
                    kind=TransactionKind.INCOME if value >= 0 else TransactionKind.EXPENSE,
                    description=description or "",
                    date=when.to_pydatetime(),
                )
            )

        logger.info(f"Parsed {len(transactions)} transactions from statement")
        return transactions

    @classmethod
    def _read(cls, source: StatementSource) -> pd.DataFrame:
        if isinstance(source, bytes):
            source = io.BytesIO(source)
        try:
            return pd.read_csv(
                source,
                dtype=str,
                skipinitialspace=True,
                skip_blank_lines=True,
            )
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read statement: {e}", exc_info=True)
            raise StatementError(f"Could not read statement: {e}") from e
