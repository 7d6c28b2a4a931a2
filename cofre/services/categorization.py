"""
Batch categorization of imported transactions.

The batch is split into fixed-size chunks, each chunk is sent to the
classifier through a ``ConcurrencyQueue`` and the answers are merged into a
single transaction id -> category id mapping. A failing chunk only leaves its
own transactions uncategorized.
"""

import logging
from typing import Sequence, TypeVar

from cofre.config import CHUNK_SIZE, CLASSIFICATION_CONCURRENCY
from cofre.models import Category, ErrorKind, Result, Transaction

from .classifier import (
    CategoryAssignment,
    ClassifierUnavailableError,
    TransactionClassifier,
    TransactionSample,
)
from .concurrency import ConcurrencyQueue

logger = logging.getLogger(__name__)

T = TypeVar("T")

TAG = "[categorize]"


def chunk(items: Sequence[T], size: int) -> list[list[T]]:
    """Split ``items`` into consecutive lists of at most ``size`` elements."""
    if size < 1:
        raise ValueError(f"chunk size must be >= 1, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


class CategorizationPipeline:
    """Assigns categories to a batch of transactions using a classifier."""

    def __init__(
        self,
        classifier: TransactionClassifier,
        chunk_size: int = CHUNK_SIZE,
        concurrency: int = CLASSIFICATION_CONCURRENCY,
    ):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self.classifier = classifier
        self.chunk_size = chunk_size
        self.concurrency = concurrency

    async def categorize(
        self,
        transactions: Sequence[Transaction],
        categories: Sequence[Category],
        custom_prompt: str = "",
    ) -> Result[dict[str, str]]:
        """
        Classify ``transactions`` against ``categories``.

        Returns:
            Result holding the transaction id -> category id mapping. Ids the
            classifier did not answer for are absent. Fails with
            PIPELINE_FAILED only when the classifier is unreachable for every
            chunk or the pipeline itself breaks.
        """
        logger.info(f"{TAG} Starting categorization of {len(transactions)} transactions")

        try:
            chunks = chunk(
                [TransactionSample.from_transaction(t) for t in transactions],
                self.chunk_size,
            )
            logger.info(
                f"{TAG} Split into {len(chunks)} chunk(s) of up to {self.chunk_size}"
            )
            known_categories = {c.id for c in categories}
            unavailable: list[int] = []

            async def process_chunk(
                samples: list[TransactionSample], index: int
            ) -> list[CategoryAssignment]:
                logger.debug(
                    f"{TAG} Processing chunk #{index + 1} with {len(samples)} transactions"
                )
                try:
                    assignments = await self.classifier.classify_transactions(
                        samples, categories, custom_prompt
                    )
                except ClassifierUnavailableError:
                    unavailable.append(index)
                    raise

                if assignments is None:
                    logger.warning(
                        f"{TAG} Chunk #{index + 1} returned no parsed result "
                        f"({ErrorKind.CLASSIFICATION_FAILED.value})"
                    )
                    return []

                logger.debug(f"{TAG} Chunk #{index + 1} processed successfully")
                return self._valid_assignments(assignments, samples, known_categories)

            queue = ConcurrencyQueue(chunks, self.concurrency, process_chunk)
            chunk_results = await queue.run()

            if chunks and len(unavailable) == len(chunks):
                logger.error(f"{TAG} Classifier unreachable for every chunk")
                return Result.failure(
                    ErrorKind.PIPELINE_FAILED, "Classifier is unavailable"
                )

            failed = len(chunks) - len(chunk_results)
            if failed:
                logger.warning(
                    f"{TAG} {failed} of {len(chunks)} chunk(s) failed "
                    f"({ErrorKind.CLASSIFICATION_FAILED.value})"
                )

            mapping: dict[str, str] = {}
            for assignments in chunk_results.values():
                for assignment in assignments:
                    mapping[assignment.transaction_id] = assignment.category_id

            logger.info(
                f"{TAG} All chunks processed, {len(mapping)} of "
                f"{len(transactions)} transactions categorized"
            )
            return Result.success(mapping)
        except Exception as e:
            logger.error(f"{TAG} Error processing batch: {e}", exc_info=True)
            return Result.failure(
                ErrorKind.PIPELINE_FAILED, f"Error categorizing transactions: {e}"
            )

    def _valid_assignments(
        self,
        assignments: list[CategoryAssignment],
        samples: list[TransactionSample],
        known_categories: set[str],
    ) -> list[CategoryAssignment]:
        chunk_ids = {s.id for s in samples}
        valid = []
        for assignment in assignments:
            if not assignment.category_id:
                logger.warning(
                    f"{TAG} Transaction {assignment.transaction_id} has no category assigned"
                )
                continue
            if assignment.transaction_id not in chunk_ids:
                logger.warning(
                    f"{TAG} Ignoring answer for unknown transaction {assignment.transaction_id}"
                )
                continue
            if assignment.category_id not in known_categories:
                logger.warning(
                    f"{TAG} Ignoring unknown category {assignment.category_id} "
                    f"for transaction {assignment.transaction_id}"
                )
                continue
            valid.append(assignment)
        return valid

    @staticmethod
    def apply(
        transactions: Sequence[Transaction],
        mapping: dict[str, str],
    ) -> int:
        """
        Assign the mapped category to each transaction.

        Returns:
            Number of transactions that received a category
        """
        assigned = 0
        for transaction in transactions:
            category_id = mapping.get(transaction.id)
            if category_id:
                transaction.set_category(category_id)
                assigned += 1
        return assigned
