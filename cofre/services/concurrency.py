"""
Bounded-parallelism runner for coroutines.

Not tied to finance: any list of items can be fanned out to an async
``process_fn`` with at most ``concurrency`` invocations in flight.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class ConcurrencyQueue(Generic[T, R]):
    """
    Worker pool over a fixed list of items.

    ``run`` starts ``min(concurrency, len(items))`` workers. Each worker takes
    the next pending item as soon as its previous one finished, successfully
    or not, until the input is exhausted. A failing item is logged and simply
    has no entry in the returned mapping; it never cancels its siblings.
    """

    def __init__(
        self,
        items: Sequence[T],
        concurrency: int,
        process_fn: Callable[[T, int], Awaitable[R]],
    ):
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self.items = list(items)
        self.concurrency = concurrency
        self.process_fn = process_fn
        self._next_index = 0
        self._results: dict[int, R] = {}

    async def run(self) -> dict[int, R]:
        """
        Process every item.

        Returns:
            Successful results keyed by the item's original index, in index order
        """
        self._next_index = 0
        self._results = {}
        workers = min(self.concurrency, len(self.items))
        await asyncio.gather(*(self._worker() for _ in range(workers)))
        return dict(sorted(self._results.items()))

    async def _worker(self):
        while self._next_index < len(self.items):
            index = self._next_index
            self._next_index += 1
            try:
                self._results[index] = await self.process_fn(self.items[index], index)
            except Exception as e:
                logger.error(
                    f"[ConcurrencyQueue] Error processing item {index}: {e}",
                    exc_info=True,
                )
