# src/batch/processor.py — v2
"""Generic batching queue.

Callers ``await processor.add(item)`` one item at a time; a single drain
task groups queued items into slices of ``batch_size`` and hands each
slice to the bulk handler, pausing ``delay_ms`` between slices while work
remains. Results are matched back to callers by position.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_BATCH_SIZE = 10
DEFAULT_DELAY_MS = 100


class BatchItemError(Exception):
    """The bulk handler returned no result for this item's position."""


@dataclass
class _QueuedItem(Generic[T, R]):
    data: T
    future: asyncio.Future[R]


class BatchProcessor(Generic[T, R]):
    """Accumulate items and dispatch them to a bulk handler in FIFO slices.

    Args:
        processor: Bulk handler. Must return one result per input, in order.
            Missing trailing results fail only the affected items.
        batch_size: Maximum items per handler call.
        delay_ms: Pause between slices while the queue is non-empty.
    """

    def __init__(
        self,
        processor: Callable[[list[T]], Awaitable[Sequence[R]]],
        batch_size: int = DEFAULT_BATCH_SIZE,
        delay_ms: float = DEFAULT_DELAY_MS,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        self._processor = processor
        self._batch_size = batch_size
        self._delay_s = delay_ms / 1000
        self._queue: list[_QueuedItem[T, R]] = []
        self._processing = False
        self._drain_task: asyncio.Task[None] | None = None

    @property
    def pending(self) -> int:
        """Items queued and not yet handed to the bulk handler."""
        return len(self._queue)

    @property
    def is_processing(self) -> bool:
        return self._processing

    async def add(self, item: T) -> R:
        """Queue an item and wait for its own result.

        Raises:
            BatchItemError: If the handler returned no result for the item.
            Exception: Whatever the handler raised for the item's slice.
        """
        future: asyncio.Future[R] = asyncio.get_running_loop().create_future()
        self._queue.append(_QueuedItem(data=item, future=future))
        if not self._processing:
            self._processing = True
            self._drain_task = asyncio.create_task(self._drain())
        return await future

    async def _drain(self) -> None:
        try:
            while self._queue:
                batch = self._queue[: self._batch_size]
                del self._queue[: self._batch_size]
                await self._dispatch(batch)

                # Back-pressure between slices
                if self._queue:
                    await asyncio.sleep(self._delay_s)
        except BaseException as e:
            # Drain loop cancelled or interrupted: nothing left will be processed.
            pending, self._queue = self._queue, []
            _reject(pending, e)
            raise
        finally:
            self._processing = False

    async def _dispatch(self, batch: list[_QueuedItem[T, R]]) -> None:
        try:
            results = list(await self._processor([item.data for item in batch]))
        except Exception as e:
            logger.warning("Batch of %d items failed: %s", len(batch), e)
            _reject(batch, e)
            return
        except BaseException as e:
            _reject(batch, e)
            raise

        for index, item in enumerate(batch):
            if item.future.done():
                continue
            if index < len(results):
                item.future.set_result(results[index])
            else:
                item.future.set_exception(BatchItemError("No result for batch item"))


def _reject(items: list[_QueuedItem[T, R]], exc: BaseException) -> None:
    for item in items:
        if item.future.done():
            continue
        if isinstance(exc, asyncio.CancelledError):
            item.future.cancel()
        else:
            item.future.set_exception(exc)
