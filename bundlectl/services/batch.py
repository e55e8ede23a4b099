"""Concurrent upload of many independent items.

A fixed pool of workers pulls items in input order. Each item is retried on
its own; an insufficient balance stops the whole pool because every later
upload would be rejected for the same reason.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, Union

from bundlectl.core.exceptions import BatchAbortedError, InsufficientFundsError
from bundlectl.models.item import Item, ItemFile
from bundlectl.models.results import BatchResult, ItemFailure, ItemResult, UploadReceipt
from bundlectl.services.uploads import UploadService
from bundlectl.uploaders.common import RetryPolicy, retry_async
from bundlectl.uploaders.constants import DEFAULT_CONCURRENCY

logger = logging.getLogger(__name__)

BatchInput = Union[Item, ItemFile, bytes, str]
ResultProcessor = Callable[[ItemResult], Union[Any, Awaitable[Any]]]
ProgressCallback = Callable[[str], Union[None, Awaitable[None]]]


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _is_balance_error(error: BaseException) -> bool:
    return isinstance(error, InsufficientFundsError)


class _Collector:
    """Single append point for results and failures shared by all workers."""

    def __init__(self, width: int, on_progress: ProgressCallback | None) -> None:
        self.result = BatchResult()
        self.width = width
        self.on_progress = on_progress
        self.completed = 0

    async def add_result(self, value: Any) -> None:
        self.result.results.append(value)
        await self._completed_one()

    async def add_failure(self, failure: ItemFailure) -> None:
        self.result.failures.append(failure)
        await self._completed_one()

    async def _completed_one(self) -> None:
        self.completed += 1
        if self.on_progress and self.completed % self.width == 0:
            await _maybe_await(self.on_progress(f"Processed {self.completed} items"))


class BatchUploader:
    """Uploads many items through an ``UploadService`` with bounded concurrency."""

    def __init__(
        self,
        service: UploadService,
        *,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self.service = service
        self.retry_policy = retry_policy or RetryPolicy()

    async def _process(self, item: BatchInput) -> UploadReceipt:
        if isinstance(item, str):
            item = item.encode("utf-8")
        if isinstance(item, (bytes, bytearray)):
            return await self.service.upload(bytes(item))
        if isinstance(item, ItemFile):
            return await self.service.upload_file(item.path, item.id)
        return await self.service.upload_item(item)

    async def upload_all(
        self,
        items: Iterable[BatchInput],
        concurrency: int = DEFAULT_CONCURRENCY,
        on_result: ResultProcessor | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        """Upload every item with at most ``concurrency`` in flight.

        Args:
            items: Signed items, signed item files, or raw bytes/str to
                be signed first.
            concurrency: Worker pool width; values below 1 use the default.
            on_result: Optional transform applied to each ``ItemResult``
                before it is stored. May be a coroutine function.
            on_progress: Optional callback receiving a progress message every
                ``concurrency`` completed items. May be a coroutine function.

        Returns:
            BatchResult with results and failures in completion order.

        Raises:
            BatchAbortedError: If the bundler reported insufficient balance.
                Items not yet started are listed in ``cancelled``; items in
                flight at that point were allowed to finish.
        """
        width = concurrency if concurrency >= 1 else DEFAULT_CONCURRENCY
        pending = list(items)
        queue = iter(enumerate(pending))
        collector = _Collector(width, on_progress)
        abort = asyncio.Event()
        fatal: list[InsufficientFundsError] = []
        dispatched: set[int] = set()

        async def worker() -> None:
            while not abort.is_set():
                try:
                    index, item = next(queue)
                except StopIteration:
                    return
                dispatched.add(index)

                try:
                    receipt = await retry_async(
                        functools.partial(self._process, item),
                        policy=self.retry_policy,
                        label=f"item {index}",
                        is_fatal=_is_balance_error,
                    )
                    result = ItemResult(index=index, item=item, receipt=receipt)
                    value = await _maybe_await(on_result(result)) if on_result else result
                except InsufficientFundsError as e:
                    logger.error("Item %d: %s - aborting batch", index, e)
                    if not fatal:
                        fatal.append(e)
                    abort.set()
                    await collector.add_failure(ItemFailure(index, item, e))
                except Exception as e:
                    logger.warning("Item %d failed: %s", index, e)
                    await collector.add_failure(ItemFailure(index, item, e))
                else:
                    await collector.add_result(value)

        logger.info("Uploading %d items with concurrency %d", len(pending), width)
        await asyncio.gather(*(worker() for _ in range(min(width, len(pending)))))

        if fatal:
            cancelled = [i for i in range(len(pending)) if i not in dispatched]
            raise BatchAbortedError(fatal[0], collector.result, cancelled)

        result = collector.result
        logger.info(
            "Batch finished: %d uploaded, %d failed",
            len(result.results),
            len(result.failures),
        )
        return result
