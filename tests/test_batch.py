"""Tests for bundlectl.services.batch module."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from bundlectl.core.client import BundlerClient
from bundlectl.core.exceptions import (
    BatchAbortedError,
    FatalUploadError,
    InsufficientFundsError,
    RetryExhaustedError,
    TransientUploadError,
)
from bundlectl.models.item import Item, ItemFile
from bundlectl.models.results import ItemResult, UploadOutcome, UploadReceipt
from bundlectl.services.batch import BatchUploader
from bundlectl.services.uploads import UploadService
from bundlectl.uploaders.common import RetryPolicy
from tests.conftest import MB, FakeBundler

# =============================================================================
# Fakes
# =============================================================================


class _ScriptedService:
    """Upload service stand-in with scripted per-item outcomes.

    ``script`` maps an item ID to a list of exceptions raised on successive
    attempts before the upload succeeds.
    """

    def __init__(self, script: dict[str, list[Exception]] | None = None, delay: float = 0.001):
        self.script = {k: list(v) for k, v in (script or {}).items()}
        self.delay = delay
        self.attempts: dict[str, int] = {}
        self.started: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def upload_item(self, item: Item) -> UploadReceipt:
        self.attempts[item.id] = self.attempts.get(item.id, 0) + 1
        self.started.append(item.id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            errors = self.script.get(item.id)
            if errors:
                raise errors.pop(0)
            return UploadReceipt(id=item.id, status_code=201, data={"id": item.id})
        finally:
            self.in_flight -= 1

    async def upload(self, data: bytes, tags=None) -> UploadReceipt:
        return await self.upload_item(Item(id=data.decode(), data=data))

    async def upload_file(self, path: Path, item_id: str) -> UploadReceipt:
        return await self.upload_item(Item(id=item_id, data=path.read_bytes()))


def _items(count: int) -> list[Item]:
    return [Item(id=f"i{n}", data=b"x") for n in range(count)]


# =============================================================================
# BatchUploader Tests
# =============================================================================


class TestUploadAll:
    """Tests for BatchUploader.upload_all."""

    @pytest.mark.asyncio
    async def test_all_succeed(self, fast_retry: RetryPolicy):
        service = _ScriptedService()
        uploader = BatchUploader(service, retry_policy=fast_retry)  # type: ignore[arg-type]

        result = await uploader.upload_all(_items(7), concurrency=3)

        assert result.success
        assert len(result.results) == 7
        assert sorted(r.index for r in result.results) == list(range(7))
        assert all(isinstance(r, ItemResult) for r in result.results)
        assert service.max_in_flight <= 3

    @pytest.mark.asyncio
    async def test_concurrency_is_respected(self, fast_retry: RetryPolicy):
        service = _ScriptedService(delay=0.01)
        uploader = BatchUploader(service, retry_policy=fast_retry)  # type: ignore[arg-type]

        await uploader.upload_all(_items(10), concurrency=4)

        assert service.max_in_flight == 4

    @pytest.mark.asyncio
    async def test_items_started_in_input_order(self, fast_retry: RetryPolicy):
        service = _ScriptedService()
        uploader = BatchUploader(service, retry_policy=fast_retry)  # type: ignore[arg-type]

        await uploader.upload_all(_items(6), concurrency=2)

        assert service.started == [f"i{n}" for n in range(6)]

    @pytest.mark.asyncio
    async def test_non_positive_concurrency_uses_default(self, fast_retry: RetryPolicy):
        service = _ScriptedService(delay=0.01)
        uploader = BatchUploader(service, retry_policy=fast_retry)  # type: ignore[arg-type]

        result = await uploader.upload_all(_items(8), concurrency=0)

        assert len(result.results) == 8
        assert service.max_in_flight == 5

    @pytest.mark.asyncio
    async def test_empty_input(self, fast_retry: RetryPolicy):
        uploader = BatchUploader(_ScriptedService(), retry_policy=fast_retry)  # type: ignore[arg-type]

        result = await uploader.upload_all([])

        assert result.results == []
        assert result.failures == []

    @pytest.mark.asyncio
    async def test_transient_failure_retried_per_item(self, fast_retry: RetryPolicy):
        service = _ScriptedService({"i1": [TransientUploadError("503")]})
        uploader = BatchUploader(service, retry_policy=fast_retry)  # type: ignore[arg-type]

        result = await uploader.upload_all(_items(3))

        assert result.success
        assert service.attempts == {"i0": 1, "i1": 2, "i2": 1}

    @pytest.mark.asyncio
    async def test_exhausted_item_recorded_as_failure(self, fast_retry: RetryPolicy):
        service = _ScriptedService({"i1": [TransientUploadError("503")] * 3})
        uploader = BatchUploader(service, retry_policy=fast_retry)  # type: ignore[arg-type]

        result = await uploader.upload_all(_items(3))

        assert len(result.results) == 2
        assert len(result.failures) == 1
        failure = result.failures[0]
        assert failure.index == 1
        assert isinstance(failure.error, RetryExhaustedError)
        assert failure.outcome == UploadOutcome.TRANSIENT_FAILURE
        assert result.summary() == {"completed": 2, "failed": 1}

    @pytest.mark.asyncio
    async def test_fatal_item_error_is_retried_in_batch(self, fast_retry: RetryPolicy):
        service = _ScriptedService({"i0": [FatalUploadError("rejected")]})
        uploader = BatchUploader(service, retry_policy=fast_retry)  # type: ignore[arg-type]

        result = await uploader.upload_all(_items(1))

        assert result.success
        assert service.attempts["i0"] == 2

    @pytest.mark.asyncio
    async def test_insufficient_funds_aborts_batch(self, fast_retry: RetryPolicy):
        service = _ScriptedService({"i1": [InsufficientFundsError(item_id="i1")]})
        uploader = BatchUploader(service, retry_policy=fast_retry)  # type: ignore[arg-type]

        with pytest.raises(BatchAbortedError) as exc_info:
            await uploader.upload_all(_items(10), concurrency=2)

        error = exc_info.value
        assert isinstance(error, InsufficientFundsError)
        assert isinstance(error.cause, InsufficientFundsError)
        assert service.attempts["i1"] == 1
        # No item starts once the balance error is seen
        assert "i9" not in service.started
        assert error.cancelled
        assert set(error.cancelled).isdisjoint(r.index for r in error.result.results)
        assert [f.index for f in error.result.failures] == [1]
        assert error.result.failures[0].outcome == UploadOutcome.INSUFFICIENT_FUNDS
        started = len(error.result.results) + len(error.result.failures)
        assert started + len(error.cancelled) == 10

    @pytest.mark.asyncio
    async def test_abort_stops_dispatch_with_three_workers(self, fast_retry: RetryPolicy):
        service = _ScriptedService({"i4": [InsufficientFundsError(item_id="i4")]}, delay=0.01)
        uploader = BatchUploader(service, retry_policy=fast_retry)  # type: ignore[arg-type]

        with pytest.raises(BatchAbortedError) as exc_info:
            await uploader.upload_all(_items(10), concurrency=3)

        error = exc_info.value
        started = {int(item_id[1:]) for item_id in service.started}
        recorded = {r.index for r in error.result.results} | {f.index for f in error.result.failures}
        # Every dispatched item finished and was recorded; the rest were never started
        assert recorded == started
        assert set(error.cancelled) == set(range(10)) - started
        assert max(started) < 9

    @pytest.mark.asyncio
    async def test_on_result_transforms_results(self, fast_retry: RetryPolicy):
        uploader = BatchUploader(_ScriptedService(), retry_policy=fast_retry)  # type: ignore[arg-type]

        result = await uploader.upload_all(_items(3), on_result=lambda r: r.receipt.id)

        assert sorted(result.results) == ["i0", "i1", "i2"]

    @pytest.mark.asyncio
    async def test_async_on_result(self, fast_retry: RetryPolicy):
        uploader = BatchUploader(_ScriptedService(), retry_policy=fast_retry)  # type: ignore[arg-type]

        async def to_index(r: ItemResult) -> int:
            return r.index

        result = await uploader.upload_all(_items(3), on_result=to_index)

        assert sorted(result.results) == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_progress_every_concurrency_items(self, fast_retry: RetryPolicy):
        uploader = BatchUploader(_ScriptedService(), retry_policy=fast_retry)  # type: ignore[arg-type]
        messages: list[str] = []

        await uploader.upload_all(_items(7), concurrency=3, on_progress=messages.append)

        assert messages == ["Processed 3 items", "Processed 6 items"]

    @pytest.mark.asyncio
    async def test_mixed_inputs(self, fast_retry: RetryPolicy, temp_dir: Path):
        path = temp_dir / "signed.bin"
        path.write_bytes(b"file")
        service = _ScriptedService()
        uploader = BatchUploader(service, retry_policy=fast_retry)  # type: ignore[arg-type]

        result = await uploader.upload_all(
            [Item(id="obj", data=b"1"), ItemFile(path=path, id="from-file"), b"raw", "text"]
        )

        assert sorted(r.receipt.id for r in result.results) == ["from-file", "obj", "raw", "text"]


# =============================================================================
# Composition Tests
# =============================================================================


class TestBatchOverChunkedUploads:
    """Batch uploads driven through the real service and chunk coordinator."""

    @pytest.mark.asyncio
    async def test_chunk_balance_rejection_aborts_batch(
        self, client: BundlerClient, bundler: FakeBundler, fast_retry: RetryPolicy
    ):
        service = UploadService(
            client, "arweave", force_chunking=True, chunk_size=MB, retry_policy=fast_retry
        )
        items = [Item(id=f"big{n}", data=bytes([n]) * (2 * MB)) for n in range(6)]
        bundler.fail("POST", "/chunks/arweave/big1/0", 402)

        with pytest.raises(BatchAbortedError) as exc_info:
            await BatchUploader(service, retry_policy=fast_retry).upload_all(items, concurrency=2)

        error = exc_info.value
        assert error.item_id == "big1"
        # The rejected chunk is sent once and the item is never finalized
        assert bundler.chunk_posts("big1") == [0]
        assert "big1" not in bundler.completed
        assert [f.index for f in error.result.failures] == [1]
        assert error.result.failures[0].outcome == UploadOutcome.INSUFFICIENT_FUNDS
        recorded = {r.index for r in error.result.results} | {1}
        assert recorded.isdisjoint(error.cancelled)
        assert len(recorded) + len(error.cancelled) == len(items)
        assert error.cancelled
        for index in error.cancelled:
            assert bundler.count("GET", f"/chunks/arweave/big{index}/{2 * MB}") == 0
