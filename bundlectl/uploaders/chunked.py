"""Resumable chunked uploader for large items.

The bundler keeps every chunk it has received, keyed by offset. An upload
first asks which offsets are already stored, sends only the missing chunks
with a bounded number in flight, and then asks the bundler to reconstruct the
item. Re-running an interrupted upload therefore resumes where it stopped.

This is an internal implementation detail. Use `UploadService` from
`bundlectl.services.uploads` as the public API.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Iterable

from bundlectl.core.client import OCTET_STREAM, BundlerClient
from bundlectl.core.exceptions import (
    FatalUploadError,
    InsufficientFundsError,
)
from bundlectl.core.logging import LogContext
from bundlectl.core.validation import validate_batch_size, validate_item_id
from bundlectl.models.item import Chunk
from bundlectl.models.progress import UploadPhase, UploadProgress
from bundlectl.models.results import UploadReceipt
from bundlectl.uploaders.chunker import ByteSource, ChunkSplitter
from bundlectl.uploaders.common import (
    RetryPolicy,
    describe_response,
    raise_for_upload_status,
    retry_async,
)
from bundlectl.uploaders.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_CHUNK_SIZE,
    FINALIZE_OFFSET,
    FINALIZE_TIMEOUT_MULTIPLIER,
)

logger = logging.getLogger(__name__)


def _raise_first_error(done: Iterable[asyncio.Task[None]]) -> None:
    """Re-raise the most severe error among finished tasks, if any."""
    errors = [task.exception() for task in done if not task.cancelled()]
    errors = [e for e in errors if e is not None]
    if not errors:
        return
    for error in errors:
        if isinstance(error, InsufficientFundsError):
            raise error
    raise errors[0]


class ChunkUploadCoordinator:
    """Uploads one item through the bundler's chunk endpoints."""

    def __init__(
        self,
        client: BundlerClient,
        currency: str,
        *,
        retry_policy: RetryPolicy | None = None,
        progress_callback: Callable[[UploadProgress], None] | None = None,
    ) -> None:
        self.client = client
        self.currency = currency
        self.retry_policy = retry_policy or RetryPolicy()
        self.progress_callback = progress_callback

    def _chunk_path(self, item_id: str, offset: int) -> str:
        return f"/chunks/{self.currency}/{item_id}/{offset}"

    def _report(self, progress: UploadProgress) -> None:
        if self.progress_callback:
            self.progress_callback(progress)

    # =========================================================================
    # Protocol Steps
    # =========================================================================

    async def get_presence(self, item_id: str, size: int) -> tuple[bool, set[int]]:
        """Ask the bundler which chunks of an item it already holds.

        Returns:
            ``(True, set())`` if the item is already reconstructed, otherwise
            ``(False, offsets)`` with the stored chunk offsets.
        """
        path = f"/chunks/{self.currency}/{item_id}/{size}"

        async def _attempt() -> tuple[bool, set[int]]:
            resp = await self.client.get(path)
            if resp.status_code == 201:
                return True, set()
            raise_for_upload_status(resp, "Getting chunk info", item_id=item_id)
            try:
                return False, {int(v) for v in resp.json()}
            except (ValueError, TypeError) as e:
                raise FatalUploadError(
                    f"Getting chunk info: malformed offset list: {e}",
                    item_id=item_id,
                    status_code=resp.status_code,
                ) from e

        return await retry_async(
            _attempt, policy=self.retry_policy, label=f"chunk info {item_id}"
        )

    async def upload_chunk(self, item_id: str, chunk: Chunk) -> None:
        """Send one chunk, retrying transient failures."""
        path = self._chunk_path(item_id, chunk.offset)

        async def _attempt() -> None:
            resp = await self.client.post(path, content=chunk.data, headers=OCTET_STREAM)
            raise_for_upload_status(resp, f"Uploading chunk {chunk.offset}", item_id=item_id)

        await retry_async(
            _attempt,
            policy=self.retry_policy,
            label=f"chunk {item_id}@{chunk.offset}",
        )

    async def finalize(self, item_id: str) -> UploadReceipt:
        """Ask the bundler to reconstruct the item from its stored chunks.

        Raises:
            InsufficientFundsError: On HTTP 402.
            FatalUploadError: On any status other than 201.
        """
        path = self._chunk_path(item_id, FINALIZE_OFFSET)
        timeout = self.client.timeout * FINALIZE_TIMEOUT_MULTIPLIER

        resp = await retry_async(
            lambda: self.client.post(path, headers=OCTET_STREAM, timeout=timeout),
            policy=self.retry_policy,
            label=f"finalize {item_id}",
        )
        if resp.status_code == 402:
            raise InsufficientFundsError(item_id=item_id)
        if resp.status_code != 201:
            raise FatalUploadError(
                f"Finalising upload: {describe_response(resp)}",
                item_id=item_id,
                status_code=resp.status_code,
            )
        return UploadReceipt(id=item_id, status_code=resp.status_code, data={"id": item_id})

    # =========================================================================
    # Orchestration
    # =========================================================================

    async def upload_large(
        self,
        item_id: str,
        source: ByteSource,
        size: int,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> UploadReceipt:
        """Upload an item of ``size`` bytes through the chunk endpoints.

        Args:
            item_id: ID of the signed item.
            source: Raw item bytes, a binary file object, or an async
                iterable of byte pieces.
            size: Total item size in bytes.
            chunk_size: Chunk size, 1,000,000..190,000,000 bytes.
            batch_size: Maximum chunk uploads in flight.

        Returns:
            Receipt for the reconstructed item.

        Raises:
            InvalidConfigurationError: If chunk or batch size is out of range.
            InsufficientFundsError: If the bundler rejects a chunk or the
                finalize call for lack of balance.
            FatalUploadError: If the bundler rejects the upload otherwise.
            RetryExhaustedError: If a request keeps failing transiently.
        """
        splitter = ChunkSplitter(chunk_size)
        validate_batch_size(batch_size)
        item_id = validate_item_id(item_id)

        async with LogContext("chunked upload", logger, item=item_id, size=size) as ctx:
            self._report(UploadProgress(UploadPhase.PREPARING, item_id, total_bytes=size))
            completed, present = await self.get_presence(item_id, size)
            if completed:
                ctx.info("item already reconstructed, skipping upload")
                self._report(
                    UploadProgress(UploadPhase.COMPLETE, item_id, size, size, message="resumed")
                )
                return UploadReceipt(id=item_id, status_code=201, data={"id": item_id})

            missing = set(splitter.offsets(size)) - present
            ctx.update(stored=len(present), missing=len(missing))

            received = await self._send_missing(
                item_id, splitter.split(source), missing, batch_size, size
            )
            if received != size:
                raise FatalUploadError(
                    f"Source produced {received} bytes, expected {size}",
                    item_id=item_id,
                )

            self._report(UploadProgress(UploadPhase.FINALIZING, item_id, size, size))
            receipt = await self.finalize(item_id)
            self._report(UploadProgress(UploadPhase.COMPLETE, item_id, size, size))
            return receipt

    async def _send_missing(
        self,
        item_id: str,
        chunks: AsyncIterator[Chunk],
        missing: set[int],
        batch_size: int,
        size: int,
    ) -> int:
        """Upload the chunks whose offsets are missing.

        A new upload is admitted as soon as one of ``batch_size`` in-flight
        uploads finishes. Finished uploads are checked before every chunk is
        admitted, and any failure cancels the remaining uploads.

        Returns:
            Number of bytes read from the source.
        """
        in_flight: set[asyncio.Task[None]] = set()
        received = 0
        sent = 0
        sent_chunks = 0
        skipped = 0

        async def _send(chunk: Chunk) -> None:
            nonlocal sent, sent_chunks
            await self.upload_chunk(item_id, chunk)
            sent += len(chunk.data)
            sent_chunks += 1
            self._report(
                UploadProgress(
                    UploadPhase.UPLOADING,
                    item_id,
                    bytes_sent=sent,
                    total_bytes=size,
                    chunks_sent=sent_chunks,
                    chunks_skipped=skipped,
                )
            )

        try:
            async for chunk in chunks:
                # Stream sources suspend between chunks; settle finished uploads
                # first so a rejection stops the next request.
                done = {task for task in in_flight if task.done()}
                in_flight -= done
                _raise_first_error(done)

                received = chunk.end
                if chunk.offset not in missing:
                    skipped += 1
                    continue
                if len(in_flight) >= batch_size:
                    done, in_flight = await asyncio.wait(
                        in_flight, return_when=asyncio.FIRST_COMPLETED
                    )
                    _raise_first_error(done)
                in_flight.add(asyncio.create_task(_send(chunk)))

            while in_flight:
                done, in_flight = await asyncio.wait(
                    in_flight, return_when=asyncio.FIRST_EXCEPTION
                )
                _raise_first_error(done)
        finally:
            for task in in_flight:
                task.cancel()
            if in_flight:
                await asyncio.gather(*in_flight, return_exceptions=True)

        return received
