"""Split item payloads into fixed-size chunks.

Chunks are yielded lazily so that file and stream sources are never held in
memory in full. The final chunk carries whatever remains ("flush tail").
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterable, AsyncIterator
from typing import BinaryIO, Union

from bundlectl.core.exceptions import ValidationError
from bundlectl.core.validation import validate_chunk_size
from bundlectl.models.item import Chunk
from bundlectl.uploaders.constants import DEFAULT_CHUNK_SIZE

ByteSource = Union[bytes, bytearray, memoryview, BinaryIO, AsyncIterable[bytes]]


def chunk_offsets(size: int, chunk_size: int) -> list[int]:
    """Return the offsets of every chunk of an item of ``size`` bytes.

    Args:
        size: Item size in bytes.
        chunk_size: Chunk size in bytes.

    Returns:
        ``[0, chunk_size, 2 * chunk_size, ...]``; empty for an empty item.
    """
    validate_chunk_size(chunk_size)
    if size < 0:
        raise ValidationError("Item size cannot be negative", field="size", value=size)
    return list(range(0, size, chunk_size))


class ChunkSplitter:
    """Produces ordered ``Chunk`` objects from a byte source."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self.chunk_size = validate_chunk_size(chunk_size)

    def offsets(self, size: int) -> list[int]:
        """Offsets this splitter will produce for ``size`` bytes."""
        return chunk_offsets(size, self.chunk_size)

    def split(self, source: ByteSource) -> AsyncIterator[Chunk]:
        """Iterate over ``source`` in chunks.

        Args:
            source: In-memory buffer, binary file object, or async iterable
                of byte pieces of any size.

        Returns:
            Async iterator of chunks in increasing offset order. It consumes
            the source and cannot be restarted.

        Raises:
            ValidationError: If the source type is not supported.
        """
        if isinstance(source, (bytes, bytearray, memoryview)):
            return self._split_buffer(source)
        if hasattr(source, "__aiter__"):
            return self._split_async_iterable(source)  # type: ignore[arg-type]
        if hasattr(source, "read"):
            return self._split_file(source)  # type: ignore[arg-type]
        raise ValidationError(
            f"Unsupported chunk source: {type(source).__name__}", field="source"
        )

    async def _split_buffer(self, buffer: bytes | bytearray | memoryview) -> AsyncIterator[Chunk]:
        view = memoryview(buffer)
        for offset in range(0, len(view), self.chunk_size):
            yield Chunk(offset, bytes(view[offset : offset + self.chunk_size]))

    async def _split_file(self, stream: BinaryIO) -> AsyncIterator[Chunk]:
        offset = 0
        while True:
            data = await asyncio.to_thread(self._read_full, stream)
            if not data:
                return
            yield Chunk(offset, data)
            offset += len(data)
            if len(data) < self.chunk_size:
                return

    def _read_full(self, stream: BinaryIO) -> bytes:
        # read() may return short counts on pipes and sockets
        parts: list[bytes] = []
        remaining = self.chunk_size
        while remaining > 0:
            data = stream.read(remaining)
            if not data:
                break
            parts.append(data)
            remaining -= len(data)
        return b"".join(parts)

    async def _split_async_iterable(self, pieces: AsyncIterable[bytes]) -> AsyncIterator[Chunk]:
        offset = 0
        pending = bytearray()
        async for piece in pieces:
            pending.extend(piece)
            while len(pending) >= self.chunk_size:
                data = bytes(pending[: self.chunk_size])
                del pending[: self.chunk_size]
                yield Chunk(offset, data)
                offset += len(data)
        if pending:
            yield Chunk(offset, bytes(pending))
