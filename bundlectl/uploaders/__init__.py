"""Bundler upload transports for bundlectl.

This module provides the building blocks of item uploads:
- Chunk splitter (fixed-size chunks from buffers, files and streams)
- Retry executor (bounded attempts with clamped exponential backoff)
- Chunked uploader (resumable upload through the bundler chunk endpoints)

These are internal implementation details. Use `UploadService` from
`bundlectl.services.uploads` as the public API.
"""

from bundlectl.uploaders.chunked import ChunkUploadCoordinator
from bundlectl.uploaders.chunker import ByteSource, ChunkSplitter, chunk_offsets
from bundlectl.uploaders.common import (
    RETRYABLE_STATUS_CODES,
    RetryPolicy,
    bail,
    is_retryable_status,
    raise_for_upload_status,
    retry_async,
)
from bundlectl.uploaders.constants import (
    CHUNKING_THRESHOLD,
    DEFAULT_BATCH_SIZE,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONCURRENCY,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_DELAY,
    DEFAULT_MIN_DELAY,
    MAX_CHUNK_SIZE,
    MIN_CHUNK_SIZE,
)

__all__ = [
    # Constants
    "CHUNKING_THRESHOLD",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_CONCURRENCY",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_MAX_DELAY",
    "DEFAULT_MIN_DELAY",
    "MAX_CHUNK_SIZE",
    "MIN_CHUNK_SIZE",
    # Chunking
    "ByteSource",
    "ChunkSplitter",
    "chunk_offsets",
    # Retry
    "RETRYABLE_STATUS_CODES",
    "RetryPolicy",
    "bail",
    "is_retryable_status",
    "raise_for_upload_status",
    "retry_async",
    # Chunked uploader
    "ChunkUploadCoordinator",
]
