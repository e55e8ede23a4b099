"""Shared constants for uploader modules.

These defaults match what public bundler nodes accept. Raise the widths via
profile settings or CLI flags on fast links.
"""

from bundlectl.core.limits import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONCURRENCY,
    MAX_CHUNK_SIZE,
    MIN_CHUNK_SIZE,
)

# =============================================================================
# Direct Upload
# =============================================================================

# Items larger than this always go through the chunked protocol
CHUNKING_THRESHOLD = 50_000_000

# =============================================================================
# Chunked Upload
# =============================================================================

# Finalize triggers server-side reconstruction which can take a while
FINALIZE_TIMEOUT_MULTIPLIER = 10

# Offset used to request reconstruction
FINALIZE_OFFSET = -1

# =============================================================================
# Retry
# =============================================================================

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_MIN_DELAY = 1.0  # seconds
DEFAULT_MAX_DELAY = 10.0  # seconds
DEFAULT_BACKOFF_FACTOR = 2.0

__all__ = [
    "CHUNKING_THRESHOLD",
    "DEFAULT_BACKOFF_FACTOR",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_CONCURRENCY",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_MAX_DELAY",
    "DEFAULT_MIN_DELAY",
    "FINALIZE_OFFSET",
    "FINALIZE_TIMEOUT_MULTIPLIER",
    "MAX_CHUNK_SIZE",
    "MIN_CHUNK_SIZE",
]
