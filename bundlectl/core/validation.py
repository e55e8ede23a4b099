"""Input validation helpers for bundlectl.

Every validator returns the normalized value or raises a typed exception.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

from bundlectl.core.exceptions import (
    ConfigurationError,
    InvalidConfigurationError,
    InvalidURLError,
    ValidationError,
)
from bundlectl.core.limits import (
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    MAX_CHUNK_SIZE,
    MAX_WORKERS,
    MIN_CHUNK_SIZE,
)

SUPPORTED_SCHEMES = ("http", "https")


# =============================================================================
# URL Validation
# =============================================================================


def validate_server_url(url: str) -> str:
    """Validate and normalize a bundler URL.

    Args:
        url: Server URL, e.g. ``https://node1.bundlr.network``.

    Returns:
        URL without surrounding whitespace or trailing slashes.

    Raises:
        InvalidURLError: If the URL is empty or malformed.
    """
    if not url or not isinstance(url, str):
        raise InvalidURLError(str(url), "URL is required")

    url = url.strip().rstrip("/")
    if not url:
        raise InvalidURLError(url, "URL is required")

    parsed = urlparse(url)
    if not parsed.scheme:
        raise InvalidURLError(url, "URL must include scheme (http:// or https://)")
    if parsed.scheme not in SUPPORTED_SCHEMES:
        raise InvalidURLError(url, f"Unsupported scheme: {parsed.scheme}")
    if not parsed.netloc:
        raise InvalidURLError(url, "URL must include hostname")

    return url


# =============================================================================
# Identifier Validation
# =============================================================================


def validate_item_id(item_id: str) -> str:
    """Validate an item identifier used as a URL path segment."""
    if not item_id or not isinstance(item_id, str):
        raise ValidationError("Item ID is required", field="item_id", value=item_id)
    item_id = item_id.strip()
    if "/" in item_id or not item_id:
        raise ValidationError(
            f"Invalid item ID: {item_id!r}", field="item_id", value=item_id
        )
    return item_id


def validate_currency(currency: str) -> str:
    """Validate a currency name (lowercased)."""
    if not currency or not isinstance(currency, str) or not currency.strip():
        raise ConfigurationError("Currency is required", field="currency", value=currency)
    currency = currency.strip().lower()
    if not currency.replace("-", "").replace("_", "").isalnum():
        raise ConfigurationError(
            f"Invalid currency name: {currency}", field="currency", value=currency
        )
    return currency


# =============================================================================
# Upload Tuning Validation
# =============================================================================


def validate_chunk_size(chunk_size: int) -> int:
    """Validate a chunk size against the bundler's accepted range.

    Raises:
        InvalidConfigurationError: If outside 1,000,000..190,000,000 bytes.
    """
    if not isinstance(chunk_size, int) or not MIN_CHUNK_SIZE <= chunk_size <= MAX_CHUNK_SIZE:
        raise InvalidConfigurationError(
            f"Invalid chunk size - must be between {MIN_CHUNK_SIZE:,} "
            f"and {MAX_CHUNK_SIZE:,} bytes",
            field="chunk_size",
            value=chunk_size,
        )
    return chunk_size


def validate_batch_size(batch_size: int) -> int:
    """Validate the number of chunks uploaded concurrently for one item."""
    if not isinstance(batch_size, int) or batch_size < 1:
        raise InvalidConfigurationError(
            "Batch size too small - must be >= 1",
            field="batch_size",
            value=batch_size,
        )
    return batch_size


def validate_timeout(value: Any, *, default: int = DEFAULT_HTTP_TIMEOUT_SECONDS) -> int:
    """Validate a timeout in seconds; ``None`` yields the default."""
    if value is None:
        return default
    try:
        timeout = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Timeout must be a valid integer: {value}", field="timeout", value=value
        ) from e
    if timeout < 1:
        raise ConfigurationError("Timeout must be at least 1 second", field="timeout", value=value)
    return timeout


def validate_workers(value: Any, *, default: int = 5) -> int:
    """Validate a worker count; ``None`` yields the default."""
    if value is None:
        return default
    try:
        workers = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Workers must be a valid integer: {value}", field="workers", value=value
        ) from e
    if workers < 1:
        raise ConfigurationError("Workers must be at least 1", field="workers", value=value)
    if workers > MAX_WORKERS:
        raise ConfigurationError(
            f"Workers cannot exceed {MAX_WORKERS}", field="workers", value=value
        )
    return workers
