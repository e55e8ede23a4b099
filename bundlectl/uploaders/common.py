"""Common utilities for uploader modules: retry execution and status checks."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import NoReturn, TypeVar

import httpx

from bundlectl.core.exceptions import (
    FatalUploadError,
    InsufficientFundsError,
    InvalidConfigurationError,
    NonRetryableError,
    RetryExhaustedError,
    TransientUploadError,
)
from bundlectl.uploaders.constants import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_DELAY,
    DEFAULT_MIN_DELAY,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


# =============================================================================
# Status Handling
# =============================================================================


def is_retryable_status(status_code: int) -> bool:
    """Check if an HTTP status code warrants a retry.

    Retryable: 408/429 (timeout, rate limit), 5xx gateway and server errors.
    Non-retryable: 402 (balance), other 4xx (client error).
    """
    return status_code in RETRYABLE_STATUS_CODES


def describe_response(resp: httpx.Response) -> str:
    """Short ``status reason: body`` description for error messages."""
    text = resp.text.strip()[:200] if resp.content else ""
    reason = resp.reason_phrase or ""
    summary = f"{resp.status_code} {reason}".strip()
    return f"{summary}: {text}" if text else summary


def raise_for_upload_status(
    resp: httpx.Response,
    context: str,
    *,
    item_id: str | None = None,
) -> None:
    """Raise the upload exception matching a bundler response.

    Raises:
        InsufficientFundsError: On HTTP 402.
        TransientUploadError: On a retryable status.
        FatalUploadError: On any other status >= 400.
    """
    if resp.status_code == 402:
        raise InsufficientFundsError(item_id=item_id)
    if resp.status_code < 400:
        return
    message = f"{context}: {describe_response(resp)}"
    if is_retryable_status(resp.status_code):
        raise TransientUploadError(message, item_id=item_id, status_code=resp.status_code)
    raise FatalUploadError(message, item_id=item_id, status_code=resp.status_code)


# =============================================================================
# Retry
# =============================================================================


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt limit and clamped exponential backoff between attempts."""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    min_delay: float = DEFAULT_MIN_DELAY
    max_delay: float = DEFAULT_MAX_DELAY
    factor: float = DEFAULT_BACKOFF_FACTOR

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise InvalidConfigurationError(
                "max_attempts must be >= 1", field="max_attempts", value=self.max_attempts
            )
        if self.min_delay < 0 or self.max_delay < self.min_delay:
            raise InvalidConfigurationError(
                "Retry delays must satisfy 0 <= min_delay <= max_delay",
                field="max_delay",
                value=(self.min_delay, self.max_delay),
            )

    def delay_for(self, failed_attempts: int) -> float:
        """Seconds to wait after ``failed_attempts`` consecutive failures."""
        delay = self.min_delay * self.factor ** max(failed_attempts - 1, 0)
        return max(self.min_delay, min(delay, self.max_delay))


def is_non_retryable(error: BaseException) -> bool:
    """Default fatal predicate: balance and rejection errors stop retries."""
    return isinstance(error, NonRetryableError)


def bail(error: BaseException) -> NoReturn:
    """Abort the surrounding ``retry_async`` loop with ``error``.

    Errors that are already non-retryable propagate unchanged; anything else
    is wrapped in ``FatalUploadError``.
    """
    if isinstance(error, NonRetryableError):
        raise error
    raise FatalUploadError(str(error)) from error


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy | None = None,
    label: str = "upload",
    is_fatal: Callable[[BaseException], bool] = is_non_retryable,
) -> T:
    """Await ``operation`` until it succeeds or the policy gives up.

    Args:
        operation: Zero-argument coroutine factory. Called once per attempt,
            so it must be safe to repeat.
        policy: Attempt and backoff settings (defaults: 3 attempts, 1s..10s).
        label: Label for log messages and the exhaustion error.
        is_fatal: Predicate selecting errors that must not be retried.

    Returns:
        The operation's result.

    Raises:
        The fatal error itself, unchanged, when ``is_fatal`` matches.
        RetryExhaustedError: When every attempt failed with a retryable error.
    """
    policy = policy or RetryPolicy()
    last_error: Exception | None = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if is_fatal(e):
                logger.debug("%s: not retrying %s", label, type(e).__name__)
                raise
            last_error = e
            if attempt < policy.max_attempts:
                delay = policy.delay_for(attempt)
                logger.warning(
                    "%s: %s on attempt %d/%d, retrying in %.1fs",
                    label,
                    e,
                    attempt,
                    policy.max_attempts,
                    delay,
                )
                await asyncio.sleep(delay)

    raise RetryExhaustedError(label, policy.max_attempts, last_error) from last_error
