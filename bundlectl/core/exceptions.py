"""Exception hierarchy for bundlectl.

Every error raised by the library derives from ``BundleCtlError``. Errors that
must not be retried also derive from ``NonRetryableError``; the CLI maps the
remaining classes onto exit codes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from bundlectl.models.results import BatchResult


class BundleCtlError(Exception):
    """Base exception for all bundlectl errors.

    ``details`` holds structured context (item ID, status code, ...) that is
    rendered after the message.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        rendered = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({rendered})"


class NonRetryableError(BundleCtlError):
    """Marker base: the retry executor re-raises these on the first attempt."""


class _FieldError(BundleCtlError):
    """Error about one named input field and its offending value."""

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        details: dict[str, Any] = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = repr(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


# =============================================================================
# Configuration and Validation Errors
# =============================================================================


class ConfigurationError(_FieldError):
    """Config file, profile or environment override is missing or invalid."""


class ProfileNotFoundError(ConfigurationError):
    """Requested profile does not exist."""

    def __init__(self, profile: str):
        super().__init__(f"Profile not found: {profile}", field="profile", value=profile)
        self.profile = profile


class ValidationError(_FieldError):
    """Caller-supplied input (item ID, manifest path, byte source) is invalid."""


class InvalidURLError(ValidationError):
    """Bundler URL is malformed."""

    def __init__(self, url: str, reason: str = ""):
        super().__init__(
            f"Invalid URL: {url} - {reason}" if reason else f"Invalid URL: {url}",
            field="url",
            value=url,
        )
        self.url = url
        self.reason = reason


class InvalidConfigurationError(ValidationError):
    """Upload tuning parameter out of range (chunk size, batch size, retry policy)."""


# =============================================================================
# Connection Errors
# =============================================================================


class ConnectionError(BundleCtlError):
    """The bundler could not be reached or did not answer in time."""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message, {"url": url} if url else {})
        self.url = url


class NetworkError(ConnectionError):
    """Transport failure after the connection was attempted (TLS, reset, protocol)."""

    def __init__(self, url: str, cause: str | None = None):
        reason = f": {cause}" if cause else ""
        super().__init__(f"Network error talking to {url}{reason}", url)
        self.cause = cause


class ServerUnreachableError(ConnectionError):
    """Connection to the bundler was refused or could not be opened."""

    def __init__(self, url: str):
        super().__init__(f"Bundler unreachable: {url}", url)


class TimeoutError(ConnectionError):
    """Request exceeded its timeout."""

    def __init__(self, url: str, timeout: float):
        super().__init__(f"Request timed out after {timeout}s: {url}", url)
        self.timeout = timeout


class RetryExhaustedError(ConnectionError):
    """Every attempt of a retried operation failed with a retryable error."""

    def __init__(self, operation: str, attempts: int, last_error: Exception | None = None):
        suffix = f": {last_error}" if last_error else ""
        super().__init__(f"'{operation}' failed after {attempts} attempts{suffix}")
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error


# =============================================================================
# Operation Errors
# =============================================================================


class OperationError(BundleCtlError):
    """A bundler operation was attempted and failed."""

    def __init__(self, operation: str, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, {"operation": operation, **(details or {})})
        self.operation = operation


class UploadError(OperationError):
    """An item upload failed; ``status_code`` is set when the bundler answered."""

    def __init__(
        self,
        message: str,
        item_id: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        context = dict(details or {})
        if item_id:
            context["item"] = item_id
        if status_code is not None:
            context["status_code"] = status_code
        super().__init__("upload", message, context)
        self.item_id = item_id
        self.status_code = status_code


class TransientUploadError(UploadError):
    """Server answered with a status worth retrying (rate limit, 5xx)."""


class FatalUploadError(UploadError, NonRetryableError):
    """Server rejected the upload; repeating the request will not help."""


class InsufficientFundsError(UploadError, NonRetryableError):
    """Bundler reported that the account balance cannot pay for the data."""

    def __init__(
        self,
        message: str = "Not enough funds to send data",
        item_id: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, item_id=item_id, status_code=402, details=details)


class BatchAbortedError(InsufficientFundsError):
    """Batch upload stopped early because the balance ran out."""

    def __init__(
        self,
        cause: InsufficientFundsError,
        result: BatchResult,
        cancelled: list[int],
    ):
        super().__init__(
            f"Batch aborted: {cause.message}",
            item_id=cause.item_id,
            details={
                "completed": len(result.results),
                "failed": len(result.failures),
                "cancelled": len(cancelled),
            },
        )
        self.cause = cause
        self.result = result
        self.cancelled = cancelled
