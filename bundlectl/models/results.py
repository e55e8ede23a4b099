"""Upload outcome and batch result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from bundlectl.core.exceptions import (
    FatalUploadError,
    InsufficientFundsError,
    InvalidConfigurationError,
    RetryExhaustedError,
)


class UploadOutcome(Enum):
    """Terminal state of one item upload."""

    COMPLETED = "completed"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    TRANSIENT_FAILURE = "transient_failure"
    FATAL_FAILURE = "fatal_failure"


def outcome_for(error: BaseException | None) -> UploadOutcome:
    """Classify an upload error (``None`` means success)."""
    if error is None:
        return UploadOutcome.COMPLETED
    if isinstance(error, InsufficientFundsError):
        return UploadOutcome.INSUFFICIENT_FUNDS
    if isinstance(error, (FatalUploadError, InvalidConfigurationError)):
        return UploadOutcome.FATAL_FAILURE
    if isinstance(error, RetryExhaustedError) and isinstance(
        error.last_error, FatalUploadError
    ):
        return UploadOutcome.FATAL_FAILURE
    return UploadOutcome.TRANSIENT_FAILURE


@dataclass
class UploadReceipt:
    """Server acknowledgement of a completed upload."""

    id: str
    status_code: int
    data: Any = None

    @property
    def outcome(self) -> UploadOutcome:
        return UploadOutcome.COMPLETED


@dataclass
class ItemResult:
    """Successful upload of the item at ``index`` in the batch input."""

    index: int
    item: Any
    receipt: UploadReceipt


@dataclass
class ItemFailure:
    """Failed upload of the item at ``index`` in the batch input."""

    index: int
    item: Any
    error: Exception

    @property
    def outcome(self) -> UploadOutcome:
        return outcome_for(self.error)


@dataclass
class BatchResult:
    """Collected results of a batch upload, in completion order."""

    results: list[Any] = field(default_factory=list)
    failures: list[ItemFailure] = field(default_factory=list)

    @property
    def errors(self) -> list[Exception]:
        """Raw errors of failed items."""
        return [f.error for f in self.failures]

    @property
    def success(self) -> bool:
        return not self.failures

    def summary(self) -> dict[str, int]:
        """Counts suitable for table output."""
        return {
            "completed": len(self.results),
            "failed": len(self.failures),
        }
