"""Logging setup and operation timing for bundlectl.

Library modules log through ``logging.getLogger(__name__)`` and never install
handlers themselves; the CLI calls ``setup_logging`` once per invocation.
"""

from __future__ import annotations

import asyncio
import logging
import sys
import time
from typing import Any, Optional

# =============================================================================
# Constants
# =============================================================================

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Transport libraries that log every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore")


# =============================================================================
# Logger Setup
# =============================================================================


def level_for(default: int, *, quiet: bool = False, verbose: bool = False) -> int:
    """Resolve the effective level from CLI flags; ``quiet`` wins."""
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return default


def setup_logging(
    level: int = logging.INFO,
    *,
    quiet: bool = False,
    verbose: bool = False,
) -> None:
    """Configure the root logger for bundlectl.

    Replaces any handlers installed by an earlier call so that repeated
    invocations in one process pick up the current ``sys.stderr``.

    Args:
        level: Base logging level.
        quiet: If True, only show errors.
        verbose: If True, show debug messages.
    """
    logging.basicConfig(
        level=level_for(level, quiet=quiet, verbose=verbose),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stderr,
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a bundlectl module."""
    return logging.getLogger(name)


# =============================================================================
# Log Context
# =============================================================================


class LogContext:
    """Times an operation and logs its start, completion or failure.

    Keyword fields given at construction, or added later with ``update``,
    are appended to every message. Works with ``with`` and ``async with``.

    Example:
        async with LogContext("chunked upload", logger, item=item_id) as ctx:
            ...
            ctx.update(chunks_sent=4)
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[logging.Logger] = None,
        **fields: Any,
    ):
        self.operation = operation
        self.logger = logger or get_logger(__name__)
        self.fields = fields
        self.started: Optional[float] = None

    @property
    def elapsed(self) -> float:
        """Seconds since the context was entered."""
        return time.monotonic() - self.started if self.started is not None else 0.0

    def update(self, **fields: Any) -> None:
        """Add or replace fields reported with subsequent messages."""
        self.fields.update(fields)

    def _fields(self) -> str:
        return ", ".join(f"{k}={v}" for k, v in self.fields.items())

    def __enter__(self) -> LogContext:
        self.started = time.monotonic()
        self.logger.info("Starting %s (%s)", self.operation, self._fields())
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is None:
            self.logger.info(
                "%s completed in %.2fs (%s)", self.operation, self.elapsed, self._fields()
            )
        elif issubclass(exc_type, asyncio.CancelledError):
            self.logger.warning("%s cancelled after %.2fs", self.operation, self.elapsed)
        else:
            self.logger.error(
                "%s failed after %.2fs: %s", self.operation, self.elapsed, exc_val
            )

    async def __aenter__(self) -> LogContext:
        return self.__enter__()

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)

    def log(self, level: int, message: str, *args: Any) -> None:
        """Log ``message`` tagged with the operation name and fields."""
        self.logger.log(level, "[%s] " + message + " (%s)", self.operation, *args, self._fields())

    def info(self, message: str, *args: Any) -> None:
        self.log(logging.INFO, message, *args)

    def warning(self, message: str, *args: Any) -> None:
        self.log(logging.WARNING, message, *args)

    def debug(self, message: str, *args: Any) -> None:
        self.log(logging.DEBUG, message, *args)
