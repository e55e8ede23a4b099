"""Shared plumbing for bundlectl commands: context, global flags, exit codes."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Coroutine
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

import click

from bundlectl.core.client import BundlerClient
from bundlectl.core.config import Config, Profile
from bundlectl.core.exceptions import (
    BundleCtlError,
    ConfigurationError,
    ConnectionError,
    InsufficientFundsError,
    ProfileNotFoundError,
    RetryExhaustedError,
)
from bundlectl.core.logging import setup_logging
from bundlectl.core.output import OutputFormat, print_error

F = TypeVar("F", bound=Callable[..., Any])
T = TypeVar("T")


class ExitCode:
    """Process exit codes returned by every command."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    CONFIG_ERROR = 2
    NETWORK_ERROR = 3
    INSUFFICIENT_FUNDS = 4


# First matching entry wins, so subclasses must precede their bases.
_EXIT_CODES: tuple[tuple[type[BundleCtlError] | tuple[type[BundleCtlError], ...], int], ...] = (
    (InsufficientFundsError, ExitCode.INSUFFICIENT_FUNDS),
    (ConfigurationError, ExitCode.CONFIG_ERROR),
    ((ConnectionError, RetryExhaustedError), ExitCode.NETWORK_ERROR),
)


def exit_code_for(error: BundleCtlError) -> int:
    """Exit code for a library error that reached the command boundary."""
    for types, code in _EXIT_CODES:
        if isinstance(error, types):
            return code
    return ExitCode.GENERAL_ERROR


# =============================================================================
# Command Context
# =============================================================================


@dataclass
class Context:
    """State shared by a command invocation, filled in from global flags."""

    config: Optional[Config] = None
    profile_name: Optional[str] = None
    output_format: OutputFormat = OutputFormat.TABLE
    quiet: bool = False
    verbose: bool = False

    def get_profile(self) -> Profile:
        """Profile selected by ``--profile``, ``BUNDLR_PROFILE`` or the config default.

        Raises:
            ConfigurationError: If the profile does not exist.
        """
        if self.config is None:
            self.config = Config.load()
        name = self.profile_name or self.config.default_profile
        try:
            return self.config.get_profile(name)
        except ProfileNotFoundError as e:
            raise ConfigurationError(
                f"Profile '{name}' not found. Run 'bundlectl config init' to create one."
            ) from e

    def get_client(self) -> BundlerClient:
        """Unopened client for the selected profile's bundler."""
        profile = self.get_profile()
        return BundlerClient(
            base_url=profile.url,
            timeout=profile.timeout,
            verify_ssl=profile.verify_ssl,
        )


pass_context = click.make_pass_decorator(Context, ensure=True)


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Drive an async service call from a synchronous click command."""
    return asyncio.run(coro)


# =============================================================================
# Decorators
# =============================================================================

_GLOBAL_OPTIONS = (
    click.option("--profile", "-p", envvar="BUNDLR_PROFILE", help="Config profile to use"),
    click.option(
        "--output",
        "-o",
        "output_format",
        type=click.Choice(["json", "table"]),
        default="table",
        help="Output format",
    ),
    click.option("--quiet", "-q", is_flag=True, help="Print item IDs only"),
    click.option("--verbose", "-v", is_flag=True, help="Log debug messages to stderr"),
)


def global_options(f: F) -> F:
    """Add ``--profile``, ``--output``, ``--quiet`` and ``--verbose`` to a command.

    The decorated function receives the populated ``Context`` as its first
    argument instead of the raw flag values.
    """

    @pass_context
    @wraps(f)
    def wrapper(
        ctx: Context,
        *args: Any,
        profile: Optional[str],
        output_format: str,
        quiet: bool,
        verbose: bool,
        **kwargs: Any,
    ) -> Any:
        ctx.profile_name = profile
        ctx.output_format = OutputFormat.from_string(output_format)
        ctx.quiet = quiet
        ctx.verbose = verbose
        setup_logging(logging.WARNING, quiet=quiet, verbose=verbose)
        return f(ctx, *args, **kwargs)

    for option in reversed(_GLOBAL_OPTIONS):
        wrapper = option(wrapper)
    return wrapper  # type: ignore


def handle_errors(f: F) -> F:
    """Report errors on stderr and exit with the matching ``ExitCode``.

    Click's own usage errors pass through so they keep exit status 2.
    """

    @wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return f(*args, **kwargs)
        except click.ClickException:
            raise
        except BundleCtlError as e:
            print_error(str(e))
            sys.exit(exit_code_for(e))
        except Exception as e:
            print_error(f"Unexpected error: {e}")
            sys.exit(ExitCode.GENERAL_ERROR)

    return wrapper  # type: ignore
