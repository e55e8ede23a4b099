"""Core modules for bundlectl."""

from bundlectl.core.client import BundlerClient
from bundlectl.core.config import CONFIG_DIR, CONFIG_FILE, Config, Profile
from bundlectl.core.currency import Currency
from bundlectl.core.exceptions import (
    BatchAbortedError,
    BundleCtlError,
    ConfigurationError,
    ConnectionError,
    FatalUploadError,
    InsufficientFundsError,
    InvalidConfigurationError,
    NetworkError,
    NonRetryableError,
    OperationError,
    RetryExhaustedError,
    TransientUploadError,
    UploadError,
    ValidationError,
)
from bundlectl.core.logging import LogContext, get_logger, setup_logging
from bundlectl.core.output import (
    OutputFormat,
    console,
    print_error,
    print_json,
    print_output,
    print_success,
    print_table,
    print_warning,
)
from bundlectl.core.validation import (
    validate_batch_size,
    validate_chunk_size,
    validate_currency,
    validate_item_id,
    validate_server_url,
    validate_timeout,
    validate_workers,
)

__all__ = [
    # Exceptions
    "BundleCtlError",
    "ConfigurationError",
    "ConnectionError",
    "NetworkError",
    "ValidationError",
    "InvalidConfigurationError",
    "OperationError",
    "UploadError",
    "TransientUploadError",
    "FatalUploadError",
    "InsufficientFundsError",
    "BatchAbortedError",
    "NonRetryableError",
    "RetryExhaustedError",
    # Validation
    "validate_server_url",
    "validate_item_id",
    "validate_currency",
    "validate_chunk_size",
    "validate_batch_size",
    "validate_timeout",
    "validate_workers",
    # Config
    "Config",
    "Profile",
    "CONFIG_DIR",
    "CONFIG_FILE",
    # Client
    "BundlerClient",
    # Currency
    "Currency",
    # Output
    "OutputFormat",
    "print_output",
    "print_table",
    "print_json",
    "print_error",
    "print_warning",
    "print_success",
    "console",
    # Logging
    "get_logger",
    "setup_logging",
    "LogContext",
]
