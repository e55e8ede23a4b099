"""bundlectl - Reliable uploads of signed items to a bundler node.

This package provides a client library and command-line interface for
storing data through a bundling service, supporting:
- Direct uploads of small signed items
- Resumable chunked uploads of large items
- Concurrent batch uploads with per-item retry
- Path manifests for uploaded items
"""

__version__ = "0.1.0"

from bundlectl.core.client import BundlerClient
from bundlectl.core.config import Config, Profile
from bundlectl.core.exceptions import (
    BatchAbortedError,
    BundleCtlError,
    ConfigurationError,
    FatalUploadError,
    InsufficientFundsError,
    InvalidConfigurationError,
    RetryExhaustedError,
    UploadError,
)
from bundlectl.models import BatchResult, Item, UploadOutcome, UploadReceipt
from bundlectl.services import BatchUploader, UploadService, generate_manifest

__all__ = [
    "__version__",
    "BundlerClient",
    "Config",
    "Profile",
    "Item",
    "UploadReceipt",
    "UploadOutcome",
    "BatchResult",
    "UploadService",
    "BatchUploader",
    "generate_manifest",
    "BundleCtlError",
    "ConfigurationError",
    "InvalidConfigurationError",
    "UploadError",
    "FatalUploadError",
    "InsufficientFundsError",
    "BatchAbortedError",
    "RetryExhaustedError",
]
