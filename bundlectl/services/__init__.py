"""Service layer for bundler operations.

Provides the public upload API on top of the internal uploaders.
"""

from __future__ import annotations

from .base import BaseService
from .batch import BatchUploader
from .manifest import generate_manifest
from .uploads import UploadService

__all__ = [
    "BaseService",
    "UploadService",
    "BatchUploader",
    "generate_manifest",
]
