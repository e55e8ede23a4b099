"""Data models for bundlectl.

Provides dataclasses for items and upload results, and Pydantic models for
manifest documents.
"""

from __future__ import annotations

from .base import BaseModel
from .item import Chunk, Item, ItemFile
from .manifest import Manifest, ManifestEntry, ManifestIndex
from .progress import UploadPhase, UploadProgress
from .results import (
    BatchResult,
    ItemFailure,
    ItemResult,
    UploadOutcome,
    UploadReceipt,
    outcome_for,
)

__all__ = [
    # Base
    "BaseModel",
    # Items
    "Item",
    "Chunk",
    "ItemFile",
    # Results
    "UploadOutcome",
    "UploadReceipt",
    "ItemResult",
    "ItemFailure",
    "BatchResult",
    "outcome_for",
    # Manifest
    "Manifest",
    "ManifestEntry",
    "ManifestIndex",
    # Progress
    "UploadPhase",
    "UploadProgress",
]
