"""Progress models for tracking upload status."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class UploadPhase(Enum):
    """Upload phases for progress tracking."""

    PREPARING = "preparing"
    UPLOADING = "uploading"
    FINALIZING = "finalizing"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass
class UploadProgress:
    """Progress of one chunked item upload."""

    phase: UploadPhase
    item_id: str = ""
    bytes_sent: int = 0
    total_bytes: int = 0
    chunks_sent: int = 0
    chunks_skipped: int = 0
    message: str = ""

    @property
    def percent(self) -> float:
        """Calculate bytes completion percentage."""
        if self.total_bytes == 0:
            return 0.0
        return (self.bytes_sent / self.total_bytes) * 100

    @property
    def is_complete(self) -> bool:
        """Check if the upload is complete."""
        return self.phase == UploadPhase.COMPLETE
