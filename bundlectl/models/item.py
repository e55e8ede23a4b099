"""Item and chunk models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import NamedTuple


class Chunk(NamedTuple):
    """A contiguous slice of an item starting at ``offset``."""

    offset: int
    data: bytes

    @property
    def end(self) -> int:
        """Offset one past the chunk's last byte."""
        return self.offset + len(self.data)


@dataclass(frozen=True)
class Item:
    """A signed payload ready for upload.

    The raw bytes are opaque to bundlectl; ``id`` is derived by the currency
    that signed them.
    """

    id: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        """Raw payload length in bytes."""
        return len(self.data)


@dataclass(frozen=True)
class ItemFile:
    """A signed item stored on disk, uploaded without loading it whole."""

    path: Path
    id: str

    @property
    def size(self) -> int:
        """File length in bytes."""
        return self.path.stat().st_size
