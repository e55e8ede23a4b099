"""Path manifest document mapping logical paths to item IDs."""

from __future__ import annotations

from pydantic import Field

from bundlectl.models.base import BaseModel

MANIFEST_TYPE = "arweave/paths"
MANIFEST_VERSION = "0.1.0"


class ManifestEntry(BaseModel):
    """Item referenced by a manifest path."""

    id: str = Field(..., description="Item ID")


class ManifestIndex(BaseModel):
    """Path served when the manifest itself is requested."""

    path: str = Field(..., description="Logical path of the index item")


class Manifest(BaseModel):
    """Manifest document uploaded alongside the items it references."""

    manifest: str = MANIFEST_TYPE
    version: str = MANIFEST_VERSION
    index: ManifestIndex | None = None
    paths: dict[str, ManifestEntry] = Field(default_factory=dict)

    def item_ids(self) -> list[str]:
        """IDs referenced by the manifest, in path order."""
        return [entry.id for entry in self.paths.values()]
