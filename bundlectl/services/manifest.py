"""Manifest generation for uploaded items."""

from __future__ import annotations

from collections.abc import Mapping

from bundlectl.core.exceptions import ValidationError
from bundlectl.models.manifest import Manifest, ManifestEntry, ManifestIndex


def generate_manifest(
    items: Mapping[str, str],
    index_file: str | None = None,
) -> Manifest:
    """Build a path manifest from logical paths to item IDs.

    Args:
        items: Mapping of logical path to item ID.
        index_file: Optional logical path served as the manifest index.

    Returns:
        Manifest document.

    Raises:
        ValidationError: If ``index_file`` is not one of the paths.
    """
    index = None
    if index_file:
        if index_file not in items:
            raise ValidationError(
                f"Unable to access item: {index_file}", field="index_file", value=index_file
            )
        index = ManifestIndex(path=index_file)

    return Manifest(
        index=index,
        paths={path: ManifestEntry(id=item_id) for path, item_id in items.items()},
    )
