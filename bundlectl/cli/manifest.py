"""Manifest commands for bundlectl."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from bundlectl.cli.common import Context, global_options, handle_errors
from bundlectl.core.output import print_json, print_success
from bundlectl.services.manifest import generate_manifest


def _parse_entries(entries: tuple[str, ...]) -> dict[str, str]:
    paths: dict[str, str] = {}
    for entry in entries:
        path, sep, item_id = entry.rpartition("=")
        if not sep or not path or not item_id:
            raise click.BadParameter(f"Expected PATH=ID, got '{entry}'", param_hint="ENTRIES")
        paths[path] = item_id
    return paths


@click.command("manifest")
@click.argument("entries", nargs=-1, required=True)
@click.option("--index", "index_file", default=None, help="Path served as the manifest index")
@click.option(
    "--save",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the manifest to a file instead of stdout",
)
@global_options
@handle_errors
def manifest(
    ctx: Context,
    entries: tuple[str, ...],
    index_file: Optional[str],
    save: Optional[Path],
) -> None:
    """Build a path manifest for uploaded items.

    Example:
        bundlectl manifest index.html=ID1 css/site.css=ID2 --index index.html
    """
    document = generate_manifest(_parse_entries(entries), index_file=index_file)

    if save is None:
        print_json(document.to_dict())
        return

    save.write_text(document.model_dump_json(by_alias=True, exclude_none=True, indent=2))
    if not ctx.quiet:
        print_success(f"Manifest with {len(document.paths)} path(s) written to {save}")
