"""Main CLI entry point for bundlectl."""

from __future__ import annotations

from typing import Any

import click

from bundlectl import __version__
from bundlectl.cli.common import Context, global_options, handle_errors, run_async

# Import command groups
from bundlectl.cli.config_cmd import config
from bundlectl.cli.manifest import manifest
from bundlectl.cli.upload import chunks, upload
from bundlectl.core.output import OutputFormat, print_output, print_success

# =============================================================================
# Main CLI Group
# =============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="bundlectl")
def cli() -> None:
    """bundlectl - Reliable uploads of signed items to a bundler node.

    Small items are posted directly; large items are uploaded in resumable
    chunks. Many items can be uploaded concurrently with per-item retry.

    Get started:

      bundlectl config init      # Create config file

      bundlectl ping             # Check the bundler is reachable

      bundlectl upload FILE --id ITEM_ID

    Use --help on any command for more information.
    """
    pass


# =============================================================================
# Register Command Groups
# =============================================================================

cli.add_command(config)
cli.add_command(upload)
cli.add_command(chunks)
cli.add_command(manifest)


# =============================================================================
# Top-Level Commands
# =============================================================================


@cli.command()
@global_options
@handle_errors
def ping(ctx: Context) -> None:
    """Check bundler connectivity."""

    async def _run() -> dict[str, Any]:
        async with ctx.get_client() as client:
            return await client.ping()

    result = run_async(_run())

    if ctx.output_format == OutputFormat.JSON:
        print_output(result, format=OutputFormat.JSON)
        return

    print_success(f"Bundler reachable: {result['url']}")
    print_output(
        {
            "status": result["status"],
            "latency": f"{result['latency_ms']}ms",
        },
        format=OutputFormat.TABLE,
        quiet=ctx.quiet,
        id_field="status",
    )


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
