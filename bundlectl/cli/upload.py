"""Upload commands for bundlectl."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Optional

import click
from rich.progress import Progress, TaskID

from bundlectl.cli.common import (
    Context,
    ExitCode,
    global_options,
    handle_errors,
    run_async,
)
from bundlectl.core.exceptions import BatchAbortedError
from bundlectl.core.output import (
    OutputFormat,
    create_transfer_progress,
    err_console,
    print_error,
    print_output,
    print_success,
    print_warning,
)
from bundlectl.core.validation import validate_workers
from bundlectl.models.item import ItemFile
from bundlectl.models.progress import UploadProgress
from bundlectl.models.results import BatchResult, ItemResult
from bundlectl.services.batch import BatchUploader
from bundlectl.services.uploads import UploadService

RESULT_COLUMNS = ["index", "id", "status", "outcome"]


class _TransferDisplay:
    """Feeds chunked upload progress into a Rich progress bar."""

    def __init__(self, progress: Progress) -> None:
        self.progress = progress
        self.tasks: dict[str, TaskID] = {}

    def __call__(self, update: UploadProgress) -> None:
        task = self.tasks.get(update.item_id)
        if task is None:
            task = self.progress.add_task(update.item_id[:16], total=update.total_bytes)
            self.tasks[update.item_id] = task
        self.progress.update(task, completed=update.bytes_sent)


def _result_row(result: ItemResult) -> dict[str, Any]:
    return {
        "index": result.index,
        "id": result.receipt.id,
        "status": result.receipt.status_code,
        "outcome": result.receipt.outcome.value,
    }


def _report(ctx: Context, result: BatchResult) -> None:
    rows = [_result_row(r) for r in result.results]
    rows.extend(
        {
            "index": f.index,
            "id": getattr(f.item, "id", ""),
            "status": getattr(f.error, "status_code", None) or "-",
            "outcome": f.outcome.value,
        }
        for f in result.failures
    )
    rows.sort(key=lambda row: row["index"])
    print_output(rows, format=ctx.output_format, columns=RESULT_COLUMNS, quiet=ctx.quiet)


@click.command("upload")
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--id",
    "item_ids",
    multiple=True,
    required=True,
    help="Item ID of each file, in the same order as FILES",
)
@click.option("--concurrency", type=int, default=None, help="Items uploaded in parallel")
@click.option("--chunk-size", type=int, default=None, help="Chunk size in bytes")
@click.option("--batch-size", type=int, default=None, help="Chunks uploaded in parallel per item")
@click.option("--force-chunking", is_flag=True, default=False, help="Always use chunked upload")
@global_options
@handle_errors
def upload(
    ctx: Context,
    files: tuple[Path, ...],
    item_ids: tuple[str, ...],
    concurrency: Optional[int],
    chunk_size: Optional[int],
    batch_size: Optional[int],
    force_chunking: bool,
) -> None:
    """Upload pre-signed item files to the bundler.

    Large files are uploaded in resumable chunks; re-running an interrupted
    upload only sends the chunks the bundler is missing.

    Example:
        bundlectl upload item1.bin item2.bin --id ID1 --id ID2
    """
    if len(files) != len(item_ids):
        raise click.UsageError(f"Got {len(files)} files but {len(item_ids)} --id values")

    profile = ctx.get_profile()
    width = validate_workers(concurrency, default=profile.concurrency)
    items = [ItemFile(path=path, id=item_id) for path, item_id in zip(files, item_ids, strict=True)]

    async def _run(display: _TransferDisplay | None) -> BatchResult:
        async with ctx.get_client() as client:
            service = UploadService(
                client,
                profile.currency,
                force_chunking=force_chunking or profile.force_chunking,
                chunk_size=chunk_size if chunk_size is not None else profile.chunk_size,
                batch_size=batch_size if batch_size is not None else profile.batch_size,
                progress_callback=display,
            )

            def _log(message: str) -> None:
                if not ctx.quiet:
                    err_console.print(f"[dim]{message}[/dim]")

            return await BatchUploader(service).upload_all(
                items, concurrency=width, on_progress=_log
            )

    try:
        if ctx.quiet or ctx.output_format == OutputFormat.JSON:
            result = run_async(_run(None))
        else:
            with create_transfer_progress() as progress:
                result = run_async(_run(_TransferDisplay(progress)))
    except BatchAbortedError as e:
        _report(ctx, e.result)
        print_error(str(e))
        if e.cancelled:
            print_warning(f"{len(e.cancelled)} item(s) were not started")
        sys.exit(ExitCode.INSUFFICIENT_FUNDS)

    _report(ctx, result)
    if result.failures:
        for failure in result.failures:
            print_warning(f"Item {failure.index}: {failure.error}")
        sys.exit(ExitCode.GENERAL_ERROR)
    if not ctx.quiet and ctx.output_format != OutputFormat.JSON:
        print_success(f"Uploaded {len(result.results)} item(s)")


@click.group()
def chunks() -> None:
    """Inspect chunked uploads."""
    pass


@chunks.command("status")
@click.argument("item_id")
@click.argument("size", type=int)
@global_options
@handle_errors
def chunks_status(ctx: Context, item_id: str, size: int) -> None:
    """Show which chunks of an item the bundler already holds.

    Example:
        bundlectl chunks status ITEM_ID 104857600
    """
    profile = ctx.get_profile()

    async def _run() -> tuple[bool, set[int]]:
        async with ctx.get_client() as client:
            service = UploadService(client, profile.currency)
            return await service.chunk_status(item_id, size)

    completed, offsets = run_async(_run())
    print_output(
        {
            "id": item_id,
            "size": size,
            "completed": completed,
            "stored_chunks": len(offsets),
            "offsets": sorted(offsets),
        },
        format=ctx.output_format,
        quiet=ctx.quiet,
    )
