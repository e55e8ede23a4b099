"""Terminal rendering for bundlectl commands.

Results go to stdout as a Rich table or as plain JSON; status messages and
transfer progress go to stderr so that ``-o json`` output stays parseable.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping, Sequence
from enum import Enum
from typing import Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TransferSpeedColumn,
)
from rich.table import Table

console = Console()
err_console = Console(stderr=True)


class OutputFormat(Enum):
    """How command results are rendered."""

    JSON = "json"
    TABLE = "table"

    @classmethod
    def from_string(cls, value: str) -> OutputFormat:
        return cls(value.lower())


def _label(key: str) -> str:
    return key.replace("_", " ").title()


def _render_value(value: Any) -> str:
    # Offsets and nested receipts are shown compactly rather than expanded.
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value)
    return str(value)


# =============================================================================
# Tables
# =============================================================================


def print_table(
    rows: Sequence[Mapping[str, Any]],
    columns: Sequence[str],
    *,
    title: str | None = None,
) -> None:
    """Render ``rows`` as a table with one column per key in ``columns``.

    Args:
        rows: Records to show, one table row each.
        columns: Keys to show, in order. Missing keys render empty.
        title: Table caption.
    """
    if not rows:
        console.print("[dim]No results[/dim]")
        return

    table = Table(title=title, header_style="bold")
    for key in columns:
        table.add_column(_label(key))
    for row in rows:
        table.add_row(*[_render_value(row.get(key)) for key in columns])
    console.print(table)


def print_key_value(data: Mapping[str, Any], *, title: str | None = None) -> None:
    """Render a single record as aligned ``Label  value`` lines."""
    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="bold")
    grid.add_column()
    for key, value in data.items():
        grid.add_row(_label(key), "[dim]-[/dim]" if value is None else _render_value(value))

    if title:
        console.print(f"[bold]{title}[/bold]")
    console.print(grid)


def print_json(data: Any, *, indent: int = 2) -> None:
    """Write ``data`` to stdout as JSON, bypassing Rich markup."""
    print(json.dumps(data, indent=indent, default=str))


def _print_ids(data: Any, id_field: str) -> None:
    records: Iterable[Any] = data if isinstance(data, list) else [data]
    for record in records:
        print(record.get(id_field, "") if isinstance(record, Mapping) else record)


def print_output(
    data: Any,
    *,
    format: OutputFormat = OutputFormat.TABLE,
    columns: Sequence[str] | None = None,
    title: str | None = None,
    quiet: bool = False,
    id_field: str = "id",
) -> None:
    """Render a command result according to the selected output options.

    ``quiet`` prints only the ``id_field`` of each record, one per line.
    Lists need ``columns`` for table output; a single record without
    ``columns`` is shown as key/value lines.
    """
    if quiet:
        _print_ids(data, id_field)
    elif format is OutputFormat.JSON:
        print_json(data)
    elif isinstance(data, Mapping):
        if columns:
            print_table([data], columns, title=title)
        else:
            print_key_value(data, title=title)
    elif isinstance(data, list) and columns:
        print_table(data, columns, title=title)
    else:
        print_json(data)


# =============================================================================
# Status Messages
# =============================================================================


def print_error(message: str) -> None:
    err_console.print(f"[red]Error:[/red] {message}")


def print_warning(message: str) -> None:
    err_console.print(f"[yellow]Warning:[/yellow] {message}")


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def create_transfer_progress() -> Progress:
    """Progress display for item uploads: bytes sent and throughput, on stderr."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        console=err_console,
        transient=True,
    )
