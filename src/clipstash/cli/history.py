"""clipstash history commands: list, search, pin, delete, clear, export.

Usage:
  clipstash list [--limit 20] [--pinned]
  clipstash search "invoice"
  clipstash pin <id>
  clipstash delete <id>
  clipstash clear [--yes]
  clipstash export [--output history.json]
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.table import Table

from clipstash.cli.common import (
    ConfigOption,
    DataDirOption,
    console,
    open_or_exit,
    resolve_config,
    write_atomic,
)
from clipstash.cli.errors import err_item_not_found, err_store
from clipstash.db.models import HistoryRecord
from clipstash.errors import HistoryStoreError, ItemNotFoundError


def list_cmd(
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", min=1, help="Maximum number of unpinned items shown."),
    ] = 20,
    pinned: Annotated[
        bool,
        typer.Option("--pinned", help="Show pinned items only."),
    ] = False,
    data_dir: DataDirOption = None,
    config: ConfigOption = None,
) -> None:
    """Show recent history, newest first. Pinned items are listed first."""
    cfg = resolve_config(config, data_dir)
    with open_or_exit(cfg) as services:
        try:
            pinned_records = services.store.fetch_pinned()
            recent = [] if pinned else services.store.fetch_recent(limit)
        except HistoryStoreError as exc:
            console.print(err_store(str(exc)))
            raise typer.Exit(1)

    records = pinned_records + recent
    if not records:
        console.print("[dim]No history yet.[/]  Run:  clipstash watch")
        return
    console.print(_records_table(records, title="Clipboard history"))


def search_cmd(
    query: Annotated[str, typer.Argument(help="Text to look for (case-insensitive).")],
    data_dir: DataDirOption = None,
    config: ConfigOption = None,
) -> None:
    """Find history items whose text contains QUERY."""
    cfg = resolve_config(config, data_dir)
    with open_or_exit(cfg) as services:
        try:
            records = services.store.search(query)
        except HistoryStoreError as exc:
            console.print(err_store(str(exc)))
            raise typer.Exit(1)

    if not records:
        console.print(f"[dim]No matches for '{query}'.[/]")
        return
    console.print(_records_table(records, title=f"Matches for '{query}'"))


def pin_cmd(
    item_id: Annotated[str, typer.Argument(help="History item id.")],
    data_dir: DataDirOption = None,
    config: ConfigOption = None,
) -> None:
    """Pin an item, or unpin it if already pinned. Pinned items are never evicted."""
    cfg = resolve_config(config, data_dir)
    with open_or_exit(cfg) as services:
        try:
            pinned = services.store.toggle_pin(item_id)
        except ItemNotFoundError:
            console.print(err_item_not_found(item_id))
            raise typer.Exit(1)
        except HistoryStoreError as exc:
            console.print(err_store(str(exc)))
            raise typer.Exit(1)

    state = "Pinned" if pinned else "Unpinned"
    console.print(f"[green]✓[/] {state}: {item_id}")


def delete_cmd(
    item_id: Annotated[str, typer.Argument(help="History item id.")],
    data_dir: DataDirOption = None,
    config: ConfigOption = None,
) -> None:
    """Delete one item and its image files."""
    cfg = resolve_config(config, data_dir)
    with open_or_exit(cfg) as services:
        try:
            services.store.delete(item_id)
        except ItemNotFoundError:
            console.print(err_item_not_found(item_id))
            raise typer.Exit(1)
        except HistoryStoreError as exc:
            console.print(err_store(str(exc)))
            raise typer.Exit(1)

    console.print(f"[green]✓[/] Deleted: {item_id}")


def clear_cmd(
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
    data_dir: DataDirOption = None,
    config: ConfigOption = None,
) -> None:
    """Delete every unpinned item. Pinned items are kept."""
    cfg = resolve_config(config, data_dir)
    with open_or_exit(cfg) as services:
        try:
            unpinned = services.store.unpinned_count()
        except HistoryStoreError as exc:
            console.print(err_store(str(exc)))
            raise typer.Exit(1)
        if unpinned == 0:
            console.print("[dim]Nothing to clear.[/]")
            return

        console.print(f"\nClear [bold]{unpinned}[/] unpinned item(s). Pinned items are kept.")
        if not yes:
            if not typer.confirm("Confirm clear?", default=False):
                console.print("[dim]Cancelled.[/]")
                raise typer.Exit(0)

        try:
            removed = services.store.clear_history()
        except HistoryStoreError as exc:
            console.print(err_store(str(exc)))
            raise typer.Exit(1)

    console.print(f"\n[green]✓[/] Cleared {removed} item(s).")


def export_cmd(
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write JSON here instead of stdout."),
    ] = None,
    data_dir: DataDirOption = None,
    config: ConfigOption = None,
) -> None:
    """Export the whole history, newest first, as JSON."""
    cfg = resolve_config(config, data_dir)
    with open_or_exit(cfg) as services:
        try:
            document = services.store.export_history()
        except HistoryStoreError as exc:
            console.print(err_store(str(exc)))
            raise typer.Exit(1)

    if output is None:
        typer.echo(document)
        return
    write_atomic(output, document + "\n")
    console.print(f"[green]✓[/] Exported to {output}")


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _records_table(records: Sequence[HistoryRecord], *, title: str) -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("When", no_wrap=True)
    table.add_column("Type")
    table.add_column("Source", style="dim")
    table.add_column("Preview", overflow="fold")
    for record in records:
        marker = "📌 " if record.is_pinned else ""
        table.add_row(
            record.id,
            record.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S"),
            record.content_type.value,
            record.source_app_name or "",
            marker + record.preview,
        )
    return table
