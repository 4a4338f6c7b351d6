"""clipstash status / cleanup / config: data directory maintenance."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.panel import Panel
from rich.table import Table

from clipstash.cli.common import ConfigOption, DataDirOption, console, open_or_exit, resolve_config
from clipstash.cli.errors import err_store
from clipstash.config import dump_config
from clipstash.errors import HistoryStoreError


def status_cmd(
    no_migrate: Annotated[
        bool,
        typer.Option("--no-migrate", help="Fail instead of migrating an outdated database."),
    ] = False,
    data_dir: DataDirOption = None,
    config: ConfigOption = None,
) -> None:
    """Show record counts, storage use and settings."""
    cfg = resolve_config(config, data_dir)
    with open_or_exit(cfg, auto_migrate=not no_migrate) as services:
        try:
            stats = services.store.stats()
        except HistoryStoreError as exc:
            console.print(err_store(str(exc)))
            raise typer.Exit(1)
        blob_bytes = services.blobs.total_storage_size()
        db_bytes = services.store.db_path.stat().st_size

    lines = [
        f"Data dir:  {cfg.storage.data_dir}",
        f"Database:  {cfg.storage.db_path}  ({_human_size(db_bytes)})",
        f"Images:    {_human_size(blob_bytes)}",
        "",
        f"Items:     {stats['total']}  "
        f"(unpinned {stats['unpinned']} / limit {cfg.history.limit}, "
        f"pinned {stats['pinned']})",
    ]
    console.print(Panel("\n".join(lines), title="[bold]clipstash[/]", expand=False))

    if stats["by_type"]:
        table = Table(title="By content type", show_header=True)
        table.add_column("Type")
        table.add_column("Items", justify="right")
        for content_type, count in sorted(stats["by_type"].items()):
            table.add_row(content_type, str(count))
        console.print(table)


def cleanup_cmd(
    data_dir: DataDirOption = None,
    config: ConfigOption = None,
) -> None:
    """Delete image files no history item references."""
    cfg = resolve_config(config, data_dir)
    with open_or_exit(cfg) as services:
        try:
            valid = services.store.referenced_blob_paths()
        except HistoryStoreError as exc:
            console.print(err_store(str(exc)))
            raise typer.Exit(1)
        removed = services.blobs.cleanup_orphans(valid)

    if removed:
        console.print(f"[green]✓[/] Removed {removed} orphaned file(s).")
    else:
        console.print("[dim]No orphaned files.[/]")


def config_cmd(
    data_dir: DataDirOption = None,
    config: ConfigOption = None,
) -> None:
    """Print the effective configuration (file + environment + flags) as YAML."""
    cfg = resolve_config(config, data_dir)
    typer.echo(dump_config(cfg), nl=False)


def _human_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KiB", "MiB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GiB"
