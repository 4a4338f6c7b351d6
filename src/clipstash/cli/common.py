"""Shared helpers for CLI commands: config + service bootstrap."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console

from clipstash.cli.errors import err_config, err_migration_required, err_no_db, err_store
from clipstash.config import ConfigError, StashConfig, load_config
from clipstash.errors import HistoryStoreError, MigrationRequiredError
from clipstash.services import Services, open_services

console = Console()


def resolve_config(config_path: Path | None, data_dir: Path | None) -> StashConfig:
    """Load config and apply the ``--data-dir`` flag (CLI layer)."""
    try:
        cfg = load_config(config_path)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    if data_dir is not None:
        cfg.storage.data_dir = data_dir
    return cfg


def open_or_exit(
    cfg: StashConfig, *, require_db: bool = True, auto_migrate: bool = True
) -> Services:
    """Open services for *cfg*, printing an actionable error and exiting on failure."""
    if require_db and not cfg.storage.db_path.exists():
        console.print(err_no_db(str(cfg.storage.db_path)))
        raise typer.Exit(1)
    try:
        return open_services(cfg, auto_migrate=auto_migrate)
    except MigrationRequiredError as exc:
        console.print(err_migration_required(str(exc)))
        raise typer.Exit(2)
    except HistoryStoreError as exc:
        console.print(err_store(str(exc)))
        raise typer.Exit(1)


DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", help="Data directory (overrides config and CLIPSTASH_DATA_DIR)."),
]
ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", help="Path to config.yaml (default: ~/.clipstash/config.yaml)."),
]


def write_atomic(path: Path, content: str) -> None:
    """Write *content* to *path* atomically (temp → rename).

    Creates parent directories if needed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
