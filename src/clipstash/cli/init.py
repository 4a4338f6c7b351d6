"""clipstash init: create the data directory, config file and history database.

Creates:
  ~/.clipstash/config.yaml  default config (mode 0o600), unless it exists
  <data_dir>/history.db     history database with schema
  <data_dir>/thumbnails/    thumbnail blobs
  <data_dir>/images/        full image blobs
"""

from __future__ import annotations

from clipstash.cli.common import ConfigOption, DataDirOption, console, open_or_exit, resolve_config
from clipstash.config import ensure_global_config


def init_cmd(
    data_dir: DataDirOption = None,
    config: ConfigOption = None,
) -> None:
    """Create the data directory, default config and history database."""
    config_path = ensure_global_config(config)
    cfg = resolve_config(config_path, data_dir)

    with open_or_exit(cfg, require_db=False) as services:
        console.print(f"  [green]✓[/] {config_path}")
        console.print(f"  [green]✓[/] {services.store.db_path}")
        console.print(f"  [green]✓[/] {services.blobs.thumbnails_dir}/")
        console.print(f"  [green]✓[/] {services.blobs.images_dir}/")

    console.print("\n[bold]Ready.[/] Run:  clipstash watch")
