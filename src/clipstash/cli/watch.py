"""clipstash watch: capture clipboard changes into history until interrupted."""

from __future__ import annotations

from typing import Annotated, Optional

import typer

from clipstash.capture.reader import PyperclipReader
from clipstash.cli.common import ConfigOption, DataDirOption, console, open_or_exit, resolve_config
from clipstash.cli.errors import err_clipboard_unavailable
from clipstash.errors import ClipboardUnavailableError


def watch_cmd(
    interval: Annotated[
        Optional[float],
        typer.Option("--interval", "-i", min=0.05, help="Poll interval in seconds."),
    ] = None,
    data_dir: DataDirOption = None,
    config: ConfigOption = None,
) -> None:
    """Watch the system clipboard and store every new capture."""
    cfg = resolve_config(config, data_dir)
    if interval is not None:
        cfg.capture.poll_interval = interval

    with open_or_exit(cfg, require_db=False) as services:
        detector = services.detector(PyperclipReader())
        coordinator = services.coordinator()

        try:
            stream = detector.start()
        except ClipboardUnavailableError as exc:
            console.print(err_clipboard_unavailable(str(exc)))
            raise typer.Exit(1)

        coordinator.start(stream)
        console.print(
            f"Watching clipboard every {cfg.capture.poll_interval:g}s "
            f"(limit {cfg.history.limit}). Press Ctrl-C to stop."
        )
        try:
            while coordinator.is_running:
                coordinator.join(timeout=0.5)
        except KeyboardInterrupt:
            pass
        finally:
            # Closing the stream ends the coordinator loop after in-flight work.
            detector.stop()
            coordinator.join()

        stats = coordinator.stats
        console.print(
            f"\n[green]✓[/] Stopped. Stored {stats.stored}, "
            f"skipped {stats.duplicates} duplicate(s), "
            f"failed {stats.failed}, evicted {stats.evicted}."
        )
