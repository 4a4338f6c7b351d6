"""clipstash CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from clipstash.cli.common import console
from clipstash.cli.history import (
    clear_cmd,
    delete_cmd,
    export_cmd,
    list_cmd,
    pin_cmd,
    search_cmd,
)
from clipstash.cli.init import init_cmd
from clipstash.cli.maintenance import cleanup_cmd, config_cmd, status_cmd
from clipstash.cli.watch import watch_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("clipstash")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"clipstash {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="clipstash",
    help=(
        "clipstash: local clipboard history.\n\n"
        "  clipstash watch   Capture clipboard changes until Ctrl-C.\n"
        "  clipstash list    Show recent and pinned items."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log debug output."),
    ] = False,
) -> None:
    """clipstash: local clipboard history."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


app.command("init")(init_cmd)
app.command("watch")(watch_cmd)
app.command("list")(list_cmd)
app.command("search")(search_cmd)
app.command("pin")(pin_cmd)
app.command("delete")(delete_cmd)
app.command("clear")(clear_cmd)
app.command("export")(export_cmd)
app.command("status")(status_cmd)
app.command("cleanup")(cleanup_cmd)
app.command("config")(config_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed clipstash version."""
    typer.echo(f"clipstash {_installed_version()}")


if __name__ == "__main__":
    app()
