"""clipstash rich error messages: actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from clipstash.cli.errors import err_no_db
    console.print(err_no_db(path))
    raise typer.Exit(1)
"""

from __future__ import annotations


def err_no_db(db_path: str) -> str:
    """No history database at the configured location."""
    return (
        f"[red]Error:[/] No history database found at '{db_path}'.\n"
        "  Run:  clipstash init"
    )


def err_config(message: str) -> str:
    """Config file or environment variable holds an invalid value."""
    return (
        f"[red]Error:[/] Invalid configuration: {message}\n"
        "  Fix the value in ~/.clipstash/config.yaml or the CLIPSTASH_* variable."
    )


def err_migration_required(message: str) -> str:
    """Schema version mismatch on open."""
    return (
        f"[red]Error:[/] {message}\n"
        "  Upgrade clipstash, or run the command without --no-migrate to apply\n"
        "  pending migrations. Your history has not been modified."
    )


def err_store(message: str) -> str:
    """History database unreachable or failing."""
    return (
        f"[red]Error:[/] History store failure: {message}\n"
        "  Check that the data directory is writable and not on a full disk."
    )


def err_item_not_found(item_id: str) -> str:
    """No record with this id."""
    return (
        f"[yellow]Not found:[/] No history item with id '{item_id}'.\n"
        "  Run:  clipstash list  to see item ids."
    )


def err_clipboard_unavailable(message: str) -> str:
    """The system clipboard cannot be read."""
    return (
        f"[red]Error:[/] Cannot read the system clipboard: {message}\n"
        "  On Linux install xclip, xsel or wl-clipboard."
    )
