"""Tests for clipstash watch."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pyperclip
from typer.testing import CliRunner

from clipstash.cli.main import app

runner = CliRunner()


def _opts(tmp_path: Path) -> list[str]:
    return ["--config", str(tmp_path / "config.yaml"), "--data-dir", str(tmp_path / "data")]


def test_watch_clipboard_unavailable_exits_1(tmp_path: Path) -> None:
    with patch.object(
        pyperclip, "paste", side_effect=pyperclip.PyperclipException("no mechanism")
    ):
        result = runner.invoke(app, ["watch"] + _opts(tmp_path))
    assert result.exit_code == 1
    assert "Cannot read the system clipboard" in result.output


def test_watch_stops_on_interrupt_and_reports(tmp_path: Path) -> None:
    with patch.object(pyperclip, "paste", return_value="baseline"), patch(
        "clipstash.ingest.coordinator.IngestionCoordinator.join",
        side_effect=[KeyboardInterrupt, None],
    ):
        result = runner.invoke(app, ["watch", "--interval", "0.05"] + _opts(tmp_path))

    assert result.exit_code == 0, result.output
    assert "Stopped. Stored 0" in result.output
    assert (tmp_path / "data" / "history.db").exists()
