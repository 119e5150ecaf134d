from __future__ import annotations

import os
import logging
import runpy
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from lip.cli import cli, main
from lip.__version__ import __version__
from lip.exceptions import LipError


@pytest.fixture(autouse=True)
def isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Run every CLI invocation inside an empty directory."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("LIP_CONFIG", raising=False)
    monkeypatch.setenv("NO_COLOR", "")
    monkeypatch.setenv("LIP_CACHE_DIR", str(tmp_path / "cache"))
    yield tmp_path
    logging.getLogger("lip").handlers.clear()


@pytest.mark.unit
class TestCliGroup:
    def test_version(self) -> None:
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert result.output.strip() == f"lip {__version__}"

    def test_help_lists_commands(self) -> None:
        result = CliRunner().invoke(cli, ["--help"])

        assert result.exit_code == 0
        for command in ("install", "uninstall", "autoremove", "list", "show", "cache"):
            assert command in result.output

    def test_invalid_config_exits_one(self, isolated: Path) -> None:
        (isolated / "lip.toml").write_text("[lip]\nbogus = 'x'\n")

        result = CliRunner().invoke(cli, ["list"])

        assert result.exit_code == 1
        assert "Unknown configuration keys" in result.output

    def test_missing_explicit_config_is_usage_error(self) -> None:
        result = CliRunner().invoke(cli, ["--config", "missing.toml", "list"])

        assert result.exit_code == 2

    def test_no_color_sets_environment(self) -> None:
        CliRunner().invoke(cli, ["--no-color", "list"])

        assert os.environ.get("NO_COLOR") == "1"

    def test_config_stored_on_context(self, isolated: Path) -> None:
        (isolated / "lip.toml").write_text("[lip]\nworkspace = 'server'\n")
        with patch("lip.commands.list.RecordStore") as store_cls:
            store_cls.return_value.list_all.return_value = []
            result = CliRunner().invoke(cli, ["list"])

        assert result.exit_code == 0, result.output
        store_cls.assert_called_once_with(isolated / "server" / ".lip" / "records")


@pytest.mark.unit
class TestMain:
    def _run(self, *args: str) -> int:
        with patch("sys.argv", ["lip", *args]):
            return main()

    def test_success(self) -> None:
        assert self._run("list") == 0

    def test_usage_error(self) -> None:
        assert self._run("no-such-command") == 2

    def test_lip_error(self) -> None:
        with patch("lip.cli.cli", side_effect=LipError("boom")):
            assert self._run("list") == 1

    def test_keyboard_interrupt(self) -> None:
        with patch("lip.cli.cli", side_effect=KeyboardInterrupt):
            assert self._run("list") == 130

    def test_unexpected_error(self) -> None:
        with patch("lip.cli.cli", side_effect=RuntimeError("bug")):
            assert self._run("list") == 1

    def test_system_exit_code(self, isolated: Path) -> None:
        (isolated / "lip.toml").write_text("[lip\n")

        assert self._run("list") == 1

    def test_module_entry_point(self) -> None:
        with patch("sys.argv", ["lip", "--version"]):
            with pytest.raises(SystemExit) as exc_info:
                runpy.run_module("lip", run_name="__main__")

        assert exc_info.value.code == 0
