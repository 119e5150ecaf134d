from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from lip.cli import cli
from lip.commands.uninstall import uninstall_tooths
from lip.exceptions import NotInstalledError


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logging.getLogger("lip").handlers.clear()


@pytest.mark.unit
class TestUninstallTooths:
    def test_removes_files_and_records(self, lip_config, installer, record_store, make_archive, workspace) -> None:
        installer.install(make_archive("example.com/a", files={"a.dll": "a.dll"}))
        installer.install(make_archive("example.com/b", files={"b.dll": "b.dll"}))

        removed = uninstall_tooths(
            lip_config, ["example.com/a", "example.com/b", "example.com/a"], assume_yes=True
        )

        assert removed == ["example.com/a", "example.com/b"]
        assert record_store.list_all() == []
        assert not (workspace / "a.dll").exists()

    def test_missing_tooth_removes_nothing(self, lip_config, installer, record_store, make_archive) -> None:
        installer.install(make_archive("example.com/a"))

        with pytest.raises(NotInstalledError) as exc_info:
            uninstall_tooths(lip_config, ["example.com/a", "example.com/ghost"], assume_yes=True)

        assert exc_info.value.tooth_path == "example.com/ghost"
        assert record_store.is_installed("example.com/a")

    def test_declined(self, lip_config, installer, record_store, make_archive) -> None:
        installer.install(make_archive("example.com/a"))

        with patch("lip.commands.uninstall.confirm", return_value=False):
            assert uninstall_tooths(lip_config, ["example.com/a"]) == []

        assert record_store.is_installed("example.com/a")


@pytest.mark.integration
class TestUninstallCli:
    def test_cli(self, config_file: Path, installer, record_store, make_archive) -> None:
        installer.install(make_archive("example.com/a"))

        result = CliRunner().invoke(
            cli, ["--config", str(config_file), "uninstall", "-y", "example.com/a"]
        )

        assert result.exit_code == 0, result.output
        assert "Uninstalled example.com/a" in result.output
        assert not record_store.is_installed("example.com/a")

    def test_not_installed_exits_one(self, config_file: Path) -> None:
        result = CliRunner().invoke(
            cli, ["--config", str(config_file), "uninstall", "-y", "example.com/ghost"]
        )

        assert result.exit_code == 1
