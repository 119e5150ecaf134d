from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from click.testing import CliRunner

from lip.cli import cli


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logging.getLogger("lip").handlers.clear()


@pytest.fixture
def run(config_file: Path):
    def invoke(*args: str):
        return CliRunner().invoke(cli, ["--config", str(config_file), *args])

    return invoke


@pytest.mark.integration
class TestListCommand:
    def test_empty(self, run) -> None:
        result = run("list")

        assert result.exit_code == 0
        assert "No tooths installed" in result.output

    def test_table(self, run, installer, make_archive) -> None:
        installer.install(make_archive("example.com/a", "1.2.3"), is_manually_installed=True)

        result = run("list")

        assert result.exit_code == 0, result.output
        assert "example.com/a" in result.output
        assert "1.2.3" in result.output

    def test_json(self, run, installer, make_archive) -> None:
        installer.install(make_archive("example.com/b", "2.0.0"))
        installer.install(make_archive("example.com/a"), is_manually_installed=True)

        result = run("list", "--format", "json")

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == [
            {"tooth": "example.com/a", "version": "1.0.0", "is_manually_installed": True},
            {"tooth": "example.com/b", "version": "2.0.0", "is_manually_installed": False},
        ]


@pytest.mark.integration
class TestShowCommand:
    def test_details_and_files(self, run, installer, make_archive) -> None:
        installer.install(
            make_archive(
                "example.com/a",
                dependencies={"example.com/b": [[">=1.0.0"]]},
                files={"a.dll": "plugins/a.dll"},
            ),
            is_manually_installed=True,
        )

        result = run("show", "example.com/a", "--files")

        assert result.exit_code == 0, result.output
        assert "example.com/a 1.0.0" in result.output
        assert "Manually installed: yes" in result.output
        assert "example.com/b >=1.0.0" in result.output
        assert "plugins/a.dll" in result.output

    def test_not_installed(self, run) -> None:
        result = run("show", "example.com/ghost")

        assert result.exit_code == 1
        assert "[ERROR]" in result.output
