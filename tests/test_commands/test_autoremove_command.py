from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from lip.cli import cli
from lip.commands.autoremove import remove_orphans


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logging.getLogger("lip").handlers.clear()


@pytest.fixture
def chain(installer, make_archive) -> None:
    """app (manual) -> lib -> base, plus one stale dependency."""
    installer.install(make_archive("example.com/base"))
    installer.install(make_archive("example.com/lib", dependencies={"example.com/base": [["*"]]}))
    installer.install(
        make_archive("example.com/app", dependencies={"example.com/lib": [["*"]]}),
        is_manually_installed=True,
    )
    installer.install(make_archive("example.com/stale"))


@pytest.mark.unit
class TestRemoveOrphans:
    def test_removes_only_unneeded(self, lip_config, chain, record_store) -> None:
        assert remove_orphans(lip_config, assume_yes=True) == {"example.com/stale"}
        assert [r.tooth_path for r in record_store.list_all()] == [
            "example.com/app",
            "example.com/base",
            "example.com/lib",
        ]

    def test_cascade_after_uninstall(self, lip_config, chain, installer, record_store) -> None:
        installer.uninstall("example.com/app")

        removed = remove_orphans(lip_config, assume_yes=True)

        assert removed == {"example.com/base", "example.com/lib", "example.com/stale"}
        assert record_store.list_all() == []

    def test_nothing_to_remove(self, lip_config) -> None:
        assert remove_orphans(lip_config, assume_yes=True) == set()

    def test_declined(self, lip_config, chain, record_store) -> None:
        with patch("lip.commands.autoremove.confirm", return_value=False):
            assert remove_orphans(lip_config) == set()

        assert record_store.is_installed("example.com/stale")


@pytest.mark.integration
def test_autoremove_cli(config_file: Path, chain, record_store) -> None:
    result = CliRunner().invoke(cli, ["--config", str(config_file), "autoremove", "-y"])

    assert result.exit_code == 0, result.output
    assert "Removed example.com/stale" in result.output
    assert not record_store.is_installed("example.com/stale")
