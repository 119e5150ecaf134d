from __future__ import annotations

import pytest

from lip.models.record import ToothRecord
from lip.core.upgrade import InstallAction, decide_action


@pytest.fixture
def installed(make_archive):
    def factory(version: str) -> ToothRecord:
        return ToothRecord(make_archive("example.com/a", version).metadata, True)

    return factory


@pytest.mark.unit
class TestDecideAction:
    def test_not_installed(self, make_archive) -> None:
        archive = make_archive("example.com/a")

        assert decide_action(archive, None) is InstallAction.INSTALL
        assert decide_action(archive, None, upgrade=True) is InstallAction.INSTALL
        assert decide_action(archive, None, force_reinstall=True) is InstallAction.INSTALL

    def test_installed_without_flags_is_skipped(self, make_archive, installed) -> None:
        archive = make_archive("example.com/a", "2.0.0")

        assert decide_action(archive, installed("1.0.0")) is InstallAction.SKIP

    def test_upgrade_same_version_skips(self, make_archive, installed) -> None:
        archive = make_archive("example.com/a", "1.2.0")

        assert decide_action(archive, installed("1.2.0"), upgrade=True) is InstallAction.SKIP

    def test_upgrade_newer_version_reinstalls(self, make_archive, installed) -> None:
        archive = make_archive("example.com/a", "1.3.0")

        assert decide_action(archive, installed("1.2.0"), upgrade=True) is InstallAction.REINSTALL

    def test_upgrade_never_downgrades(self, make_archive, installed) -> None:
        archive = make_archive("example.com/a", "1.0.0")

        assert decide_action(archive, installed("1.2.0"), upgrade=True) is InstallAction.SKIP

    @pytest.mark.parametrize("version", ["1.0.0", "1.2.0", "2.0.0"])
    def test_force_always_reinstalls(self, make_archive, installed, version: str) -> None:
        archive = make_archive("example.com/a", version)

        assert (
            decide_action(archive, installed("1.2.0"), force_reinstall=True)
            is InstallAction.REINSTALL
        )
