from __future__ import annotations

import pytest

from lip.exceptions import (
    AlreadyInstalledError,
    ConfigError,
    DependencyCycleError,
    DownloadError,
    InstallError,
    LipError,
    NetworkError,
    PackageNotFoundError,
    PossessionConflictError,
    RepositoryError,
    ResolutionError,
    UnsatisfiableDependencyError,
)


@pytest.mark.unit
class TestLipError:
    def test_message_only(self) -> None:
        error = LipError("boom")

        assert str(error) == "boom"
        assert error.details == {}

    def test_details_rendered(self) -> None:
        error = LipError("boom", {"tooth": "example.com/a"})

        assert str(error) == "boom (tooth=example.com/a)"
        assert "details=" in repr(error)

    def test_details_copied(self) -> None:
        details = {"a": 1}
        error = LipError("boom", details)
        details["b"] = 2

        assert error.details == {"a": 1}


@pytest.mark.unit
class TestHierarchy:
    @pytest.mark.parametrize(
        "error_cls, parent",
        [
            (DownloadError, NetworkError),
            (PackageNotFoundError, RepositoryError),
            (RepositoryError, NetworkError),
            (UnsatisfiableDependencyError, ResolutionError),
            (DependencyCycleError, ResolutionError),
            (PossessionConflictError, InstallError),
            (ConfigError, LipError),
        ],
    )
    def test_subclass(self, error_cls: type, parent: type) -> None:
        assert issubclass(error_cls, parent)
        assert issubclass(error_cls, LipError)


@pytest.mark.unit
class TestStructuredErrors:
    def test_config_error(self) -> None:
        error = ConfigError("bad", config_path="lip.toml", option="goproxy")

        assert error.details == {"config": "lip.toml", "option": "goproxy"}

    def test_network_error_truncates_body(self) -> None:
        error = NetworkError("failed", url="https://x", status_code=500, response_body="x" * 5000)

        assert error.status_code == 500
        assert len(error.details["response"]) < 5000
        assert error.response_body == "x" * 5000

    def test_package_not_found(self) -> None:
        error = PackageNotFoundError("missing", tooth_path="example.com/a", status_code=404)

        assert error.tooth_path == "example.com/a"
        assert error.details["tooth"] == "example.com/a"
        assert error.status_code == 404

    def test_unsatisfiable_root(self) -> None:
        error = UnsatisfiableDependencyError("example.com/a", ">=2.0.0")

        assert "required_by" not in error.details
        assert str(error) == "No version of example.com/a matches (range=>=2.0.0)"

    def test_cycle_paths_sorted(self) -> None:
        error = DependencyCycleError(["example.com/b", "example.com/a"])

        assert error.tooth_paths == ["example.com/a", "example.com/b"]

    def test_possession_conflict(self) -> None:
        error = PossessionConflictError("example.com/b", "plugins/x.dll", "example.com/a")

        assert error.details == {
            "tooth": "example.com/b",
            "path": "plugins/x.dll",
            "owner": "example.com/a",
        }

    def test_already_installed(self) -> None:
        assert AlreadyInstalledError("example.com/a").tooth_path == "example.com/a"
