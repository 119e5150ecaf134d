from __future__ import annotations

from pathlib import Path

import pytest

from lip.config import LipConfig, discover_config_file, load_config
from lip.constants import DEFAULT_GOPROXY
from lip.exceptions import ConfigError


@pytest.fixture
def in_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


@pytest.mark.unit
class TestLipConfigDefaults:
    def test_defaults(self, in_tmp: Path) -> None:
        config = LipConfig()

        assert config.goproxy == DEFAULT_GOPROXY
        assert config.workspace_dir == in_tmp
        assert config.effective_records_dir == in_tmp / ".lip" / "records"
        assert config.cache_dir == Path.home() / ".cache" / "lip"
        assert config.source_path is None

    def test_explicit_records_dir(self, tmp_path: Path) -> None:
        config = LipConfig(records_dir=tmp_path / "records")

        assert config.effective_records_dir == tmp_path / "records"

    def test_to_log_dict(self, tmp_path: Path) -> None:
        config = LipConfig(workspace_dir=tmp_path)

        assert config.to_log_dict()["records_dir"] == str(tmp_path / ".lip" / "records")


@pytest.mark.unit
class TestDiscoverConfigFile:
    def test_nothing_found(self, in_tmp: Path) -> None:
        assert discover_config_file() is None

    def test_lip_toml(self, in_tmp: Path) -> None:
        path = _write(in_tmp / "lip.toml", "[lip]\n")

        assert discover_config_file() == path

    def test_lip_toml_wins_over_pyproject(self, in_tmp: Path) -> None:
        _write(in_tmp / "pyproject.toml", "[tool.lip]\n")
        path = _write(in_tmp / "lip.toml", "[lip]\n")

        assert discover_config_file() == path

    def test_pyproject_with_section(self, in_tmp: Path) -> None:
        path = _write(in_tmp / "pyproject.toml", "[tool.lip]\ngoproxy = 'https://x'\n")

        assert discover_config_file() == path

    def test_pyproject_without_section(self, in_tmp: Path) -> None:
        _write(in_tmp / "pyproject.toml", "[tool.black]\nline-length = 88\n")

        assert discover_config_file() is None

    def test_broken_pyproject_ignored(self, in_tmp: Path) -> None:
        _write(in_tmp / "pyproject.toml", "[tool.lip\n")

        assert discover_config_file() is None

    def test_explicit_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            discover_config_file(tmp_path / "nope.toml")


@pytest.mark.unit
class TestLoadConfig:
    def test_defaults_without_file(self, in_tmp: Path) -> None:
        config = load_config(environ={})

        assert config.goproxy == DEFAULT_GOPROXY
        assert config.source_path is None

    def test_lip_toml_values(self, in_tmp: Path) -> None:
        _write(
            in_tmp / "lip.toml",
            "[lip]\n"
            "goproxy = 'https://goproxy.cn/'\n"
            "workspace = 'server'\n"
            "records_dir = '/var/lip/records'\n"
            "cache_dir = 'cache'\n",
        )

        config = load_config(environ={})

        assert config.goproxy == "https://goproxy.cn"
        assert config.workspace_dir == in_tmp / "server"
        assert config.records_dir == Path("/var/lip/records")
        assert config.cache_dir == in_tmp / "cache"
        assert config.source_path == in_tmp / "lip.toml"

    def test_relative_paths_follow_config_file(self, tmp_path: Path) -> None:
        config_dir = tmp_path / "conf"
        config_dir.mkdir()
        path = _write(config_dir / "custom.toml", "[lip]\nworkspace = 'ws'\n")

        config = load_config(path, environ={})

        assert config.workspace_dir == config_dir / "ws"

    def test_pyproject_section(self, in_tmp: Path) -> None:
        _write(in_tmp / "pyproject.toml", "[tool.lip]\ngoproxy = 'https://proxy.example'\n")

        assert load_config(environ={}).goproxy == "https://proxy.example"

    def test_empty_file_is_valid(self, in_tmp: Path) -> None:
        _write(in_tmp / "lip.toml", "")

        assert load_config(environ={}).goproxy == DEFAULT_GOPROXY

    @pytest.mark.parametrize(
        "body, match",
        [
            ("[lip]\ncolour = 'no'\n", "Unknown configuration keys: colour"),
            ("[lip]\ngoproxy = 3\n", "goproxy must be a non-empty string"),
            ("[lip]\nworkspace = ''\n", "workspace must be a non-empty string"),
            ("lip = 'x'\n", "must be a table"),
            ("[lip\n", "Invalid TOML"),
        ],
    )
    def test_invalid(self, in_tmp: Path, body: str, match: str) -> None:
        _write(in_tmp / "lip.toml", body)

        with pytest.raises(ConfigError, match=match):
            load_config(environ={})

    def test_invalid_reports_option(self, in_tmp: Path) -> None:
        _write(in_tmp / "lip.toml", "[lip]\ncache_dir = 1\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(environ={})

        assert exc_info.value.option == "cache_dir"


@pytest.mark.unit
class TestEnvironmentOverrides:
    def test_env_beats_file(self, in_tmp: Path) -> None:
        _write(in_tmp / "lip.toml", "[lip]\ngoproxy = 'https://file.example'\n")

        config = load_config(
            environ={
                "GOPROXY": "https://env.example/",
                "LIP_WORKSPACE": "ws",
                "LIP_CACHE_DIR": "/tmp/lip-cache",
            }
        )

        assert config.goproxy == "https://env.example"
        assert config.workspace_dir == in_tmp / "ws"
        assert config.cache_dir == Path("/tmp/lip-cache")

    def test_goproxy_chain_uses_first(self, in_tmp: Path) -> None:
        config = load_config(environ={"GOPROXY": "https://a.example,https://b.example,direct"})

        assert config.goproxy == "https://a.example"

    @pytest.mark.parametrize("value", ["direct", "off"])
    def test_goproxy_direct_ignored(self, in_tmp: Path, value: str) -> None:
        assert load_config(environ={"GOPROXY": value}).goproxy == DEFAULT_GOPROXY

    def test_reads_os_environ_by_default(
        self, in_tmp: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GOPROXY", "https://os.example")

        assert load_config().goproxy == "https://os.example"
