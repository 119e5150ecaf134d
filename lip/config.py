"""Configuration file loader for lip.

Handles discovery, loading, parsing, and validation of configuration files.
Supports two formats:

- ``lip.toml``: settings under ``[lip]`` table
- ``pyproject.toml``: settings under ``[tool.lip]`` table

Discovery order:

1. Explicit path from ``--config`` or ``LIP_CONFIG``
2. ``lip.toml`` in current directory
3. ``pyproject.toml`` with ``[tool.lip]`` section

Configuration precedence: defaults < config file < environment < CLI args.
The environment variables are ``GOPROXY``, ``LIP_WORKSPACE`` and
``LIP_CACHE_DIR``.

Typical usage::

    config = load_config()  # Auto-discover
    config = load_config(Path("custom.toml"))  # Explicit path

Example (``lip.toml``)::

    [lip]
    goproxy = "https://goproxy.cn"
    workspace = "server"
    cache_dir = ".cache/lip"
"""

from __future__ import annotations

import os
import tomli as tomllib
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from lip.exceptions import ConfigError
from lip.utils.logger import get_logger
from lip.constants import DEFAULT_GOPROXY, LIP_DIR_NAME, RECORDS_DIR_NAME

logger = get_logger("config")

#: Environment variables that override file settings.
ENV_GOPROXY = "GOPROXY"
ENV_WORKSPACE = "LIP_WORKSPACE"
ENV_CACHE_DIR = "LIP_CACHE_DIR"


def _default_cache_dir() -> Path:
    return Path.home() / ".cache" / "lip"


@dataclass
class LipConfig:
    """Parsed and validated lip configuration.

    All fields have defaults, so empty config files are valid.

    Attributes:
        goproxy: GOPROXY base URL serving tooth version lists and archives.
        workspace_dir: Directory tooths are installed into.
        records_dir: Directory of installed-tooth records. ``None`` means
            ``<workspace>/.lip/records``.
        cache_dir: Directory of downloaded archives.
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    goproxy: str = DEFAULT_GOPROXY
    workspace_dir: Path = field(default_factory=Path.cwd)
    records_dir: Optional[Path] = None
    cache_dir: Path = field(default_factory=_default_cache_dir)

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    @property
    def effective_records_dir(self) -> Path:
        """Records directory with the workspace default applied."""
        if self.records_dir is not None:
            return self.records_dir
        return self.workspace_dir / LIP_DIR_NAME / RECORDS_DIR_NAME

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary for debug logging."""
        return {
            "goproxy": self.goproxy,
            "workspace": str(self.workspace_dir),
            "records_dir": str(self.effective_records_dir),
            "cache_dir": str(self.cache_dir),
        }


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Search order:

    1. ``explicit_path`` (from ``--config`` or ``LIP_CONFIG``)
    2. ``lip.toml`` in current directory
    3. ``pyproject.toml`` with ``[tool.lip]`` section in current directory

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    lip_toml = cwd / "lip.toml"
    if lip_toml.is_file():
        logger.debug("Found lip.toml: %s", lip_toml)
        return lip_toml

    pyproject_toml = cwd / "pyproject.toml"
    if pyproject_toml.is_file() and _pyproject_has_lip_section(pyproject_toml):
        logger.debug("Found [tool.lip] in pyproject.toml: %s", pyproject_toml)
        return pyproject_toml

    logger.debug("No configuration file found")
    return None


def _pyproject_has_lip_section(path: Path) -> bool:
    """Check if pyproject.toml contains a [tool.lip] section.

    Parse errors count as "no section" so a broken unrelated pyproject.toml
    does not stop lip from running.
    """
    try:
        raw = _read_toml(path)
    except ConfigError:
        return False
    tool = raw.get("tool", {})
    return isinstance(tool, dict) and "lip" in tool


def load_config(
    config_path: Optional[Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> LipConfig:
    """Load and validate lip configuration.

    Args:
        config_path: Explicit path to config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).
        environ: Environment to read overrides from (defaults to
            ``os.environ``).

    Returns:
        Validated :class:`LipConfig`.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        config = LipConfig()
    else:
        logger.info("Loading configuration from %s", resolved)
        raw = _read_toml(resolved)

        if resolved.name == "pyproject.toml":
            section = raw.get("tool", {}).get("lip", {})
        else:
            section = raw.get("lip", {})

        if not isinstance(section, dict):
            raise ConfigError(
                "lip configuration must be a table", config_path=str(resolved)
            )

        config = _parse_section(section, config_path=resolved)
        config.source_path = resolved

    _apply_environment(config, os.environ if environ is None else environ)

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _parse_section(section: Dict[str, Any], *, config_path: Path) -> LipConfig:
    """Parse and validate a ``[lip]`` or ``[tool.lip]`` table.

    Relative directories are resolved against the config file's directory.

    Raises:
        ConfigError: Unknown keys or values of the wrong type.
    """
    config = LipConfig()
    base_dir = config_path.parent

    known_top = {"goproxy", "workspace", "records_dir", "cache_dir"}

    unknown_top = set(section.keys()) - known_top
    if unknown_top:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown_top))}",
            config_path=str(config_path),
        )

    for key, val in section.items():
        if not isinstance(val, str) or not val:
            raise ConfigError(
                f"{key} must be a non-empty string, got {type(val).__name__}",
                config_path=str(config_path),
                option=key,
            )

    if "goproxy" in section:
        config.goproxy = section["goproxy"].rstrip("/")
    if "workspace" in section:
        config.workspace_dir = _resolve_dir(section["workspace"], base_dir)
    if "records_dir" in section:
        config.records_dir = _resolve_dir(section["records_dir"], base_dir)
    if "cache_dir" in section:
        config.cache_dir = _resolve_dir(section["cache_dir"], base_dir)

    return config


def _resolve_dir(value: str, base_dir: Path) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else base_dir / path


def _apply_environment(config: LipConfig, environ: Mapping[str, str]) -> None:
    """Apply environment variable overrides in place."""
    cwd = Path.cwd()

    goproxy = environ.get(ENV_GOPROXY)
    if goproxy:
        # GOPROXY may hold a comma separated chain; the first entry is used.
        first = goproxy.split(",")[0].strip()
        if first and first not in ("direct", "off"):
            config.goproxy = first.rstrip("/")
        else:
            logger.warning("Ignoring unsupported GOPROXY value %r", goproxy)

    workspace = environ.get(ENV_WORKSPACE)
    if workspace:
        config.workspace_dir = _resolve_dir(workspace, cwd)

    cache_dir = environ.get(ENV_CACHE_DIR)
    if cache_dir:
        config.cache_dir = _resolve_dir(cache_dir, cwd)
