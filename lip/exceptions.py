"""
Custom exception hierarchy for lip.

This module defines structured exception types used across lip.
All exceptions inherit from :class:`LipError` and support optional
structured metadata via the ``details`` attribute to improve diagnostics
and logging.

Hierarchy::

    LipError
    ├── ConfigError
    ├── InvalidSpecifierError
    ├── InvalidVersionError
    ├── ArchiveInvalidError
    ├── FileOperationError
    ├── NetworkError
    │   ├── DownloadError
    │   └── RepositoryError
    │       ├── PackageNotFoundError
    │       └── RepositoryUnreachableError
    ├── ResolutionError
    │   ├── PackagePathMismatchError
    │   ├── UnsatisfiableDependencyError
    │   └── DependencyCycleError
    └── InstallError
        ├── AlreadyInstalledError
        ├── NotInstalledError
        └── PossessionConflictError
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, MutableMapping, Optional


class LipError(Exception):
    """Base exception for all lip errors.

    All lip-specific exceptions should inherit from this class.
    It supports structured metadata via ``details`` for richer error
    reporting and debugging.

    Args:
        message: Human-readable error message.
        details: Optional structured metadata describing the error.
    """

    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message: str = message
        # Internally normalize to a mutable dict
        self.details: MutableMapping[str, Any] = dict(details) if details else {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        formatted = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({formatted})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, details={dict(self.details)!r})"
        )


def _add_if(details: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Add a key to ``details`` only if ``value`` is not ``None``."""
    if value is not None:
        details[key] = value


def _truncate(text: str, max_length: int = 200) -> str:
    """Truncate long text for safe logging or error reporting."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


class ConfigError(LipError):
    """Raised when a configuration file is missing, malformed, or invalid.

    Args:
        message: Error description.
        config_path: Path to the configuration file involved.
        option: Name of the offending option, if any.
    """

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "config", config_path)
        _add_if(details, "option", option)

        super().__init__(message, details)

        self.config_path = config_path
        self.option = option


class InvalidSpecifierError(LipError):
    """Raised when a specifier string cannot be parsed.

    Args:
        message: Error description.
        specifier: The raw specifier text.
    """

    __slots__ = ("specifier",)

    def __init__(self, message: str, *, specifier: Optional[str] = None) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "specifier", specifier)

        super().__init__(message, details)

        self.specifier = specifier


class InvalidVersionError(LipError):
    """Raised when a version or version range string cannot be parsed.

    Args:
        message: Error description.
        version: The raw version text.
    """

    __slots__ = ("version",)

    def __init__(self, message: str, *, version: Optional[str] = None) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "version", version)

        super().__init__(message, details)

        self.version = version


class ArchiveInvalidError(LipError):
    """Raised when a tooth archive cannot be opened or has bad metadata.

    Args:
        message: Error description.
        archive_path: Path to the archive on disk, if known.
    """

    __slots__ = ("archive_path",)

    def __init__(self, message: str, *, archive_path: Optional[str] = None) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "archive", archive_path)

        super().__init__(message, details)

        self.archive_path = archive_path


class FileOperationError(LipError):
    """Raised when file system operations fail.

    Args:
        message: Error description.
        file_path: Path to the file involved.
        operation: Operation being performed (read/write/delete).
        original_error: Original exception that triggered this error.
    """

    __slots__ = ("file_path", "operation", "original_error")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", file_path)
        _add_if(details, "operation", operation)
        _add_if(
            details,
            "original_error",
            str(original_error) if original_error else None,
        )

        super().__init__(message, details)

        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error


# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------


class NetworkError(LipError):
    """Raised when HTTP or network operations fail.

    Args:
        message: Error description.
        url: URL being accessed.
        status_code: HTTP status code, if available.
        response_body: Raw response body, truncated for safety.
    """

    __slots__ = ("url", "status_code", "response_body")

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "url", url)
        _add_if(details, "status_code", status_code)

        if response_body is not None:
            details["response"] = _truncate(response_body)

        super().__init__(message, details)

        self.url = url
        self.status_code = status_code
        self.response_body = response_body


class DownloadError(NetworkError):
    """Raised when downloading a tooth archive fails."""


class RepositoryError(NetworkError):
    """Raised for failures related to a tooth repository (GOPROXY).

    Args:
        message: Error description.
        tooth_path: Tooth path involved.
        **kwargs: Additional arguments forwarded to ``NetworkError``.
    """

    __slots__ = ("tooth_path",)

    def __init__(
        self,
        message: str,
        *,
        tooth_path: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)

        self.tooth_path = tooth_path
        if tooth_path is not None:
            self.details["tooth"] = tooth_path


class PackageNotFoundError(RepositoryError):
    """Raised when the repository has no tooth under the requested path."""


class RepositoryUnreachableError(RepositoryError):
    """Raised when the repository cannot be contacted."""


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


class ResolutionError(LipError):
    """Base class for dependency resolution and planning failures."""


class PackagePathMismatchError(ResolutionError):
    """Raised when a fetched archive declares a different tooth path.

    Args:
        expected: Tooth path demanded by the requirement specifier.
        actual: Tooth path declared by the archive metadata.
    """

    __slots__ = ("expected", "actual")

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(
            "Tooth path of the downloaded archive does not match "
            "the requirement specifier",
            {"expected": expected, "actual": actual},
        )

        self.expected = expected
        self.actual = actual


class UnsatisfiableDependencyError(ResolutionError):
    """Raised when no available version satisfies a version range.

    Args:
        tooth_path: The tooth whose versions were searched.
        version_range: Canonical text of the range that could not be met.
        required_by: Specifier of the tooth declaring the dependency, or
            ``None`` for a root specifier.
    """

    __slots__ = ("tooth_path", "version_range", "required_by")

    def __init__(
        self,
        tooth_path: str,
        version_range: str,
        *,
        required_by: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {"range": version_range}
        _add_if(details, "required_by", required_by)

        super().__init__(f"No version of {tooth_path} matches", details)

        self.tooth_path = tooth_path
        self.version_range = version_range
        self.required_by = required_by


class DependencyCycleError(ResolutionError):
    """Raised when the install graph contains a dependency cycle.

    Args:
        tooth_paths: Tooth paths participating in (or blocked by) the cycle.
    """

    __slots__ = ("tooth_paths",)

    def __init__(self, tooth_paths: Iterable[str]) -> None:
        paths: List[str] = sorted(tooth_paths)
        super().__init__(
            f"Dependency cycle detected among: {', '.join(paths)}",
        )

        self.tooth_paths = paths


# ---------------------------------------------------------------------------
# Installation state
# ---------------------------------------------------------------------------


class InstallError(LipError):
    """Base class for installed-state failures.

    Args:
        message: Error description.
        tooth_path: Tooth path involved.
    """

    __slots__ = ("tooth_path",)

    def __init__(self, message: str, *, tooth_path: Optional[str] = None) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "tooth", tooth_path)

        super().__init__(message, details)

        self.tooth_path = tooth_path


class AlreadyInstalledError(InstallError):
    """Raised when installing a tooth that already has a record."""

    def __init__(self, tooth_path: str) -> None:
        super().__init__("Tooth is already installed", tooth_path=tooth_path)


class NotInstalledError(InstallError):
    """Raised when a record is requested for a tooth that is not installed."""

    def __init__(self, tooth_path: str) -> None:
        super().__init__("Tooth is not installed", tooth_path=tooth_path)


class PossessionConflictError(InstallError):
    """Raised when a tooth claims a path already owned by another tooth.

    Args:
        tooth_path: Tooth being installed.
        path: The conflicting possession entry.
        owner: Tooth path of the installed tooth that owns ``path``.
    """

    __slots__ = ("path", "owner")

    def __init__(self, tooth_path: str, path: str, owner: str) -> None:
        super().__init__(
            "Possession conflicts with an installed tooth",
            tooth_path=tooth_path,
        )
        self.details["path"] = path
        self.details["owner"] = owner

        self.path = path
        self.owner = owner
