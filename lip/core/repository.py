"""Tooth repository access for lip.

Tooths are published as Go modules, so any GOPROXY can serve them. The
repository answers two questions for the resolver:

1. *Which versions of a tooth exist?*
   ``GET <goproxy>/<path>/@v/list``
2. *Where is the archive of a given version?*
   ``<goproxy>/<path>/@v/v<version>.zip``

Version lists are cached per :class:`ToothRepository` instance so each
tooth path is queried at most once per run, mirroring the one-fetch-per-
package rule of a shared metadata store.

Typical usage::

    async with HTTPClient() as client:
        repository = ToothRepository(client, goproxy="https://goproxy.io")
        versions = await repository.list_versions("github.com/tooth-hub/corepack")
        url = repository.download_url("github.com/tooth-hub/corepack", versions[0])
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from lip.utils.http import HTTPClient, ProgressCallback
from lip.utils.logger import get_logger
from lip.models.version import Version
from lip.exceptions import (
    DownloadError,
    InvalidVersionError,
    NetworkError,
    PackageNotFoundError,
    RepositoryUnreachableError,
)
from lip.constants import (
    DEFAULT_GOPROXY,
    GOPROXY_LIST_TEMPLATE,
    GOPROXY_ZIP_TEMPLATE,
    INCOMPATIBLE_SUFFIX,
)

logger = get_logger("repository")

__all__ = ["ToothRepository", "escape_module_path", "parse_version_list"]

# GOPROXY answers 404 or 410 for unknown modules
_NOT_FOUND_STATUSES = (404, 410)


def escape_module_path(path: str) -> str:
    """Escape a module path for use in GOPROXY URLs.

    Upper-case letters become ``!`` followed by the lower-case letter.

    Example::

        >>> escape_module_path("github.com/LiteLDev/LiteLoader")
        'github.com/!lite!l!dev/!lite!loader'
    """
    return "".join(f"!{ch.lower()}" if ch.isupper() else ch for ch in path)


def parse_version_list(text: str) -> List[Version]:
    """Parse a ``@v/list`` body into versions, newest first.

    Each line is a tag such as ``v1.2.0`` or ``v2.0.0+incompatible``. Tags
    that are not plain ``MAJOR.MINOR.PATCH`` (pre-releases, pseudo
    versions) are skipped.
    """
    versions: List[Version] = []

    for line in text.splitlines():
        tag = line.strip()
        if not tag:
            continue
        if tag.startswith("v"):
            tag = tag[1:]
        if tag.endswith(INCOMPATIBLE_SUFFIX):
            tag = tag[: -len(INCOMPATIBLE_SUFFIX)]

        try:
            versions.append(Version.parse(tag))
        except InvalidVersionError:
            logger.debug("Skipping unsupported version tag %r", line.strip())

    return sorted(set(versions), reverse=True)


class ToothRepository:
    """GOPROXY-backed source of tooth versions and archives.

    Args:
        http_client: Shared :class:`HTTPClient` (owns the connection pool).
        goproxy: Base URL of the GOPROXY, without trailing slash.
    """

    def __init__(self, http_client: HTTPClient, goproxy: str = DEFAULT_GOPROXY) -> None:
        self.http_client = http_client
        self.goproxy = goproxy.rstrip("/")
        self._versions: Dict[str, List[Version]] = {}

    async def list_versions(self, tooth_path: str) -> List[Version]:
        """Return available versions of ``tooth_path``, newest first.

        Raises:
            PackageNotFoundError: The GOPROXY does not know the tooth.
            RepositoryUnreachableError: Any other transport failure.
        """
        if tooth_path in self._versions:
            return self._versions[tooth_path]

        url = GOPROXY_LIST_TEMPLATE.format(
            goproxy=self.goproxy, path=escape_module_path(tooth_path)
        )

        try:
            text = await self.http_client.get_text(url)
        except NetworkError as exc:
            if exc.status_code in _NOT_FOUND_STATUSES:
                raise PackageNotFoundError(
                    f"Tooth '{tooth_path}' not found in repository",
                    tooth_path=tooth_path,
                    url=url,
                    status_code=exc.status_code,
                ) from exc
            raise RepositoryUnreachableError(
                f"Cannot fetch version list of '{tooth_path}'",
                tooth_path=tooth_path,
                url=url,
                status_code=exc.status_code,
            ) from exc

        versions = parse_version_list(text)
        logger.debug("%s has %d version(s)", tooth_path, len(versions))
        self._versions[tooth_path] = versions
        return versions

    def download_url(self, tooth_path: str, version: Version) -> str:
        """Return the archive URL of ``tooth_path`` at ``version``."""
        version_text = str(version)
        if version.major >= 2:
            version_text += INCOMPATIBLE_SUFFIX

        return GOPROXY_ZIP_TEMPLATE.format(
            goproxy=self.goproxy,
            path=escape_module_path(tooth_path),
            version=version_text,
        )

    async def download(
        self,
        url: str,
        destination: Path,
        *,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Path:
        """Download an archive to ``destination``.

        Raises:
            DownloadError: The transfer failed; nothing is left at
                ``destination``.
        """
        logger.info("Downloading %s", url)
        try:
            await self.http_client.download(
                url, destination, progress_callback=progress_callback
            )
        except DownloadError:
            raise
        except NetworkError as exc:
            raise DownloadError(
                exc.message, url=url, status_code=exc.status_code
            ) from exc
        return destination
