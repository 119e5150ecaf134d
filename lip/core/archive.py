"""Tooth archive reader for lip.

Tooth archives are ZIP files carrying a ``tooth.json`` metadata entry
plus the payload files referenced by its ``placement`` list. Two layouts
are accepted:

- ``tooth.json`` at the archive root (standalone ``.tth`` files), or
- ``<prefix>/tooth.json`` where every entry shares ``<prefix>``, as produced
  by a GOPROXY for Go modules (``github.com/x/y@v1.0.0/tooth.json``).

In the second case every placement source is resolved relative to the
prefix, so callers never see it.

Typical usage::

    with ToothArchive.open(path) as archive:
        print(archive.metadata.tooth_path)
        archive.extract("plugins/example.dll", staging / "0")
"""

from __future__ import annotations

import shutil
import zipfile
from pathlib import Path
from typing import Any, List, Optional, Union

from lip.utils.logger import get_logger
from lip.constants import METADATA_FILE_NAME
from lip.models.metadata import ToothMetadata
from lip.utils.filesystem import validate_path
from lip.exceptions import ArchiveInvalidError, FileOperationError

logger = get_logger("archive")

__all__ = ["ToothArchive", "read_metadata"]


class ToothArchive:
    """An open tooth archive.

    Use :meth:`open` (ideally as a context manager) rather than the
    constructor.

    Attributes:
        path: Archive location on disk.
        metadata: Parsed ``tooth.json``.
    """

    def __init__(
        self,
        path: Path,
        zip_file: zipfile.ZipFile,
        prefix: str,
        metadata: ToothMetadata,
    ) -> None:
        self.path = path
        self.metadata = metadata
        self._zip = zip_file
        self._prefix = prefix

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @classmethod
    def open(cls, path: Union[str, Path]) -> "ToothArchive":
        """Open ``path`` and parse its embedded metadata.

        Raises:
            ArchiveInvalidError: The file is not a readable ZIP, has no
                ``tooth.json``, or its ``tooth.json`` is invalid.
        """
        archive_path = Path(path)

        try:
            zip_file = zipfile.ZipFile(archive_path)
        except (zipfile.BadZipFile, OSError) as exc:
            raise ArchiveInvalidError(
                f"Failed to open tooth file: {exc}",
                archive_path=str(archive_path),
            ) from exc

        try:
            prefix = _find_prefix(zip_file.namelist())
            if prefix is None:
                raise ArchiveInvalidError(
                    f"{METADATA_FILE_NAME} not found",
                    archive_path=str(archive_path),
                )

            try:
                raw = zip_file.read(prefix + METADATA_FILE_NAME)
            except (zipfile.BadZipFile, OSError) as exc:
                raise ArchiveInvalidError(
                    f"Failed to read {METADATA_FILE_NAME}: {exc}",
                    archive_path=str(archive_path),
                ) from exc

            metadata = ToothMetadata.from_json(raw, source=str(archive_path))
        except ArchiveInvalidError:
            zip_file.close()
            raise

        logger.debug(
            "Opened %s (%s@%s, prefix=%r)",
            archive_path,
            metadata.tooth_path,
            metadata.version,
            prefix,
        )
        return cls(archive_path, zip_file, prefix, metadata)

    def close(self) -> None:
        self._zip.close()

    def __enter__(self) -> "ToothArchive":
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Entry access
    # ------------------------------------------------------------------

    def entries(self) -> List[str]:
        """Return file entry names relative to the archive prefix."""
        return [
            name[len(self._prefix) :]
            for name in self._zip.namelist()
            if name.startswith(self._prefix) and not name.endswith("/")
        ]

    def read(self, name: str) -> bytes:
        """Return the bytes of entry ``name``.

        Raises:
            ArchiveInvalidError: No such entry or it cannot be read.
        """
        try:
            return self._zip.read(self._prefix + name)
        except KeyError as exc:
            raise ArchiveInvalidError(
                f"Entry not found: {name}", archive_path=str(self.path)
            ) from exc
        except (zipfile.BadZipFile, OSError) as exc:
            raise ArchiveInvalidError(
                f"Failed to read {name}: {exc}", archive_path=str(self.path)
            ) from exc

    def extract(self, source: str, destination: Path) -> List[Path]:
        """Copy entry ``source`` to ``destination``.

        ``source`` may name a single file, in which case ``destination`` is
        the target file, or a directory, in which case every file below it
        is copied under ``destination`` keeping its relative layout.

        Returns:
            The files written.

        Raises:
            ArchiveInvalidError: ``source`` names neither a file nor a
                directory in the archive.
        """
        files = self.entries()
        normalized = source.strip("/")

        if normalized in files and not source.endswith("/"):
            self._copy_entry(normalized, destination)
            return [destination]

        dir_prefix = normalized + "/"
        members = [name for name in files if name.startswith(dir_prefix)]
        if not members:
            raise ArchiveInvalidError(
                f"Placement source not found: {source}",
                archive_path=str(self.path),
            )

        written: List[Path] = []
        for name in members:
            target = validate_path(
                destination / name[len(dir_prefix) :], base_dir=destination
            )
            self._copy_entry(name, target)
            written.append(target)
        return written

    def _copy_entry(self, name: str, target: Path) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with self._zip.open(self._prefix + name) as src, open(target, "wb") as dst:
                shutil.copyfileobj(src, dst)
        except (zipfile.BadZipFile, KeyError) as exc:
            raise ArchiveInvalidError(
                f"Failed to extract {name}: {exc}", archive_path=str(self.path)
            ) from exc
        except OSError as exc:
            raise FileOperationError(
                f"Failed to write {target}: {exc}",
                file_path=str(target),
                operation="write",
                original_error=exc,
            ) from exc


def _find_prefix(names: List[str]) -> Optional[str]:
    """Locate ``tooth.json`` and return the directory prefix it lives under."""
    if METADATA_FILE_NAME in names:
        return ""

    # Shallowest tooth.json wins; every entry must live under its directory.
    nested = sorted(
        (name for name in names if name.endswith("/" + METADATA_FILE_NAME)),
        key=lambda name: name.count("/"),
    )
    if not nested:
        return None

    prefix = nested[0][: -len(METADATA_FILE_NAME)]
    if all(name.startswith(prefix) for name in names):
        return prefix
    return None


def read_metadata(path: Union[str, Path]) -> ToothMetadata:
    """Open ``path`` just long enough to read its metadata."""
    with ToothArchive.open(path) as archive:
        return archive.metadata
