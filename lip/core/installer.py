"""Tooth installer and uninstaller for lip.

Installing a tooth copies the files named by its ``placement`` list from
the archive into the workspace and records it in the
:class:`~lip.core.record_store.RecordStore`. The sequence is:

1. Refuse if a record already exists for the tooth path, unless the
   install replaces it.
2. Refuse if any ``possession`` entry overlaps a path owned by another
   installed tooth.
3. Extract every placement into a staging directory under
   ``<workspace>/.lip``.
4. Uninstall the replaced version, if any, then move the staged files to
   their destinations, overwriting existing files.
5. Write the record.

Because the record is written last, an interrupted install never leaves
a record claiming files that were not placed. The staging directory is
removed on every exit path.

Uninstalling removes each ``possession`` entry best-effort (missing
paths are skipped) and then deletes the record. It never checks whether
other tooths still depend on the removed one; that is the job of
``lip autoremove``.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Callable, Iterable, List, Tuple

from lip.models.record import ToothRecord
from lip.utils.logger import get_logger
from lip.core.archive import ToothArchive
from lip.core.record_store import RecordStore
from lip.models.metadata import ResolvedArchive
from lip.constants import LIP_DIR_NAME, STAGING_DIR_PREFIX
from lip.utils.filesystem import ensure_directory, remove_path, validate_path
from lip.exceptions import (
    AlreadyInstalledError,
    FileOperationError,
    PossessionConflictError,
)

logger = get_logger("installer")

__all__ = ["ToothInstaller", "claims_overlap"]


def claims_overlap(first: str, second: str) -> bool:
    """Return True if two possession entries claim a common path.

    Entries ending in ``/`` claim a whole directory.

    Example::

        >>> claims_overlap("plugins/", "plugins/example.dll")
        True
        >>> claims_overlap("plugins/a.dll", "plugins/b.dll")
        False
    """
    a, b = first.rstrip("/"), second.rstrip("/")
    if a == b:
        return True
    if first.endswith("/") and b.startswith(a + "/"):
        return True
    if second.endswith("/") and a.startswith(b + "/"):
        return True
    return False


class ToothInstaller:
    """Places tooth files into a workspace and keeps the records in sync.

    Args:
        record_store: Store receiving one record per installed tooth.
        workspace_dir: Root directory that placement destinations and
            possession entries are relative to.
    """

    def __init__(self, record_store: RecordStore, workspace_dir: Path) -> None:
        self.record_store = record_store
        self.workspace_dir = Path(workspace_dir)

    # ------------------------------------------------------------------
    # Install
    # ------------------------------------------------------------------

    def install(
        self,
        archive: ResolvedArchive,
        *,
        is_manually_installed: bool = False,
        replace: bool = False,
    ) -> ToothRecord:
        """Install ``archive`` into the workspace.

        With ``replace``, an installed version of the same tooth is
        uninstalled only after the new archive passed every check and its
        files were staged, so a failing replacement leaves the old version
        in place.

        Args:
            archive: Archive produced by the resolver.
            is_manually_installed: True when the user requested this tooth
                directly.
            replace: Replace an installed version instead of refusing.

        Returns:
            The record that was written.

        Raises:
            AlreadyInstalledError: The tooth path already has a record and
                ``replace`` is False.
            PossessionConflictError: A possession entry is owned by another
                installed tooth.
            ArchiveInvalidError: A placement source is missing from the
                archive.
            FileOperationError: A destination lies outside the workspace or
                a file cannot be written.
        """
        metadata = archive.metadata

        installed = self.record_store.is_installed(metadata.tooth_path)
        if installed and not replace:
            raise AlreadyInstalledError(metadata.tooth_path)

        self.check_possession(metadata.tooth_path, metadata.possession)
        for entry in metadata.possession:
            self._workspace_path(entry)

        destinations = [
            (placement.source, self._workspace_path(placement.destination))
            for placement in metadata.placement
        ]

        def remove_previous() -> None:
            if installed:
                self.uninstall(metadata.tooth_path)

        placed = self._place_files(archive.archive_path, destinations, remove_previous)
        logger.info("Placed %d file(s) for %s", len(placed), archive)

        record = ToothRecord(metadata=metadata, is_manually_installed=is_manually_installed)
        self.record_store.save(record)
        return record

    def check_possession(self, tooth_path: str, possession: Iterable[str]) -> None:
        """Raise if ``possession`` overlaps a path owned by another tooth.

        Raises:
            PossessionConflictError: On the first overlapping entry.
        """
        claims = list(possession)
        if not claims:
            return

        for record in self.record_store.list_all():
            if record.tooth_path == tooth_path:
                continue
            for owned in record.possession:
                for claim in claims:
                    if claims_overlap(claim, owned):
                        raise PossessionConflictError(tooth_path, claim, record.tooth_path)

    def _place_files(
        self,
        archive_path: Path,
        destinations: List[Tuple[str, Path]],
        before_move: Callable[[], None],
    ) -> List[Path]:
        if not destinations:
            before_move()
            return []

        staging_root = ensure_directory(self.workspace_dir / LIP_DIR_NAME)
        placed: List[Path] = []

        with tempfile.TemporaryDirectory(
            prefix=STAGING_DIR_PREFIX, dir=str(staging_root)
        ) as staging, ToothArchive.open(archive_path) as tooth:
            staged: List[Tuple[Path, Path]] = []

            for index, (source, destination) in enumerate(destinations):
                slot = Path(staging).resolve() / str(index)
                for written in tooth.extract(source, slot):
                    if written == slot:
                        staged.append((written, destination))
                    else:
                        staged.append((written, destination / written.relative_to(slot)))

            before_move()

            for written, target in staged:
                self._move(written, target)
                placed.append(target)

        return placed

    @staticmethod
    def _move(source: Path, target: Path) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            os.replace(source, target)
        except OSError as exc:
            raise FileOperationError(
                f"Failed to place {target}: {exc}",
                file_path=str(target),
                operation="write",
                original_error=exc,
            ) from exc
        logger.debug("Placed %s", target)

    def _workspace_path(self, relative: str) -> Path:
        target = validate_path(self.workspace_dir / relative, base_dir=self.workspace_dir)
        if target == validate_path(self.workspace_dir):
            raise FileOperationError(
                "Path refers to the workspace root",
                file_path=relative,
                operation="validate",
            )
        return target

    # ------------------------------------------------------------------
    # Uninstall
    # ------------------------------------------------------------------

    def uninstall(self, tooth_path: str) -> List[Path]:
        """Remove the files of ``tooth_path`` and delete its record.

        Returns:
            Workspace paths that were actually removed.

        Raises:
            NotInstalledError: No record exists for ``tooth_path``.
            FileOperationError: An existing path could not be removed.
        """
        record = self.record_store.load(tooth_path)
        removed: List[Path] = []

        for entry in record.possession:
            try:
                target = self._workspace_path(entry)
            except FileOperationError:
                logger.warning("Ignoring possession outside workspace: %s", entry)
                continue

            if remove_path(target):
                removed.append(target)
            else:
                logger.debug("Already absent: %s", target)

        self.record_store.delete(tooth_path)
        logger.info("Uninstalled %s (%d path(s) removed)", tooth_path, len(removed))
        return removed
