"""Installed-tooth record store for lip.

One JSON file per installed tooth lives in the records directory
(``<workspace>/.lip/records`` by default). The file name is derived
deterministically from the tooth path by percent-encoding it, so every
tooth path maps to exactly one file and lookups are idempotent::

    github.com/tooth-hub/corepack  →  github.com%2Ftooth-hub%2Fcorepack.json

Writes are atomic, so a crash never leaves a half-written record.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List
from urllib.parse import quote

from lip.models.record import ToothRecord
from lip.utils.logger import get_logger
from lip.constants import RECORD_FILE_SUFFIX
from lip.exceptions import FileOperationError, NotInstalledError
from lip.utils.filesystem import remove_path, safe_read_file, safe_write_file

logger = get_logger("record_store")

__all__ = ["RecordStore", "record_file_name"]


def record_file_name(tooth_path: str) -> str:
    """Return the record file name for ``tooth_path``."""
    return quote(tooth_path, safe="") + RECORD_FILE_SUFFIX


class RecordStore:
    """Persists and queries :class:`ToothRecord` files.

    Args:
        records_dir: Directory holding record files. Created on first save.
    """

    def __init__(self, records_dir: Path) -> None:
        self.records_dir = Path(records_dir)

    def record_path(self, tooth_path: str) -> Path:
        return self.records_dir / record_file_name(tooth_path)

    def is_installed(self, tooth_path: str) -> bool:
        return self.record_path(tooth_path).is_file()

    def load(self, tooth_path: str) -> ToothRecord:
        """Load the record of ``tooth_path``.

        Raises:
            NotInstalledError: No record exists.
            FileOperationError: The record file cannot be read or decoded.
        """
        path = self.record_path(tooth_path)
        if not path.is_file():
            raise NotInstalledError(tooth_path)
        return self._read(path)

    def save(self, record: ToothRecord) -> Path:
        """Write (or overwrite) the record for ``record.tooth_path``."""
        path = self.record_path(record.tooth_path)
        safe_write_file(path, record.to_json())
        logger.debug("Saved record %s", path)
        return path

    def delete(self, tooth_path: str) -> None:
        """Remove the record of ``tooth_path``; missing records are ignored."""
        if remove_path(self.record_path(tooth_path)):
            logger.debug("Deleted record of %s", tooth_path)

    def list_all(self) -> List[ToothRecord]:
        """Return every installed record, sorted by tooth path."""
        if not self.records_dir.is_dir():
            return []

        records: Dict[str, ToothRecord] = {}
        for path in sorted(self.records_dir.glob(f"*{RECORD_FILE_SUFFIX}")):
            record = self._read(path)
            records[record.tooth_path] = record

        return [records[key] for key in sorted(records)]

    @staticmethod
    def _read(path: Path) -> ToothRecord:
        content = safe_read_file(path)
        try:
            return ToothRecord.from_json(content)
        except ValueError as exc:
            raise FileOperationError(
                f"Corrupt record file: {exc}",
                file_path=str(path),
                operation="read",
                original_error=exc,
            ) from exc
