"""
Installed-tooth record model for lip.

A record is the persisted proof that a tooth is installed: a snapshot of
its metadata plus whether the user asked for it explicitly. On disk it
is the ``tooth.json`` object with one extra key::

    {"format_version": 1, "tooth": "...", ..., "is_manually_installed": true}
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Union

from lip.models.version import Version
from lip.models.metadata import ToothMetadata
from lip.exceptions import ArchiveInvalidError


@dataclass
class ToothRecord:
    """Metadata snapshot of one installed tooth.

    Attributes:
        metadata: Metadata of the installed archive.
        is_manually_installed: True only when the user requested this tooth
            directly; dependencies pulled in transitively are False and are
            candidates for ``lip autoremove``.
    """

    metadata: ToothMetadata
    is_manually_installed: bool = False

    @property
    def tooth_path(self) -> str:
        return self.metadata.tooth_path

    @property
    def version(self) -> Version:
        return self.metadata.version

    @property
    def dependencies(self) -> List[str]:
        """Tooth paths this tooth depends on."""
        return list(self.metadata.dependencies)

    @property
    def possession(self) -> List[str]:
        return list(self.metadata.possession)

    def to_dict(self) -> Dict[str, Any]:
        data = self.metadata.to_dict()
        data["is_manually_installed"] = self.is_manually_installed
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, raw: Union[str, bytes]) -> "ToothRecord":
        """Decode a record file.

        Raises:
            ValueError: The content is not a valid record. Callers turn this
                into a :class:`~lip.exceptions.FileOperationError` naming the
                record file.
        """
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("record must be a JSON object")

        manual = data.pop("is_manually_installed", False)
        if not isinstance(manual, bool):
            raise ValueError("is_manually_installed must be a boolean")

        try:
            metadata = ToothMetadata.from_dict(data)
        except ArchiveInvalidError as exc:
            raise ValueError(exc.message) from exc

        return cls(metadata=metadata, is_manually_installed=manual)
