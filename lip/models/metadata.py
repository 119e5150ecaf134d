"""
Tooth metadata models for lip.

Every tooth archive embeds a ``tooth.json`` describing the tooth::

    {
      "format_version": 1,
      "tooth": "github.com/tooth-hub/example",
      "version": "1.0.0",
      "dependencies": {"github.com/tooth-hub/lib": [[">=1.0.0", "<2.0.0"]]},
      "information": {"name": "Example", "author": "..."},
      "placement": [{"source": "example.dll", "destination": "plugins/example.dll"}],
      "possession": ["plugins/example.dll"]
    }

:class:`ToothMetadata` is the parsed, validated form. :class:`ResolvedArchive`
pairs metadata with the archive file it came from.
"""

from __future__ import annotations

import json
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from lip.constants import SUPPORTED_FORMAT_VERSION
from lip.models.specifier import is_valid_tooth_path
from lip.models.version import Version, VersionRange
from lip.exceptions import ArchiveInvalidError, InvalidVersionError


@dataclass(frozen=True)
class Placement:
    """Maps an archive-internal ``source`` to a workspace ``destination``."""

    source: str
    destination: str

    def to_json(self) -> Dict[str, str]:
        return {"source": self.source, "destination": self.destination}


@dataclass
class ToothMetadata:
    """Parsed ``tooth.json``.

    Attributes:
        tooth_path: Globally unique dotted/slashed identifier.
        version: Version of this tooth.
        dependencies: Tooth path → acceptable version range, in declaration
            order.
        placement: Archive-to-workspace file mapping applied at install.
        possession: Workspace paths owned by this tooth; entries ending in
            ``/`` claim a whole directory.
        information: Free-form descriptive strings (name, author, ...).
    """

    tooth_path: str
    version: Version
    dependencies: Dict[str, VersionRange] = field(default_factory=dict)
    placement: List[Placement] = field(default_factory=list)
    possession: List[str] = field(default_factory=list)
    information: Dict[str, str] = field(default_factory=dict)

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @classmethod
    def from_json(
        cls,
        raw: Union[str, bytes],
        *,
        source: Optional[str] = None,
    ) -> "ToothMetadata":
        """Decode and validate ``tooth.json`` content.

        Args:
            raw: JSON text or bytes.
            source: Archive path used in error messages.

        Raises:
            ArchiveInvalidError: The JSON is malformed or violates the schema.
        """
        try:
            data = json.loads(raw)
        except (ValueError, UnicodeDecodeError) as exc:
            raise ArchiveInvalidError(
                f"Cannot decode tooth.json: {exc}", archive_path=source
            ) from exc

        return cls.from_dict(data, source=source)

    @classmethod
    def from_dict(
        cls,
        data: Any,
        *,
        source: Optional[str] = None,
    ) -> "ToothMetadata":
        """Validate an already-decoded ``tooth.json`` object."""

        def fail(message: str) -> ArchiveInvalidError:
            return ArchiveInvalidError(f"Invalid tooth.json: {message}", archive_path=source)

        if not isinstance(data, dict):
            raise fail("top level must be an object")

        if data.get("format_version") != SUPPORTED_FORMAT_VERSION:
            raise fail(f"unsupported format_version {data.get('format_version')!r}")

        tooth_path = data.get("tooth")
        if not isinstance(tooth_path, str) or not is_valid_tooth_path(tooth_path):
            raise fail(f"invalid tooth path {tooth_path!r}")

        try:
            version = Version.parse(data.get("version"))

            dependencies: Dict[str, VersionRange] = {}
            raw_deps = data.get("dependencies", {})
            if not isinstance(raw_deps, dict):
                raise fail("dependencies must be an object")
            for dep_path, dep_range in raw_deps.items():
                if not is_valid_tooth_path(dep_path):
                    raise fail(f"invalid dependency path {dep_path!r}")
                dependencies[dep_path] = VersionRange.from_json(dep_range)
        except InvalidVersionError as exc:
            raise fail(exc.message) from exc

        placement: List[Placement] = []
        for item in _list_field(data, "placement", fail):
            if not isinstance(item, dict) or not all(
                isinstance(item.get(key), str) and item.get(key)
                for key in ("source", "destination")
            ):
                raise fail("placement entries need string 'source' and 'destination'")
            placement.append(Placement(item["source"], item["destination"]))

        possession: List[str] = []
        for item in _list_field(data, "possession", fail):
            if not isinstance(item, str) or not item:
                raise fail("possession entries must be non-empty strings")
            possession.append(item)

        information = data.get("information", {})
        if not isinstance(information, dict) or not all(
            isinstance(value, str) for value in information.values()
        ):
            raise fail("information must be an object of strings")

        return cls(
            tooth_path=tooth_path,
            version=version,
            dependencies=dependencies,
            placement=placement,
            possession=possession,
            information=dict(information),
        )

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Return the ``tooth.json`` object for this metadata."""
        return {
            "format_version": SUPPORTED_FORMAT_VERSION,
            "tooth": self.tooth_path,
            "version": str(self.version),
            "dependencies": {
                path: version_range.to_json()
                for path, version_range in self.dependencies.items()
            },
            "information": dict(self.information),
            "placement": [item.to_json() for item in self.placement],
            "possession": list(self.possession),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


def _list_field(data: Mapping[str, Any], key: str, fail: Any) -> List[Any]:
    value = data.get(key, [])
    if not isinstance(value, list):
        raise fail(f"{key} must be a list")
    return value


@dataclass(frozen=True, eq=False)
class ResolvedArchive:
    """A fetched, opened tooth archive.

    Created by the resolver; lives for one resolve-install run and is never
    mutated.
    """

    metadata: ToothMetadata
    archive_path: Path

    @property
    def tooth_path(self) -> str:
        return self.metadata.tooth_path

    @property
    def version(self) -> Version:
        return self.metadata.version

    def __str__(self) -> str:
        return f"{self.tooth_path}@{self.version}"
