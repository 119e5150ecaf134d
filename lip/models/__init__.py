"""
Unified data model exports for lip.

This module re-exports the core data models so callers can import them
directly from ``lip.models`` instead of individual submodules.

Example:
    >>> from lip.models import Version, VersionRange, parse_specifier
"""

from __future__ import annotations

from lip.models.record import ToothRecord
from lip.models.metadata import Placement, ResolvedArchive, ToothMetadata
from lip.models.version import (
    Version,
    VersionMatch,
    VersionRange,
    compare_versions,
    select_best_version,
)
from lip.models.specifier import (
    DirectSpecifier,
    RequirementSpecifier,
    Specifier,
    SpecifierKind,
    parse_specifier,
)

__all__ = [
    "Version",
    "VersionMatch",
    "VersionRange",
    "compare_versions",
    "select_best_version",
    "Specifier",
    "SpecifierKind",
    "DirectSpecifier",
    "RequirementSpecifier",
    "parse_specifier",
    "Placement",
    "ToothMetadata",
    "ResolvedArchive",
    "ToothRecord",
]
