"""
Specifier models for lip.

A specifier is what a user types after ``lip install`` or what the
resolver synthesises for a dependency. It is a tagged variant:

- :class:`RequirementSpecifier`: ``tooth_path[@range]``, resolved
  through the tooth repository.
- :class:`DirectSpecifier`: a local ``.tth`` file or an ``http(s)://``
  URL pointing at a single archive.

Consumers dispatch on :attr:`kind` rather than on the concrete class.
Specifiers are deduplicated by their canonical string (``str(spec)``);
two spellings of the same range are *not* considered equal.
"""

from __future__ import annotations

import re
from enum import Enum
from dataclasses import dataclass
from typing import ClassVar, Union

from lip.constants import TOOTH_FILE_SUFFIX
from lip.models.version import VersionRange
from lip.exceptions import InvalidSpecifierError, InvalidVersionError

_TOOTH_PATH_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._/-]*$")
_URL_PREFIXES = ("http://", "https://")


class SpecifierKind(Enum):
    """Discriminator for the specifier variants."""

    REQUIREMENT = "requirement"
    DIRECT = "direct"


@dataclass(frozen=True)
class RequirementSpecifier:
    """A tooth path plus the range of acceptable versions.

    Attributes:
        tooth_path: Globally unique tooth identifier, e.g.
            ``github.com/tooth-hub/corepack``.
        version_range: Acceptable versions; :meth:`VersionRange.any` when
            the user wrote a bare path.
    """

    kind: ClassVar[SpecifierKind] = SpecifierKind.REQUIREMENT

    tooth_path: str
    version_range: VersionRange

    def __str__(self) -> str:
        if self.version_range.is_any:
            return self.tooth_path
        return f"{self.tooth_path}@{self.version_range}"


@dataclass(frozen=True)
class DirectSpecifier:
    """A literal archive location (local path or URL).

    Attributes:
        location: Path or URL exactly as given.
    """

    kind: ClassVar[SpecifierKind] = SpecifierKind.DIRECT

    location: str

    @property
    def is_url(self) -> bool:
        """True if the location is a remote ``http(s)`` URL."""
        return self.location.startswith(_URL_PREFIXES)

    def __str__(self) -> str:
        return self.location


Specifier = Union[RequirementSpecifier, DirectSpecifier]


def is_valid_tooth_path(text: str) -> bool:
    """Return True if ``text`` is syntactically a tooth path."""
    return bool(_TOOTH_PATH_RE.match(text)) and not text.endswith("/")


def parse_specifier(text: str) -> Specifier:
    """Parse user or metadata text into a specifier.

    Examples::

        >>> parse_specifier("github.com/tooth-hub/corepack")
        RequirementSpecifier(tooth_path='github.com/tooth-hub/corepack', ...)
        >>> str(parse_specifier("github.com/a/b@>=1.0.0,<2.0.0"))
        'github.com/a/b@>=1.0.0,<2.0.0'
        >>> parse_specifier("./dist/example.tth").kind
        <SpecifierKind.DIRECT: 'direct'>

    Raises:
        InvalidSpecifierError: The text is empty, the tooth path is
            malformed, or the version range cannot be parsed.
    """
    stripped = text.strip() if isinstance(text, str) else ""
    if not stripped:
        raise InvalidSpecifierError("Empty specifier", specifier=str(text))

    if stripped.startswith(_URL_PREFIXES) or stripped.endswith(TOOTH_FILE_SUFFIX):
        return DirectSpecifier(stripped)

    tooth_path, sep, range_text = stripped.partition("@")

    if not is_valid_tooth_path(tooth_path):
        raise InvalidSpecifierError(
            f"Invalid tooth path: {tooth_path!r}", specifier=stripped
        )

    if not sep:
        return RequirementSpecifier(tooth_path, VersionRange.any())

    if not range_text.strip():
        raise InvalidSpecifierError(
            "Missing version range after '@'", specifier=stripped
        )

    try:
        version_range = VersionRange.parse(range_text)
    except InvalidVersionError as exc:
        raise InvalidSpecifierError(
            f"Invalid version range: {exc.message}", specifier=stripped
        ) from exc

    return RequirementSpecifier(tooth_path, version_range)
