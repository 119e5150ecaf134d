"""
Version and version-range models for lip.

Tooth versions are plain ``MAJOR.MINOR.PATCH`` triples, compared through
:mod:`packaging.version`. A :class:`VersionRange` is a disjunction of
conjunctions: a version satisfies the range when it satisfies *every*
predicate of *at least one* group.

Text syntax (used in specifiers such as ``foo@>=1.0.0,<2.0.0||3.x``)::

    range     := group ("||" group)*
    group     := predicate ("," predicate)*
    predicate := [op] VERSION | MAJOR ".x" | MAJOR "." MINOR ".x" | "*" | "x"
    op        := "=" | "!=" | ">" | ">=" | "<" | "<="

JSON syntax (used in ``tooth.json``) is a list of groups, each a list of
predicate strings: ``[[">=1.0.0", "<2.0.0"], ["3.x"]]``.
"""

from __future__ import annotations

import re
import operator
import functools
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from packaging.version import InvalidVersion
from packaging.version import Version as PackagingVersion

from lip.exceptions import InvalidVersionError

_VERSION_RE = re.compile(r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)$")
_WILDCARD_RE = re.compile(r"^(0|[1-9]\d*)(?:\.(0|[1-9]\d*))?\.[xX*]$")
_PREDICATE_RE = re.compile(r"^(!=|>=|<=|=|>|<)?(.+)$")

_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "=": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}


@functools.total_ordering
@dataclass(frozen=True)
class Version:
    """An immutable ``major.minor.patch`` version.

    Ordering delegates to :class:`packaging.version.Version`, which orders
    release triples lexicographically. Equality and hashing use the triple.
    """

    major: int
    minor: int
    patch: int
    _release: PackagingVersion = field(init=False, repr=False, compare=False, hash=False)

    def __post_init__(self) -> None:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if not _VERSION_RE.match(text):
            raise InvalidVersionError(f"Invalid version: {text!r}", version=text)
        object.__setattr__(self, "_release", PackagingVersion(text))

    @classmethod
    def parse(cls, text: str) -> "Version":
        """Parse ``"1.2.3"`` into a :class:`Version`.

        Only strict triples are accepted; PEP 440 extras such as ``1.0``,
        ``v1.0.0`` or ``1.0.0rc1`` are rejected.

        Raises:
            InvalidVersionError: ``text`` is not a strict triple.
        """
        stripped = text.strip() if isinstance(text, str) else ""
        if not _VERSION_RE.match(stripped):
            raise InvalidVersionError(f"Invalid version: {text!r}", version=str(text))
        try:
            release = PackagingVersion(stripped)
        except InvalidVersion as exc:
            raise InvalidVersionError(
                f"Invalid version: {text!r}", version=str(text)
            ) from exc
        return cls(release.major, release.minor, release.micro)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._release < other._release

    def __str__(self) -> str:
        return str(self._release)


def _next_major(version: Version) -> Version:
    return Version(version.major + 1, 0, 0)


def _next_minor(version: Version) -> Version:
    return Version(version.major, version.minor + 1, 0)


def compare_versions(a: Version, b: Version) -> int:
    """Return -1, 0 or 1 as ``a`` is less than, equal to or greater than ``b``."""
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


@dataclass(frozen=True)
class VersionMatch:
    """A single predicate such as ``>=1.0.0``."""

    operator: str
    version: Version

    def __post_init__(self) -> None:
        if self.operator not in _OPERATORS:
            raise InvalidVersionError(
                f"Unknown version operator: {self.operator!r}",
                version=f"{self.operator}{self.version}",
            )

    def matches(self, version: Version) -> bool:
        """Return True if ``version`` satisfies this predicate."""
        return _OPERATORS[self.operator](version, self.version)

    def __str__(self) -> str:
        # Equality is rendered as the bare version
        if self.operator == "=":
            return str(self.version)
        return f"{self.operator}{self.version}"


def _parse_predicate(text: str) -> Tuple[VersionMatch, ...]:
    """Parse one predicate; wildcards expand to a bounded pair."""
    token = text.strip()
    if not token:
        raise InvalidVersionError("Empty version predicate", version=text)

    if token in ("*", "x", "X"):
        return ()

    wildcard = _WILDCARD_RE.match(token)
    if wildcard:
        major = int(wildcard.group(1))
        if wildcard.group(2) is None:
            lower = Version(major, 0, 0)
            upper = _next_major(lower)
        else:
            lower = Version(major, int(wildcard.group(2)), 0)
            upper = _next_minor(lower)
        return (VersionMatch(">=", lower), VersionMatch("<", upper))

    match = _PREDICATE_RE.match(token)
    if match is None:
        raise InvalidVersionError(f"Invalid version predicate: {text!r}", version=text)
    op, version_text = match.groups()
    return (VersionMatch(op or "=", Version.parse(version_text)),)


def _parse_group(predicates: Iterable[str]) -> Tuple[VersionMatch, ...]:
    group: List[VersionMatch] = []
    for predicate in predicates:
        group.extend(_parse_predicate(predicate))
    return tuple(group)


@dataclass(frozen=True)
class VersionRange:
    """OR-of-AND version constraint.

    Attributes:
        groups: Alternative groups; each group is a tuple of predicates
            that must all hold. An empty group matches every version.
    """

    groups: Tuple[Tuple[VersionMatch, ...], ...]

    @classmethod
    def any(cls) -> "VersionRange":
        """Range matching every version."""
        return cls(((),))

    @classmethod
    def exact(cls, version: Version) -> "VersionRange":
        """Range matching exactly ``version``."""
        return cls(((VersionMatch("=", version),),))

    @classmethod
    def parse(cls, text: str) -> "VersionRange":
        """Parse the text form, e.g. ``">=1.0.0,<2.0.0||3.x"``.

        Raises:
            InvalidVersionError: Empty text, empty groups, or bad predicates.
        """
        if not isinstance(text, str) or not text.strip():
            raise InvalidVersionError("Empty version range", version=str(text))

        groups = []
        for group_text in text.split("||"):
            if not group_text.strip():
                raise InvalidVersionError(
                    f"Empty alternative in version range: {text!r}", version=text
                )
            groups.append(_parse_group(group_text.split(",")))
        return cls(tuple(groups))

    @classmethod
    def from_json(cls, data: Any) -> "VersionRange":
        """Parse the ``tooth.json`` form: a list of lists of predicate strings.

        Raises:
            InvalidVersionError: ``data`` does not have that shape.
        """
        if not isinstance(data, list) or not data:
            raise InvalidVersionError(
                "Version range must be a non-empty list of lists", version=repr(data)
            )

        groups = []
        for group in data:
            if not isinstance(group, list) or not all(
                isinstance(item, str) for item in group
            ):
                raise InvalidVersionError(
                    "Version range group must be a list of strings",
                    version=repr(group),
                )
            groups.append(_parse_group(group))
        return cls(tuple(groups))

    def to_json(self) -> List[List[str]]:
        """Return the ``tooth.json`` representation."""
        return [[str(match) for match in group] for group in self.groups]

    @property
    def is_any(self) -> bool:
        """True if some group has no predicates (every version matches)."""
        return any(not group for group in self.groups)

    def matches(self, version: Version) -> bool:
        """Return True if every predicate of at least one group holds."""
        return any(
            all(match.matches(version) for match in group) for group in self.groups
        )

    def __str__(self) -> str:
        if self.is_any:
            return "*"
        return "||".join(",".join(str(match) for match in group) for group in self.groups)


def select_best_version(
    candidates: Iterable[Version],
    version_range: VersionRange,
) -> Optional[Version]:
    """Return the first candidate satisfying ``version_range``.

    Candidates are scanned in the order given (the repository's order);
    this is first-fit, not highest-fit.

    Returns:
        The selected version, or ``None`` when nothing matches.
    """
    for candidate in candidates:
        if version_range.matches(candidate):
            return candidate
    return None
