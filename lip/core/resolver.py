"""Dependency resolver for lip.

Turns the root specifiers of an install into the complete set of tooth
archives that must be present. The walk is a greedy, non-backtracking
breadth-first traversal:

1. A FIFO queue is seeded with the root specifiers.
2. Each popped specifier is skipped if its canonical string was already
   resolved; otherwise its archive is fetched (through the cache) and
   opened.
3. For a requirement specifier the archive's declared tooth path must
   equal the requested one.
4. Every dependency of the archive is pinned to the *first* version the
   repository lists that satisfies its range, and the pinned specifier is
   queued.

Once a version is selected it is never revisited; two branches asking
for incompatible versions of the same tooth are not detected. Any error
aborts the whole resolution. Downloaded archives stay in the cache for
the next attempt.

Typical usage::

    resolver = DependencyResolver(repository, cache)
    result = await resolver.resolve([parse_specifier("github.com/a/b")])
    for archive in result.archives.values():
        print(archive)
"""

from __future__ import annotations

import contextlib
from pathlib import Path
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, ContextManager, Deque, Dict, List, Optional, Sequence, Set

from lip.core.cache import ToothCache
from lip.utils.logger import get_logger
from lip.core.archive import read_metadata
from lip.utils.http import ProgressCallback
from lip.core.repository import ToothRepository
from lip.models.metadata import ResolvedArchive
from lip.models.version import Version, VersionRange, select_best_version
from lip.exceptions import (
    FileOperationError,
    PackagePathMismatchError,
    UnsatisfiableDependencyError,
)
from lip.models.specifier import (
    DirectSpecifier,
    RequirementSpecifier,
    Specifier,
    SpecifierKind,
)

logger = get_logger("resolver")

__all__ = ["DependencyResolver", "ResolutionResult", "ProgressFactory"]

# Builds a progress reporter for one download; the description names it.
ProgressFactory = Callable[[str], ContextManager[Optional[ProgressCallback]]]


def _no_progress(description: str) -> ContextManager[Optional[ProgressCallback]]:
    return contextlib.nullcontext(None)


@dataclass
class ResolutionResult:
    """Outcome of one resolve call.

    Attributes:
        archives: Canonical specifier string → resolved archive, in the
            order the specifiers were resolved.
        roots: The root specifiers, as given.
        cache_hits: Cache keys that were served without downloading.
    """

    archives: Dict[str, ResolvedArchive] = field(default_factory=dict)
    roots: List[Specifier] = field(default_factory=list)
    cache_hits: Set[str] = field(default_factory=set)

    def root_archives(self) -> List[ResolvedArchive]:
        """Archives produced directly by a root specifier, in root order."""
        seen: Set[int] = set()
        result: List[ResolvedArchive] = []
        for spec in self.roots:
            archive = self.archives.get(str(spec))
            if archive is not None and id(archive) not in seen:
                seen.add(id(archive))
                result.append(archive)
        return result

    def is_root(self, archive: ResolvedArchive) -> bool:
        return any(archive is root for root in self.root_archives())


class DependencyResolver:
    """Resolves specifiers into :class:`ResolvedArchive` objects.

    A resolver holds no state between :meth:`resolve` calls, so the same
    instance can be reused; collaborators are passed in explicitly.

    Args:
        repository: Source of version lists and archive URLs.
        cache: Local archive cache.
        progress: Optional factory producing a progress callback per
            download. Purely cosmetic.
    """

    def __init__(
        self,
        repository: ToothRepository,
        cache: ToothCache,
        *,
        progress: Optional[ProgressFactory] = None,
    ) -> None:
        self.repository = repository
        self.cache = cache
        self.progress = progress or _no_progress

    async def resolve(self, specifiers: Sequence[Specifier]) -> ResolutionResult:
        """Resolve ``specifiers`` and all of their transitive dependencies.

        Raises:
            PackageNotFoundError: A tooth path is unknown to the repository.
            RepositoryUnreachableError: The repository cannot be queried.
            DownloadError: An archive download failed.
            ArchiveInvalidError: An archive is corrupt or lacks metadata.
            PackagePathMismatchError: An archive declares another tooth path.
            UnsatisfiableDependencyError: No listed version fits a range.
            FileOperationError: A local archive is missing or unreadable.
        """
        result = ResolutionResult(roots=list(specifiers))
        queue: Deque[Specifier] = deque(specifiers)

        while queue:
            spec = queue.popleft()
            key = str(spec)

            if key in result.archives:
                logger.debug("Skipping already resolved %s", key)
                continue

            if spec.kind is SpecifierKind.REQUIREMENT:
                archive = await self._resolve_requirement(spec, result)
            else:
                archive = await self._resolve_direct(spec, result)

            result.archives[key] = archive
            logger.info("Resolved %s -> %s", key, archive)

            for dep_path, dep_range in archive.metadata.dependencies.items():
                version = await self._select_version(
                    dep_path, dep_range, required_by=str(archive)
                )
                queue.append(RequirementSpecifier(dep_path, VersionRange.exact(version)))

        return result

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def _select_version(
        self,
        tooth_path: str,
        version_range: VersionRange,
        *,
        required_by: Optional[str] = None,
    ) -> Version:
        versions = await self.repository.list_versions(tooth_path)
        selected = select_best_version(versions, version_range)

        if selected is None:
            raise UnsatisfiableDependencyError(
                tooth_path, str(version_range), required_by=required_by
            )

        logger.debug("Selected %s@%s for range %s", tooth_path, selected, version_range)
        return selected

    async def _resolve_requirement(
        self, spec: RequirementSpecifier, result: ResolutionResult
    ) -> ResolvedArchive:
        version = await self._select_version(spec.tooth_path, spec.version_range)
        key = ToothCache.key_for(spec.tooth_path, version)
        url = self.repository.download_url(spec.tooth_path, version)

        path = await self._fetch(key, url, result)
        metadata = read_metadata(path)

        if metadata.tooth_path != spec.tooth_path:
            logger.warning(
                "Archive at %s declares %s, expected %s",
                url,
                metadata.tooth_path,
                spec.tooth_path,
            )
            self.cache.remove(path)
            raise PackagePathMismatchError(spec.tooth_path, metadata.tooth_path)

        return ResolvedArchive(metadata=metadata, archive_path=path)

    async def _resolve_direct(
        self, spec: DirectSpecifier, result: ResolutionResult
    ) -> ResolvedArchive:
        if spec.is_url:
            path = await self._fetch(spec.location, spec.location, result)
        else:
            path = Path(spec.location).expanduser()
            if not path.is_file():
                raise FileOperationError(
                    f"Tooth file not found: {spec.location}",
                    file_path=str(path),
                    operation="read",
                )

        return ResolvedArchive(metadata=read_metadata(path), archive_path=path)

    async def _fetch(self, key: str, url: str, result: ResolutionResult) -> Path:
        path = self.cache.path_for(key)

        if path.is_file():
            logger.debug("Cache hit for %s", key)
            result.cache_hits.add(key)
            return path

        self.cache.prepare(key)
        with self.progress(key) as callback:
            await self.repository.download(url, path, progress_callback=callback)
        return path
