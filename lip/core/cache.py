"""Local tooth archive cache for lip.

Downloaded archives are kept between runs so a retried or repeated
install never downloads the same artifact twice. Each cache entry is one
file whose name is the percent-encoded cache key plus ``.tth``:

- ``tooth_path@version`` for archives fetched through the repository
- the raw URL for remote direct specifiers

Keys whose encoded form would exceed file name limits are stored under
their SHA-256 digest instead, with the key text in a ``.key`` file beside
the archive.

Failed resolutions intentionally leave their downloads in place; only an
archive that turned out to declare the wrong tooth path is evicted.
"""

from __future__ import annotations

import re
import hashlib
from pathlib import Path
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import quote, unquote

from lip.utils.logger import get_logger
from lip.constants import (
    CACHE_KEY_SUFFIX,
    MAX_CACHE_NAME_LENGTH,
    TOOTH_FILE_SUFFIX,
)
from lip.utils.filesystem import (
    ensure_directory,
    remove_path,
    safe_read_file,
    safe_write_file,
)

logger = get_logger("cache")

__all__ = ["ToothCache", "CacheEntry"]

_DIGEST_RE = re.compile(r"^[0-9a-f]{64}$")


@dataclass(frozen=True)
class CacheEntry:
    """One cached archive."""

    key: str
    path: Path
    size: int


class ToothCache:
    """Directory-backed archive cache.

    Args:
        cache_dir: Directory holding cached archives. Created lazily on
            first write.
    """

    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = Path(cache_dir)

    @staticmethod
    def key_for(tooth_path: str, version: object) -> str:
        """Cache key of a repository archive."""
        return f"{tooth_path}@{version}"

    def path_for(self, key: str) -> Path:
        """Return the file a cache key maps to (it may not exist yet)."""
        return self.cache_dir / (_file_stem(key) + TOOTH_FILE_SUFFIX)

    def contains(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def prepare(self, key: Optional[str] = None) -> Path:
        """Ensure the cache directory exists and return it.

        When ``key`` is too long to be a file name, its text is written
        next to the digest-named archive so :meth:`entries` can report it.
        """
        directory = ensure_directory(self.cache_dir)
        if key is not None and _is_digest_key(key):
            safe_write_file(self.path_for(key).with_suffix(CACHE_KEY_SUFFIX), key)
        return directory

    def remove(self, path: Path) -> None:
        """Evict a cached archive by path."""
        if remove_path(path):
            logger.debug("Evicted cached archive %s", path)
        remove_path(path.with_suffix(CACHE_KEY_SUFFIX))

    def entries(self) -> List[CacheEntry]:
        """List cached archives sorted by key."""
        if not self.cache_dir.is_dir():
            return []

        result: List[CacheEntry] = []
        for path in self.cache_dir.iterdir():
            if not path.is_file() or not path.name.endswith(TOOTH_FILE_SUFFIX):
                continue
            result.append(
                CacheEntry(key=self._key_of(path), path=path, size=path.stat().st_size)
            )

        return sorted(result, key=lambda entry: entry.key)

    def purge(self) -> int:
        """Delete every cached archive and return how many were removed."""
        removed = 0
        for entry in self.entries():
            if remove_path(entry.path):
                removed += 1
            remove_path(entry.path.with_suffix(CACHE_KEY_SUFFIX))
        logger.debug("Purged %d cached archive(s) from %s", removed, self.cache_dir)
        return removed

    @staticmethod
    def _key_of(path: Path) -> str:
        stem = path.name[: -len(TOOTH_FILE_SUFFIX)]
        key_file = path.with_suffix(CACHE_KEY_SUFFIX)
        if _DIGEST_RE.match(stem) and key_file.is_file():
            return safe_read_file(key_file)
        return unquote(stem)


def _is_digest_key(key: str) -> bool:
    return len(quote(key, safe="")) > MAX_CACHE_NAME_LENGTH


def _file_stem(key: str) -> str:
    if _is_digest_key(key):
        return hashlib.sha256(key.encode("utf-8")).hexdigest()
    return quote(key, safe="")
