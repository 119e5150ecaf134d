"""Orphan detection for ``lip autoremove``.

A tooth is an orphan when no installed tooth depends on it and the user
did not install it manually. Removing orphans can orphan their own
dependencies, so removal runs in passes until a pass removes nothing.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable, List, Set

from lip.models.record import ToothRecord
from lip.utils.logger import get_logger
from lip.core.record_store import RecordStore
from lip.core.installer import ToothInstaller

logger = get_logger("autoremove")

__all__ = ["find_orphans", "collect_orphans", "autoremove"]


def find_orphans(records: Iterable[ToothRecord]) -> List[ToothRecord]:
    """Return the non-manual records nothing else references.

    Only one pass is made; see :func:`autoremove` for the cascade.
    """
    installed = list(records)

    referenced: Counter = Counter()
    for record in installed:
        for dep_path in record.dependencies:
            referenced[dep_path] += 1

    return [
        record
        for record in installed
        if not record.is_manually_installed and referenced[record.tooth_path] == 0
    ]


def collect_orphans(records: Iterable[ToothRecord]) -> List[ToothRecord]:
    """Return every record :func:`autoremove` would remove, without removing.

    Runs the same passes as :func:`autoremove` over an in-memory copy.
    """
    remaining = list(records)
    collected: List[ToothRecord] = []

    while True:
        orphans = find_orphans(remaining)
        if not orphans:
            return collected
        collected.extend(orphans)
        orphan_paths = {record.tooth_path for record in orphans}
        remaining = [r for r in remaining if r.tooth_path not in orphan_paths]


def autoremove(record_store: RecordStore, installer: ToothInstaller) -> Set[str]:
    """Uninstall orphans repeatedly until none remain.

    Returns:
        Tooth paths that were removed.
    """
    removed: Set[str] = set()
    passes = 0

    while True:
        orphans = find_orphans(record_store.list_all())
        if not orphans:
            break

        passes += 1
        for record in orphans:
            installer.uninstall(record.tooth_path)
            removed.add(record.tooth_path)
        logger.debug("Autoremove pass %d removed %d tooth(s)", passes, len(orphans))

    logger.info("Autoremove removed %d tooth(s) in %d pass(es)", len(removed), passes)
    return removed
