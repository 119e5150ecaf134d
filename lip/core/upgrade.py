"""Upgrade / force-reinstall decision for lip.

Decides what to do with a resolved root archive whose tooth path may
already be installed.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from lip.models.record import ToothRecord
from lip.models.metadata import ResolvedArchive

__all__ = ["InstallAction", "decide_action"]


class InstallAction(Enum):
    """What the install workflow does with one resolved archive."""

    INSTALL = "install"
    REINSTALL = "reinstall"
    SKIP = "skip"


def decide_action(
    archive: ResolvedArchive,
    record: Optional[ToothRecord],
    *,
    upgrade: bool = False,
    force_reinstall: bool = False,
) -> InstallAction:
    """Return the action for ``archive`` given the installed ``record``.

    - Nothing installed: ``INSTALL``.
    - ``force_reinstall``: always ``REINSTALL``.
    - ``upgrade``: ``REINSTALL`` only if the resolved version is strictly
      newer than the installed one.
    - Otherwise: ``SKIP``.
    """
    if record is None:
        return InstallAction.INSTALL

    if force_reinstall:
        return InstallAction.REINSTALL

    if upgrade and archive.version > record.version:
        return InstallAction.REINSTALL

    return InstallAction.SKIP
