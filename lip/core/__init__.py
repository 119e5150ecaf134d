"""
Core functionality exports for lip.

This module provides convenient access to the core subsystems of lip.
Importing from here keeps user-facing imports clean and stable:

    from lip.core import DependencyResolver, plan_install_order
"""

from __future__ import annotations

from lip.core.cache import ToothCache
from lip.core.archive import ToothArchive
from lip.core.record_store import RecordStore
from lip.core.installer import ToothInstaller
from lip.core.planner import plan_install_order
from lip.core.repository import ToothRepository
from lip.core.upgrade import InstallAction, decide_action
from lip.core.autoremove import autoremove, collect_orphans, find_orphans
from lip.core.resolver import DependencyResolver, ResolutionResult

__all__ = [
    "ToothArchive",
    "ToothCache",
    "ToothRepository",
    "DependencyResolver",
    "ResolutionResult",
    "plan_install_order",
    "RecordStore",
    "ToothInstaller",
    "InstallAction",
    "decide_action",
    "find_orphans",
    "collect_orphans",
    "autoremove",
]
