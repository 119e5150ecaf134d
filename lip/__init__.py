"""
lip, a package manager client for tooths.

lip resolves, fetches, installs, and removes versioned packages ("tooths")
distributed as self-describing ZIP archives. Tooths declare dependencies
on other tooths by path and version range; lip walks the dependency
graph, installs dependencies before their dependents, and keeps a record
of every installed tooth so it can be removed cleanly later.

Typical programmatic use::

    from lip.core import DependencyResolver, RecordStore, ToothInstaller
    from lip.core import plan_install_order
"""

from __future__ import annotations

from lip.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "lip Contributors"
__license__ = "GPL-3.0"
__url__ = "https://github.com/lippkg/lip"
__description__ = "Package manager client for tooths."

__all__ = [
    "__version__",
]
