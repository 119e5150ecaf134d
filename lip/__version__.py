"""
lip version information.

Single source of truth for the client version. The value is embedded in
the HTTP User-Agent and printed by ``lip --version``.
"""

from __future__ import annotations

__version__ = "0.1.0"

#: Human-readable version (for CLI)
VERSION_STRING = f"lip {__version__}"
