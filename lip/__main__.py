"""
Executable module for lip.

Running:
    python -m lip

is equivalent to:
    lip
"""

from __future__ import annotations

import sys

from lip.cli import main

if __name__ == "__main__":
    sys.exit(main())
