"""
Shared context object for lip CLI commands.

This module defines the global Click context used to share configuration
and runtime options across CLI subcommands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from lip.config import LipConfig


class LipContext:
    """Global context object for lip CLI commands.

    An instance of this class is created once per CLI invocation and
    passed to commands using Click's context mechanism.

    Attributes:
        config_path: Path to the lip configuration file, if provided.
        verbose: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG).
        quiet: Only report errors.
        color: Whether colored terminal output is enabled.
        config: Loaded configuration.
    """

    __slots__ = ("config_path", "verbose", "quiet", "color", "config")

    def __init__(self) -> None:
        self.config_path: Optional[Path] = None
        self.verbose: int = 0
        self.quiet: bool = False
        self.color: bool = True
        self.config: LipConfig = LipConfig()


#: Click decorator for injecting :class:`LipContext` into commands.
pass_context = click.make_pass_decorator(LipContext, ensure=True)
