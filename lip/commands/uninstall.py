"""Uninstall command implementation for lip.

Removes installed tooths from the workspace. Every named tooth must be
installed; nothing is removed otherwise. Tooths still depended on by
others are removed anyway; run ``lip autoremove`` afterwards to clean up
dependencies that are no longer needed.

Typical usage::

    $ lip uninstall github.com/tooth-hub/corepack
    $ lip uninstall -y github.com/a/b github.com/c/d
"""

from __future__ import annotations

import sys
import click
from typing import List, Sequence

from lip.config import LipConfig
from lip.exceptions import LipError, NotInstalledError
from lip.context import pass_context, LipContext
from lip.core import RecordStore, ToothInstaller
from lip.utils import confirm, get_logger, print_error, print_success, print_warning

logger = get_logger("commands.uninstall")


@click.command()
@click.argument("tooth_paths", nargs=-1, required=True)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@pass_context
def uninstall(ctx: LipContext, tooth_paths: Sequence[str], yes: bool) -> None:
    """Uninstall tooths by tooth path."""
    try:
        uninstall_tooths(ctx.config, tooth_paths, assume_yes=yes)
    except LipError as e:
        print_error(f"{e}")
        sys.exit(1)


def uninstall_tooths(
    config: LipConfig,
    tooth_paths: Sequence[str],
    *,
    assume_yes: bool = False,
) -> List[str]:
    """Uninstall ``tooth_paths`` and return the ones removed.

    Raises:
        NotInstalledError: One of the tooth paths has no record.
    """
    record_store = RecordStore(config.effective_records_dir)
    installer = ToothInstaller(record_store, config.workspace_dir)

    # Deduplicate while keeping argument order.
    targets = list(dict.fromkeys(tooth_paths))

    for tooth_path in targets:
        if not record_store.is_installed(tooth_path):
            raise NotInstalledError(tooth_path)

    if not assume_yes and not confirm(f"Uninstall {', '.join(targets)}?"):
        print_warning("Uninstall cancelled")
        return []

    for tooth_path in targets:
        installer.uninstall(tooth_path)
        print_success(f"Uninstalled {tooth_path}")

    return targets
