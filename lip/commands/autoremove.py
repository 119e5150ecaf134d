"""Autoremove command implementation for lip.

Removes tooths that were installed only as dependencies and are no
longer required by any installed tooth. Removal cascades: a dependency
that becomes unreferenced after its dependent is removed goes too.
"""

from __future__ import annotations

import sys
import click
from typing import Set

from lip.config import LipConfig
from lip.exceptions import LipError
from lip.context import pass_context, LipContext
from lip.core import RecordStore, ToothInstaller, autoremove, collect_orphans
from lip.utils import (
    confirm,
    get_logger,
    print_error,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.autoremove")


@click.command(name="autoremove")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@pass_context
def autoremove_command(ctx: LipContext, yes: bool) -> None:
    """Remove tooths that are no longer needed."""
    try:
        remove_orphans(ctx.config, assume_yes=yes)
    except LipError as e:
        print_error(f"{e}")
        sys.exit(1)


def remove_orphans(config: LipConfig, *, assume_yes: bool = False) -> Set[str]:
    """Preview, confirm and remove orphaned tooths.

    Returns:
        Tooth paths that were removed.
    """
    record_store = RecordStore(config.effective_records_dir)
    installer = ToothInstaller(record_store, config.workspace_dir)

    preview = collect_orphans(record_store.list_all())
    if not preview:
        print_success("Nothing to remove")
        return set()

    print_table(
        [{"Tooth": r.tooth_path, "Version": str(r.version)} for r in preview],
        headers=["Tooth", "Version"],
        title="Tooths to remove",
    )

    if not assume_yes and not confirm("Remove these tooths?"):
        print_warning("Autoremove cancelled")
        return set()

    removed = autoremove(record_store, installer)
    for tooth_path in sorted(removed):
        print_success(f"Removed {tooth_path}")
    return removed
