"""Cache commands for lip.

Inspect or empty the local archive cache (``~/.cache/lip`` by default).
"""

from __future__ import annotations

import click

from lip.core import ToothCache
from lip.context import pass_context, LipContext
from lip.utils import get_logger, print_success, print_table, print_warning

logger = get_logger("commands.cache")


@click.group()
def cache() -> None:
    """Inspect or purge the archive cache."""


@cache.command(name="list")
@pass_context
def cache_list(ctx: LipContext) -> None:
    """List cached archives."""
    entries = ToothCache(ctx.config.cache_dir).entries()
    if not entries:
        print_warning("Cache is empty")
        return

    print_table(
        [{"Key": entry.key, "Size": _format_size(entry.size)} for entry in entries],
        headers=["Key", "Size"],
        caption=str(ctx.config.cache_dir),
        column_styles={"Size": {"justify": "right"}},
    )


@cache.command()
@pass_context
def purge(ctx: LipContext) -> None:
    """Delete every cached archive."""
    removed = ToothCache(ctx.config.cache_dir).purge()
    print_success(f"Removed {removed} cached archive(s)")


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in ("KiB", "MiB"):
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GiB"
