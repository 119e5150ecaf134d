"""List and show commands for lip.

``lip list`` prints every installed tooth; ``lip show`` prints the record
of one tooth, optionally with the workspace paths it owns.

Typical usage::

    $ lip list
    $ lip list --format json
    $ lip show github.com/tooth-hub/corepack --files
"""

from __future__ import annotations

import sys
import json
import click
from typing import Any, Dict, List

from lip.exceptions import LipError
from lip.models.record import ToothRecord
from lip.context import pass_context, LipContext
from lip.core import RecordStore
from lip.utils import (
    get_logger,
    get_raw_console,
    print_error,
    print_table,
    print_warning,
)

logger = get_logger("commands.list")


@click.command(name="list")
@click.option(
    "--format",
    "-f",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@pass_context
def list_command(ctx: LipContext, format: str) -> None:
    """List installed tooths."""
    try:
        records = RecordStore(ctx.config.effective_records_dir).list_all()
    except LipError as e:
        print_error(f"{e}")
        sys.exit(1)

    if format == "json":
        _display_json(records)
        return

    if not records:
        print_warning("No tooths installed")
        return

    print_table(
        [
            {
                "Tooth": record.tooth_path,
                "Version": str(record.version),
                "Manual": "yes" if record.is_manually_installed else "",
            }
            for record in records
        ],
        headers=["Tooth", "Version", "Manual"],
        column_styles={
            "Tooth": {"style": "cyan", "no_wrap": True},
            "Version": {"justify": "center"},
        },
    )


@click.command()
@click.argument("tooth_path")
@click.option("--files", is_flag=True, help="List the paths owned by the tooth.")
@pass_context
def show(ctx: LipContext, tooth_path: str, files: bool) -> None:
    """Show details of an installed tooth."""
    try:
        record = RecordStore(ctx.config.effective_records_dir).load(tooth_path)
    except LipError as e:
        print_error(f"{e}")
        sys.exit(1)

    console = get_raw_console()
    console.print(f"[bold]{record.tooth_path}[/bold] {record.version}")
    console.print(f"Manually installed: {'yes' if record.is_manually_installed else 'no'}")

    for key, value in sorted(record.metadata.information.items()):
        console.print(f"{key.capitalize()}: {value}", markup=False)

    if record.metadata.dependencies:
        console.print("Dependencies:")
        for dep_path, dep_range in record.metadata.dependencies.items():
            console.print(f"  {dep_path} {dep_range}", markup=False)

    if files:
        console.print("Files:")
        for entry in record.possession:
            console.print(f"  {entry}", markup=False)


def _display_json(records: List[ToothRecord]) -> None:
    data: List[Dict[str, Any]] = [
        {
            "tooth": record.tooth_path,
            "version": str(record.version),
            "is_manually_installed": record.is_manually_installed,
        }
        for record in records
    ]
    click.echo(json.dumps(data, indent=2))
