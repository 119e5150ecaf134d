"""Install command implementation for lip.

Installs tooths and their dependencies into the workspace.

The command wires the core components together:

1. **parse_specifier** turns each argument into a requirement specifier
   (``tooth_path[@range]``) or a direct specifier (``.tth`` file or URL).
2. **DependencyResolver** fetches every archive needed, sharing one
   :class:`HTTPClient` session and the on-disk :class:`ToothCache`.
3. **decide_action** applies ``--upgrade`` / ``--force-reinstall`` to
   tooths that are already installed.
4. **plan_install_order** sorts the remaining archives so dependencies
   come first.
5. **ToothInstaller** places files and writes records. Archives named on
   the command line are recorded as manually installed.

Any error aborts before the first file is placed, except errors raised by
the installer itself, which stop at the failing tooth.

Typical usage::

    $ lip install github.com/tooth-hub/corepack
    $ lip install "github.com/tooth-hub/lib@>=1.0.0,<2.0.0" --upgrade
    $ lip install ./dist/example.tth --dry-run
"""

from __future__ import annotations

import sys
import click
import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set

from lip.config import LipConfig
from lip.exceptions import LipError
from lip.models.record import ToothRecord
from lip.context import pass_context, LipContext
from lip.models.metadata import ResolvedArchive
from lip.models.specifier import Specifier, SpecifierKind, parse_specifier
from lip.core import (
    DependencyResolver,
    InstallAction,
    RecordStore,
    ResolutionResult,
    ToothCache,
    ToothInstaller,
    ToothRepository,
    decide_action,
    plan_install_order,
)
from lip.utils import (
    HTTPClient,
    confirm,
    download_progress,
    get_logger,
    print_error,
    print_info,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.install")


@dataclass
class PlannedStep:
    """One archive scheduled for installation."""

    archive: ResolvedArchive
    action: InstallAction
    is_manual: bool


@dataclass
class InstallPlan:
    """Ordered install steps plus the archives left alone.

    ``promoted`` holds records of tooths named on the command line that
    were installed only as dependencies; they become manually installed.
    """

    steps: List[PlannedStep] = field(default_factory=list)
    skipped: List[ResolvedArchive] = field(default_factory=list)
    promoted: List[ToothRecord] = field(default_factory=list)


@click.command()
@click.argument("specifiers", nargs=-1, required=True)
@click.option(
    "--upgrade",
    is_flag=True,
    help="Replace installed tooths when a newer version is available.",
)
@click.option(
    "--force-reinstall",
    is_flag=True,
    help="Reinstall tooths even if they are already installed.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Resolve and show the plan without installing anything.",
)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@pass_context
def install(
    ctx: LipContext,
    specifiers: Sequence[str],
    upgrade: bool,
    force_reinstall: bool,
    dry_run: bool,
    yes: bool,
) -> None:
    """Install tooths and their dependencies.

    SPECIFIERS are tooth paths with an optional version range
    (``github.com/tooth-hub/corepack@1.0.0``), local ``.tth`` files, or
    ``http(s)://`` URLs of tooth archives.
    """
    try:
        asyncio.run(
            _install_async(
                ctx.config,
                specifiers,
                upgrade=upgrade,
                force_reinstall=force_reinstall,
                dry_run=dry_run,
                assume_yes=yes,
            )
        )
    except LipError as e:
        print_error(f"{e}")
        sys.exit(1)


# ---------------------------------------------------------------------------
# Async orchestration
# ---------------------------------------------------------------------------


async def _install_async(
    config: LipConfig,
    specifier_texts: Sequence[str],
    *,
    upgrade: bool = False,
    force_reinstall: bool = False,
    dry_run: bool = False,
    assume_yes: bool = False,
    repository: Optional[ToothRepository] = None,
) -> List[ResolvedArchive]:
    """Async implementation of the install command.

    Args:
        config: Loaded configuration.
        specifier_texts: Raw specifier arguments.
        upgrade: Reinstall root tooths when a newer version resolved.
        force_reinstall: Reinstall root tooths unconditionally.
        dry_run: Stop after printing the plan.
        assume_yes: Skip the confirmation prompt.
        repository: Pre-built repository; when omitted one is created on a
            fresh :class:`HTTPClient`.

    Returns:
        The archives that were installed, in install order.

    Raises:
        LipError: Parsing, resolution, planning or installation failed.
    """
    specs = [parse_specifier(text) for text in specifier_texts]

    for spec in specs:
        if spec.kind is SpecifierKind.DIRECT and (upgrade or force_reinstall):
            print_warning(
                f"{spec} is a direct specifier; "
                "--upgrade and --force-reinstall do not apply to it"
            )

    record_store = RecordStore(config.effective_records_dir)
    installer = ToothInstaller(record_store, config.workspace_dir)
    cache = ToothCache(config.cache_dir)

    # ── Step 1: Resolve ───────────────────────────────────────────────
    if repository is None:
        async with HTTPClient() as http:
            result = await _resolve(ToothRepository(http, config.goproxy), cache, specs)
    else:
        result = await _resolve(repository, cache, specs)

    # ── Step 2: Decide and plan ───────────────────────────────────────
    plan = build_install_plan(
        result, record_store, upgrade=upgrade, force_reinstall=force_reinstall
    )

    for archive in plan.skipped:
        logger.info("Skipping %s (already installed)", archive)

    if not plan.steps and not plan.promoted:
        print_success("Nothing to install")
        return []

    if plan.steps:
        _display_plan(plan)

    if dry_run:
        print_info("Dry run: no changes made")
        return []

    if (
        plan.steps
        and not assume_yes
        and not confirm("Proceed with installation?", default=True)
    ):
        print_warning("Installation cancelled")
        return []

    # ── Step 3: Install ───────────────────────────────────────────────
    _promote(record_store, plan.promoted)

    installed: List[ResolvedArchive] = []
    for step in plan.steps:
        installer.install(
            step.archive,
            is_manually_installed=step.is_manual,
            replace=step.action is InstallAction.REINSTALL,
        )
        installed.append(step.archive)
        print_success(f"Installed {step.archive}")

    return installed


async def _resolve(
    repository: ToothRepository, cache: ToothCache, specs: List[Specifier]
) -> ResolutionResult:
    resolver = DependencyResolver(repository, cache, progress=download_progress)
    result = await resolver.resolve(specs)
    logger.info(
        "Resolved %d archive(s), %d from cache",
        len(result.archives),
        len(result.cache_hits),
    )
    return result


def build_install_plan(
    result: ResolutionResult,
    record_store: RecordStore,
    *,
    upgrade: bool = False,
    force_reinstall: bool = False,
) -> InstallPlan:
    """Decide what happens to each resolved archive and order the work.

    Root requirement archives go through :func:`decide_action`. Direct
    archives and dependencies are installed only if their tooth path is
    not installed yet. When several archives share a tooth path, the root
    one wins, otherwise the first resolved.
    """
    plan = InstallPlan()
    roots = result.root_archives()
    root_ids = {id(archive) for archive in roots}
    direct_ids = {
        id(result.archives[str(spec)])
        for spec in result.roots
        if spec.kind is SpecifierKind.DIRECT and str(spec) in result.archives
    }

    candidates = roots + [a for a in result.archives.values() if id(a) not in root_ids]
    claimed: Set[str] = set()
    pending: List[PlannedStep] = []

    for archive in candidates:
        if archive.tooth_path in claimed:
            plan.skipped.append(archive)
            continue
        claimed.add(archive.tooth_path)

        record = _load_record(record_store, archive.tooth_path)
        if id(archive) in root_ids and id(archive) not in direct_ids:
            action = decide_action(
                archive, record, upgrade=upgrade, force_reinstall=force_reinstall
            )
        else:
            action = decide_action(archive, record)

        if action is InstallAction.SKIP:
            plan.skipped.append(archive)
            if (
                id(archive) in root_ids
                and record is not None
                and not record.is_manually_installed
            ):
                plan.promoted.append(record)
        else:
            pending.append(PlannedStep(archive, action, id(archive) in root_ids))

    steps_by_id = {id(step.archive): step for step in pending}
    for archive in plan_install_order(step.archive for step in pending):
        plan.steps.append(steps_by_id[id(archive)])

    return plan


def _promote(record_store: RecordStore, records: List[ToothRecord]) -> None:
    for record in records:
        record.is_manually_installed = True
        record_store.save(record)
        print_info(f"Marked {record.tooth_path} as manually installed")


def _load_record(record_store: RecordStore, tooth_path: str) -> Optional[ToothRecord]:
    if not record_store.is_installed(tooth_path):
        return None
    return record_store.load(tooth_path)


def _display_plan(plan: InstallPlan) -> None:
    rows = [
        {
            "Tooth": step.archive.tooth_path,
            "Version": str(step.archive.version),
            "Action": step.action.value,
            "Manual": "yes" if step.is_manual else "",
        }
        for step in plan.steps
    ]
    print_table(
        rows,
        headers=["Tooth", "Version", "Action", "Manual"],
        title="Installation plan",
        column_styles={"Tooth": {"style": "cyan", "no_wrap": True}},
    )
