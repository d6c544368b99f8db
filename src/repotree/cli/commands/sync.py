import json
from pathlib import Path

import click
from rich.console import Console

from repotree.cli.debug import configure_debug_logging
from repotree.cli.ensure import Ensure
from repotree.cli.output import format_sync_summary, machine_output, summary_to_dict
from repotree.core.context import RepoTreeContext, regenerate_context
from repotree.core.registry import RepositoryRegistry
from repotree.core.types import CompatibilityMode
from repotree.core.user_feedback import QuietFeedback
from repotree.core.walker import DependencyWalker, WalkOptions, WalkSummary


def _resolve_root_file(ctx: RepoTreeContext, dependency_file: Path | None) -> Path:
    if dependency_file is None:
        return ctx.cwd / ctx.global_config.config_filename
    if dependency_file.is_absolute():
        return dependency_file
    return ctx.cwd / dependency_file


def run_sync(ctx: RepoTreeContext, root_file: Path, options: WalkOptions) -> WalkSummary:
    """Walk root_file with a fresh registry and return the summary."""
    registry = RepositoryRegistry(ctx.tag_dates)
    walker = DependencyWalker(ctx.repo_ops, registry, ctx.feedback, options)
    return walker.walk(root_file)


@click.command("sync")
@click.argument("dependency_file", type=click.Path(path_type=Path), required=False)
@click.option(
    "--max-depth",
    type=click.IntRange(min=0),
    default=None,
    help="Deepest level of nested dependency files to open (default from config, 5).",
)
@click.option(
    "--default-compatibility",
    type=click.Choice([mode.value for mode in CompatibilityMode], case_sensitive=False),
    default=None,
    help="Mode for entries that do not name one (default from config, permissive).",
)
@click.option(
    "--recursive/--no-recursive",
    default=True,
    help="Descend into dependency files of checked-out repositories.",
)
@click.option("--dry-run", is_flag=True, help="Print what would be done without changing disk.")
@click.option("--force", is_flag=True, help="Hard-reset existing working copies before checkout.")
@click.option("--json", "as_json", is_flag=True, help="Print the summary as JSON on stdout.")
@click.option("-q", "--quiet", is_flag=True, help="Only print errors and the summary.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_obj
def sync_cmd(
    ctx: RepoTreeContext,
    dependency_file: Path | None,
    max_depth: int | None,
    default_compatibility: str | None,
    recursive: bool,
    dry_run: bool,
    force: bool,
    as_json: bool,
    quiet: bool,
    verbose: bool,
) -> None:
    """Check out every repository listed in DEPENDENCY_FILE and its nested files.

    DEPENDENCY_FILE defaults to the configured file name in the current
    directory.
    """
    if verbose:
        configure_debug_logging()

    ctx = regenerate_context(
        ctx, dry_run=dry_run, feedback=QuietFeedback() if quiet else ctx.feedback
    )

    root_file = _resolve_root_file(ctx, dependency_file)
    Ensure.file_exists(root_file)

    config = ctx.global_config
    options = WalkOptions(
        max_depth=max_depth if max_depth is not None else config.max_depth,
        default_mode=(
            CompatibilityMode.parse(default_compatibility)
            if default_compatibility is not None
            else config.default_compatibility
        ),
        recursive=recursive,
        force=force,
        dependency_filename=config.config_filename,
    )

    summary = run_sync(ctx, root_file, options)

    if as_json:
        machine_output(json.dumps(summary_to_dict(summary), indent=2))
    else:
        Console(stderr=True).print(format_sync_summary(summary))

    if not summary.ok:
        raise SystemExit(1)
