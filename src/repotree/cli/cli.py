import os

import click

from repotree.cli.commands.config import config_group
from repotree.cli.commands.sync import sync_cmd
from repotree.cli.debug import configure_debug_logging
from repotree.cli.output import user_output
from repotree.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="repotree")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Check out a tree of tag-pinned git repository dependencies."""
    if os.environ.get("REPOTREE_DEBUG"):
        configure_debug_logging()

    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        try:
            ctx.obj = create_context(dry_run=False)
        except ValueError as e:
            user_output(click.style("Error: ", fg="red") + str(e))
            raise SystemExit(1) from e


cli.add_command(config_group)
cli.add_command(sync_cmd)


def main() -> None:
    """CLI entry point used by the `repotree` console script."""
    cli()
