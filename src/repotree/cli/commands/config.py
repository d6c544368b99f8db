from dataclasses import replace

import click

from repotree.cli.ensure import Ensure
from repotree.cli.output import machine_output, user_output
from repotree.core.config_store import CONFIG_KEYS, config_to_dict, parse_config_value
from repotree.core.context import RepoTreeContext


@click.group("config")
def config_group() -> None:
    """Manage repotree configuration."""


@config_group.command("list")
@click.pass_obj
def config_list(ctx: RepoTreeContext) -> None:
    """Print every configuration key and value."""
    user_output(click.style("Global configuration:", bold=True))
    if not ctx.config_store.exists():
        user_output(f"  (no file at {ctx.config_store.path()}; showing defaults)")
    for key, value in config_to_dict(ctx.global_config).items():
        machine_output(f"{key}={value}")


@config_group.command("get")
@click.argument("key")
@click.pass_obj
def config_get(ctx: RepoTreeContext, key: str) -> None:
    """Print the value of KEY."""
    Ensure.invariant(
        key in CONFIG_KEYS, f"Unknown setting '{key}' (valid: {', '.join(CONFIG_KEYS)})"
    )
    machine_output(str(config_to_dict(ctx.global_config)[key]))


@config_group.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_obj
def config_set(ctx: RepoTreeContext, key: str, value: str) -> None:
    """Set KEY to VALUE in the global configuration file."""
    try:
        parsed = parse_config_value(key, value, "command line")
    except ValueError as e:
        user_output(click.style("Error: ", fg="red") + str(e))
        raise SystemExit(1) from e

    updated = replace(ctx.global_config, **{key: parsed})
    ctx.config_store.save(updated)
    user_output(f"Set {key}={config_to_dict(updated)[key]} in {ctx.config_store.path()}")
