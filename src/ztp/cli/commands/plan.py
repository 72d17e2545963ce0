"""Plan command implementation."""

import typer
from rich.console import Console

from ztp.cli.render import print_plan
from ztp.config.loader import load_config
from ztp.config.models import ConfigOverrides
from ztp.core.manager import Manager
from ztp.core.plan import BuildError
from ztp.host.probe import UnsupportedHostError


def run_plan(config_file: str, overrides: ConfigOverrides) -> None:
    """Print what apply would do, without changing the host.

    Raises:
        typer.Exit: With 2 when the host or configuration is unusable
    """
    try:
        config = load_config(config_file=config_file, overrides=overrides)
        manager = Manager(config, trace=config.trace)
        profile = manager.probe()
        plan = manager.plan(profile)
    except (UnsupportedHostError, BuildError, ValueError, FileNotFoundError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2) from e

    print_plan(Console(), profile, plan)
