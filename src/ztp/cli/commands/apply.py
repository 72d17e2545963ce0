"""Apply command implementation."""

import os

import typer
from rich.console import Console

from ztp.cli.render import print_plan, print_report
from ztp.config.loader import load_config
from ztp.config.models import ConfigOverrides
from ztp.core.executor import ProvisioningAborted
from ztp.core.logging import get_logger
from ztp.core.manager import Manager
from ztp.core.plan import BuildError
from ztp.core.report import summarize
from ztp.host.probe import UnsupportedHostError
from ztp.system.command import CommandError

logger = get_logger(__name__)

EXIT_ABORTED = 1
EXIT_UNUSABLE = 2


def needs_root(error: BaseException) -> bool:
    """Whether a failure looks like a missing sudo."""
    if os.geteuid() == 0:
        return False
    if isinstance(error, PermissionError):
        return True
    return isinstance(error, CommandError) and (
        "Permission denied" in error.output
        or "Could not open lock file" in error.output
        or "you cannot perform this operation unless you are root" in error.output
        or error.returncode == 100
    )


def confirm() -> bool:
    """Wait for one line of input. Ctrl+C or end of input declines."""
    try:
        input("Press Enter to continue or Ctrl+C to cancel... ")
    except (EOFError, KeyboardInterrupt):
        return False
    return True


def run_apply(config_file: str, overrides: ConfigOverrides, yes: bool) -> None:
    """Execute the apply command to provision the host.

    Args:
        config_file: Path to configuration file
        overrides: Configuration overrides from CLI/env
        yes: Skip the confirmation prompt

    Raises:
        typer.Exit: With 1 when a required step fails or the run is
            cancelled, 2 when the host or configuration is unusable
    """
    console = Console()

    try:
        config = load_config(config_file=config_file, overrides=overrides)
        manager = Manager(config, trace=config.trace)
        profile = manager.probe()
        plan = manager.plan(profile)
    except (UnsupportedHostError, BuildError, ValueError, FileNotFoundError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=EXIT_UNUSABLE) from e

    print_plan(console, profile, plan)

    if not yes and not confirm():
        typer.echo("Cancelled, nothing was changed.", err=True)
        raise typer.Exit(code=EXIT_ABORTED)

    logger.info("Starting provisioning", steps=len(plan))

    try:
        report = manager.apply(profile, plan)
    except ProvisioningAborted as e:
        print_report(console, summarize(e.results, plan))
        typer.echo(f"Error: {e}", err=True)
        if needs_root(e.cause):
            typer.echo(
                "Error: This command requires root privileges. Please run with sudo.",
                err=True,
            )
        raise typer.Exit(code=EXIT_ABORTED) from e

    print_report(console, report)
    logger.info("Provisioning completed")
