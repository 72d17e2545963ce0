"""Main CLI application for ztp."""

from typing import Annotated

import typer

from ztp.cli.commands.apply import run_apply
from ztp.cli.commands.plan import run_plan
from ztp.cli.commands.status import run_status
from ztp.config.loader import get_env_overrides
from ztp.config.models import ConfigOverrides, ProfileKind
from ztp.core.logging import setup_logging

app = typer.Typer(
    name="ztp",
    help="Zero touch provisioning for network automation workstations",
    no_args_is_help=True,
)

ConfigOption = Annotated[
    str,
    typer.Option("--config", "-c", help="Path to configuration file"),
]
ProfileOption = Annotated[
    ProfileKind | None,
    typer.Option("--profile", "-p", help="Provision as desktop or server (default: auto)"),
]


def split_comma_list(items: list[str]) -> list[str]:
    """Split repeated and comma-separated option values into one list."""
    result = []
    for item in items:
        result.extend([s.strip() for s in item.split(",") if s.strip()])
    return result


def build_overrides(
    profile: ProfileKind | None = None,
    git_name: str = "",
    git_email: str = "",
    terraform_version: str = "",
    razer: bool = False,
    extra_packages: list[str] | None = None,
) -> ConfigOverrides:
    """Merge CLI flags over environment overrides.

    Flags win over the environment; extra package lists combine.

    Raises:
        typer.Exit: With 2 if the environment holds an invalid value
    """
    try:
        env_overrides = get_env_overrides()
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2) from e

    return ConfigOverrides(
        profile=profile or env_overrides.profile,
        git_name=git_name or env_overrides.git_name,
        git_email=git_email or env_overrides.git_email,
        terraform_version=terraform_version or env_overrides.terraform_version,
        razer=razer or env_overrides.razer,
        extra_packages=split_comma_list(extra_packages or []) + env_overrides.extra_packages,
    )


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
    trace: Annotated[
        bool, typer.Option("--trace", help="Enable trace logging (most verbose)")
    ] = False,
) -> None:
    """ztp - declarative post-install provisioning."""
    setup_logging(verbose=verbose, trace=trace)


@app.command()
def apply(
    config: ConfigOption = "",
    profile: ProfileOption = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
    git_name: Annotated[str, typer.Option("--git-name", help="Global git user.name")] = "",
    git_email: Annotated[str, typer.Option("--git-email", help="Global git user.email")] = "",
    terraform_version: Annotated[
        str,
        typer.Option("--terraform-version", help="Terraform version to install (or 'latest')"),
    ] = "",
    razer: Annotated[bool, typer.Option("--razer", help="Include Razer laptop support")] = False,
    extra_packages: Annotated[
        list[str] | None,
        typer.Option("--extra-packages", help="Additional packages to install"),
    ] = None,
) -> None:
    """Provision this host."""
    overrides = build_overrides(
        profile=profile,
        git_name=git_name,
        git_email=git_email,
        terraform_version=terraform_version,
        razer=razer,
        extra_packages=extra_packages,
    )
    run_apply(config, overrides, yes)


@app.command()
def plan(
    config: ConfigOption = "",
    profile: ProfileOption = None,
    razer: Annotated[bool, typer.Option("--razer", help="Include Razer laptop support")] = False,
) -> None:
    """Show the steps apply would run, without changing anything."""
    run_plan(config, build_overrides(profile=profile, razer=razer))


@app.command()
def status() -> None:
    """Show the status of the last provisioning run."""
    run_status()


if __name__ == "__main__":
    app()
