"""PackageManager protocol and the install strategy shared by all adapters."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from ztp.core.logging import get_logger
from ztp.system.command import Command, CommandError
from ztp.system.worker import Worker

logger = get_logger(__name__)

# How long to wait for another package manager to release its lock
LOCK_WAIT_MS = 300_000


@dataclass
class InstallResult:
    """Outcome of an install request.

    Attributes:
        installed: Packages that were installed
        unavailable: Packages that could not be installed
    """

    installed: list[str] = field(default_factory=list)
    unavailable: list[str] = field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        return [f"Package not available: {name}" for name in self.unavailable]


@runtime_checkable
class PackageManager(Protocol):
    """Protocol for package-manager adapters."""

    def update_system(self) -> None:
        """Refresh package metadata and upgrade every installed package.

        Raises:
            CommandError: If the upgrade fails
        """
        ...

    def refresh(self) -> None:
        """Refresh package metadata only.

        Raises:
            CommandError: If the refresh fails
        """
        ...

    def is_installed(self, name: str) -> bool:
        """Check whether a package is installed, without mutating anything."""
        ...

    def install(self, names: Sequence[str]) -> InstallResult:
        """Install packages in order.

        Raises:
            CommandError: If none of the packages could be installed
        """
        ...


def install_with_fallback(
    system: Worker,
    build: Callable[[Sequence[str]], Command],
    names: Sequence[str],
) -> InstallResult:
    """Install a batch, falling back to one package at a time on failure.

    Package managers refuse a whole transaction when a single name is
    unknown, so a failed batch is retried per package and the stragglers are
    reported as unavailable instead of failing the step.

    Args:
        system: Worker that runs the commands
        build: Builds the install command for a list of names
        names: Packages to install

    Returns:
        Which packages were installed and which were not

    Raises:
        CommandError: If no package could be installed at all
    """
    if not names:
        return InstallResult()

    try:
        system.run_with_retries(build(names), LOCK_WAIT_MS)
        return InstallResult(installed=list(names))
    except CommandError as e:
        if len(names) == 1:
            raise
        logger.warning("Batch install failed, retrying packages one by one", error=str(e))

    result = InstallResult()
    last_error: CommandError | None = None
    for name in names:
        try:
            system.run_with_retries(build([name]), LOCK_WAIT_MS)
            result.installed.append(name)
        except CommandError as e:
            logger.warning("Package could not be installed", package=name)
            result.unavailable.append(name)
            last_error = e

    if not result.installed and last_error is not None:
        raise last_error

    return result
