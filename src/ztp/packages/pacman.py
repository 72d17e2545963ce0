"""Arch package handler for installing packages via pacman."""

from collections.abc import Sequence

from ztp.core.logging import get_logger
from ztp.packages.base import LOCK_WAIT_MS, InstallResult, install_with_fallback
from ztp.system.command import Command, CommandError
from ztp.system.worker import Worker

logger = get_logger(__name__)


class PacmanPackageManager:
    """Package manager adapter for Arch Linux and CachyOS."""

    def __init__(self, system: Worker) -> None:
        self.system = system

    def update_system(self) -> None:
        cmd = Command(executable="pacman", args=["-Syu", "--noconfirm"])
        self.system.run_with_retries(cmd, LOCK_WAIT_MS)

        logger.info("Upgraded system packages", manager="pacman")

    def refresh(self) -> None:
        cmd = Command(executable="pacman", args=["-Sy"])
        self.system.run_with_retries(cmd, LOCK_WAIT_MS)

    def is_installed(self, name: str) -> bool:
        # -T resolves provides too, so meta packages and virtual names work
        try:
            self.system.run(Command(executable="pacman", args=["-T", name]))
        except CommandError:
            return False
        return True

    def install(self, names: Sequence[str]) -> InstallResult:
        result = install_with_fallback(self.system, self._install_command, names)

        if result.installed:
            logger.info("Installed pacman packages", packages=" ".join(result.installed))
        return result

    @staticmethod
    def _install_command(names: Sequence[str]) -> Command:
        return Command(executable="pacman", args=["-S", "--needed", "--noconfirm", *names])
