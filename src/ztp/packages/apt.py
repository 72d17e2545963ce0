"""Debian package handler for installing packages via apt."""

from collections.abc import Sequence

from ztp.core.logging import get_logger
from ztp.packages.base import LOCK_WAIT_MS, InstallResult, install_with_fallback
from ztp.system.command import Command, CommandError
from ztp.system.worker import Worker

logger = get_logger(__name__)

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


class AptPackageManager:
    """Package manager adapter for Debian and Ubuntu."""

    def __init__(self, system: Worker) -> None:
        self.system = system

    def update_system(self) -> None:
        self.refresh()

        cmd = Command(executable="apt-get", args=["upgrade", "-y"], env=APT_ENV)
        self.system.run_with_retries(cmd, LOCK_WAIT_MS)

        logger.info("Upgraded system packages", manager="apt")

    def refresh(self) -> None:
        cmd = Command(executable="apt-get", args=["update"], env=APT_ENV)
        self.system.run_with_retries(cmd, LOCK_WAIT_MS)

    def is_installed(self, name: str) -> bool:
        cmd = Command(executable="dpkg-query", args=["-W", "-f=${Status}", name])
        try:
            output = self.system.run(cmd)
        except CommandError:
            return False
        return output.decode("utf-8", errors="replace").strip().endswith(" installed")

    def install(self, names: Sequence[str]) -> InstallResult:
        result = install_with_fallback(self.system, self._install_command, names)

        if result.installed:
            logger.info("Installed apt packages", packages=" ".join(result.installed))
        return result

    @staticmethod
    def _install_command(names: Sequence[str]) -> Command:
        return Command(executable="apt-get", args=["install", "-y", *names], env=APT_ENV)
