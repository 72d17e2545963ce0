"""Handlers for system updates and package installation."""

from ztp.core.logging import get_logger
from ztp.core.plan import PlanStep
from ztp.packages.base import PackageManager
from ztp.system.worker import Worker

logger = get_logger(__name__)


class SystemUpdateHandler:
    """Upgrade every installed package.

    An upgrade has no cheap idempotence check, so it always runs.
    """

    def __init__(self, packages: PackageManager) -> None:
        self.packages = packages

    def check(self, step: PlanStep) -> bool:
        return False

    def apply(self, step: PlanStep) -> list[str]:
        self.packages.update_system()
        return []


class PackageHandler:
    """Install the packages of a step that are not installed yet."""

    def __init__(self, packages: PackageManager, system: Worker) -> None:
        self.packages = packages
        self.system = system

    def check(self, step: PlanStep) -> bool:
        provided_by = step.params["provided_by"]
        if provided_by and self.system.which(provided_by) is not None:
            logger.debug("Already provided", step=step.id, executable=provided_by)
            return True
        return not self._missing(step)

    def apply(self, step: PlanStep) -> list[str]:
        """Install missing packages.

        Returns:
            Warnings for packages that were unavailable

        Raises:
            CommandError: If none of the packages could be installed
        """
        missing = self._missing(step)
        if not missing:
            return []

        if step.params["refresh"]:
            self.packages.refresh()

        logger.debug("Installing packages", step=step.id, packages=" ".join(missing))
        result = self.packages.install(missing)
        return result.warnings

    def _missing(self, step: PlanStep) -> list[str]:
        return [name for name in step.params["packages"] if not self.packages.is_installed(name)]
