"""Handlers for release binaries and kernel parameters."""

from pathlib import Path

from ztp.assertions.templates import render
from ztp.core.handler import StepError, StepSkipped
from ztp.core.logging import get_logger
from ztp.core.plan import PlanStep
from ztp.system.worker import Worker

logger = get_logger(__name__)

PROC_CMDLINE = Path("/proc/cmdline")


class BinaryReleaseHandler:
    """Install a single binary from a release archive."""

    def __init__(self, system: Worker) -> None:
        self.system = system

    def check(self, step: PlanStep) -> bool:
        binary = step.params["binary"]
        if self.system.exists(Path(step.params["dest"]) / binary):
            return True
        return self.system.which(binary) is not None

    def apply(self, step: PlanStep) -> list[str]:
        """Download and install the binary.

        Raises:
            StepError: If the version cannot be resolved or the download fails
        """
        warnings: list[str] = []
        version = step.params["version"]

        if version == "latest":
            version, warning = self._latest(step)
            if warning:
                warnings.append(warning)

        url = render(step.params["url"], {"@VERSION@": version})
        self.system.install_release(url, step.params["binary"], Path(step.params["dest"]))
        logger.info("Installed release", binary=step.params["binary"], version=version)
        return warnings

    def _latest(self, step: PlanStep) -> tuple[str, str]:
        try:
            return self.system.latest_release(step.params["repository"]), ""
        except StepError as e:
            fallback = step.params["fallback_version"]
            if not fallback:
                raise
            logger.warning("Falling back to pinned version", error=str(e), version=fallback)
            return fallback, f"Latest {step.params['binary']} unknown, installed {fallback}"


class KernelParameterHandler:
    """Check a kernel command-line parameter. Never edits the boot loader."""

    def __init__(self, system: Worker, cmdline: Path = PROC_CMDLINE) -> None:
        self.system = system
        self.cmdline = cmdline

    def check(self, step: PlanStep) -> bool:
        if not self.system.exists(self.cmdline):
            return False
        current = self.system.read_file(self.cmdline).decode("utf-8", errors="replace").split()
        return step.params["parameter"] in current

    def apply(self, step: PlanStep) -> list[str]:
        raise StepSkipped(
            step.params["hint"] or f"Add '{step.params['parameter']}' to the kernel command line"
        )
