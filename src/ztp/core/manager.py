"""Manager for orchestrating ztp runs."""

from pathlib import Path
from typing import Any

import yaml

from ztp.assertions.catalog import default_catalog
from ztp.config.models import Status, ZtpConfig
from ztp.core.executor import Executor, ProvisioningAborted
from ztp.core.logging import get_logger
from ztp.core.plan import PlanStep, build_plan
from ztp.core.report import Report, summarize
from ztp.handlers.registry import create_handlers
from ztp.host.models import HostProfile
from ztp.host.probe import probe
from ztp.packages.factory import create_package_manager
from ztp.services.factory import create_service_manager
from ztp.system.accounts import UserAccounts
from ztp.system.runner import System
from ztp.system.worker import Worker

logger = get_logger(__name__)

RECORD_PATH = Path(".cache/ztp/ztp.yaml")


class Manager:
    """Manager coordinates probing, planning and applying.

    The Manager owns the worker the adapters run through and records the
    outcome of each run in the user's cache directory.
    """

    def __init__(
        self, config: ZtpConfig, system: Worker | None = None, trace: bool = False
    ) -> None:
        """Initialize the Manager.

        Args:
            config: ztp configuration
            system: Worker to act through (defaults to the local machine)
            trace: Print every command and its output
        """
        self.config = config
        self.system: Worker = system if system is not None else System(trace=trace)

    def probe(self) -> HostProfile:
        """Detect the host, honouring a configured desktop/server profile.

        Raises:
            UnsupportedHostError: If the host cannot be classified
        """
        return probe(desktop=self.config.desktop)

    def plan(self, profile: HostProfile) -> list[PlanStep]:
        """Build the plan for a host.

        Raises:
            BuildError: If the catalog cannot be resolved for the host
        """
        return build_plan(default_catalog(self.config), profile)

    def apply(self, profile: HostProfile, plan: list[PlanStep]) -> Report:
        """Execute a plan and summarize it.

        Returns:
            Report of the run

        Raises:
            ProvisioningAborted: If a required step fails
        """
        handlers = create_handlers(
            self.system,
            create_package_manager(profile.package_manager, self.system),
            create_service_manager(profile.service_manager, self.system),
            UserAccounts(self.system),
        )

        self._record(Status.PROVISIONING, profile)
        try:
            results = Executor(handlers).execute(plan)
        except ProvisioningAborted as e:
            self._record(Status.FAILED, profile, summarize(e.results, plan))
            raise

        report = summarize(results, plan)
        self._record(Status.SUCCEEDED, profile, report)
        return report

    def status(self) -> dict[str, Any]:
        """Get the record of the last run.

        Raises:
            FileNotFoundError: If ztp has not provisioned this machine
        """
        path = self.system.home_dir() / RECORD_PATH

        try:
            data = yaml.safe_load(self.system.read_file(path)) or {}
        except FileNotFoundError:
            raise FileNotFoundError(
                "ztp has not provisioned this machine and cannot report its status"
            ) from None

        data["status"] = Status(data.get("status", Status.PROVISIONING.value))
        return data

    def _record(self, status: Status, profile: HostProfile, report: Report | None = None) -> None:
        """Record the run state to the user's cache."""
        self.config.status = status

        record: dict[str, Any] = {
            "status": status.value,
            "host": {
                "distro": profile.distro_id,
                "family": profile.family.value,
                "desktop": profile.desktop,
            },
            "config": self.config.model_dump(
                mode="json", by_alias=True, exclude={"overrides", "status", "verbose", "trace"}
            ),
        }
        if report is not None:
            record["steps"] = {
                "total": report.total,
                "completed": report.completed,
                **{outcome.value: n for outcome, n in report.counts.items()},
            }
            if report.aborted:
                record["failed_step"] = report.results[-1].step.id

        path = self.system.home_dir() / RECORD_PATH
        contents = yaml.safe_dump(record, default_flow_style=False, sort_keys=False)
        self.system.write_file(path, contents.encode("utf-8"))

        logger.debug("Run state saved", path=str(path), status=status.value)
