"""Red Hat package handler for installing packages via dnf."""

from collections.abc import Sequence

from ztp.core.logging import get_logger
from ztp.packages.base import LOCK_WAIT_MS, InstallResult, install_with_fallback
from ztp.system.command import Command, CommandError
from ztp.system.worker import Worker

logger = get_logger(__name__)


class DnfPackageManager:
    """Package manager adapter for Fedora and RHEL derivatives.

    Names starting with '@' are package groups (e.g. '@development-tools').
    """

    def __init__(self, system: Worker) -> None:
        self.system = system
        self._installed_groups: set[str] | None = None

    def update_system(self) -> None:
        cmd = Command(executable="dnf", args=["upgrade", "--refresh", "-y"])
        self.system.run_with_retries(cmd, LOCK_WAIT_MS)

        logger.info("Upgraded system packages", manager="dnf")

    def refresh(self) -> None:
        cmd = Command(executable="dnf", args=["makecache", "--refresh"])
        self.system.run_with_retries(cmd, LOCK_WAIT_MS)

    def is_installed(self, name: str) -> bool:
        if name.startswith("@"):
            return name[1:] in self._groups()

        try:
            self.system.run(Command(executable="rpm", args=["-q", "--whatprovides", name]))
        except CommandError:
            return False
        return True

    def install(self, names: Sequence[str]) -> InstallResult:
        result = install_with_fallback(self.system, self._install_command, names)

        if any(name.startswith("@") for name in result.installed):
            self._installed_groups = None

        if result.installed:
            logger.info("Installed dnf packages", packages=" ".join(result.installed))
        return result

    def _groups(self) -> set[str]:
        """Ids of installed package groups.

        dnf5 prints a table of ids; dnf4 only shows ids in verbose mode.
        """
        if self._installed_groups is None:
            try:
                groups = parse_group_table(self._group_list())
                if groups is None:
                    groups = parse_group_names(self._group_list("-v"))
            except CommandError:
                return set()
            self._installed_groups = groups
        return self._installed_groups

    def _group_list(self, *flags: str) -> str:
        cmd = Command(executable="dnf", args=["group", "list", "--installed", *flags])
        return self.system.run(cmd).decode("utf-8", errors="replace")

    @staticmethod
    def _install_command(names: Sequence[str]) -> Command:
        return Command(executable="dnf", args=["install", "-y", *names])


def parse_group_table(output: str) -> set[str] | None:
    """Parse the dnf5 group table.

    Rows look like 'development-tools   Development Tools   yes'.

    Returns:
        Ids of installed groups, or None when the output has no table header
    """
    lines = iter(output.splitlines())
    for line in lines:
        header = line.split()
        if header[:2] == ["ID", "Name"]:
            break
    else:
        return None

    installed_column = "Installed" in header
    groups = set()
    for line in lines:
        columns = line.split()
        if not columns:
            continue
        if installed_column and columns[-1] != "yes":
            continue
        groups.add(columns[0])
    return groups


def parse_group_names(output: str) -> set[str]:
    """Parse dnf4 verbose group lines such as 'Development Tools (development-tools)'."""
    groups = set()
    for line in output.splitlines():
        line = line.strip()
        if line.endswith(")") and "(" in line:
            groups.add(line[line.rindex("(") + 1 : -1])
    return groups
