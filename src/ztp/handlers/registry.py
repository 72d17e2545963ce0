"""Map assertion kinds to the handlers that bring them about."""

from ztp.core.handler import StepHandler
from ztp.handlers.accounts import GroupHandler
from ztp.handlers.commands import CommandHandler, DesktopSettingHandler, GitSettingHandler
from ztp.handlers.files import DirectoryHandler, FileContainsHandler, FileHandler
from ztp.handlers.packages import PackageHandler, SystemUpdateHandler
from ztp.handlers.services import ServiceHandler
from ztp.handlers.tools import BinaryReleaseHandler, KernelParameterHandler
from ztp.packages.base import PackageManager
from ztp.services.base import ServiceManager
from ztp.system.accounts import UserAccounts
from ztp.system.worker import Worker


def create_handlers(
    system: Worker,
    packages: PackageManager,
    services: ServiceManager,
    accounts: UserAccounts,
) -> dict[str, StepHandler]:
    """Create one handler per assertion kind.

    Args:
        system: Worker for commands and files
        packages: Package manager adapter for the host
        services: Service manager adapter for the host
        accounts: User account adapter

    Returns:
        Handlers keyed by assertion kind
    """
    return {
        "system_update": SystemUpdateHandler(packages),
        "package": PackageHandler(packages, system),
        "service": ServiceHandler(services),
        "group": GroupHandler(accounts),
        "file_contains": FileContainsHandler(system),
        "file": FileHandler(system),
        "directory": DirectoryHandler(system),
        "command": CommandHandler(system),
        "git_config": GitSettingHandler(system),
        "desktop_setting": DesktopSettingHandler(system),
        "binary_release": BinaryReleaseHandler(system),
        "kernel_parameter": KernelParameterHandler(system),
    }
