"""Factory for creating package-manager adapters."""

from ztp.host.models import PackageManagerKind
from ztp.packages.apt import AptPackageManager
from ztp.packages.base import PackageManager
from ztp.packages.dnf import DnfPackageManager
from ztp.packages.pacman import PacmanPackageManager
from ztp.system.worker import Worker

SUPPORTED_PACKAGE_MANAGERS: dict[PackageManagerKind, type] = {
    PackageManagerKind.APT: AptPackageManager,
    PackageManagerKind.DNF: DnfPackageManager,
    PackageManagerKind.PACMAN: PacmanPackageManager,
}


def create_package_manager(kind: PackageManagerKind, system: Worker) -> PackageManager:
    """Create the package-manager adapter for a kind.

    Args:
        kind: Package manager kind from the host profile
        system: System worker

    Returns:
        Package manager adapter

    Raises:
        ValueError: If the kind has no adapter
    """
    try:
        adapter_class = SUPPORTED_PACKAGE_MANAGERS[kind]
    except KeyError:
        raise ValueError(f"No package manager adapter for '{kind}'") from None
    return adapter_class(system)
