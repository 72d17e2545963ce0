"""Host profile models produced by the environment probe."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class Family(str, Enum):
    """Distribution family, which decides package names and commands."""

    DEBIAN = "debian"
    REDHAT = "redhat"
    ARCH = "arch"


class PackageManagerKind(str, Enum):
    """Package manager driving a family."""

    APT = "apt"
    DNF = "dnf"
    PACMAN = "pacman"


class ServiceManagerKind(str, Enum):
    """Service manager driving a family."""

    SYSTEMD = "systemd"


FAMILY_PACKAGE_MANAGERS: dict[Family, PackageManagerKind] = {
    Family.DEBIAN: PackageManagerKind.APT,
    Family.REDHAT: PackageManagerKind.DNF,
    Family.ARCH: PackageManagerKind.PACMAN,
}

# Every supported family boots with systemd
FAMILY_SERVICE_MANAGERS: dict[Family, ServiceManagerKind] = {
    Family.DEBIAN: ServiceManagerKind.SYSTEMD,
    Family.REDHAT: ServiceManagerKind.SYSTEMD,
    Family.ARCH: ServiceManagerKind.SYSTEMD,
}


@dataclass(frozen=True)
class HostProfile:
    """Everything the engine knows about the host it provisions.

    Attributes:
        distro_id: os-release ID (e.g. 'ubuntu', 'fedora', 'cachyos')
        family: Distribution family
        package_manager: Package manager kind for the family
        service_manager: Service manager kind for the family
        distro_name: Human readable name (os-release PRETTY_NAME)
        version_id: os-release VERSION_ID
        codename: os-release VERSION_CODENAME (empty on rolling releases)
        architecture: Release-artifact architecture name (amd64, arm64, ...)
        desktop: Whether a desktop environment is present
        user: Real invoking user (not root when run via sudo)
        home: Home directory of the real invoking user
    """

    distro_id: str
    family: Family
    package_manager: PackageManagerKind
    service_manager: ServiceManagerKind
    distro_name: str = ""
    version_id: str = ""
    codename: str = ""
    architecture: str = "amd64"
    desktop: bool = False
    user: str = "root"
    home: Path = Path("/root")

    @property
    def label(self) -> str:
        """Short description used in banners and logs."""
        kind = "desktop" if self.desktop else "server"
        return f"{self.distro_name or self.distro_id} ({self.family.value}, {kind})"
