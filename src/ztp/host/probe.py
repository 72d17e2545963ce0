"""Environment probe: classify the host before anything is planned."""

import os
import platform
import shlex
import shutil
from collections.abc import Mapping
from pathlib import Path

from ztp.core.logging import get_logger
from ztp.host.models import (
    FAMILY_PACKAGE_MANAGERS,
    FAMILY_SERVICE_MANAGERS,
    Family,
    HostProfile,
)
from ztp.system.runner import get_real_user

logger = get_logger(__name__)

OS_RELEASE = Path("/etc/os-release")

KNOWN_DISTROS: dict[str, Family] = {
    "ubuntu": Family.DEBIAN,
    "debian": Family.DEBIAN,
    "linuxmint": Family.DEBIAN,
    "pop": Family.DEBIAN,
    "fedora": Family.REDHAT,
    "rhel": Family.REDHAT,
    "centos": Family.REDHAT,
    "rocky": Family.REDHAT,
    "almalinux": Family.REDHAT,
    "cachyos": Family.ARCH,
    "arch": Family.ARCH,
    "endeavouros": Family.ARCH,
    "manjaro": Family.ARCH,
}

MACHINE_ARCHITECTURES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
    "i686": "386",
}

DESKTOP_SHELLS = ("plasmashell", "gnome-shell")


class UnsupportedHostError(Exception):
    """Raised when the host cannot be classified into a known family."""


def parse_os_release(text: str) -> dict[str, str]:
    """Parse os-release KEY=value lines.

    Values may be quoted with shell quoting rules; comments and blank lines
    are ignored.

    Args:
        text: Contents of an os-release file

    Returns:
        Mapping of keys to unquoted values
    """
    fields: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, raw = line.partition("=")
        try:
            parts = shlex.split(raw)
        except ValueError:
            parts = [raw.strip("\"'")]
        fields[key.strip()] = parts[0] if parts else ""
    return fields


def classify(fields: Mapping[str, str]) -> Family:
    """Map os-release fields to a distribution family.

    ``ID`` is tried first, then each entry of ``ID_LIKE``.

    Raises:
        UnsupportedHostError: If no identifier matches a known family
    """
    distro_id = fields.get("ID", "").lower()
    candidates = [distro_id, *fields.get("ID_LIKE", "").lower().split()]

    for candidate in candidates:
        if candidate in KNOWN_DISTROS:
            return KNOWN_DISTROS[candidate]

    supported = ", ".join(sorted(KNOWN_DISTROS))
    raise UnsupportedHostError(
        f"Unsupported distribution '{distro_id or 'unknown'}'. Supported: {supported}"
    )


def detect_desktop(environ: Mapping[str, str]) -> bool:
    """Guess whether a desktop environment is installed."""
    if environ.get("XDG_CURRENT_DESKTOP") or environ.get("DESKTOP_SESSION"):
        return True
    return any(shutil.which(shell) for shell in DESKTOP_SHELLS)


def probe(
    os_release: Path = OS_RELEASE,
    desktop: bool | None = None,
    environ: Mapping[str, str] | None = None,
) -> HostProfile:
    """Detect the host environment.

    Args:
        os_release: Path to the os-release file
        desktop: Force the desktop flag; None auto-detects it
        environ: Environment to inspect (defaults to os.environ)

    Returns:
        Immutable host profile

    Raises:
        UnsupportedHostError: If os-release is unreadable or unknown
    """
    env = os.environ if environ is None else environ

    try:
        text = os_release.read_text(encoding="utf-8")
    except OSError as e:
        raise UnsupportedHostError(f"Cannot read {os_release}: {e}") from e

    fields = parse_os_release(text)
    family = classify(fields)

    if desktop is None:
        desktop = detect_desktop(env)

    user, home = get_real_user(env)
    machine = platform.machine().lower()

    profile = HostProfile(
        distro_id=fields.get("ID", "").lower(),
        family=family,
        package_manager=FAMILY_PACKAGE_MANAGERS[family],
        service_manager=FAMILY_SERVICE_MANAGERS[family],
        distro_name=fields.get("PRETTY_NAME", fields.get("NAME", "")),
        version_id=fields.get("VERSION_ID", ""),
        codename=fields.get("VERSION_CODENAME", ""),
        architecture=MACHINE_ARCHITECTURES.get(machine, machine),
        desktop=desktop,
        user=user,
        home=Path(home),
    )

    logger.info(
        "Detected host",
        distro=profile.distro_id,
        family=family.value,
        desktop=desktop,
    )
    return profile
