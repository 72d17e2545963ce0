"""Factory for creating service-manager adapters."""

from ztp.host.models import ServiceManagerKind
from ztp.services.base import ServiceManager
from ztp.services.systemd import SystemdServiceManager
from ztp.system.worker import Worker


def create_service_manager(kind: ServiceManagerKind, system: Worker) -> ServiceManager:
    """Create the service-manager adapter for a kind.

    Raises:
        ValueError: If the kind has no adapter
    """
    if kind == ServiceManagerKind.SYSTEMD:
        return SystemdServiceManager(system)

    raise ValueError(f"No service manager adapter for '{kind}'")
