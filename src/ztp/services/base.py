"""ServiceManager protocol for init-system adapters."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ServiceManager(Protocol):
    """Protocol for service-manager adapters.

    enable and start are each idempotent: acting on a service that is
    already enabled or running succeeds.
    """

    def is_enabled(self, name: str) -> bool:
        """Check whether a service starts at boot."""
        ...

    def is_active(self, name: str) -> bool:
        """Check whether a service is running."""
        ...

    def enable(self, name: str) -> None:
        """Enable a service at boot.

        Raises:
            CommandError: If the service cannot be enabled
        """
        ...

    def start(self, name: str) -> None:
        """Start a service.

        Raises:
            CommandError: If the service cannot be started
        """
        ...
