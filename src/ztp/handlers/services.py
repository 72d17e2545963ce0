"""Handler for enabling and starting services."""

from ztp.core.plan import PlanStep
from ztp.services.base import ServiceManager


class ServiceHandler:
    """Enable a service at boot and start it if the step asks for it."""

    def __init__(self, services: ServiceManager) -> None:
        self.services = services

    def check(self, step: PlanStep) -> bool:
        name = step.params["service"]
        if not self.services.is_enabled(name):
            return False
        return not step.params["start"] or self.services.is_active(name)

    def apply(self, step: PlanStep) -> list[str]:
        name = step.params["service"]

        if not self.services.is_enabled(name):
            self.services.enable(name)
        if step.params["start"] and not self.services.is_active(name):
            self.services.start(name)

        return []
