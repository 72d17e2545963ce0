"""systemd service handler."""

from ztp.core.logging import get_logger
from ztp.system.command import Command, CommandError
from ztp.system.worker import Worker

logger = get_logger(__name__)


class SystemdServiceManager:
    """Service manager adapter driving systemctl."""

    def __init__(self, system: Worker) -> None:
        self.system = system

    def is_enabled(self, name: str) -> bool:
        return self._query("is-enabled", name)

    def is_active(self, name: str) -> bool:
        return self._query("is-active", name)

    def enable(self, name: str) -> None:
        self.system.run(Command(executable="systemctl", args=["enable", name]))
        logger.info("Enabled service", service=name)

    def start(self, name: str) -> None:
        self.system.run(Command(executable="systemctl", args=["start", name]))
        logger.info("Started service", service=name)

    def _query(self, verb: str, name: str) -> bool:
        # systemctl reports the answer through its exit status
        try:
            self.system.run(Command(executable="systemctl", args=[verb, "--quiet", name]))
        except CommandError:
            return False
        return True
