"""User account adapter for supplementary group membership."""

from ztp.core.logging import get_logger
from ztp.system.command import Command
from ztp.system.worker import Worker

logger = get_logger(__name__)


class UserAccounts:
    """Query and grant group membership with id(1) and usermod(8)."""

    def __init__(self, system: Worker) -> None:
        self.system = system

    def groups_of(self, user: str) -> list[str]:
        """Get the groups a user belongs to according to the account database.

        Raises:
            CommandError: If the user does not exist
        """
        output = self.system.run(Command(executable="id", args=["-nG", user]))
        return output.decode("utf-8", errors="replace").split()

    def in_group(self, user: str, group: str) -> bool:
        return group in self.groups_of(user)

    def add_to_group(self, user: str, group: str) -> None:
        """Append a supplementary group to a user.

        Raises:
            CommandError: If the group does not exist or usermod fails
        """
        cmd = Command(executable="usermod", args=["-aG", group, user])
        self.system.run(cmd)

        logger.info("Added user to group", user=user, group=group)
