"""Command models for provider adapters."""

import shlex
from dataclasses import dataclass, field
from shutil import which
from typing import Any


@dataclass
class Command:
    """A command run by a provider adapter.

    Attributes:
        executable: The program to execute
        args: Arguments to pass to the executable
        user: Optional user to run the command as (via sudo)
        cwd: Optional working directory
        env: Extra environment variables for the command
    """

    executable: str
    args: list[str] = field(default_factory=list)
    user: str = ""
    cwd: str = ""
    env: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_argv(cls, argv: list[str], **kwargs: Any) -> "Command":
        """Build a command from an argument vector.

        Raises:
            ValueError: If argv is empty
        """
        if not argv:
            raise ValueError("Cannot build a command from an empty argument vector")
        return cls(executable=argv[0], args=list(argv[1:]), **kwargs)

    @property
    def full_command(self) -> list[str]:
        """Build the argument vector, including sudo when a user is given.

        Returns:
            List of command components
        """
        executable_path = which(self.executable) or self.executable

        cmd: list[str] = []

        # -H so user-scoped tools see the user's own HOME
        if self.user and self.user != "root":
            cmd.extend(["sudo", "-H", "-u", self.user])

        cmd.append(executable_path)
        cmd.extend(self.args)

        return cmd

    @property
    def command_string(self) -> str:
        """The command as a shell-escaped string, for logs and errors."""
        return shlex.join(self.full_command)


class CommandError(Exception):
    """Raised when a command exits with a non-zero status.

    Attributes:
        command: The command that failed
        returncode: Exit code from the command
        output: Combined stdout/stderr output
    """

    def __init__(self, command: str, returncode: int, output: str) -> None:
        self.command = command
        self.returncode = returncode
        self.output = output
        super().__init__(f"Command failed with exit code {returncode}: {command}")
