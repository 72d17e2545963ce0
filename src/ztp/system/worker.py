"""Worker protocol for system operations."""

from pathlib import Path
from typing import Protocol, runtime_checkable

from ztp.system.command import Command


@runtime_checkable
class Worker(Protocol):
    """Protocol for a system that executes commands and touches files.

    Provider adapters and step handlers only talk to the host through this
    interface, so tests can substitute a simulated host.
    """

    def run(self, cmd: Command) -> bytes:
        """Execute a command and return its output.

        Raises:
            CommandError: If the command exits non-zero
        """
        ...

    def run_with_retries(self, cmd: Command, max_duration_ms: int) -> bytes:
        """Execute a command, retrying transient failures with backoff.

        Raises:
            CommandError: If the command still fails when time runs out
        """
        ...

    def which(self, executable: str) -> str | None:
        """Locate an executable on PATH."""
        ...

    def exists(self, path: Path) -> bool:
        """Check whether a path exists."""
        ...

    def read_file(self, path: Path) -> bytes:
        """Read a file.

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        ...

    def write_file(self, path: Path, contents: bytes, mode: int = 0o644) -> None:
        """Create or replace a file, creating parent directories.

        Raises:
            OSError: If the file cannot be written
        """
        ...

    def append_file(self, path: Path, contents: bytes) -> None:
        """Append to a file, creating it when missing.

        Raises:
            OSError: If the file cannot be written
        """
        ...

    def copy_file(self, source: Path, destination: Path) -> None:
        """Copy a file, preserving its metadata.

        Raises:
            OSError: If the copy fails
        """
        ...

    def make_dirs(self, path: Path, mode: int = 0o755) -> None:
        """Create a directory and its parents.

        Raises:
            OSError: If the directory cannot be created
        """
        ...

    def latest_release(self, repository: str) -> str:
        """Look up the latest released version of a GitHub repository.

        Raises:
            StepError: If the release API cannot be queried
        """
        ...

    def install_release(self, url: str, binary: str, destination: Path) -> Path:
        """Download a release archive and install one binary from it.

        Raises:
            StepError: If the download or extraction fails
        """
        ...

    def username(self) -> str:
        """Get the real username (not root if running with sudo)."""
        ...

    def home_dir(self) -> Path:
        """Get the real user's home directory."""
        ...

    def user_context(self) -> str:
        """User that user-scoped commands must run as, or '' for the current one."""
        ...
