"""System implementation of the Worker protocol."""

import asyncio
import os
import pwd
import shutil
import subprocess
import tarfile
import tempfile
import zipfile
from collections.abc import Mapping
from pathlib import Path

import aiohttp
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception,
    stop_after_delay,
    wait_exponential,
)

from ztp.core.handler import StepError
from ztp.core.logging import get_logger
from ztp.system.command import Command, CommandError
from ztp.system.releases import ReleaseClient

logger = get_logger(__name__)

# Output fragments of package managers waiting on another process
TRANSIENT_MARKERS = (
    "Could not get lock",
    "Unable to acquire the dpkg frontend lock",
    "unable to lock database",
    "Waiting for process with pid",
)


def get_real_user(environ: Mapping[str, str] | None = None) -> tuple[str, str]:
    """Get the real username and home directory.

    When running with sudo, this returns the original user instead of root.

    Returns:
        Tuple of (username, home_directory)
    """
    env = os.environ if environ is None else environ

    sudo_user = env.get("SUDO_USER")
    if sudo_user and sudo_user != "root":
        try:
            return sudo_user, pwd.getpwnam(sudo_user).pw_dir
        except KeyError:
            return sudo_user, f"/home/{sudo_user}"

    username = env.get("USER", "root")
    home = env.get("HOME", "/root" if username == "root" else f"/home/{username}")
    return username, home


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, CommandError) and any(m in exc.output for m in TRANSIENT_MARKERS)


class System:
    """Worker that executes commands and file operations on the local machine."""

    def __init__(self, trace: bool = False) -> None:
        """Initialize the System.

        Args:
            trace: Print every command and its output
        """
        self._trace = trace
        self._username, self._home_dir = get_real_user()
        self._releases = ReleaseClient()

    def username(self) -> str:
        return self._username

    def home_dir(self) -> Path:
        return Path(self._home_dir)

    def user_context(self) -> str:
        """User that user-scoped commands run as.

        Running as root on behalf of someone else means dropping to that
        user through sudo; otherwise commands already run as the user.
        """
        if os.geteuid() == 0 and self._username != "root":
            return self._username
        return ""

    def run(self, cmd: Command) -> bytes:
        """Execute a command and return its combined output.

        Raises:
            CommandError: If the command fails or cannot be started
        """
        command_string = cmd.command_string
        logger.debug("Starting command", command=command_string)

        env = {**os.environ, **cmd.env} if cmd.env else None

        try:
            process = subprocess.run(
                cmd.full_command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                cwd=cmd.cwd or None,
                env=env,
                check=False,
            )
        except OSError as e:
            raise CommandError(command_string, 127, str(e)) from e

        output = process.stdout.decode("utf-8", errors="replace")
        if self._trace:
            self._print_trace(command_string, output)

        if process.returncode != 0:
            raise CommandError(command_string, process.returncode, output)

        logger.debug("Finished command", command=command_string)
        return process.stdout

    def run_with_retries(self, cmd: Command, max_duration_ms: int) -> bytes:
        """Execute a command, retrying while the package database is locked.

        Raises:
            CommandError: If the command fails for another reason or the
                lock is held for longer than max_duration_ms
        """
        try:
            for attempt in Retrying(
                wait=wait_exponential(multiplier=1, min=1, max=30),
                stop=stop_after_delay(max_duration_ms / 1000.0),
                retry=retry_if_exception(_is_transient),
                reraise=True,
            ):
                with attempt:
                    return self.run(cmd)
        except RetryError as e:
            exc = e.last_attempt.exception()
            if exc is not None:
                raise exc from e
            raise

        raise RuntimeError("Unexpected retry error")

    def which(self, executable: str) -> str | None:
        return shutil.which(executable)

    def exists(self, path: Path) -> bool:
        return path.exists()

    def read_file(self, path: Path) -> bytes:
        if not path.exists():
            raise FileNotFoundError(f"File '{path}' does not exist")
        return path.read_bytes()

    def write_file(self, path: Path, contents: bytes, mode: int = 0o644) -> None:
        self.make_dirs(path.parent)
        path.write_bytes(contents)
        path.chmod(mode)
        self._chown(path)
        logger.debug("Wrote file", path=str(path))

    def append_file(self, path: Path, contents: bytes) -> None:
        self.make_dirs(path.parent)
        with path.open("ab") as f:
            f.write(contents)
        self._chown(path)
        logger.debug("Appended to file", path=str(path))

    def copy_file(self, source: Path, destination: Path) -> None:
        shutil.copy2(source, destination)
        self._chown(destination)

    def make_dirs(self, path: Path, mode: int = 0o755) -> None:
        missing = [p for p in (path, *path.parents) if not p.exists()]
        path.mkdir(mode=mode, parents=True, exist_ok=True)
        # Directories created on the user's behalf belong to the user
        for created in reversed(missing):
            self._chown(created)

    def latest_release(self, repository: str) -> str:
        try:
            return asyncio.run(self._releases.latest_version(repository))
        except (aiohttp.ClientError, TimeoutError, ValueError) as e:
            raise StepError(f"Could not look up latest release of {repository}: {e}") from e

    def install_release(self, url: str, binary: str, destination: Path) -> Path:
        """Download an archive, extract one binary and install it.

        Raises:
            StepError: If the download fails or the binary is not in the archive
        """
        target = destination / binary

        with tempfile.TemporaryDirectory(prefix="ztp-") as tmp:
            workdir = Path(tmp)
            archive = workdir / url.rsplit("/", 1)[-1]

            try:
                asyncio.run(self._releases.download(url, archive))
            except (aiohttp.ClientError, TimeoutError) as e:
                raise StepError(f"Could not download {url}: {e}") from e

            extracted = workdir / "extracted"
            extracted.mkdir()
            _extract(archive, extracted)

            candidates = [p for p in extracted.rglob(binary) if p.is_file()]
            if not candidates:
                raise StepError(f"'{binary}' not found in {archive.name}")

            self.make_dirs(destination)
            shutil.move(str(candidates[0]), target)
            target.chmod(0o755)

        logger.info("Installed release binary", binary=binary, path=str(target))
        return target

    def _chown(self, path: Path) -> None:
        """Hand a path under the user's home back to the sudo user."""
        sudo_user = os.getenv("SUDO_USER")
        if not sudo_user or not path.is_relative_to(self.home_dir()):
            return

        try:
            user_info = pwd.getpwnam(sudo_user)
        except KeyError:
            logger.warning("Could not find user info", user=sudo_user)
            return

        try:
            os.chown(path, user_info.pw_uid, user_info.pw_gid)
        except OSError as e:
            logger.warning("Failed to change ownership", path=str(path), error=str(e))

    def _print_trace(self, command: str, output: str) -> None:
        print(f"\n\033[1;32;4mCommand:\033[0m \033[1m{command}\033[0m")
        if output:
            print(f"\033[1;32mOutput:\033[0m\n{output}")


def _extract(archive: Path, destination: Path) -> None:
    """Unpack a .zip or tar archive.

    Raises:
        StepError: If the archive format is not recognised, the archive is
            corrupt or a member would land outside the destination
    """
    try:
        if zipfile.is_zipfile(archive):
            with zipfile.ZipFile(archive) as zf:
                zf.extractall(destination)
        elif tarfile.is_tarfile(archive):
            with tarfile.open(archive) as tf:
                tf.extractall(destination, filter="data")
        else:
            raise StepError(f"Unsupported archive format: {archive.name}")
    except (zipfile.BadZipFile, tarfile.TarError, EOFError) as e:
        raise StepError(f"Cannot unpack {archive.name}: {e}") from e
