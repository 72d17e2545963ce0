"""Shared fakes: a simulated host that records commands and keeps files in memory."""

from collections.abc import Sequence
from pathlib import Path

import pytest

from ztp.core.handler import StepError
from ztp.host.models import (
    Family,
    HostProfile,
    PackageManagerKind,
    ServiceManagerKind,
)
from ztp.packages.base import InstallResult
from ztp.system.command import Command, CommandError

HOME = Path("/home/alice")


class FakeSystem:
    """Worker double with an in-memory filesystem.

    Commands are recorded. `git config`, `kreadconfig/kwriteconfig` and
    `id -nG`/`usermod -aG` are simulated against small dictionaries; other
    commands succeed with empty output unless a failure or output is
    registered for their argv prefix.
    """

    def __init__(self, home: Path = HOME, user: str = "alice") -> None:
        self.home = home
        self.user = user
        self.files: dict[Path, bytes] = {}
        self.modes: dict[Path, int] = {}
        self.dirs: set[Path] = {Path("/")}
        self.commands: list[Command] = []
        self.executables: set[str] = {"git", "kwriteconfig6", "terraform"}
        self.failures: dict[tuple[str, ...], CommandError] = {}
        self.outputs: dict[tuple[str, ...], bytes] = {}
        self.git_config: dict[str, str] = {}
        self.kde_config: dict[tuple[str, ...], str] = {}
        self.groups: dict[str, list[str]] = {user: [user]}
        self.latest: str | None = "1.10.0"
        self.releases: list[tuple[str, str, Path]] = []
        self.context_user = user

    # Commands

    @property
    def argvs(self) -> list[list[str]]:
        return [[c.executable, *c.args] for c in self.commands]

    def fail(self, *prefix: str, output: str = "", returncode: int = 1) -> None:
        self.failures[prefix] = CommandError(" ".join(prefix), returncode, output)

    def run(self, cmd: Command) -> bytes:
        self.commands.append(cmd)
        argv = (cmd.executable, *cmd.args)

        for prefix, error in self.failures.items():
            if argv[: len(prefix)] == prefix:
                raise error

        if cmd.executable == "git":
            return self._git(list(cmd.args))
        if cmd.executable.startswith(("kreadconfig", "kwriteconfig")):
            return self._kde(cmd.executable, list(cmd.args))
        if cmd.executable in ("id", "usermod"):
            return self._accounts(cmd.executable, list(cmd.args))

        for prefix, output in self.outputs.items():
            if argv[: len(prefix)] == prefix:
                return output
        return b""

    def run_with_retries(self, cmd: Command, max_duration_ms: int) -> bytes:
        return self.run(cmd)

    def _git(self, args: list[str]) -> bytes:
        if args[:3] == ["config", "--global", "--get"]:
            if args[3] not in self.git_config:
                raise CommandError("git config --get", 1, "")
            return f"{self.git_config[args[3]]}\n".encode()
        if args[:2] == ["config", "--global"]:
            self.git_config[args[2]] = args[3]
        return b""

    def _accounts(self, executable: str, args: list[str]) -> bytes:
        user = args[-1]
        if user not in self.groups:
            raise CommandError(f"{executable} {user}", 1, f"no such user: '{user}'")
        if executable == "usermod":
            if args[1] not in self.groups[user]:
                self.groups[user].append(args[1])
            return b""
        return f"{' '.join(self.groups[user])}\n".encode()

    def _kde(self, executable: str, args: list[str]) -> bytes:
        key = tuple(a for a in args[: args.index("--key") + 2] if not a.startswith("--"))
        if executable.startswith("kwriteconfig"):
            self.kde_config[key] = args[-1]
            return b""
        return f"{self.kde_config.get(key, '')}\n".encode()

    # Files

    def which(self, executable: str) -> str | None:
        return f"/usr/bin/{executable}" if executable in self.executables else None

    def exists(self, path: Path) -> bool:
        return path in self.files or path in self.dirs

    def read_file(self, path: Path) -> bytes:
        if path not in self.files:
            raise FileNotFoundError(f"File '{path}' does not exist")
        return self.files[path]

    def write_file(self, path: Path, contents: bytes, mode: int = 0o644) -> None:
        self.make_dirs(path.parent)
        self.files[path] = contents
        self.modes[path] = mode

    def append_file(self, path: Path, contents: bytes) -> None:
        self.make_dirs(path.parent)
        self.files[path] = self.files.get(path, b"") + contents

    def copy_file(self, source: Path, destination: Path) -> None:
        self.files[destination] = self.read_file(source)

    def make_dirs(self, path: Path, mode: int = 0o755) -> None:
        self.dirs.update({path, *path.parents})
        self.modes.setdefault(path, mode)

    # Releases

    def latest_release(self, repository: str) -> str:
        if self.latest is None:
            raise StepError(f"Could not look up latest release of {repository}")
        return self.latest

    def install_release(self, url: str, binary: str, destination: Path) -> Path:
        self.releases.append((url, binary, destination))
        target = destination / binary
        self.write_file(target, b"binary", 0o755)
        return target

    # User

    def username(self) -> str:
        return self.user

    def home_dir(self) -> Path:
        return self.home

    def user_context(self) -> str:
        return self.context_user


class FakePackageManager:
    """Package manager double tracking installed packages."""

    def __init__(
        self, installed: Sequence[str] = (), unavailable: Sequence[str] = ()
    ) -> None:
        self.installed = set(installed)
        self.unavailable = set(unavailable)
        self.updates = 0
        self.refreshes = 0
        self.install_calls: list[list[str]] = []

    def update_system(self) -> None:
        self.updates += 1

    def refresh(self) -> None:
        self.refreshes += 1

    def is_installed(self, name: str) -> bool:
        return name in self.installed

    def install(self, names: Sequence[str]) -> InstallResult:
        self.install_calls.append(list(names))
        result = InstallResult()
        for name in names:
            if name in self.unavailable:
                result.unavailable.append(name)
            else:
                self.installed.add(name)
                result.installed.append(name)

        if not result.installed:
            raise CommandError(f"install {' '.join(names)}", 100, "Unable to locate package")
        return result


class FakeServiceManager:
    """Service manager double."""

    def __init__(
        self,
        enabled: Sequence[str] = (),
        active: Sequence[str] = (),
        broken: Sequence[str] = (),
    ) -> None:
        self.enabled = set(enabled)
        self.active = set(active)
        self.broken = set(broken)

    def is_enabled(self, name: str) -> bool:
        return name in self.enabled

    def is_active(self, name: str) -> bool:
        return name in self.active

    def enable(self, name: str) -> None:
        if name in self.broken:
            raise CommandError(f"systemctl enable {name}", 1, f"Unit {name}.service not found.")
        self.enabled.add(name)

    def start(self, name: str) -> None:
        if name in self.broken:
            raise CommandError(f"systemctl start {name}", 1, f"Unit {name}.service not found.")
        self.active.add(name)


class FakeAccounts:
    """User account double."""

    def __init__(self, groups: dict[str, set[str]] | None = None) -> None:
        self.groups = groups if groups is not None else {}

    def in_group(self, user: str, group: str) -> bool:
        return group in self.groups.get(user, set())

    def add_to_group(self, user: str, group: str) -> None:
        self.groups.setdefault(user, set()).add(group)


def make_profile(
    family: Family = Family.DEBIAN,
    distro_id: str = "ubuntu",
    desktop: bool = False,
) -> HostProfile:
    managers = {
        Family.DEBIAN: PackageManagerKind.APT,
        Family.REDHAT: PackageManagerKind.DNF,
        Family.ARCH: PackageManagerKind.PACMAN,
    }
    return HostProfile(
        distro_id=distro_id,
        family=family,
        package_manager=managers[family],
        service_manager=ServiceManagerKind.SYSTEMD,
        distro_name=distro_id.capitalize(),
        codename="noble" if family == Family.DEBIAN else "",
        architecture="amd64",
        desktop=desktop,
        user="alice",
        home=HOME,
    )


@pytest.fixture
def system() -> FakeSystem:
    return FakeSystem()


@pytest.fixture
def packages() -> FakePackageManager:
    return FakePackageManager()


@pytest.fixture
def services() -> FakeServiceManager:
    return FakeServiceManager()


@pytest.fixture
def accounts() -> FakeAccounts:
    return FakeAccounts()


@pytest.fixture
def ubuntu() -> HostProfile:
    return make_profile()


@pytest.fixture
def fedora() -> HostProfile:
    return make_profile(Family.REDHAT, "fedora")


@pytest.fixture
def cachyos() -> HostProfile:
    return make_profile(Family.ARCH, "cachyos", desktop=True)
