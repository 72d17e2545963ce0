"""Unit tests for the local System worker and release helpers."""

import io
import subprocess
import tarfile
import zipfile
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from ztp.core.handler import StepError
from ztp.system.command import Command, CommandError
from ztp.system.releases import parse_tag
from ztp.system.runner import System, _extract, get_real_user


def completed(returncode: int = 0, stdout: bytes = b"") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout)


@pytest.fixture
def system(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> System:
    monkeypatch.delenv("SUDO_USER", raising=False)
    monkeypatch.setenv("USER", "alice")
    monkeypatch.setenv("HOME", str(tmp_path))
    return System()


class TestGetRealUser:
    """Tests for get_real_user."""

    def test_plain_user(self) -> None:
        """Test the user from USER and HOME."""
        assert get_real_user({"USER": "bob", "HOME": "/srv/bob"}) == ("bob", "/srv/bob")

    def test_root_default_home(self) -> None:
        """Test that root defaults to /root."""
        assert get_real_user({}) == ("root", "/root")

    def test_sudo_user_unknown_to_passwd(self) -> None:
        """Test that the sudo user wins over root."""
        with patch("ztp.system.runner.pwd.getpwnam", side_effect=KeyError("carol")):
            user = get_real_user({"SUDO_USER": "carol", "USER": "root", "HOME": "/root"})
        assert user == ("carol", "/home/carol")

    def test_sudo_user_from_passwd(self) -> None:
        """Test that the sudo user's home comes from the account database."""
        entry = MagicMock(pw_dir="/var/home/carol")
        with patch("ztp.system.runner.pwd.getpwnam", return_value=entry):
            assert get_real_user({"SUDO_USER": "carol"}) == ("carol", "/var/home/carol")

    def test_sudo_as_root(self) -> None:
        """Test that SUDO_USER=root is treated as plain root."""
        assert get_real_user({"SUDO_USER": "root", "USER": "root"}) == ("root", "/root")


class TestSystemRun:
    """Tests for System.run and System.run_with_retries."""

    def test_run_returns_output(self, system: System) -> None:
        """Test a successful command."""
        process = completed(stdout=b"ok")
        with patch("ztp.system.runner.subprocess.run", return_value=process) as run:
            output = system.run(Command(executable="true", env={"A": "1"}))

        assert output == b"ok"
        assert run.call_args.kwargs["env"]["A"] == "1"

    def test_run_failure(self, system: System) -> None:
        """Test that a non-zero exit raises CommandError with the output."""
        with patch("ztp.system.runner.subprocess.run", return_value=completed(2, b"boom")):
            with pytest.raises(CommandError) as exc_info:
                system.run(Command(executable="false"))

        assert exc_info.value.returncode == 2
        assert exc_info.value.output == "boom"

    def test_run_missing_executable(self, system: System) -> None:
        """Test that a command that cannot start is a CommandError."""
        with patch("ztp.system.runner.subprocess.run", side_effect=FileNotFoundError("nope")):
            with pytest.raises(CommandError) as exc_info:
                system.run(Command(executable="nope"))
        assert exc_info.value.returncode == 127

    def test_retries_while_locked(self, system: System) -> None:
        """Test that lock contention is retried."""
        locked = CommandError("apt-get install", 100, "E: Could not get lock /var/lib/dpkg/lock")
        with (
            patch.object(system, "run", side_effect=[locked, b"done"]) as run,
            patch("tenacity.nap.time.sleep"),
        ):
            assert system.run_with_retries(Command(executable="apt-get"), 60_000) == b"done"
        assert run.call_count == 2

    def test_no_retry_for_other_failures(self, system: System) -> None:
        """Test that ordinary failures are raised at once."""
        error = CommandError("apt-get install", 100, "E: Unable to locate package nope")
        with patch.object(system, "run", side_effect=error) as run:
            with pytest.raises(CommandError):
                system.run_with_retries(Command(executable="apt-get"), 60_000)
        assert run.call_count == 1


class TestSystemFiles:
    """Tests for System file operations."""

    def test_write_file(self, system: System, tmp_path: Path) -> None:
        """Test that files are written with parents and mode."""
        path = tmp_path / "bin" / "scan.sh"
        system.write_file(path, b"#!/bin/sh\n", 0o755)

        assert path.read_bytes() == b"#!/bin/sh\n"
        assert path.stat().st_mode & 0o777 == 0o755

    def test_append_and_copy(self, system: System, tmp_path: Path) -> None:
        """Test appending to a file and copying it."""
        path = tmp_path / ".bashrc"
        system.append_file(path, b"one\n")
        system.append_file(path, b"two\n")
        system.copy_file(path, tmp_path / ".bashrc.backup")

        assert system.read_file(tmp_path / ".bashrc.backup") == b"one\ntwo\n"

    def test_read_missing(self, system: System, tmp_path: Path) -> None:
        """Test reading a file that does not exist."""
        with pytest.raises(FileNotFoundError):
            system.read_file(tmp_path / "missing")

    def test_user_context(self, system: System) -> None:
        """Test that commands only drop privileges when running as root."""
        with patch("ztp.system.runner.os.geteuid", return_value=0):
            assert system.user_context() == "alice"
        with patch("ztp.system.runner.os.geteuid", return_value=1000):
            assert system.user_context() == ""


def make_zip(path: Path, name: str) -> None:
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr(name, b"binary")


def make_tar(path: Path, name: str) -> None:
    with tarfile.open(path, "w:gz") as tf:
        info = tarfile.TarInfo(name)
        info.size = 6
        tf.addfile(info, io.BytesIO(b"binary"))


class TestReleases:
    """Tests for release lookup and installation."""

    def test_parse_tag(self) -> None:
        """Test that a leading 'v' is removed."""
        assert parse_tag({"tag_name": "v1.10.0"}) == "1.10.0"
        assert parse_tag({"tag_name": "0.17.0"}) == "0.17.0"

    def test_parse_tag_missing(self) -> None:
        """Test that a payload without a tag is rejected."""
        with pytest.raises(ValueError):
            parse_tag({"message": "Not Found"})

    def test_latest_release_failure(self, system: System) -> None:
        """Test that lookup errors become step errors."""
        lookup = AsyncMock(side_effect=aiohttp.ClientError("offline"))
        with patch.object(system._releases, "latest_version", lookup):
            with pytest.raises(StepError, match="hashicorp/terraform"):
                system.latest_release("hashicorp/terraform")

    def test_latest_release(self, system: System) -> None:
        """Test the synchronous wrapper around the release client."""
        with patch.object(system._releases, "latest_version", AsyncMock(return_value="1.10.0")):
            assert system.latest_release("hashicorp/terraform") == "1.10.0"

    @pytest.mark.parametrize(
        ("archive", "make"),
        [("terraform_1.10.0_linux_amd64.zip", make_zip), ("docs.tar.gz", make_tar)],
    )
    def test_install_release(self, system: System, tmp_path: Path, archive: str, make) -> None:
        """Test that the binary is extracted from the archive and made executable."""

        async def download(url: str, destination: Path) -> None:
            make(destination, "pkg/terraform")

        with patch.object(system._releases, "download", side_effect=download):
            target = system.install_release(
                f"https://example.com/{archive}", "terraform", tmp_path / "bin"
            )

        assert target == tmp_path / "bin" / "terraform"
        assert target.read_bytes() == b"binary"
        assert target.stat().st_mode & 0o777 == 0o755

    def test_install_release_missing_binary(self, system: System, tmp_path: Path) -> None:
        """Test that an archive without the binary fails the step."""

        async def download(url: str, destination: Path) -> None:
            make_zip(destination, "README.md")

        with patch.object(system._releases, "download", side_effect=download):
            with pytest.raises(StepError, match="not found"):
                system.install_release("https://example.com/t.zip", "terraform", tmp_path)

    def test_extract_unknown_format(self, tmp_path: Path) -> None:
        """Test that unknown archives are rejected."""
        archive = tmp_path / "binary.bin"
        archive.write_bytes(b"not an archive")
        with pytest.raises(StepError, match="Unsupported archive format"):
            _extract(archive, tmp_path)

    def test_extract_corrupt_zip(self, tmp_path: Path) -> None:
        """Test that a zip with damaged members fails the step."""
        archive = tmp_path / "terraform.zip"
        with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_STORED) as zf:
            zf.writestr("terraform", b"binary")
        archive.write_bytes(archive.read_bytes().replace(b"binary", b"BINARY"))

        with pytest.raises(StepError, match="Cannot unpack terraform.zip"):
            _extract(archive, tmp_path / "out")

    def test_extract_rejects_unsafe_tar_member(self, tmp_path: Path) -> None:
        """Test that a tar member escaping the destination fails the step."""
        archive = tmp_path / "docs.tar.gz"
        make_tar(archive, "../escape")

        with pytest.raises(StepError, match="Cannot unpack docs.tar.gz"):
            _extract(archive, tmp_path / "out")
        assert not (tmp_path / "escape").exists()
