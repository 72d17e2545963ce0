"""Unit tests for the environment probe."""

from pathlib import Path
from unittest.mock import patch

import pytest

from ztp.host.models import Family, PackageManagerKind, ServiceManagerKind
from ztp.host.probe import (
    UnsupportedHostError,
    classify,
    detect_desktop,
    parse_os_release,
    probe,
)

UBUNTU_OS_RELEASE = """\
PRETTY_NAME="Ubuntu 24.04.1 LTS"
NAME="Ubuntu"
VERSION_ID="24.04"
VERSION_CODENAME=noble
ID=ubuntu
ID_LIKE=debian
"""

ROCKY_OS_RELEASE = """\
NAME="Rocky Linux"
ID="rocky"
ID_LIKE="rhel centos fedora"
VERSION_ID="9.4"
"""


class TestParseOsRelease:
    """Tests for parse_os_release."""

    def test_parses_quoted_and_bare_values(self) -> None:
        """Test that quoted and unquoted values are both read."""
        fields = parse_os_release(UBUNTU_OS_RELEASE)
        assert fields["ID"] == "ubuntu"
        assert fields["PRETTY_NAME"] == "Ubuntu 24.04.1 LTS"
        assert fields["VERSION_CODENAME"] == "noble"

    def test_ignores_comments_and_blank_lines(self) -> None:
        """Test that comments and blank lines are skipped."""
        fields = parse_os_release("# comment\n\nID=arch\n")
        assert fields == {"ID": "arch"}


class TestClassify:
    """Tests for classify."""

    @pytest.mark.parametrize(
        ("distro_id", "family"),
        [
            ("ubuntu", Family.DEBIAN),
            ("debian", Family.DEBIAN),
            ("fedora", Family.REDHAT),
            ("almalinux", Family.REDHAT),
            ("cachyos", Family.ARCH),
            ("manjaro", Family.ARCH),
        ],
    )
    def test_known_ids(self, distro_id: str, family: Family) -> None:
        """Test that known distribution ids map to their family."""
        assert classify({"ID": distro_id}) == family

    def test_falls_back_to_id_like(self) -> None:
        """Test that an unknown ID is classified through ID_LIKE."""
        assert classify({"ID": "kali", "ID_LIKE": "debian"}) == Family.DEBIAN

    def test_unknown_host(self) -> None:
        """Test that an unclassifiable host is rejected."""
        with pytest.raises(UnsupportedHostError):
            classify({"ID": "alpine"})


class TestDetectDesktop:
    """Tests for detect_desktop."""

    def test_session_variable(self) -> None:
        """Test that a desktop session variable means a desktop host."""
        assert detect_desktop({"XDG_CURRENT_DESKTOP": "KDE"})

    def test_headless(self) -> None:
        """Test that a host without a session or shell is a server."""
        with patch("ztp.host.probe.shutil.which", return_value=None):
            assert not detect_desktop({})


class TestProbe:
    """Tests for probe."""

    def test_probe_ubuntu(self, tmp_path: Path) -> None:
        """Test probing an Ubuntu host."""
        os_release = tmp_path / "os-release"
        os_release.write_text(UBUNTU_OS_RELEASE)

        with patch("ztp.host.probe.platform.machine", return_value="x86_64"):
            environ = {"USER": "alice", "HOME": "/home/alice"}
            profile = probe(os_release, desktop=False, environ=environ)

        assert profile.distro_id == "ubuntu"
        assert profile.family == Family.DEBIAN
        assert profile.package_manager == PackageManagerKind.APT
        assert profile.service_manager == ServiceManagerKind.SYSTEMD
        assert profile.codename == "noble"
        assert profile.architecture == "amd64"
        assert profile.user == "alice"
        assert profile.home == Path("/home/alice")
        assert not profile.desktop

    def test_probe_rocky_arm(self, tmp_path: Path) -> None:
        """Test probing a Rocky Linux host on arm64."""
        os_release = tmp_path / "os-release"
        os_release.write_text(ROCKY_OS_RELEASE)

        with patch("ztp.host.probe.platform.machine", return_value="aarch64"):
            profile = probe(os_release, desktop=True, environ={"USER": "root"})

        assert profile.family == Family.REDHAT
        assert profile.package_manager == PackageManagerKind.DNF
        assert profile.architecture == "arm64"
        assert profile.desktop

    def test_missing_os_release(self, tmp_path: Path) -> None:
        """Test that a missing os-release file is an unsupported host."""
        with pytest.raises(UnsupportedHostError):
            probe(tmp_path / "missing", desktop=False, environ={})
