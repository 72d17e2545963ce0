"""Unit tests for the command-line interface."""

import os
from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import pytest
from conftest import make_profile
from typer.testing import CliRunner

from ztp.assertions.models import PackagePresent
from ztp.cli.app import app, build_overrides, split_comma_list
from ztp.cli.commands.apply import needs_root
from ztp.config.models import ConfigOverrides, ProfileKind, Status
from ztp.core.executor import ExecutionResult, Outcome, ProvisioningAborted
from ztp.core.plan import BuildError, build_plan
from ztp.core.report import summarize
from ztp.host.probe import UnsupportedHostError
from ztp.system.command import CommandError

runner = CliRunner()

PROFILE = make_profile()
PLAN = build_plan(
    [PackagePresent(id="git", packages=["git"]), PackagePresent(id="htop", packages=["htop"])],
    PROFILE,
)


@pytest.fixture(autouse=True)
def clean_env() -> Iterator[None]:
    with patch.dict(os.environ, {}, clear=True):
        yield


@pytest.fixture
def manager() -> Iterator[MagicMock]:
    with (
        patch("ztp.cli.commands.apply.load_config"),
        patch("ztp.cli.commands.apply.Manager") as manager_class,
    ):
        instance = manager_class.return_value
        instance.probe.return_value = PROFILE
        instance.plan.return_value = PLAN
        instance.apply.return_value = summarize(
            [ExecutionResult(step=s, outcome=Outcome.APPLIED) for s in PLAN], PLAN
        )
        yield instance


class TestOverrides:
    """Tests for flag parsing helpers."""

    def test_split_comma_list(self) -> None:
        """Test splitting repeated and comma-separated values."""
        assert split_comma_list(["a,b", " c ", ",,"]) == ["a", "b", "c"]

    def test_flags_win_over_environment(self) -> None:
        """Test that CLI flags override environment variables."""
        env = {"ZTP_GIT_NAME": "Env", "ZTP_PROFILE": "server", "ZTP_EXTRA_PACKAGES": "mtr"}
        with patch.dict(os.environ, env):
            overrides = build_overrides(git_name="Flag", extra_packages=["iftop,nload"])

        assert overrides.git_name == "Flag"
        assert overrides.profile == ProfileKind.SERVER
        assert overrides.extra_packages == ["iftop", "nload", "mtr"]

    def test_invalid_environment(self) -> None:
        """Test that an invalid environment value is a usage error."""
        with patch.dict(os.environ, {"ZTP_PROFILE": "laptop"}):
            result = runner.invoke(app, ["plan"])
        assert result.exit_code == 2


class TestApplyCommand:
    """Tests for the apply command."""

    def test_success(self, manager: MagicMock) -> None:
        """Test a confirmed run."""
        result = runner.invoke(app, ["apply", "--yes"])

        assert result.exit_code == 0
        manager.apply.assert_called_once_with(PROFILE, PLAN)
        assert "Completed 2 of 2 steps" in result.output

    def test_confirmation_accepted(self, manager: MagicMock) -> None:
        """Test that pressing Enter starts the run."""
        result = runner.invoke(app, ["apply"], input="\n")

        assert result.exit_code == 0
        manager.apply.assert_called_once()

    def test_confirmation_declined(self, manager: MagicMock) -> None:
        """Test that closing input cancels without changing anything."""
        result = runner.invoke(app, ["apply"], input="")

        assert result.exit_code == 1
        assert "Cancelled" in result.output
        manager.apply.assert_not_called()

    @pytest.mark.parametrize(
        "error",
        [
            UnsupportedHostError("Unsupported distribution: gentoo"),
            BuildError("Duplicate assertion ids: git"),
            ValueError("Invalid YAML"),
            FileNotFoundError("Configuration file not found: x.yaml"),
        ],
    )
    def test_unusable_host_or_config(self, manager: MagicMock, error: Exception) -> None:
        """Test that probe, plan and config errors exit with 2 before any change."""
        manager.plan.side_effect = error

        result = runner.invoke(app, ["apply", "--yes"])

        assert result.exit_code == 2
        assert str(error) in result.output
        manager.apply.assert_not_called()

    def test_aborted(self, manager: MagicMock) -> None:
        """Test that a required failure prints the report and exits with 1."""
        cause = CommandError("apt-get install -y git", 1, "E: broken")
        results = [ExecutionResult(step=PLAN[0], outcome=Outcome.FAILED, error="E", fatal=True)]
        manager.apply.side_effect = ProvisioningAborted(results, PLAN[0], cause)

        result = runner.invoke(app, ["apply", "--yes"])

        assert result.exit_code == 1
        assert "Required step 'git' failed" in result.output
        assert "1 not attempted" in result.output

    def test_flags_reach_config(self, manager: MagicMock) -> None:
        """Test that flags are passed on as overrides."""
        with patch("ztp.cli.commands.apply.load_config") as load_config:
            runner.invoke(
                app,
                ["apply", "-y", "-p", "desktop", "--razer", "--extra-packages", "mtr,iftop"],
            )

        overrides = load_config.call_args.kwargs["overrides"]
        assert overrides == ConfigOverrides(
            profile=ProfileKind.DESKTOP, razer=True, extra_packages=["mtr", "iftop"]
        )


class TestNeedsRoot:
    """Tests for needs_root."""

    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (PermissionError("denied"), True),
            (CommandError("apt-get", 100, ""), True),
            (
                CommandError(
                    "pacman", 1, "error: you cannot perform this operation unless you are root"
                ),
                True,
            ),
            (CommandError("apt-get", 1, "E: Unable to locate package"), False),
            (ValueError("x"), False),
        ],
    )
    def test_hint(self, error: BaseException, expected: bool) -> None:
        """Test which failures get the sudo hint."""
        with patch("ztp.cli.commands.apply.os.geteuid", return_value=1000):
            assert needs_root(error) is expected

    def test_never_as_root(self) -> None:
        """Test that root never gets the hint."""
        with patch("ztp.cli.commands.apply.os.geteuid", return_value=0):
            assert not needs_root(PermissionError("denied"))


class TestPlanCommand:
    """Tests for the plan command."""

    def test_prints_plan(self) -> None:
        """Test that the plan is printed without applying."""
        with (
            patch("ztp.cli.commands.plan.load_config"),
            patch("ztp.cli.commands.plan.Manager") as manager_class,
        ):
            manager_class.return_value.probe.return_value = PROFILE
            manager_class.return_value.plan.return_value = PLAN
            result = runner.invoke(app, ["plan"])

        assert result.exit_code == 0
        assert "Plan (2 steps)" in result.output
        manager_class.return_value.apply.assert_not_called()

    def test_unsupported_host(self) -> None:
        """Test that an unsupported host exits with 2."""
        with (
            patch("ztp.cli.commands.plan.load_config"),
            patch("ztp.cli.commands.plan.Manager") as manager_class,
        ):
            manager_class.return_value.probe.side_effect = UnsupportedHostError("nope")
            result = runner.invoke(app, ["plan"])

        assert result.exit_code == 2


class TestStatusCommand:
    """Tests for the status command."""

    def test_status(self) -> None:
        """Test printing the last run."""
        with patch("ztp.cli.commands.status.Manager") as manager_class:
            manager_class.return_value.status.return_value = {
                "status": Status.FAILED,
                "host": {"distro": "ubuntu", "family": "debian"},
                "steps": {"completed": 3, "total": 10},
                "failed_step": "ssh-service",
            }
            result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "ztp status: failed" in result.output
        assert "Steps completed: 3 of 10" in result.output
        assert "Failed step: ssh-service" in result.output

    def test_no_record(self) -> None:
        """Test the message when nothing was provisioned."""
        with patch("ztp.cli.commands.status.Manager") as manager_class:
            manager_class.return_value.status.side_effect = FileNotFoundError("not provisioned")
            result = runner.invoke(app, ["status"])

        assert "Error: not provisioned" in result.output
