"""Handlers that drive external tools: opaque commands, git and kwriteconfig."""

from pathlib import Path

from ztp.core.handler import StepSkipped
from ztp.core.logging import get_logger
from ztp.core.plan import PlanStep
from ztp.system.command import Command, CommandError
from ztp.system.worker import Worker

logger = get_logger(__name__)

# Plasma 6 ships the *6 tools; Plasma 5 the *5 ones
KDE_CONFIG_TOOLS = (("kreadconfig6", "kwriteconfig6"), ("kreadconfig5", "kwriteconfig5"))


class CommandHandler:
    """Run an opaque command, guarded by 'creates' and 'unless' when given."""

    def __init__(self, system: Worker) -> None:
        self.system = system

    def check(self, step: PlanStep) -> bool:
        """Report whether a guard says the command already ran.

        Raises:
            StepSkipped: If a required executable is not installed
        """
        missing = [exe for exe in step.params["requires"] if self.system.which(exe) is None]
        if missing:
            raise StepSkipped(f"{', '.join(missing)} not installed")

        creates = step.params["creates"]
        if creates and self.system.exists(Path(creates)):
            return True

        unless = step.params["unless"]
        if unless:
            try:
                self.system.run(self._command(step, unless))
            except CommandError:
                return False
            return True

        return False

    def apply(self, step: PlanStep) -> list[str]:
        self.system.run(self._command(step, step.params["argv"]))
        return []

    def _command(self, step: PlanStep, argv: list[str]) -> Command:
        user = self.system.user_context() if step.params["as_user"] else ""
        return Command.from_argv(argv, user=user, cwd=step.params["cwd"])


class GitSettingHandler:
    """Set a global git option for the invoking user."""

    def __init__(self, system: Worker) -> None:
        self.system = system

    def check(self, step: PlanStep) -> bool:
        """Report whether the option already has the wanted value.

        Raises:
            StepSkipped: If git is missing
        """
        if self.system.which("git") is None:
            raise StepSkipped("git not installed")

        current = self._current(step.params["key"])
        if current is None:
            return False
        return step.params["keep_existing"] or current == step.params["value"]

    def apply(self, step: PlanStep) -> list[str]:
        key, value = step.params["key"], step.params["value"]
        self.system.run(self._git("config", "--global", key, value))
        logger.info("Set git option", key=key)
        return []

    def _current(self, key: str) -> str | None:
        # git config --get exits 1 when the key is unset
        try:
            output = self.system.run(self._git("config", "--global", "--get", key))
        except CommandError:
            return None
        return output.decode("utf-8", errors="replace").strip()

    def _git(self, *args: str) -> Command:
        return Command(executable="git", args=list(args), user=self.system.user_context())


class DesktopSettingHandler:
    """Write a KDE configuration key with kwriteconfig."""

    def __init__(self, system: Worker) -> None:
        self.system = system

    def check(self, step: PlanStep) -> bool:
        """Report whether the key already holds the value.

        Raises:
            StepSkipped: If no kwriteconfig tool is installed
        """
        read, _ = self._tools()
        try:
            output = self.system.run(self._command(read, step))
        except CommandError:
            return False
        return output.decode("utf-8", errors="replace").strip() == step.params["value"]

    def apply(self, step: PlanStep) -> list[str]:
        _, write = self._tools()
        cmd = self._command(write, step)
        cmd.args.append(step.params["value"])
        self.system.run(cmd)

        logger.info("Set desktop option", file=step.params["file"], key=step.params["key"])
        return []

    def _tools(self) -> tuple[str, str]:
        for read, write in KDE_CONFIG_TOOLS:
            if self.system.which(write) is not None:
                return read, write
        raise StepSkipped("kwriteconfig not installed")

    def _command(self, executable: str, step: PlanStep) -> Command:
        args = ["--file", step.params["file"]]
        for group in step.params["groups"]:
            args += ["--group", group]
        args += ["--key", step.params["key"]]
        return Command(executable=executable, args=args, user=self.system.user_context())
