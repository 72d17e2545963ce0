"""Handlers for files and directories."""

from datetime import datetime
from pathlib import Path

from ztp.core.logging import get_logger
from ztp.core.plan import PlanStep
from ztp.system.worker import Worker

logger = get_logger(__name__)


def backup_path(path: Path, now: datetime | None = None) -> Path:
    """Timestamped sibling a file is copied to before it is changed."""
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return path.with_name(f"{path.name}.backup.{stamp}")


class FileContainsHandler:
    """Append a marker-guarded block to a file once.

    The marker line is the idempotence check: a file already containing it
    is left untouched.
    """

    def __init__(self, system: Worker) -> None:
        self.system = system

    def check(self, step: PlanStep) -> bool:
        path = Path(step.params["path"])
        if not self.system.exists(path):
            return False

        contents = self.system.read_file(path).decode("utf-8", errors="replace")
        return step.params["marker"] in contents

    def apply(self, step: PlanStep) -> list[str]:
        path = Path(step.params["path"])
        block: str = step.params["block"]

        prefix = ""
        if self.system.exists(path):
            if step.params["backup"]:
                backup = backup_path(path)
                self.system.copy_file(path, backup)
                logger.info("Backed up file", path=str(path), backup=str(backup))

            contents = self.system.read_file(path)
            if contents and not contents.endswith(b"\n"):
                prefix = "\n"

        if not block.endswith("\n"):
            block += "\n"

        self.system.append_file(path, (prefix + block).encode("utf-8"))
        logger.info("Appended block to file", path=str(path), marker=step.params["marker"])
        return []


class FileHandler:
    """Create a file with fixed content if it does not exist.

    Existing files are never overwritten; they may hold the user's edits.
    """

    def __init__(self, system: Worker) -> None:
        self.system = system

    def check(self, step: PlanStep) -> bool:
        return self.system.exists(Path(step.params["path"]))

    def apply(self, step: PlanStep) -> list[str]:
        path = Path(step.params["path"])
        self.system.write_file(path, step.params["content"].encode("utf-8"), step.params["mode"])
        logger.info("Created file", path=str(path))
        return []


class DirectoryHandler:
    """Create a directory and its parents."""

    def __init__(self, system: Worker) -> None:
        self.system = system

    def check(self, step: PlanStep) -> bool:
        return self.system.exists(Path(step.params["path"]))

    def apply(self, step: PlanStep) -> list[str]:
        self.system.make_dirs(Path(step.params["path"]), step.params["mode"])
        return []
