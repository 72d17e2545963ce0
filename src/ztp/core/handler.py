"""StepHandler protocol and the exceptions handlers use to talk to the executor.

Each assertion kind has one handler. The executor asks it whether the
desired state already holds (``check``) and, if not, to reach it
(``apply``).
"""

from typing import Protocol, runtime_checkable

from ztp.core.plan import PlanStep


class StepError(Exception):
    """A step could not be applied for a reason other than a failed command."""


class StepSkipped(Exception):
    """A handler declines to act on a step.

    Attributes:
        reason: Why the step was skipped
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


@runtime_checkable
class StepHandler(Protocol):
    """Protocol for components that bring one kind of assertion about."""

    def check(self, step: PlanStep) -> bool:
        """Report whether the step's desired state already holds.

        Must not mutate the host. Handlers without an idempotence check
        return False.

        Raises:
            StepSkipped: If the step does not apply to this host
        """
        ...

    def apply(self, step: PlanStep) -> list[str]:
        """Mutate the host so the step's desired state holds.

        Returns:
            Recoverable warnings (e.g. unavailable optional packages)

        Raises:
            CommandError: If an external command fails
            StepError: If the step fails otherwise
            StepSkipped: If the step cannot apply to this host
        """
        ...
