"""Sequential executor for plan steps."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from ztp.core.handler import StepError, StepHandler, StepSkipped
from ztp.core.logging import get_logger
from ztp.core.plan import PlanStep
from ztp.system.command import CommandError

logger = get_logger(__name__)


class Outcome(str, Enum):
    """What executing a step did."""

    APPLIED = "applied"
    ALREADY_SATISFIED = "already_satisfied"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ExecutionResult:
    """The result of one executed step.

    Attributes:
        step: The step that was executed
        outcome: What happened
        reason: Why the step was skipped
        error: Why the step failed
        fatal: Whether the failure aborted the run
        warnings: Recoverable problems met while applying
    """

    step: PlanStep
    outcome: Outcome
    reason: str = ""
    error: str = ""
    fatal: bool = False
    warnings: tuple[str, ...] = ()


class ProvisioningAborted(Exception):
    """Raised when a required step fails.

    Attributes:
        results: Results of every step attempted, ending with the failure
        step: The step that failed
        cause: The underlying error
    """

    def __init__(self, results: list[ExecutionResult], step: PlanStep, cause: Exception) -> None:
        self.results = results
        self.step = step
        self.cause = cause
        super().__init__(f"Required step '{step.id}' failed: {cause}")


class Executor:
    """Execute plan steps strictly in order through their handlers."""

    def __init__(self, handlers: Mapping[str, StepHandler]) -> None:
        """Initialize the Executor.

        Args:
            handlers: Handler for each assertion kind
        """
        self.handlers = handlers

    def execute(self, plan: list[PlanStep]) -> list[ExecutionResult]:
        """Execute a plan.

        Args:
            plan: Steps in execution order

        Returns:
            One result per step, in order

        Raises:
            ProvisioningAborted: If a required step fails; carries the
                results gathered so far
        """
        results: list[ExecutionResult] = []

        for step in plan:
            logger.info(f"[{step.index}/{len(plan)}] {step.description}", step=step.id)

            try:
                result = self._execute_step(step)
            except (CommandError, OSError, StepError) as e:
                result = ExecutionResult(
                    step=step, outcome=Outcome.FAILED, error=str(e), fatal=not step.optional
                )
                results.append(result)

                if result.fatal:
                    logger.error("Required step failed", step=step.id, error=str(e))
                    raise ProvisioningAborted(results, step, e) from e

                logger.warning("Optional step failed, continuing", step=step.id, error=str(e))
                continue

            results.append(result)

        return results

    def _execute_step(self, step: PlanStep) -> ExecutionResult:
        handler = self.handlers.get(step.kind)
        if handler is None:
            raise StepError(f"No handler for assertion kind '{step.kind}'")

        try:
            if handler.check(step):
                logger.debug("Already satisfied", step=step.id)
                return ExecutionResult(step=step, outcome=Outcome.ALREADY_SATISFIED)

            warnings = handler.apply(step)
        except StepSkipped as e:
            logger.info("Skipped", step=step.id, reason=e.reason)
            return ExecutionResult(step=step, outcome=Outcome.SKIPPED, reason=e.reason)

        for warning in warnings:
            logger.warning(warning, step=step.id)

        return ExecutionResult(step=step, outcome=Outcome.APPLIED, warnings=tuple(warnings))
