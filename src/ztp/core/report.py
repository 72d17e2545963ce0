"""Summarize the result log of a provisioning run."""

from collections import Counter
from dataclasses import dataclass, field

from ztp.core.executor import ExecutionResult, Outcome
from ztp.core.plan import PlanStep

RELOGIN_FOLLOW_UP = "Log out and back in for new group memberships to take effect"


@dataclass(frozen=True)
class Report:
    """Structured summary of a run.

    Attributes:
        results: Full ordered result log
        not_attempted: Plan steps that never ran because the run aborted
        counts: Number of results per outcome
        follow_ups: Manual actions left to the user, in order, de-duplicated
        aborted: Whether a required step failed
    """

    results: tuple[ExecutionResult, ...]
    not_attempted: tuple[PlanStep, ...] = ()
    counts: dict[Outcome, int] = field(default_factory=dict)
    follow_ups: tuple[str, ...] = ()
    aborted: bool = False

    @property
    def completed(self) -> int:
        return len(self.results)

    @property
    def total(self) -> int:
        return len(self.results) + len(self.not_attempted)

    @property
    def warnings(self) -> list[str]:
        return [w for r in self.results for w in r.warnings]


def _follow_ups(results: list[ExecutionResult]) -> list[str]:
    items: list[str] = []

    for result in results:
        assertion = result.step.assertion
        if result.outcome == Outcome.APPLIED:
            if result.step.kind == "group":
                items.append(RELOGIN_FOLLOW_UP)
            if assertion.follow_up:
                items.append(assertion.follow_up)
        elif result.outcome == Outcome.SKIPPED and result.step.kind == "kernel_parameter":
            items.append(result.reason)

    return list(dict.fromkeys(item for item in items if item))


def summarize(results: list[ExecutionResult], plan: list[PlanStep] | None = None) -> Report:
    """Build a report from a result log.

    Args:
        results: Results in execution order
        plan: The executed plan, to tell which steps were not attempted

    Returns:
        The report
    """
    counts = Counter(r.outcome for r in results)
    not_attempted = tuple(plan[len(results) :]) if plan else ()

    return Report(
        results=tuple(results),
        not_attempted=not_attempted,
        counts={outcome: counts.get(outcome, 0) for outcome in Outcome},
        follow_ups=tuple(_follow_ups(results)),
        aborted=any(r.fatal for r in results),
    )
