"""Console presentation of plans and reports."""

from rich.console import Console
from rich.table import Table

from ztp.core.executor import Outcome
from ztp.core.plan import PlanStep
from ztp.core.report import Report
from ztp.host.models import HostProfile

OUTCOME_STYLES = {
    Outcome.APPLIED: "green",
    Outcome.ALREADY_SATISFIED: "dim",
    Outcome.SKIPPED: "yellow",
    Outcome.FAILED: "red",
}


def print_plan(console: Console, profile: HostProfile, plan: list[PlanStep]) -> None:
    """Print the host banner and the steps about to run."""
    console.print(f"[bold]Host:[/bold] {profile.label}")
    console.print(f"[bold]User:[/bold] {profile.user} ({profile.home})")

    table = Table(title=f"Plan ({len(plan)} steps)", title_justify="left")
    table.add_column("#", justify="right")
    table.add_column("Step")
    table.add_column("Kind")
    table.add_column("Required")

    for step in plan:
        table.add_row(
            str(step.index), step.description, step.kind, "no" if step.optional else "yes"
        )

    console.print(table)


def print_report(console: Console, report: Report) -> None:
    """Print the outcome of every step, the follow-ups and the totals."""
    table = Table(title="Results", title_justify="left")
    table.add_column("#", justify="right")
    table.add_column("Step")
    table.add_column("Outcome")
    table.add_column("Detail")

    for result in report.results:
        style = OUTCOME_STYLES[result.outcome]
        detail = result.error or result.reason or "; ".join(result.warnings)
        table.add_row(
            str(result.step.index),
            result.step.description,
            f"[{style}]{result.outcome.value}[/{style}]",
            detail,
        )

    for step in report.not_attempted:
        table.add_row(str(step.index), step.description, "[dim]not attempted[/dim]", "")

    console.print(table)

    if report.follow_ups:
        console.print("[bold]Follow-ups:[/bold]")
        for item in report.follow_ups:
            console.print(f"  - {item}", markup=False)

    counts = ", ".join(f"{n} {outcome.value}" for outcome, n in report.counts.items() if n)
    console.print(
        f"Completed {report.completed} of {report.total} steps"
        f" ({counts or 'nothing to do'}), {len(report.not_attempted)} not attempted",
        markup=False,
    )
