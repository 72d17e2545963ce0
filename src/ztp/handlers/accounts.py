"""Handler for supplementary group membership."""

from ztp.core.plan import PlanStep
from ztp.system.accounts import UserAccounts


class GroupHandler:
    """Add a user to a group.

    Membership only takes effect at the next login; the report says so.
    """

    def __init__(self, accounts: UserAccounts) -> None:
        self.accounts = accounts

    def check(self, step: PlanStep) -> bool:
        return self.accounts.in_group(step.params["user"], step.params["group"])

    def apply(self, step: PlanStep) -> list[str]:
        self.accounts.add_to_group(step.params["user"], step.params["group"])
        return []
