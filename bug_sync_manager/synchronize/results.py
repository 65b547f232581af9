"""Contains results of the sync and issue creation workflows."""

from bug_sync_manager.schemas.linear import LinearIssue
from bug_sync_manager.schemas.sentry import SentryIssue
from bug_sync_manager.synchronize.models import SyncOutcome
from bug_sync_manager.synchronize.transform import BugDetails


class SyncResult:
    """Contains the result of syncing one Sentry issue into Linear."""

    def __init__(
        self,
        outcome: SyncOutcome,
        sentry_issue: SentryIssue | None = None,
        bug_details: BugDetails | None = None,
        linear_issue: LinearIssue | None = None,
        resolved_in_sentry: bool = False,
        resolve_error: str | None = None,
    ) -> None:
        """Initialize the result with the outcome and whatever was produced on the way."""
        self.outcome = outcome
        self.sentry_issue = sentry_issue
        self.bug_details = bug_details
        self.linear_issue = linear_issue
        self.resolved_in_sentry = resolved_in_sentry
        self.resolve_error = resolve_error

    @property
    def created(self) -> bool:
        return self.outcome == SyncOutcome.CREATED


class ManualIssueResult:
    """Contains the result of creating a Linear issue by hand."""

    def __init__(self, outcome: SyncOutcome, linear_issue: LinearIssue | None = None, label_names: list[str] | None = None) -> None:
        """Initialize the result with the outcome and the created issue, if any."""
        self.outcome = outcome
        self.linear_issue = linear_issue
        self.label_names = label_names or []
