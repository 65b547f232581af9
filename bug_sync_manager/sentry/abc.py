"""Base ABC for Sentry clients."""

from abc import ABC, abstractmethod

from bug_sync_manager.schemas.sentry import SentryEvent, SentryIssue, SentryProject


class SentryClientBase(ABC):
    """Base ABC for Sentry clients."""

    # Projects
    @abstractmethod
    async def list_projects(self) -> list[SentryProject]:
        """List the projects the API token can access."""
        pass

    # Issues
    @abstractmethod
    async def list_unresolved_issues(self, organization_slug: str, project_slug: str, limit: int) -> list[SentryIssue]:
        """List unresolved issues of a project, most recent first."""
        pass

    @abstractmethod
    async def get_issue_detail(self, issue_id: str) -> SentryIssue:
        """Get the full details of an issue."""
        pass

    @abstractmethod
    async def resolve_issue(self, issue_id: str) -> None:
        """Mark an issue as resolved."""
        pass

    # Events
    @abstractmethod
    async def get_latest_event(self, issue_id: str) -> SentryEvent:
        """Get the most recent event of an issue."""
        pass

    async def close(self) -> None:
        """Release any resources held by the client."""
        return None
