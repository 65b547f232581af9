"""Sentry client adapter for the Sentry REST API over httpx."""

from typing import Any, Self

import httpx
import structlog
from pydantic import TypeAdapter

from bug_sync_manager.exceptions import SourceUnavailableError
from bug_sync_manager.schemas.config import SentryInstanceModel
from bug_sync_manager.schemas.sentry import SentryEvent, SentryIssue, SentryProject
from bug_sync_manager.utils.constants import DEFAULT_HTTP_TIMEOUT, SENTRY_ISSUES_STATS_PERIOD
from bug_sync_manager.utils.http import handle_api_errors

from .abc import SentryClientBase
from .client import get_sentry_client

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

handle_sentry_errors = handle_api_errors("Sentry", SourceUnavailableError)

_PROJECT_LIST = TypeAdapter(list[SentryProject])
_ISSUE_LIST = TypeAdapter(list[SentryIssue])


class SentryAdapter(SentryClientBase):
    """Sentry client adapter for the Sentry REST API."""

    def __init__(self, client: httpx.AsyncClient, instance_name: str = "") -> None:
        """Initialize the adapter with an already-initialized httpx client."""
        self.client = client
        self.instance_name = instance_name

    @classmethod
    async def create(
        cls,
        instance: SentryInstanceModel,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Self:
        """Create a new Sentry client adapter for a configured instance.

        Args:
            instance: The Sentry instance holding the API key and base URL.
            timeout: Timeout in seconds for every request.
            transport: Optional httpx transport, mainly for tests.

        Returns:
            Configured SentryAdapter instance
        """
        logger.info("Creating client for Sentry instance", instance=instance.name, base_url=instance.base_url)
        client = get_sentry_client(api_key=instance.api_key, base_url=instance.base_url, timeout=timeout, transport=transport)
        return cls(client, instance.name)

    async def close(self) -> None:
        """Close the underlying httpx client."""
        await self.client.aclose()

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = await self.client.get(path, params=params)
        response.raise_for_status()
        return response.json()

    # Projects
    @handle_sentry_errors
    async def list_projects(self) -> list[SentryProject]:
        """List the projects the API token can access, with organization slugs filled in."""
        projects = _PROJECT_LIST.validate_python(await self._get_json("projects/"))
        logger.debug("Fetched Sentry projects", instance=self.instance_name, count=len(projects))
        return projects

    # Issues
    @handle_sentry_errors
    async def list_unresolved_issues(self, organization_slug: str, project_slug: str, limit: int) -> list[SentryIssue]:
        """List unresolved issues of a project seen in the last day, most recent first."""
        params = {
            "query": "is:unresolved",
            "limit": limit,
            "sort": "date",
            "statsPeriod": SENTRY_ISSUES_STATS_PERIOD,
        }
        issues = _ISSUE_LIST.validate_python(await self._get_json(f"projects/{organization_slug}/{project_slug}/issues/", params=params))
        logger.info(
            "Fetched unresolved Sentry issues",
            instance=self.instance_name,
            organization=organization_slug,
            project=project_slug,
            count=len(issues),
        )
        return issues

    @handle_sentry_errors
    async def get_issue_detail(self, issue_id: str) -> SentryIssue:
        """Get the full details of an issue."""
        return SentryIssue.model_validate(await self._get_json(f"issues/{issue_id}/"))

    @handle_sentry_errors
    async def resolve_issue(self, issue_id: str) -> None:
        """Mark an issue as resolved. Resolving an already resolved issue succeeds."""
        response = await self.client.put(f"issues/{issue_id}/", json={"status": "resolved"})
        response.raise_for_status()
        logger.info("Resolved Sentry issue", instance=self.instance_name, issue_id=issue_id)

    # Events
    @handle_sentry_errors
    async def get_latest_event(self, issue_id: str) -> SentryEvent:
        """Get the most recent event of an issue, including its stack trace."""
        return SentryEvent.model_validate(await self._get_json(f"issues/{issue_id}/events/latest/"))
