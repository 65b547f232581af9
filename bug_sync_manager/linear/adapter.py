"""Linear client adapter for the Linear GraphQL API over httpx."""

from typing import Any, Self

import httpx
import structlog
from pydantic import TypeAdapter

from bug_sync_manager.exceptions import DataError, SinkUnavailableError
from bug_sync_manager.schemas.config import LinearInstanceModel
from bug_sync_manager.schemas.linear import LinearIssue, LinearLabel, LinearProject, LinearTeam, LinearWorkflowState
from bug_sync_manager.utils.constants import DEFAULT_HTTP_TIMEOUT, LINEAR_API_URL
from bug_sync_manager.utils.http import handle_api_errors

from .abc import LinearClientBase
from .client import get_linear_client
from .queries import (
    CREATE_ISSUE_MUTATION,
    CREATE_LABEL_MUTATION,
    TEAM_LABEL_BY_NAME_QUERY,
    TEAM_PROJECTS_QUERY,
    TEAM_WORKFLOW_STATES_QUERY,
    TEAMS_QUERY,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

handle_linear_errors = handle_api_errors("Linear", SinkUnavailableError)

_TEAM_LIST = TypeAdapter(list[LinearTeam])
_PROJECT_LIST = TypeAdapter(list[LinearProject])
_LABEL_LIST = TypeAdapter(list[LinearLabel])
_WORKFLOW_STATE_LIST = TypeAdapter(list[LinearWorkflowState])


def _omit_empty_values(**kwargs: Any) -> dict[str, Any]:
    """Omit parameters that are None or empty strings."""
    return {k: v for k, v in kwargs.items() if v is not None and v != ""}


def _dig(data: Any, *path: str) -> Any:
    """Walk nested GraphQL ``data`` by key, raising DataError on a missing level."""
    current = data
    for key in path:
        if not isinstance(current, dict) or current.get(key) is None:
            raise DataError(f"Linear API response is missing '{'.'.join(path)}'")
        current = current[key]
    return current


class LinearAdapter(LinearClientBase):
    """Linear client adapter for the Linear GraphQL API."""

    def __init__(self, client: httpx.AsyncClient, api_url: str = LINEAR_API_URL, instance_name: str = "") -> None:
        """Initialize the adapter with an already-initialized httpx client."""
        self.client = client
        self.api_url = api_url
        self.instance_name = instance_name

    @classmethod
    async def create(
        cls,
        instance: LinearInstanceModel,
        api_url: str = LINEAR_API_URL,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Self:
        """Create a new Linear client adapter for a configured instance.

        Args:
            instance: The Linear instance holding the API key.
            api_url: GraphQL endpoint URL.
            timeout: Timeout in seconds for every request.
            transport: Optional httpx transport, mainly for tests.

        Returns:
            Configured LinearAdapter instance
        """
        logger.info("Creating client for Linear instance", instance=instance.name, api_url=api_url)
        client = get_linear_client(api_key=instance.api_key, timeout=timeout, transport=transport)
        return cls(client, api_url, instance.name)

    async def close(self) -> None:
        """Close the underlying httpx client."""
        await self.client.aclose()

    async def _execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a GraphQL document and return its ``data`` object.

        Raises:
            DataError: If the response carries GraphQL errors or no data.
        """
        response = await self.client.post(self.api_url, json={"query": query, "variables": variables or {}})
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise DataError("Linear API response is not a JSON object")

        errors = body.get("errors")
        if errors:
            message = errors[0].get("message", "Unknown error") if isinstance(errors[0], dict) else str(errors[0])
            logger.error("Linear GraphQL error", instance=self.instance_name, message=message, error_count=len(errors))
            raise DataError(f"GraphQL error: {message}")

        data = body.get("data")
        if not isinstance(data, dict):
            raise DataError("Linear API response has no data")
        return data

    # Teams and projects
    @handle_linear_errors
    async def list_teams(self) -> list[LinearTeam]:
        """List the teams the API key can access."""
        data = await self._execute(TEAMS_QUERY)
        teams = _TEAM_LIST.validate_python(_dig(data, "teams", "nodes"))
        logger.debug("Fetched Linear teams", instance=self.instance_name, count=len(teams))
        return teams

    @handle_linear_errors
    async def list_projects(self, team_id: str) -> list[LinearProject]:
        """List the projects of a team."""
        data = await self._execute(TEAM_PROJECTS_QUERY, {"teamId": team_id})
        return _PROJECT_LIST.validate_python(_dig(data, "team", "projects", "nodes"))

    @handle_linear_errors
    async def list_workflow_states(self, team_id: str) -> list[LinearWorkflowState]:
        """List the workflow states of a team."""
        data = await self._execute(TEAM_WORKFLOW_STATES_QUERY, {"teamId": team_id})
        return _WORKFLOW_STATE_LIST.validate_python(_dig(data, "team", "states", "nodes"))

    # Labels
    @handle_linear_errors
    async def find_label(self, team_id: str, name: str) -> LinearLabel | None:
        """Return the team label with exactly the given name, if any."""
        data = await self._execute(TEAM_LABEL_BY_NAME_QUERY, {"teamId": team_id, "name": name})
        labels = _LABEL_LIST.validate_python(_dig(data, "team", "labels", "nodes"))
        return labels[0] if labels else None

    @handle_linear_errors
    async def create_label(self, team_id: str, name: str, color: str) -> LinearLabel:
        """Create a team label."""
        data = await self._execute(CREATE_LABEL_MUTATION, {"teamId": team_id, "name": name, "color": color})
        result = _dig(data, "issueLabelCreate")
        if not result.get("success") or not result.get("issueLabel"):
            raise DataError(f"Linear did not create label '{name}'")
        label = LinearLabel.model_validate(result["issueLabel"])
        logger.info("Created Linear label", instance=self.instance_name, team_id=team_id, label=name, label_id=label.id)
        return label

    async def get_or_create_label(self, team_id: str, name: str, color: str) -> str:
        """Return the ID of a team label with the given name, creating it if missing.

        The lookup and the creation are separate requests, so two concurrent callers
        can still both create the label.
        """
        existing = await self.find_label(team_id, name)
        if existing is not None:
            logger.debug("Found existing Linear label", instance=self.instance_name, team_id=team_id, label=name, label_id=existing.id)
            return existing.id
        created = await self.create_label(team_id, name, color)
        return created.id

    # Issues
    @handle_linear_errors
    async def create_issue(
        self,
        team_id: str,
        title: str,
        description: str,
        label_ids: list[str] | None = None,
        priority: int = 0,
        project_id: str | None = None,
        state_id: str | None = None,
    ) -> LinearIssue:
        """Create an issue in a team.

        ``project_id`` and ``state_id`` are left out of the request when not given,
        in which case Linear files the issue under the team and its default state.
        """
        issue_input = _omit_empty_values(
            teamId=team_id,
            projectId=project_id,
            title=title,
            description=description,
            labelIds=label_ids or None,
            priority=priority,
            stateId=state_id,
        )
        data = await self._execute(CREATE_ISSUE_MUTATION, {"input": issue_input})
        result = _dig(data, "issueCreate")
        if not result.get("success") or not result.get("issue"):
            raise DataError("Linear did not create the issue")
        issue = LinearIssue.model_validate(result["issue"])
        logger.info(
            "Created Linear issue",
            instance=self.instance_name,
            team_id=team_id,
            project_id=project_id,
            issue_id=issue.id,
            url=issue.url,
        )
        return issue
