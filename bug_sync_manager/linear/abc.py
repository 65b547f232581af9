"""Base ABC for Linear clients."""

from abc import ABC, abstractmethod

from bug_sync_manager.schemas.linear import LinearIssue, LinearProject, LinearTeam, LinearWorkflowState


class LinearClientBase(ABC):
    """Base ABC for Linear clients."""

    # Teams and projects
    @abstractmethod
    async def list_teams(self) -> list[LinearTeam]:
        """List the teams the API key can access."""
        pass

    @abstractmethod
    async def list_projects(self, team_id: str) -> list[LinearProject]:
        """List the projects of a team."""
        pass

    @abstractmethod
    async def list_workflow_states(self, team_id: str) -> list[LinearWorkflowState]:
        """List the workflow states of a team."""
        pass

    # Labels
    @abstractmethod
    async def get_or_create_label(self, team_id: str, name: str, color: str) -> str:
        """Return the ID of a team label with the given name, creating it if missing."""
        pass

    # Issues
    @abstractmethod
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
        """Create an issue in a team, optionally in a project and initial state."""
        pass

    async def close(self) -> None:
        """Release any resources held by the client."""
        return None
