"""Pydantic models for the Linear GraphQL payloads used by the sync."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _LinearModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class WorkflowStateType(str, Enum):
    """Enum for the categories of a Linear workflow state."""

    TRIAGE = "triage"
    BACKLOG = "backlog"
    UNSTARTED = "unstarted"
    STARTED = "started"
    COMPLETED = "completed"
    CANCELED = "canceled"

    @property
    def display_suffix(self) -> str:
        """Short label shown next to a state name when picking an initial state."""
        return WORKFLOW_STATE_DISPLAY_SUFFIXES[self]


WORKFLOW_STATE_DISPLAY_SUFFIXES: dict[WorkflowStateType, str] = {
    WorkflowStateType.TRIAGE: "Triage",
    WorkflowStateType.BACKLOG: "Backlog",
    WorkflowStateType.UNSTARTED: "Todo",
    WorkflowStateType.STARTED: "In Progress",
    WorkflowStateType.COMPLETED: "Done",
    WorkflowStateType.CANCELED: "Canceled",
}


class LinearTeam(_LinearModel):
    """Pydantic model for a Linear team."""

    id: str
    name: str = ""
    key: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.name} ({self.key})" if self.key else self.name


class LinearProject(_LinearModel):
    """Pydantic model for a Linear project."""

    id: str
    name: str = ""
    description: str = ""
    state: str = ""

    @field_validator("description", "state", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class LinearLabel(_LinearModel):
    """Pydantic model for a Linear issue label."""

    id: str
    name: str = ""
    color: str = ""

    @field_validator("color", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class LinearWorkflowState(_LinearModel):
    """Pydantic model for a Linear workflow state."""

    id: str
    name: str
    type: WorkflowStateType | str
    color: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def _known_type_to_enum(cls, value: Any) -> Any:
        # Unknown categories from newer API versions are kept as plain strings.
        try:
            return WorkflowStateType(value)
        except ValueError:
            return value

    @property
    def display_name(self) -> str:
        """State name followed by its category, e.g. ``Todo (Todo)``."""
        if isinstance(self.type, WorkflowStateType):
            return f"{self.name} ({self.type.display_suffix})"
        return self.name


class LinearIssueState(_LinearModel):
    """Workflow state reference embedded in a created issue."""

    id: str = ""
    name: str = ""


class LinearIssueLabels(_LinearModel):
    """Label connection embedded in a created issue."""

    nodes: list[LinearLabel] = Field(default_factory=list)


class LinearIssue(_LinearModel):
    """Pydantic model for an issue returned by ``issueCreate``."""

    id: str
    identifier: str = ""
    title: str = ""
    description: str = ""
    priority: int = 0
    url: str = ""
    state: LinearIssueState | None = None
    labels: LinearIssueLabels = Field(default_factory=LinearIssueLabels)

    @field_validator("description", "identifier", "url", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("labels", mode="before")
    @classmethod
    def _none_labels_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def label_names(self) -> list[str]:
        """Names of the labels attached to the issue."""
        return [label.name for label in self.labels.nodes]
